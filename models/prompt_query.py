"""Structured intent extracted from a free-text outfit prompt."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional

from models.layers import LayerKind


class PaletteMode(str, Enum):
    NONE = "none"
    MONOCHROME = "monochrome"
    NEUTRAL = "neutral"
    PASTEL = "pastel"
    EARTH = "earth"
    COLORFUL = "colorful"


@dataclass(frozen=True)
class Palette:
    """Palette requested by the prompt.

    ``colour`` and ``strict`` only carry meaning for monochrome palettes; a
    monochrome palette without a colour takes its hue from the first base
    garment picked.
    """

    mode: PaletteMode = PaletteMode.NONE
    colour: Optional[str] = None
    strict: bool = False

    @classmethod
    def monochrome(cls, colour: Optional[str], strict: bool = True) -> "Palette":
        return cls(mode=PaletteMode.MONOCHROME, colour=colour, strict=strict)

    @property
    def is_monochrome(self) -> bool:
        return self.mode is PaletteMode.MONOCHROME


@dataclass(frozen=True)
class PromptQuery:
    """Soft constraints parsed from one prompt. Never mutated after parsing."""

    required_colours_by_kind: Dict[LayerKind, FrozenSet[str]] = field(default_factory=dict)
    subtypes_by_kind: Dict[LayerKind, FrozenSet[str]] = field(default_factory=dict)
    required_subtypes_by_kind: Dict[LayerKind, FrozenSet[str]] = field(default_factory=dict)
    required_kinds: FrozenSet[LayerKind] = frozenset()
    global_colours: FrozenSet[str] = frozenset()
    style_tags: FrozenSet[str] = frozenset()
    dress_code: Optional[str] = None
    occasion: Optional[str] = None
    palette: Palette = Palette()
    wants_dress_base: Optional[bool] = None
    prefer_outerwear: bool = False
    avoid_outerwear: bool = False
    metallics: FrozenSet[str] = frozenset()

    def colours_for(self, kind: LayerKind) -> FrozenSet[str]:
        return self.required_colours_by_kind.get(kind, frozenset())

    def subtypes_for(self, kind: LayerKind) -> FrozenSet[str]:
        return self.subtypes_by_kind.get(kind, frozenset())

    def required_subtypes_for(self, kind: LayerKind) -> FrozenSet[str]:
        return self.required_subtypes_by_kind.get(kind, frozenset())

    @property
    def is_empty(self) -> bool:
        return self == PromptQuery()

    def to_dict(self) -> Dict[str, object]:
        """JSON-friendly view used in diagnostics and API responses."""

        def by_kind(mapping: Dict[LayerKind, FrozenSet[str]]) -> Dict[str, list]:
            return {kind.value: sorted(values) for kind, values in mapping.items()}

        return {
            "required_colours_by_kind": by_kind(self.required_colours_by_kind),
            "subtypes_by_kind": by_kind(self.subtypes_by_kind),
            "required_subtypes_by_kind": by_kind(self.required_subtypes_by_kind),
            "required_kinds": sorted(kind.value for kind in self.required_kinds),
            "global_colours": sorted(self.global_colours),
            "style_tags": sorted(self.style_tags),
            "dress_code": self.dress_code,
            "occasion": self.occasion,
            "palette": {
                "mode": self.palette.mode.value,
                "colour": self.palette.colour,
                "strict": self.palette.strict,
            },
            "wants_dress_base": self.wants_dress_base,
            "prefer_outerwear": self.prefer_outerwear,
            "avoid_outerwear": self.avoid_outerwear,
            "metallics": sorted(self.metallics),
        }


__all__ = ["Palette", "PaletteMode", "PromptQuery"]
