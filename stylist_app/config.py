"""Configuration helpers for the wardrobe stylist."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class StylistConfig:
    """Configuration values for the suggestion engine and its collaborators.

    Defaults mirror the behaviour of the mobile client: buckets of a few
    hundred items per layer, at most five pieces per outfit and a handful of
    independent assembly attempts before giving up on a card.
    """

    wardrobe_db_path: str = "data/wardrobe.db"
    outfit_db_path: str = "data/outfits.db"
    bucket_limit: int = 300
    max_outfit_items: int = 5
    optional_layer_probability: float = 0.35
    weather_outerwear_probability: float = 0.8
    cold_threshold_c: float = 15.0
    score_band: int = 10
    max_attempts: int = 3
    deck_size: int = 2
    fetch_workers: int = 7
    infer_skip_preferences: bool = True
    log_level: str = "INFO"
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "StylistConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default; environment variables override anything read from the file.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("STYLIST_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        def typed(key: str, cast: Callable[[str], T], default: T) -> T:
            raw = get_value(key)
            if raw is None or str(raw).strip() == "":
                return default
            try:
                return cast(str(raw).strip())
            except ValueError:
                logger.warning("Invalid value %r for %s, using default %r", raw, key, default)
                return default

        defaults = cls()
        return cls(
            wardrobe_db_path=str(get_value("wardrobe_db_path", defaults.wardrobe_db_path)),
            outfit_db_path=str(get_value("outfit_db_path", defaults.outfit_db_path)),
            bucket_limit=typed("bucket_limit", int, defaults.bucket_limit),
            max_outfit_items=typed("max_outfit_items", int, defaults.max_outfit_items),
            optional_layer_probability=typed(
                "optional_layer_probability", float, defaults.optional_layer_probability
            ),
            weather_outerwear_probability=typed(
                "weather_outerwear_probability", float, defaults.weather_outerwear_probability
            ),
            cold_threshold_c=typed("cold_threshold_c", float, defaults.cold_threshold_c),
            score_band=typed("score_band", int, defaults.score_band),
            max_attempts=typed("max_attempts", int, defaults.max_attempts),
            deck_size=typed("deck_size", int, defaults.deck_size),
            fetch_workers=typed("fetch_workers", int, defaults.fetch_workers),
            infer_skip_preferences=typed("infer_skip_preferences", _parse_bool, defaults.infer_skip_preferences),
            log_level=str(get_value("log_level", defaults.log_level)),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"not a boolean: {value}")
