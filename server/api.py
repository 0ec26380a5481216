"""FastAPI server exposing the suggestion flows."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException

from logic.validation import (
    DressCodeSuggestionRequest,
    PromptSuggestionRequest,
    SaveCandidateRequest,
    SkipRequest,
    WeatherSuggestionRequest,
)
from stylist_app.app import StylistApp

_STATUS_BY_REASON = {
    "unknown_deck": 404,
    "unknown_candidate": 404,
    "persistence_failed": 502,
}


def _unwrap(response: dict, fallback: str) -> dict:
    """Map an agent envelope onto an HTTP status."""

    if response.get("status") == "ok":
        return response
    status_code = _STATUS_BY_REASON.get(str(response.get("reason")), 400)
    raise HTTPException(status_code=status_code, detail=response.get("message") or fallback)


def create_app(stylist_app: StylistApp | None = None) -> FastAPI:
    """Build the API around ``stylist_app`` (or one configured from the environment)."""

    stylist = stylist_app or StylistApp()
    api = FastAPI(title="Wardrobe Stylist", version="0.1.0")
    api.state.stylist = stylist

    @api.get("/healthz")
    def healthcheck() -> dict:
        """Lightweight readiness check."""

        return {
            "status": "ok",
            "service": "wardrobe-stylist",
            "environment": stylist.config.environment or "local",
        }

    @api.post("/suggestions/prompt")
    def suggest_from_prompt(request: PromptSuggestionRequest) -> dict:
        response = stylist.suggestions.suggest_from_prompt(request.user_id, request.prompt, request.count)
        return _unwrap(response, "prompt suggestion failed")

    @api.post("/suggestions/weather")
    def suggest_for_weather(request: WeatherSuggestionRequest) -> dict:
        response = stylist.suggestions.suggest_for_weather(
            request.user_id,
            raining=request.raining,
            temperature_c=request.temperature_c,
            count=request.count,
            temperature_label=request.temperature_label,
        )
        return _unwrap(response, "weather suggestion failed")

    @api.post("/suggestions/dress-code")
    def suggest_for_dress_code(request: DressCodeSuggestionRequest) -> dict:
        response = stylist.suggestions.suggest_for_dress_code(request.user_id, request.dress_code, request.count)
        return _unwrap(response, "dress code suggestion failed")

    @api.post("/decks/{deck_id}/skip")
    def skip_card(deck_id: str, request: SkipRequest) -> dict:
        return _unwrap(stylist.suggestions.skip(deck_id, request.candidate_id), "skip failed")

    @api.post("/decks/{deck_id}/save")
    def save_card(deck_id: str, request: SaveCandidateRequest) -> dict:
        metadata = request.model_dump(exclude={"candidate_id"})
        response = stylist.suggestions.save_candidate(deck_id, request.candidate_id, metadata)
        return _unwrap(response, "save failed")

    return api


def get_app() -> FastAPI:
    """Expose a FastAPI instance for ASGI servers."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)
