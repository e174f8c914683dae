"""Human-readable rendering of a derived state snapshot."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from navigation.types import DerivedState

CALCULATING_TEXT = "Calculating direction…"


class StateView(BaseModel):
    """Text the client shows next to the arrow."""

    distance_text: str | None = Field(None, alias="distanceText")
    direction_text: str = Field(..., alias="directionText")
    # Continuous angle drives the arrow animation; None hides the arrow.
    arrow_rotation: float | None = Field(None, alias="arrowRotation")

    model_config = ConfigDict(populate_by_name=True)


def format_distance(distance_m: float) -> str:
    return f"Distance: {distance_m:.1f} m"


def format_direction(display_rotation: float) -> str:
    # 359.6 would round to "360°".
    return f"Direction: {round(display_rotation) % 360:d}°"


def describe_state(state: DerivedState) -> StateView:
    distance_text = format_distance(state.distance_m) if state.distance_m is not None else None
    if state.has_rotation:
        return StateView(
            distance_text=distance_text,
            direction_text=format_direction(state.display_rotation),
            arrow_rotation=state.continuous_rotation,
        )
    return StateView(distance_text=distance_text, direction_text=CALCULATING_TEXT)


def state_payload(state: DerivedState) -> dict:
    """JSON message sent to API and WebSocket clients."""
    return {
        "type": "state",
        "state": state.model_dump(by_alias=True),
        "view": describe_state(state).model_dump(by_alias=True),
    }
