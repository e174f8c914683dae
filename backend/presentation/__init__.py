"""Presentation of derived state to clients."""

from .broadcaster import StateBroadcaster
from .view import CALCULATING_TEXT, StateView, describe_state, state_payload

__all__ = [
    "CALCULATING_TEXT",
    "StateBroadcaster",
    "StateView",
    "describe_state",
    "state_payload",
]
