"""
Per-session app state.

    Loading ──load_succeeded──▶ Ready(selected="all")
    Loading ──load_failed─────▶ Error(message)
    Ready   ──selection_changed▶ Ready(selected=<id>)

Ready is the only interactive state. States are immutable; a transition
returns a new state object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from errors import InvalidTransition
from event_data import Dataset
from settings import ALL_EVENTS, LOAD_ERROR_TEXT


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Error:
    message: str = LOAD_ERROR_TEXT


@dataclass(frozen=True)
class Ready:
    dataset: Dataset
    selected: str = ALL_EVENTS


AppState = Union[Loading, Error, Ready]


def load_succeeded(state: AppState, dataset: Dataset) -> Ready:
    if not isinstance(state, Loading):
        raise InvalidTransition(f"load_succeeded from {type(state).__name__}")
    return Ready(dataset=dataset)


def load_failed(state: AppState, message: str = LOAD_ERROR_TEXT) -> Error:
    if not isinstance(state, Loading):
        raise InvalidTransition(f"load_failed from {type(state).__name__}")
    return Error(message=message)


def selection_changed(state: AppState, event_id: str) -> Ready:
    if not isinstance(state, Ready):
        raise InvalidTransition(f"selection_changed from {type(state).__name__}")
    return Ready(dataset=state.dataset, selected=event_id)
