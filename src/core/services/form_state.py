"""
Form dirty-state tracking for admin editors.

An editor is DIRTY when its current values differ from the last saved
snapshot. Leaving a dirty editor needs confirmation:

    state = FormDirtyState({"title": "Old"})
    state.update({"title": "New"})
    state.request_exit(close)   # -> ExitDecision.CONFIRM_REQUIRED, close parked
    state.confirm_exit()        # runs close
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any


class FormState(StrEnum):
    CLEAN = "clean"
    DIRTY = "dirty"


class ExitDecision(StrEnum):
    EXITED = "exited"
    CONFIRM_REQUIRED = "confirm_required"


class FormDirtyState:
    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._saved: dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self._current: dict[str, Any] = copy.deepcopy(self._saved)
        self._pending_exit: Callable[[], Any] | None = None

    @property
    def state(self) -> FormState:
        return FormState.DIRTY if self._current != self._saved else FormState.CLEAN

    @property
    def is_dirty(self) -> bool:
        return self.state is FormState.DIRTY

    @property
    def values(self) -> dict[str, Any]:
        return copy.deepcopy(self._current)

    @property
    def has_pending_exit(self) -> bool:
        return self._pending_exit is not None

    def update(self, values: Mapping[str, Any]) -> FormState:
        """Merge edited field values into the current snapshot."""
        self._current.update(copy.deepcopy(dict(values)))
        return self.state

    def reset(self) -> None:
        """Discard edits and go back to the saved snapshot."""
        self._current = copy.deepcopy(self._saved)

    def mark_saved(self, values: Mapping[str, Any] | None = None) -> None:
        """Take the current (or given) values as the new saved snapshot."""
        if values is not None:
            self._current = copy.deepcopy(dict(values))
        self._saved = copy.deepcopy(self._current)
        self._pending_exit = None

    def request_exit(self, action: Callable[[], Any]) -> ExitDecision:
        if not self.is_dirty:
            action()
            return ExitDecision.EXITED
        self._pending_exit = action
        return ExitDecision.CONFIRM_REQUIRED

    def confirm_exit(self) -> bool:
        """Run the parked exit action. Returns False when nothing was parked."""
        action = self._pending_exit
        self._pending_exit = None
        if action is None:
            return False
        action()
        return True

    def cancel_exit(self) -> None:
        self._pending_exit = None
