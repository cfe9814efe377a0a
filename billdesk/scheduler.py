"""Repeating refresh job, independent of the timer that drives it."""

from __future__ import annotations

from typing import Callable

from billdesk.diagnostics import log_debug
from billdesk.state import BillingState


class RefreshTask:
    """
    One reload-reconcile-compute cycle per tick.

    `load` builds a fresh state (see `state.load_state`) and `on_state`
    receives it. A timer such as Textual's `set_interval` calls `run_once`;
    tests call it directly.
    """

    def __init__(self, load: Callable[[], BillingState], on_state: Callable[[BillingState], None]) -> None:
        self._load = load
        self._on_state = on_state
        self.runs = 0

    def run_once(self) -> BillingState | None:
        self.runs += 1
        try:
            state = self._load()
            self._on_state(state)
        except Exception as exc:
            # A failed tick must not stop the next one.
            log_debug("refresh_failed", run=self.runs, error=repr(exc))
            return None
        return state
