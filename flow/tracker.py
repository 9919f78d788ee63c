# flow/tracker.py
from __future__ import annotations
import copy
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Set
from logger import log


class StepIndexError(IndexError):
    """Raised when a step index falls outside 0..N-1."""


def _copy_value(value: Any) -> Any:
    """Deep copy, or shallow copy for values that cannot be deep-copied (locks, clients)."""
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error):
        try:
            return copy.copy(value)
        except (TypeError, copy.Error):
            return value


class CompletionTracker:
    """
    Completed step indices plus the state merged from their payloads.

    Membership only grows until `discard()`. Payload keys are merged
    last-writer-wins.
    """

    def __init__(self, step_count: int) -> None:
        if step_count < 1:
            raise ValueError(f"step_count must be >= 1, got {step_count}")
        self.step_count = step_count
        self._completed: Set[int] = set()
        self._state: Dict[str, Any] = {}
        self._discarded = False

    @property
    def completed_indices(self) -> FrozenSet[int]:
        return frozenset(self._completed)

    @property
    def completed_count(self) -> int:
        return len(self._completed)

    @property
    def discarded(self) -> bool:
        return self._discarded

    def check_index(self, index: int) -> None:
        if not isinstance(index, int) or isinstance(index, bool):
            raise StepIndexError(f"Step index must be an int, got {index!r}")
        if not 0 <= index < self.step_count:
            raise StepIndexError(
                f"Step index {index} out of range 0..{self.step_count - 1}"
            )

    def mark_complete(self, index: int, payload: Optional[Mapping[str, Any]] = None) -> None:
        self.check_index(index)
        if self._discarded:
            log.debug("Tracker discarded, ignoring completion of step %d", index)
            return
        for key, value in (payload or {}).items():
            if key in self._state and self._state[key] != value:
                log.debug("Step %d overwrites '%s'", index, key)
            self._state[key] = _copy_value(value)
        self._completed.add(index)

    def is_complete(self, index: int) -> bool:
        return index in self._completed

    def snapshot(self) -> Mapping[str, Any]:
        """Read-only copy of the accumulated state, deep where the values allow it."""
        return MappingProxyType({k: _copy_value(v) for k, v in self._state.items()})

    def discard(self) -> None:
        self._completed.clear()
        self._state.clear()
        self._discarded = True
