# flow/steps.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple, Union
from logger import log


class InvalidSequenceError(ValueError):
    """Raised when a step sequence is empty or its indices are not 0..N-1."""


@dataclass(frozen=True)
class StepDefinition:
    """One step of a wizard run. Compared and hashed by position only."""
    label: str = field(compare=False)
    optional: bool = field(default=False, compare=False)
    index: int = 0
    content: Any = field(default=None, compare=False, repr=False)

    @property
    def display_label(self) -> str:
        return f"{self.label} (optional)" if self.optional else self.label


StepEntry = Union[Tuple[str, bool], Tuple[str, bool, Any], Mapping[str, Any]]


def validate_sequence(steps: Sequence[StepDefinition]) -> Tuple[StepDefinition, ...]:
    steps = tuple(steps)
    if not steps:
        raise InvalidSequenceError("A wizard needs at least one step.")
    for position, step in enumerate(steps):
        if step.index != position:
            raise InvalidSequenceError(
                f"Step '{step.label}' has index {step.index}, expected {position}."
            )
    return steps


def build_steps(entries: Iterable[StepEntry]) -> Tuple[StepDefinition, ...]:
    """
    Build a validated step tuple from (label, optional[, content]) tuples or
    {"label", "optional", "content"} mappings. Indices follow list order.
    """
    steps = []
    for position, entry in enumerate(entries):
        if isinstance(entry, Mapping):
            label = entry["label"]
            optional = bool(entry.get("optional", False))
            content = entry.get("content")
        else:
            label, optional, *rest = entry
            content = rest[0] if rest else None
        steps.append(StepDefinition(label=label, optional=bool(optional),
                                    index=position, content=content))
    return validate_sequence(steps)


class StepContext:
    """
    Capabilities handed to a step's content for one active period.

    `complete(payload)` reports success at most once; `cancel()` asks the
    wizard to stop; `services` carries whatever collaborators the caller
    passed in (e.g. an API client).
    """

    def __init__(
        self,
        step: StepDefinition,
        on_complete: Callable[[int, Optional[Mapping[str, Any]]], Any],
        on_cancel: Callable[[], Any],
        snapshot: Callable[[], Mapping[str, Any]],
        services: Any = None,
    ) -> None:
        self.step = step
        self.services = services
        self._on_complete = on_complete
        self._on_cancel = on_cancel
        self._snapshot = snapshot
        self._reported = False

    @property
    def reported(self) -> bool:
        return self._reported

    def complete(self, payload: Optional[Mapping[str, Any]] = None) -> bool:
        if self._reported:
            log.debug("Step %d: completion already reported, ignoring", self.step.index)
            return False
        self._reported = True
        return bool(self._on_complete(self.step.index, payload))

    def cancel(self) -> Any:
        return self._on_cancel()

    def snapshot(self) -> Mapping[str, Any]:
        return self._snapshot()
