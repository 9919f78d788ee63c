# flow/controller.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple
from flow.steps import StepContext, StepDefinition, validate_sequence
from flow.tracker import CompletionTracker
from logger import log


class RunStatus(str, Enum):
    ACTIVE = "active"
    DONE = "done"
    CANCELLED = "cancelled"


class ControllerEvent(str, Enum):
    STEP_CHANGED = "step_changed"
    STEP_COMPLETED = "step_completed"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class WizardConfig:
    show_back: bool = False


Listener = Callable[[ControllerEvent, "WizardController"], None]


class WizardController:
    """
    Linear step-sequencing state machine for one wizard run.

    Steps report success through `on_step_complete`; navigation is always an
    explicit `advance()` / `go_back()` / `cancel()`. Mandatory steps block
    `advance()` until complete, optional steps never do. `on_done` receives
    the accumulated state exactly once; `on_cancel` fires exactly once.
    """

    def __init__(
        self,
        steps: Sequence[StepDefinition],
        on_done: Callable[[Mapping[str, Any]], Any],
        on_cancel: Optional[Callable[[], Any]] = None,
        config: Optional[WizardConfig] = None,
    ) -> None:
        self._steps: Tuple[StepDefinition, ...] = validate_sequence(steps)
        self._on_done = on_done
        self._on_cancel = on_cancel
        self.config = config or WizardConfig()
        self._tracker = CompletionTracker(len(self._steps))
        self._index = 0
        self._status = RunStatus.ACTIVE
        self._listeners: List[Listener] = []
        log.info(
            "Wizard run started with %d steps: %s",
            len(self._steps), ", ".join(s.display_label for s in self._steps),
        )

    # -- Queries -----------------------------------------------------------

    @property
    def steps(self) -> Tuple[StepDefinition, ...]:
        return self._steps

    @property
    def step_count(self) -> int:
        return len(self._steps)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_step(self) -> StepDefinition:
        return self._steps[self._index]

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status is RunStatus.ACTIVE

    @property
    def tracker(self) -> CompletionTracker:
        return self._tracker

    def is_complete(self, index: int) -> bool:
        return self._tracker.is_complete(index)

    @property
    def can_advance(self) -> bool:
        return self.is_active and (
            self.current_step.optional or self._tracker.is_complete(self._index)
        )

    @property
    def can_go_back(self) -> bool:
        return self.is_active and self.config.show_back and self._index > 0

    def snapshot(self) -> Mapping[str, Any]:
        if self._tracker.discarded:
            return MappingProxyType({})
        return self._tracker.snapshot()

    # -- Notifications -----------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self, event: ControllerEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    # -- Transitions -------------------------------------------------------

    def advance(self) -> bool:
        if not self.is_active:
            log.warning("advance() called after run ended (%s), ignoring", self._status.value)
            return False
        step = self.current_step
        if not (step.optional or self._tracker.is_complete(self._index)):
            log.info("Step %d '%s' is mandatory and not complete", step.index, step.label)
            return False
        if not self._tracker.is_complete(self._index):
            log.info("Step %d '%s' skipped", step.index, step.label)

        if self._index + 1 == len(self._steps):
            final_state = self._tracker.snapshot()
            self._status = RunStatus.DONE
            log.info("Wizard run done")
            self._notify(ControllerEvent.DONE)
            self._on_done(final_state)
            return True

        self._index += 1
        log.info("Moved to step %d '%s'", self._index, self.current_step.label)
        self._notify(ControllerEvent.STEP_CHANGED)
        return True

    def go_back(self) -> bool:
        if not self.can_go_back:
            log.debug("go_back() not allowed at step %d", self._index)
            return False
        self._index -= 1
        log.info("Moved back to step %d '%s'", self._index, self.current_step.label)
        self._notify(ControllerEvent.STEP_CHANGED)
        return True

    def on_step_complete(self, index: int, payload: Optional[Mapping[str, Any]] = None) -> bool:
        if not self.is_active:
            log.debug("Stale completion for step %s after run %s", index, self._status.value)
            return False
        self._tracker.mark_complete(index, payload)
        log.info("Step %d '%s' complete", index, self._steps[index].label)
        self._notify(ControllerEvent.STEP_COMPLETED)
        return True

    def cancel(self) -> bool:
        if not self.is_active:
            log.debug("cancel() called after run %s, ignoring", self._status.value)
            return False
        self._status = RunStatus.CANCELLED
        self._tracker.discard()
        log.info("Wizard run cancelled at step %d", self._index)
        self._notify(ControllerEvent.CANCELLED)
        if self._on_cancel is not None:
            self._on_cancel()
        return True

    # -- Step capabilities -------------------------------------------------

    def context_for(self, index: Optional[int] = None, services: Any = None) -> StepContext:
        """Capabilities for the step at `index` (default: current step)."""
        index = self._index if index is None else index
        self._tracker.check_index(index)
        step = self._steps[index]
        return StepContext(
            step=step,
            on_complete=self.on_step_complete,
            on_cancel=self.cancel,
            snapshot=self.snapshot,
            services=services,
        )
