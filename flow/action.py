# flow/action.py
from __future__ import annotations
import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set
from logger import log


class StepActionState(str, Enum):
    """Lifecycle of a single step's asynchronous action."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED: Dict[StepActionState, Set[StepActionState]] = {
    StepActionState.NOT_STARTED: {StepActionState.IN_PROGRESS},
    StepActionState.IN_PROGRESS: {StepActionState.COMPLETED, StepActionState.FAILED},
    StepActionState.FAILED: {StepActionState.IN_PROGRESS, StepActionState.NOT_STARTED},
    StepActionState.COMPLETED: set(),
}

Action = Callable[[Any], Awaitable[Optional[Mapping[str, Any]]]]
StateListener = Callable[[StepActionState], None]


class StepActionRunner:
    """
    Runs a step's fallible async action and tracks it as a StepActionState.

    Only one invocation may be in flight. A resolved action moves the runner
    to COMPLETED and forwards its result to `on_complete`; a raised exception
    moves it to FAILED and is kept on `error` until the next attempt.
    """

    def __init__(
        self,
        action: Action,
        on_complete: Optional[Callable[[Mapping[str, Any]], Any]] = None,
        name: str = "",
    ) -> None:
        self._action = action
        self._on_complete = on_complete
        self.name = name or getattr(action, "__name__", "action")
        self._state = StepActionState.NOT_STARTED
        self._listeners: List[StateListener] = []
        self.error: Optional[BaseException] = None
        self.result: Optional[Mapping[str, Any]] = None

    @property
    def state(self) -> StepActionState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is StepActionState.IN_PROGRESS

    @property
    def failure_reason(self) -> str:
        if self.error is None:
            return ""
        if isinstance(self.error, asyncio.CancelledError):
            return "cancelled"
        return str(self.error) or type(self.error).__name__

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _transition(self, target: StepActionState) -> None:
        if target not in _ALLOWED[self._state]:
            raise RuntimeError(
                f"{self.name}: illegal transition {self._state.value} -> {target.value}"
            )
        log.debug("%s: %s -> %s", self.name, self._state.value, target.value)
        self._state = target
        for listener in list(self._listeners):
            listener(target)

    async def invoke(self, payload: Any = None) -> bool:
        """Run the action once. Returns True if it completed successfully."""
        if self._state is StepActionState.IN_PROGRESS:
            log.warning("%s: already in progress, ignoring duplicate submit", self.name)
            return False
        if self._state is StepActionState.COMPLETED:
            log.warning("%s: already completed, ignoring invoke", self.name)
            return False

        self.error = None
        # Claim IN_PROGRESS before the first await so a concurrent
        # invoke() on the same loop sees it.
        self._transition(StepActionState.IN_PROGRESS)
        try:
            result = await self._action(payload)
        except asyncio.CancelledError as e:
            self.error = e
            log.warning("%s: action cancelled", self.name)
            self._transition(StepActionState.FAILED)
            raise
        except Exception as e:
            self.error = e
            log.warning("%s: action failed: %s", self.name, self.failure_reason)
            self._transition(StepActionState.FAILED)
            return False

        self.result = dict(result or {})
        log.info("%s: action completed", self.name)
        self._transition(StepActionState.COMPLETED)
        if self._on_complete is not None:
            self._on_complete(self.result)
        return True

    def reset(self) -> None:
        """Return a failed runner to NOT_STARTED so the input form shows again."""
        if self._state is StepActionState.FAILED:
            self.error = None
            self._transition(StepActionState.NOT_STARTED)
