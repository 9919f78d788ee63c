import asyncio
import threading
import pytest
from unittest.mock import MagicMock
from flow.action import StepActionRunner, StepActionState
from flow.controller import ControllerEvent, RunStatus, WizardConfig, WizardController
from flow.steps import build_steps
from flow.tracker import StepIndexError


def _controller(steps, show_back=False):
    on_done = MagicMock()
    on_cancel = MagicMock()
    ctl = WizardController(steps, on_done=on_done, on_cancel=on_cancel,
                           config=WizardConfig(show_back=show_back))
    return ctl, on_done, on_cancel


# ---------------------------------------------------------------------------
# Sequencing and gating
# ---------------------------------------------------------------------------

def test_starts_at_first_step(steps):
    ctl, _, _ = _controller(steps)
    assert ctl.current_index == 0
    assert ctl.status is RunStatus.ACTIVE
    assert ctl.current_step.label == "Create"

@pytest.mark.parametrize("n", [1, 2, 5, 8])
def test_all_mandatory_steps_reach_done_once(n):
    steps = build_steps([(f"s{i}", False) for i in range(n)])
    ctl, on_done, _ = _controller(steps)
    for i in range(n):
        ctl.on_step_complete(i, {f"k{i}": i})
        assert ctl.advance() is True
    assert ctl.status is RunStatus.DONE
    on_done.assert_called_once()
    assert dict(on_done.call_args.args[0]) == {f"k{i}": i for i in range(n)}
    # further advance is ignored, callback not repeated
    assert ctl.advance() is False
    on_done.assert_called_once()

def test_mandatory_step_blocks_advance(steps):
    ctl, on_done, _ = _controller(steps)
    assert ctl.can_advance is False
    assert ctl.advance() is False
    assert ctl.current_index == 0
    on_done.assert_not_called()

def test_optional_step_can_be_skipped(steps):
    ctl, _, _ = _controller(steps)
    ctl.on_step_complete(0, {})
    ctl.advance()
    assert ctl.current_index == 1
    assert not ctl.is_complete(1)
    assert ctl.can_advance is True
    assert ctl.advance() is True
    assert ctl.current_index == 2

def test_optional_step_payload_is_merged_when_completed(steps):
    ctl, on_done, _ = _controller(steps)
    ctl.on_step_complete(0, {"repoId": "r1"})
    ctl.advance()
    ctl.on_step_complete(1, {"importSource": "s3://bucket/data"})
    ctl.advance()
    ctl.on_step_complete(2, {"sparkConf": {}})
    ctl.advance()
    assert on_done.call_args.args[0]["importSource"] == "s3://bucket/data"

def test_single_optional_step_finishes_without_completion():
    ctl, on_done, _ = _controller(build_steps([("Only", True)]))
    assert ctl.advance() is True
    assert ctl.status is RunStatus.DONE
    assert dict(on_done.call_args.args[0]) == {}

def test_quickstart_scenario(steps):
    ctl, on_done, _ = _controller(steps)
    spark_conf = {"spark.hadoop.fs.s3a.endpoint": "http://lakefs:8000"}

    ctl.on_step_complete(0, {"repoId": "r1"})
    assert ctl.is_complete(0)
    assert ctl.current_index == 0   # no auto-advance

    ctl.advance()
    assert ctl.current_index == 1
    ctl.advance()
    assert ctl.current_index == 2

    assert ctl.advance() is False
    assert ctl.current_index == 2
    on_done.assert_not_called()

    ctl.on_step_complete(2, {"sparkConf": spark_conf})
    assert ctl.advance() is True
    assert ctl.status is RunStatus.DONE
    on_done.assert_called_once()
    assert dict(on_done.call_args.args[0]) == {"repoId": "r1", "sparkConf": spark_conf}

def test_current_index_stays_in_range_after_done(steps):
    ctl, _, _ = _controller(steps)
    for i in range(3):
        ctl.on_step_complete(i, {})
        ctl.advance()
    assert ctl.current_index == 2

def test_done_with_uncopyable_state_value():
    steps = build_steps([("Connect", False)])
    ctl, on_done, _ = _controller(steps)
    lock = threading.Lock()
    ctl.on_step_complete(0, {"lock": lock, "repoId": "r1"})
    assert ctl.advance() is True
    assert ctl.status is RunStatus.DONE
    on_done.assert_called_once()
    final = on_done.call_args.args[0]
    assert final["repoId"] == "r1"
    assert "lock" in final
    assert ctl.advance() is False
    on_done.assert_called_once()

# ---------------------------------------------------------------------------
# Back navigation
# ---------------------------------------------------------------------------

def test_go_back_disabled_by_default(steps):
    ctl, _, _ = _controller(steps)
    ctl.on_step_complete(0, {})
    ctl.advance()
    assert ctl.can_go_back is False
    assert ctl.go_back() is False
    assert ctl.current_index == 1

def test_go_back_when_enabled_keeps_completion(steps):
    ctl, _, _ = _controller(steps, show_back=True)
    assert ctl.go_back() is False    # already at 0
    ctl.on_step_complete(0, {"repoId": "r1"})
    ctl.advance()
    assert ctl.go_back() is True
    assert ctl.current_index == 0
    assert ctl.is_complete(0)
    assert ctl.can_advance

# ---------------------------------------------------------------------------
# Completion events
# ---------------------------------------------------------------------------

def test_stale_completion_for_earlier_step_is_recorded(steps):
    ctl, _, _ = _controller(steps)
    ctl.on_step_complete(0, {})
    ctl.advance()
    ctl.advance()
    assert ctl.on_step_complete(1, {"importSource": "s3://late"}) is True
    assert ctl.is_complete(1)
    assert ctl.current_index == 2

def test_out_of_range_completion_fails_fast(steps):
    ctl, _, _ = _controller(steps)
    with pytest.raises(StepIndexError):
        ctl.on_step_complete(3, {"x": 1})
    assert dict(ctl.snapshot()) == {}

def test_completion_after_done_is_noop(steps):
    ctl, on_done, _ = _controller(steps)
    for i in (0, 1, 2):
        ctl.on_step_complete(i, {})
        ctl.advance()
    assert ctl.on_step_complete(0, {"late": True}) is False
    assert "late" not in ctl.snapshot()
    on_done.assert_called_once()

# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

def test_cancel_discards_state_and_fires_once(steps):
    ctl, on_done, on_cancel = _controller(steps)
    ctl.on_step_complete(0, {"repoId": "r1"})
    assert ctl.cancel() is True
    assert ctl.status is RunStatus.CANCELLED
    assert dict(ctl.snapshot()) == {}
    assert ctl.cancel() is False
    on_cancel.assert_called_once_with()
    on_done.assert_not_called()
    assert ctl.advance() is False

def test_cancel_after_done_rejected(steps):
    ctl, _, on_cancel = _controller(steps)
    for i in (0, 1, 2):
        ctl.on_step_complete(i, {})
        ctl.advance()
    assert ctl.cancel() is False
    on_cancel.assert_not_called()

async def test_cancel_while_action_in_flight(steps):
    ctl, on_done, _ = _controller(steps)
    ctl.on_step_complete(0, {"repoId": "r1"})
    ctl.advance()

    release = asyncio.Event()
    async def slow_import(payload):
        await release.wait()
        return {"importSource": "s3://bucket"}

    ctx = ctl.context_for(1)
    runner = StepActionRunner(slow_import, on_complete=ctx.complete)
    task = asyncio.create_task(runner.invoke({}))
    await asyncio.sleep(0)
    assert runner.state is StepActionState.IN_PROGRESS

    ctl.cancel()
    release.set()
    await task

    assert runner.state is StepActionState.COMPLETED
    assert not ctl.is_complete(1)
    assert ctl.tracker.completed_count == 0
    assert dict(ctl.snapshot()) == {}
    on_done.assert_not_called()

async def test_failed_action_does_not_complete_step(steps):
    ctl, _, _ = _controller(steps)
    attempts = []
    async def create(payload):
        attempts.append(payload)
        if len(attempts) == 1:
            raise RuntimeError("boom")
        return {"repoId": "r1"}

    events = []
    ctl.subscribe(lambda event, c: events.append(event))
    runner = StepActionRunner(create, on_complete=ctl.context_for(0).complete)

    await runner.invoke({})
    assert runner.state is StepActionState.FAILED
    assert not ctl.is_complete(0)
    assert ControllerEvent.STEP_COMPLETED not in events
    assert ctl.advance() is False

    await runner.invoke({})
    assert events == [ControllerEvent.STEP_COMPLETED]
    assert ctl.snapshot()["repoId"] == "r1"

# ---------------------------------------------------------------------------
# Notifications and step context
# ---------------------------------------------------------------------------

def test_one_notification_per_transition(steps):
    ctl, _, _ = _controller(steps)
    events = []
    ctl.subscribe(lambda event, c: events.append((event, c.current_index)))
    ctl.advance()                     # blocked: no event
    ctl.on_step_complete(0, {})
    ctl.advance()
    ctl.advance()
    ctl.on_step_complete(2, {})
    ctl.advance()
    assert events == [
        (ControllerEvent.STEP_COMPLETED, 0),
        (ControllerEvent.STEP_CHANGED, 1),
        (ControllerEvent.STEP_CHANGED, 2),
        (ControllerEvent.STEP_COMPLETED, 2),
        (ControllerEvent.DONE, 2),
    ]

def test_cancel_notifies(steps):
    ctl, _, _ = _controller(steps)
    events = []
    unsubscribe = ctl.subscribe(lambda event, c: events.append(event))
    ctl.cancel()
    unsubscribe()
    assert events == [ControllerEvent.CANCELLED]

def test_context_completes_at_most_once(steps):
    ctl, _, _ = _controller(steps)
    ctx = ctl.context_for(0, services="svc")
    assert ctx.services == "svc"
    assert ctx.step.index == 0
    assert ctx.complete({"repoId": "r1"}) is True
    assert ctx.complete({"repoId": "r2"}) is False
    assert ctl.snapshot()["repoId"] == "r1"

def test_fresh_context_can_report_again(steps):
    ctl, _, _ = _controller(steps)
    ctl.context_for(0).complete({"repoId": "r1"})
    ctl.context_for(0).complete({"repoId": "r2"})
    assert ctl.snapshot()["repoId"] == "r2"

def test_context_cancel_and_snapshot(steps):
    ctl, _, on_cancel = _controller(steps)
    ctx = ctl.context_for()
    ctx.complete({"repoId": "r1"})
    assert ctx.snapshot()["repoId"] == "r1"
    ctx.cancel()
    on_cancel.assert_called_once()
    assert ctl.status is RunStatus.CANCELLED

def test_empty_sequence_rejected():
    with pytest.raises(ValueError):
        WizardController([], on_done=MagicMock())

@pytest.mark.parametrize("bad", [-1, 3])
def test_context_for_out_of_range(steps, bad):
    ctl, _, _ = _controller(steps)
    with pytest.raises(StepIndexError):
        ctl.context_for(bad)
