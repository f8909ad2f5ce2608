"""
Tests for the configuration barrier state machine.

The workflow is replaced by small coroutines gated with asyncio.Event, so each
test controls exactly when configuration settles.
"""

import asyncio

import pytest

from promofire_sdk.barrier import ConfigurationBarrier
from promofire_sdk.barrier import ReadinessState
from promofire_sdk.exceptions import BackendError
from promofire_sdk.exceptions import NotConfiguredError


class GatedWorkflow:
    """Workflow stand-in that waits for ``gate`` and then succeeds or fails."""

    def __init__(self, available=True, error=None):
        self.gate = asyncio.Event()
        self.available = available
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.available


class CountingOperation:
    def __init__(self, result="ok", error=None):
        self.result = result
        self.error = error
        self.calls = 0
        self.tasks = []

    async def __call__(self):
        self.calls += 1
        self.tasks.append(asyncio.current_task())
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_run_before_configure_fails_fast():
    """
    GIVEN: a barrier that was never configured
    WHEN: an operation is submitted
    THEN: NotConfiguredError is raised and the operation never runs
    """
    barrier = ConfigurationBarrier()
    op = CountingOperation()

    with pytest.raises(NotConfiguredError):
        await barrier.run(op)

    assert op.calls == 0
    assert barrier.state is ReadinessState.UNCONFIGURED


@pytest.mark.asyncio
async def test_configure_is_idempotent_while_configuring_and_configured():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()

    first = barrier.configure(workflow)
    second = barrier.configure(workflow)
    assert first is second
    assert barrier.state is ReadinessState.CONFIGURING

    workflow.gate.set()
    await first
    assert barrier.state is ReadinessState.CONFIGURED

    third = barrier.configure(workflow)
    assert third is first
    await asyncio.sleep(0)
    assert workflow.calls == 1


@pytest.mark.asyncio
async def test_queued_operations_wait_for_workflow_then_run():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()
    barrier.configure(workflow)

    op_a = CountingOperation(result="a")
    op_b = CountingOperation(result="b")
    task_a = asyncio.create_task(barrier.run(op_a))
    task_b = asyncio.create_task(barrier.run(op_b))
    await asyncio.sleep(0)

    assert barrier.pending_count == 2
    assert op_a.calls == 0 and op_b.calls == 0
    assert not task_a.done() and not task_b.done()

    workflow.gate.set()

    assert await task_a == "a"
    assert await task_b == "b"
    assert barrier.pending_count == 0
    assert barrier.state is ReadinessState.CONFIGURED


@pytest.mark.asyncio
async def test_workflow_failure_fails_every_queued_operation_with_same_error():
    """
    GIVEN: five operations queued while configuring
    WHEN: the workflow fails
    THEN: all five receive the very same error object and none is executed
    """
    error = BackendError("Unauthorized", "Invalid secret", 401)
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow(error=error)
    config_task = barrier.configure(workflow)

    ops = [CountingOperation() for _ in range(5)]
    tasks = [asyncio.create_task(barrier.run(op)) for op in ops]
    await asyncio.sleep(0)
    workflow.gate.set()

    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(result is error for result in results)
    assert all(op.calls == 0 for op in ops)
    assert barrier.state is ReadinessState.UNCONFIGURED
    with pytest.raises(BackendError):
        await config_task


@pytest.mark.asyncio
async def test_queued_operation_failure_only_affects_its_caller():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()
    barrier.configure(workflow)

    failing = CountingOperation(error=ValueError("own failure"))
    fine = CountingOperation(result="fine")
    failing_task = asyncio.create_task(barrier.run(failing))
    fine_task = asyncio.create_task(barrier.run(fine))
    await asyncio.sleep(0)
    workflow.gate.set()

    with pytest.raises(ValueError, match="own failure"):
        await failing_task
    assert await fine_task == "fine"
    assert barrier.state is ReadinessState.CONFIGURED


@pytest.mark.asyncio
async def test_configured_run_executes_directly_in_caller_task():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()
    workflow.gate.set()
    await barrier.configure(workflow)

    op = CountingOperation()
    for _ in range(3):
        assert await barrier.run(op) == "ok"
        assert barrier.pending_count == 0

    # No queueing: the operation runs inside the calling task itself.
    assert all(task is asyncio.current_task() for task in op.tasks)
    assert op.calls == 3


@pytest.mark.asyncio
async def test_failed_configuration_can_be_retried():
    barrier = ConfigurationBarrier()
    failing = GatedWorkflow(error=RuntimeError("boom"))
    failing.gate.set()
    with pytest.raises(RuntimeError):
        await barrier.configure(failing)

    with pytest.raises(NotConfiguredError):
        await barrier.run(CountingOperation())

    succeeding = GatedWorkflow()
    succeeding.gate.set()
    await barrier.configure(succeeding)

    assert barrier.state is ReadinessState.CONFIGURED
    assert await barrier.run(CountingOperation(result="again")) == "again"


@pytest.mark.asyncio
async def test_is_available_defaults_to_false():
    barrier = ConfigurationBarrier()
    assert await barrier.is_available() is False


@pytest.mark.asyncio
async def test_is_available_waits_for_in_flight_workflow():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow(available=True)
    barrier.configure(workflow)

    check = asyncio.create_task(barrier.is_available())
    await asyncio.sleep(0)
    assert not check.done()

    workflow.gate.set()
    assert await check is True


@pytest.mark.asyncio
async def test_is_available_is_false_after_failed_workflow():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow(error=RuntimeError("boom"))
    barrier.configure(workflow)

    check = asyncio.create_task(barrier.is_available())
    await asyncio.sleep(0)
    workflow.gate.set()

    assert await check is False
    assert barrier.state is ReadinessState.UNCONFIGURED


@pytest.mark.asyncio
async def test_reset_while_configuring_fails_pending_and_discards_result():
    """
    GIVEN: an operation queued behind an in-flight workflow
    WHEN: the barrier is reset before the workflow finishes
    THEN: the operation fails with NotConfiguredError and the late success
          does not bring the barrier to CONFIGURED
    """
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow(available=True)
    config_task = barrier.configure(workflow)

    op = CountingOperation()
    op_task = asyncio.create_task(barrier.run(op))
    await asyncio.sleep(0)

    barrier.reset()
    with pytest.raises(NotConfiguredError):
        await op_task

    workflow.gate.set()
    with pytest.raises(NotConfiguredError):
        await config_task

    assert op.calls == 0
    assert barrier.state is ReadinessState.UNCONFIGURED
    assert await barrier.is_available() is False


@pytest.mark.asyncio
async def test_reset_after_configured_requires_new_configuration():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()
    workflow.gate.set()
    await barrier.configure(workflow)
    assert await barrier.is_available() is True

    barrier.reset()

    assert barrier.state is ReadinessState.UNCONFIGURED
    assert await barrier.is_available() is False
    with pytest.raises(NotConfiguredError):
        await barrier.run(CountingOperation())

    await barrier.configure(workflow)
    assert workflow.calls == 2
    assert barrier.state is ReadinessState.CONFIGURED


@pytest.mark.asyncio
async def test_cancelling_configure_task_does_not_stop_workflow():
    """
    GIVEN: an in-flight workflow and an operation queued behind it
    WHEN: the caller cancels the task returned by configure()
    THEN: the workflow keeps running, the queued operation still runs and a
          later configure() hands out a live task for the same attempt
    """
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()
    config_task = barrier.configure(workflow)

    op = CountingOperation(result="queued")
    op_task = asyncio.create_task(barrier.run(op))
    await asyncio.sleep(0)

    config_task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await config_task
    assert barrier.state is ReadinessState.CONFIGURING

    again = barrier.configure(workflow)
    assert again is not config_task
    assert not again.cancelled()

    workflow.gate.set()
    await again
    assert await op_task == "queued"
    assert barrier.state is ReadinessState.CONFIGURED
    assert workflow.calls == 1


@pytest.mark.asyncio
async def test_caller_timeout_does_not_leave_barrier_configuring():
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(barrier.configure(workflow), 0.01)

    assert barrier.state is ReadinessState.CONFIGURING
    workflow.gate.set()
    assert await barrier.is_available() is True
    assert await barrier.run(CountingOperation(result="after")) == "after"


@pytest.mark.asyncio
async def test_cancelled_workflow_returns_to_unconfigured():
    """
    GIVEN: an operation queued behind a workflow
    WHEN: the workflow task itself is cancelled
    THEN: the operation fails with NotConfiguredError, availability is False
          and a new configure() starts a fresh attempt
    """
    barrier = ConfigurationBarrier()
    workflow = GatedWorkflow()
    config_task = barrier.configure(workflow)

    op = CountingOperation()
    op_task = asyncio.create_task(barrier.run(op))
    check = asyncio.create_task(barrier.is_available())
    await asyncio.sleep(0)

    barrier._task.cancel()

    with pytest.raises(NotConfiguredError):
        await op_task
    with pytest.raises(NotConfiguredError):
        await config_task
    assert await check is False
    assert op.calls == 0
    assert barrier.state is ReadinessState.UNCONFIGURED

    workflow.gate.set()
    await barrier.configure(workflow)
    assert workflow.calls == 2
    assert barrier.state is ReadinessState.CONFIGURED


@pytest.mark.asyncio
async def test_failed_state_is_treated_as_unconfigured():
    barrier = ConfigurationBarrier()
    barrier._state = ReadinessState.FAILED

    with pytest.raises(NotConfiguredError):
        await barrier.run(CountingOperation())

    workflow = GatedWorkflow()
    workflow.gate.set()
    await barrier.configure(workflow)
    assert workflow.calls == 1
    assert barrier.state is ReadinessState.CONFIGURED
