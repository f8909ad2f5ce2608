"""
One-time configuration barrier.

ConfigurationBarrier lets callers submit operations at any time. While the
configuration workflow is running, operations are parked as PendingOperation
entries; once the workflow settles they are either all executed (success) or all
failed with the workflow's own exception (failure).

State machine::

    UNCONFIGURED --configure--> CONFIGURING --success--> CONFIGURED
         ^                           |                        |
         +-------- failure ----------+                        |
         +-------- reset (logout) ---+------------------------+

All reads and writes of the state and of the pending list happen on the event
loop thread with no ``await`` in between, so the loop itself serializes them.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable
from typing import Callable
from typing import Generic
from typing import Optional
from typing import TypeVar

from promofire_sdk.exceptions import NotConfiguredError

logger = logging.getLogger("promofire_sdk.barrier")

T = TypeVar("T")

# Runs the workflow for one attempt and returns the availability flag.
WorkflowRunner = Callable[[], Awaitable[bool]]


class ReadinessState(str, enum.Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURING = "configuring"
    CONFIGURED = "configured"
    # Never stored: a failed attempt bounces straight back to UNCONFIGURED.
    # Treated exactly like UNCONFIGURED wherever the state is checked.
    FAILED = "failed"


_IDLE_STATES = (ReadinessState.UNCONFIGURED, ReadinessState.FAILED)


@dataclass
class PendingOperation(Generic[T]):
    """An operation submitted while configuring, and the future its caller awaits."""

    operation: Callable[[], Awaitable[T]]
    future: "asyncio.Future[T]"

    def fail(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)

    async def execute(self) -> None:
        try:
            result = await self.operation()
        except asyncio.CancelledError:
            self.future.cancel()
            raise
        except Exception as error:
            self.fail(error)
        else:
            if not self.future.done():
                self.future.set_result(result)


class ConfigurationBarrier:
    """
    Gate that defers operations until the session is configured.

    The barrier never starts more than one workflow at a time. ``configure()``
    is idempotent while a workflow is in flight or has succeeded.
    """

    def __init__(self):
        self._state = ReadinessState.UNCONFIGURED
        self._pending: list[PendingOperation] = []
        self._available = False
        self._task: Optional[asyncio.Task] = None
        # What configure() hands out; cancelling it leaves _task running.
        self._view: Optional[asyncio.Task] = None
        # Bumped on every new attempt and on reset(); results of older
        # attempts are discarded.
        self._attempt = 0
        self._running: set[asyncio.Task] = set()

    @property
    def state(self) -> ReadinessState:
        return self._state

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_configured(self) -> bool:
        return self._state is ReadinessState.CONFIGURED

    def configure(self, workflow: WorkflowRunner) -> asyncio.Task:
        """
        Start ``workflow`` unless an attempt is in flight or already succeeded.

        Must be called from a running event loop. Returns a task that settles
        with the current attempt; awaiting it is optional and raises the
        workflow's error on failure. Cancelling the returned task (directly or
        through ``asyncio.wait_for``) only stops the caller's wait, the workflow
        keeps running.
        """
        if self._state not in _IDLE_STATES and self._task:
            logger.debug(f"configure() ignored, state is {self._state.value}")
            return self._caller_view()

        self._attempt += 1
        self._state = ReadinessState.CONFIGURING
        self._task = asyncio.get_running_loop().create_task(
            self._run_workflow(workflow, self._attempt)
        )
        # Marks a failure as retrieved when nobody awaits the task.
        self._task.add_done_callback(_consume_exception)
        self._view = None
        logger.debug(f"Configuration attempt {self._attempt} started")
        return self._caller_view()

    def _caller_view(self) -> asyncio.Task:
        if self._view is None or self._view.cancelled():
            self._view = asyncio.get_running_loop().create_task(
                _wait_shielded(self._task)
            )
            self._view.add_done_callback(_consume_exception)
        return self._view

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute ``operation`` once the session is configured.

        Raises:
            NotConfiguredError: If no configuration is in flight or has succeeded.
        """
        if self._state is ReadinessState.CONFIGURED:
            return await operation()

        if self._state is ReadinessState.CONFIGURING:
            future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
            self._pending.append(PendingOperation(operation, future))
            logger.debug(f"Operation queued ({len(self._pending)} pending)")
            return await future

        # UNCONFIGURED or FAILED
        raise NotConfiguredError()

    async def is_available(self) -> bool:
        """Availability flag, waiting for an in-flight workflow first."""
        task = self._task
        if self._state is ReadinessState.CONFIGURING and task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
                return False
            except Exception as error:
                logger.debug(f"Configuration failed, code generation unavailable: {error}")
                return False
        return self._available

    def reset(self) -> None:
        """
        Force UNCONFIGURED, e.g. on logout.

        Operations still waiting for an in-flight workflow fail with
        NotConfiguredError, and the result of that workflow is ignored.
        """
        self._attempt += 1
        self._state = ReadinessState.UNCONFIGURED
        self._available = False
        self._task = None
        self._view = None
        pending, self._pending = self._pending, []
        for op in pending:
            op.fail(NotConfiguredError("Session was cleared while configuring."))
        if pending:
            logger.debug(f"Reset failed {len(pending)} pending operation(s)")

    async def _run_workflow(self, workflow: WorkflowRunner, attempt: int) -> None:
        try:
            available = await workflow()
        except asyncio.CancelledError:
            if attempt == self._attempt:
                self._fail(NotConfiguredError("Configuration was cancelled."))
            raise
        except Exception as error:
            if attempt == self._attempt:
                self._fail(error)
            raise

        if attempt != self._attempt:
            logger.info("Discarding result of a configuration that was reset")
            raise NotConfiguredError("Session was cleared while configuring.")
        self._succeed(available)

    def _succeed(self, available: bool) -> None:
        self._available = available
        self._state = ReadinessState.CONFIGURED
        pending, self._pending = self._pending, []
        logger.info(
            f"SDK configured (code generation available: {available}), "
            f"dispatching {len(pending)} queued operation(s)"
        )
        loop = asyncio.get_running_loop()
        for op in pending:
            task = loop.create_task(op.execute())
            self._running.add(task)
            task.add_done_callback(self._running.discard)

    def _fail(self, error: Exception) -> None:
        self._state = ReadinessState.UNCONFIGURED
        pending, self._pending = self._pending, []
        logger.warning(
            f"Configuration failed: {error!r}; failing {len(pending)} queued operation(s)"
        )
        for op in pending:
            op.fail(error)


async def _wait_shielded(task: asyncio.Task) -> None:
    try:
        await asyncio.shield(task)
    except asyncio.CancelledError:
        if task.cancelled():
            raise NotConfiguredError("Configuration was cancelled.") from None
        raise


def _consume_exception(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()
