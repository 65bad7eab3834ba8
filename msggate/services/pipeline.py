"""Pipeline Controller: receive -> validate -> tag -> route -> (filter) -> handle.

Invariants:
    - on_message() never raises for bad input or failing handlers; the receive loop survives
    - Rejected messages are reported to the error sink and never dispatched
    - Handler exceptions (including inside a ChangeFilter) become HandlerError and are reported
    - UNHANDLED pairs are logged at debug level only; the sink never sees successes
    - No retries: each message is validated and dispatched exactly once
    - A failing error sink is logged and never breaks the loop
    - A call swallowed by a ChangeFilter still counts as HANDLED: the router did invoke
      the registered handler. Per-filter counts live on ChangeFilter.invocations and
      ChangeFilter.suppressed

Design Decisions:
    - Router is frozen on construction: the dispatch table is read-only while messages flow
    - Awaitable handler results are scheduled on the running loop and not awaited;
      task failures are reported from the done-callback
    - Schema collaborator crashes are turned into SCHEMA_FAILURE rejections by the
      Validator; the pipeline only sees a failed ValidationResult
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass, field
from functools import partial

from msggate.core.dispatch_router import DispatchOutcome, DispatchRouter
from msggate.core.domain_types import PipelineOutcome
from msggate.core.errors import ErrorContext, HandlerError, MsgGateError
from msggate.core.validated import ValidatedMessage
from msggate.core.validator import RawMessage, Validator
from msggate.infrastructure.observability import log_error_sink

logger = logging.getLogger(__name__)

ErrorSink = Callable[[MsgGateError], None]


@dataclass
class PipelineStats:
    """Per-outcome counters for one pipeline instance."""
    received: int = 0
    counts: dict[PipelineOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in PipelineOutcome},
    )
    async_failed: int = 0

    def record(self, outcome: PipelineOutcome) -> None:
        self.counts[outcome] += 1

    def __getitem__(self, outcome: PipelineOutcome) -> int:
        return self.counts[outcome]


def _context_for(message: ValidatedMessage, handler_name: str | None = None) -> ErrorContext:
    return ErrorContext(
        message_type=message.message_type,
        subtype=message.subtype,
        message_id=message.message_id,
        handler_name=handler_name,
    )


class Pipeline:
    """Single entry point driven by the transport's message-received event."""

    def __init__(
        self,
        validator: Validator,
        router: DispatchRouter,
        error_sink: ErrorSink | None = None,
    ):
        self._validator = validator
        self._router = router
        self._router.freeze()
        self._error_sink = error_sink or log_error_sink
        self._pending: set[asyncio.Future] = set()
        self.stats = PipelineStats()

    def on_message(self, raw: RawMessage) -> PipelineOutcome:
        """Process one raw message to completion. Never raises."""
        self.stats.received += 1
        result = self._validator.validate(raw)
        if not result.ok:
            return self._finish(PipelineOutcome.REJECTED, result.error)

        message = result.message
        try:
            outcome = self._router.dispatch(message)
        except Exception as e:
            name = self._router.name_for(message.discriminator) or "<unknown>"
            error = HandlerError(name, e, _context_for(message))
            return self._finish(PipelineOutcome.FAILED, error)

        if not outcome.handled:
            logger.debug(
                "No handler for %s", outcome.discriminator,
                extra={
                    "message_type": message.message_type,
                    "subtype": message.subtype,
                    "message_id": message.message_id,
                    "outcome": PipelineOutcome.UNHANDLED.value,
                },
            )
            return self._finish(PipelineOutcome.UNHANDLED)

        if inspect.isawaitable(outcome.result):
            return self._schedule(message, outcome)

        logger.debug(
            "Handled %s via %s", outcome.discriminator, outcome.handler_name,
            extra={
                "message_type": message.message_type,
                "subtype": message.subtype,
                "handler_name": outcome.handler_name,
                "outcome": PipelineOutcome.HANDLED.value,
            },
        )
        return self._finish(PipelineOutcome.HANDLED)

    async def consume(self, source: AsyncIterable[RawMessage]) -> PipelineStats:
        """Receive loop: feed every item of source to on_message until exhausted."""
        async for raw in source:
            self.on_message(raw)
        return self.stats

    async def drain(self) -> None:
        """Wait for scheduled async handlers. Their failures are already reported."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _schedule(self, message: ValidatedMessage, outcome: DispatchOutcome) -> PipelineOutcome:
        awaitable = outcome.result
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            error = HandlerError(
                outcome.handler_name,
                RuntimeError("async handler returned an awaitable outside a running event loop"),
                _context_for(message),
            )
            return self._finish(PipelineOutcome.FAILED, error)

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(partial(self._on_task_done, message, outcome.handler_name))
        return self._finish(PipelineOutcome.SCHEDULED)

    def _on_task_done(self, message: ValidatedMessage, name: str, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        self.stats.async_failed += 1
        self._report(HandlerError(name, exc, _context_for(message)))

    def _finish(
        self, outcome: PipelineOutcome, error: MsgGateError | None = None,
    ) -> PipelineOutcome:
        self.stats.record(outcome)
        if error is not None:
            self._report(error)
        return outcome

    def _report(self, error: MsgGateError) -> None:
        try:
            self._error_sink(error)
        except Exception as e:
            logger.error(
                "Error sink failed while reporting %s: %s", error.code, e,
                extra={"error_code": error.code}, exc_info=True,
            )
