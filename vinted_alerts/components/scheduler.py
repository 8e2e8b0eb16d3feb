"""
Single-flight polling scheduler.

The scheduler drives fetch -> match -> merge -> notify cycles. At most one
cycle runs at a time: a tick that fires while a cycle is in flight queues a
single retrigger (further ticks coalesce into it) which runs as soon as the
in-flight cycle settles. Stopping or restarting bumps a generation counter so
that a cycle started earlier discards its result instead of merging it.
"""

import asyncio
import inspect
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from ..errors import (
    AlertEngineError,
    FetchFailure,
    MatchEvaluationFailure,
    NotificationFailure,
    SchedulerMisuse,
)
from ..models.alert import Alert
from ..models.listing import Listing, format_timestamp, utc_now
from ..models.match import MatchRecord
from ..utils.error_handling import ErrorCategory, ErrorSeverity, get_error_tracker
from ..utils.logging import get_logger
from .listing_ledger import ListingLedger
from .matcher import Matcher

FetchFn = Callable[[], Any]
AlertsProvider = Callable[[], Iterable[Alert]]
MatchesCallback = Callable[[List[MatchRecord]], Any]
ErrorCallback = Callable[[AlertEngineError], Any]


class SchedulerState(Enum):
    """Lifecycle state of the scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"


class CycleStatus(Enum):
    """Outcome indicator of the most recent cycle."""

    IDLE = "idle"
    FETCHING = "fetching"
    ERROR = "error"


@dataclass
class CycleHooks:
    """Callbacks a cycle runs with."""

    fetch_fn: FetchFn
    alerts_provider: AlertsProvider
    on_matches: Optional[MatchesCallback] = None
    on_error: Optional[ErrorCallback] = None

    def validate(self) -> None:
        if not callable(self.fetch_fn):
            raise SchedulerMisuse("fetch_fn must be callable")
        if not callable(self.alerts_provider):
            raise SchedulerMisuse("alerts_provider must be callable")
        if self.on_matches is not None and not callable(self.on_matches):
            raise SchedulerMisuse("on_matches must be callable")
        if self.on_error is not None and not callable(self.on_error):
            raise SchedulerMisuse("on_error must be callable")


async def _resolve(value: Any) -> Any:
    """Await value if the callback returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


class Scheduler:
    """Periodic, single-flight runner of alert matching cycles."""

    def __init__(
        self,
        ledger: ListingLedger,
        matcher: Optional[Matcher] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the scheduler.

        Args:
            ledger: Ledger that receives each cycle's match records
            matcher: Matcher used to evaluate listings against alerts
            clock: Source of the per-cycle seen_at timestamp
        """
        self.ledger = ledger
        self.matcher = matcher or Matcher()
        self._clock = clock
        self.logger = get_logger("scheduler")

        self.state = SchedulerState.STOPPED
        self.status = CycleStatus.IDLE
        self.interval_seconds: Optional[float] = None

        self._hooks: Optional[CycleHooks] = None
        self._generation = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._cycle_task: Optional[asyncio.Task] = None
        self._retrigger_pending = False

        self.cycles_completed = 0
        self.cycles_failed = 0
        self.skipped_ticks = 0
        self.last_cycle_at: Optional[datetime] = None
        self.last_error: Optional[AlertEngineError] = None

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    @property
    def in_flight(self) -> bool:
        """True while a cycle task has not finished."""
        return self._cycle_task is not None and not self._cycle_task.done()

    async def start(
        self,
        interval_seconds: float,
        fetch_fn: FetchFn,
        alerts_provider: AlertsProvider,
        on_matches: Optional[MatchesCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Start polling, running one cycle immediately.

        Starting an already running scheduler stops the previous timer first
        and then arms a new one with the given interval.

        Args:
            interval_seconds: Seconds between ticks, must be positive
            fetch_fn: Returns the fetched listings, sync or async
            alerts_provider: Returns the current alerts snapshot
            on_matches: Receives each non-empty batch of match records
            on_error: Receives cycle failures

        Raises:
            SchedulerMisuse: If the interval or a callback is invalid
        """
        if (
            isinstance(interval_seconds, bool)
            or not isinstance(interval_seconds, (int, float))
            or interval_seconds <= 0
        ):
            raise SchedulerMisuse(
                f"interval_seconds must be a positive number, got {interval_seconds!r}"
            )

        hooks = CycleHooks(fetch_fn, alerts_provider, on_matches, on_error)
        hooks.validate()

        if self.is_running:
            self.logger.info(
                "Restarting scheduler",
                extra={
                    "old_interval": self.interval_seconds,
                    "new_interval": interval_seconds,
                },
            )
            await self.stop()

        self._hooks = hooks
        self.interval_seconds = interval_seconds
        self.state = SchedulerState.RUNNING
        self._generation += 1
        self._timer_task = asyncio.create_task(self._tick_loop(self._generation))

        self.logger.info(
            "Scheduler started", extra={"interval_seconds": interval_seconds}
        )
        # a stale cycle may still be settling; the first run waits for it
        if self.in_flight:
            self._retrigger_pending = True
        else:
            self._launch_cycle(hooks)

    async def stop(self) -> None:
        """
        Stop polling.

        The pending timer is cancelled. A cycle already in flight is left to
        finish but its result is discarded.
        """
        if not self.is_running:
            return

        self.state = SchedulerState.STOPPED
        self._generation += 1
        self._retrigger_pending = False
        if not self.in_flight:
            self.status = CycleStatus.IDLE

        if self._timer_task:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        self.logger.info(
            "Scheduler stopped", extra={"cycle_in_flight": self.in_flight}
        )

    async def run_once(
        self,
        fetch_fn: FetchFn,
        alerts_provider: AlertsProvider,
        on_matches: Optional[MatchesCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> List[MatchRecord]:
        """
        Run a single cycle outside the timer and return its match records.

        Raises:
            SchedulerMisuse: If a cycle is already in flight
        """
        if self.in_flight:
            raise SchedulerMisuse("A cycle is already in flight")

        hooks = CycleHooks(fetch_fn, alerts_provider, on_matches, on_error)
        hooks.validate()
        return await self._launch_cycle(hooks)

    async def drain(self) -> None:
        """Wait until no cycle is in flight and no retrigger is queued."""
        while self.in_flight:
            await asyncio.wait([self._cycle_task])

    def get_status(self):
        """Get scheduler status for reporting."""
        return {
            "state": self.state.value,
            "status": self.status.value,
            "interval_seconds": self.interval_seconds,
            "cycle_in_flight": self.in_flight,
            "retrigger_pending": self._retrigger_pending,
            "cycles_completed": self.cycles_completed,
            "cycles_failed": self.cycles_failed,
            "skipped_ticks": self.skipped_ticks,
            "last_cycle_at": format_timestamp(self.last_cycle_at),
            "last_error": str(self.last_error) if self.last_error else None,
        }

    async def _tick_loop(self, generation: int) -> None:
        while self.is_running and generation == self._generation:
            await asyncio.sleep(self.interval_seconds)
            if generation != self._generation:
                break
            self._on_tick()

    def _on_tick(self) -> None:
        if not self.is_running:
            return

        if self.in_flight:
            self.skipped_ticks += 1
            self._retrigger_pending = True
            self.logger.debug("Cycle in flight, retrigger queued")
            return

        self._launch_cycle(self._hooks)

    def _launch_cycle(self, hooks: CycleHooks) -> asyncio.Task:
        task = asyncio.create_task(self._run_cycle(self._generation, hooks))
        task.add_done_callback(self._on_cycle_done)
        self._cycle_task = task
        return task

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        if task is self._cycle_task:
            self._cycle_task = None

        if task.cancelled():
            self.logger.warning("Cycle task was cancelled")
        elif task.exception() is not None:
            self.logger.error(
                f"Cycle task crashed: {task.exception()}",
                extra={"exception_type": type(task.exception()).__name__},
            )

        if self._retrigger_pending and self.is_running:
            self._retrigger_pending = False
            self._launch_cycle(self._hooks)

    async def _run_cycle(
        self, generation: int, hooks: CycleHooks
    ) -> List[MatchRecord]:
        """
        Run one fetch -> match -> merge -> notify pass.

        Returns:
            The merged match records; empty on failure or when discarded
        """
        self.status = CycleStatus.FETCHING

        try:
            listings: List[Listing] = list(await _resolve(hooks.fetch_fn()) or [])
        except Exception as e:
            failure = e if isinstance(e, FetchFailure) else FetchFailure(str(e))
            if failure is not e:
                failure.__cause__ = e
            await self._fail_cycle(generation, hooks, failure, ErrorCategory.FETCH)
            return []

        if generation != self._generation:
            self.logger.info(
                "Discarding result of stale cycle",
                extra={"listings": len(listings)},
            )
            self._settle_stale()
            return []

        try:
            alerts = list(hooks.alerts_provider())
            seen_at = self._clock()
            batch = []
            for listing in listings:
                matched = self.matcher.evaluate(listing, alerts)
                if matched:
                    batch.append(MatchRecord.from_match(listing, matched, seen_at))
            added = self.ledger.merge(batch)
        except Exception as e:
            failure = MatchEvaluationFailure(f"Matching fetched listings failed: {e}")
            failure.__cause__ = e
            await self._fail_cycle(generation, hooks, failure, ErrorCategory.MATCHING)
            return []

        self.cycles_completed += 1
        self.last_cycle_at = seen_at
        self.status = CycleStatus.IDLE
        self.logger.info(
            "Cycle completed",
            extra={
                "listings": len(listings),
                "alerts": len(alerts),
                "matches": len(batch),
                "new_matches": added,
            },
        )

        if batch and hooks.on_matches is not None:
            try:
                await _resolve(hooks.on_matches(batch))
            except Exception as e:
                failure = NotificationFailure(f"Match callback failed: {e}")
                failure.__cause__ = e
                await self._report(hooks, failure, ErrorCategory.NOTIFICATION)

        return batch

    async def _fail_cycle(
        self,
        generation: int,
        hooks: CycleHooks,
        failure: AlertEngineError,
        category: ErrorCategory,
    ) -> None:
        if generation != self._generation:
            self.logger.info(
                "Ignoring failure of stale cycle", extra={"error": str(failure)}
            )
            self._settle_stale()
            return

        self.cycles_failed += 1
        await self._report(hooks, failure, category)

    async def _report(
        self, hooks: CycleHooks, failure: AlertEngineError, category: ErrorCategory
    ) -> None:
        self.status = CycleStatus.ERROR
        self.last_error = failure
        get_error_tracker().record_error(
            component="scheduler",
            category=category,
            severity=ErrorSeverity.MEDIUM,
            message=str(failure),
            exception=failure.__cause__ or failure,
            context={"error_type": type(failure).__name__},
        )

        if hooks.on_error is None:
            return

        try:
            await _resolve(hooks.on_error(failure))
        except Exception as e:
            self.logger.error(f"Error callback failed: {e}", exc_info=True)

    def _settle_stale(self) -> None:
        if not self.is_running:
            self.status = CycleStatus.IDLE
