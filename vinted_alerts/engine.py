"""
Alert engine for the Vinted Alerts system.

This module provides the central coordination point that owns the alert
store, the listing ledger and the polling scheduler, wires them to
persistence and notifications, and manages their lifecycle.
"""

import asyncio
import signal
import sys
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from .components.alert_store import AlertStore
from .components.listing_fetcher import VintedListingFetcher
from .components.listing_ledger import ListingLedger
from .components.notification_dispatcher import (
    NotificationDispatcher,
    create_notification_sink,
)
from .components.query_view import QueryView
from .components.scheduler import CycleStatus, Scheduler
from .errors import AlertEngineError
from .interfaces import IKeyValueStore, IListingFetcher, INotificationSink
from .models.alert import Alert, AlertDefinition
from .models.config import Configuration
from .models.listing import Listing, format_timestamp, utc_now
from .models.match import MatchRecord, SortMode
from .models.notification import Settings
from .services.persistence import JsonFileStore, StateRepository
from .utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    get_degradation_manager,
    get_error_tracker,
    with_error_handling,
)
from .utils.logging import get_logger


class AlertEngine:
    """
    Engine that coordinates alert matching, persistence and notifications.

    One instance is constructed per process. Call ``initialize()`` before use
    and ``shutdown()`` when done; ``run()`` does both around a polling loop.
    """

    def __init__(
        self,
        config: Optional[Configuration] = None,
        key_value_store: Optional[IKeyValueStore] = None,
        fetcher: Optional[IListingFetcher] = None,
        notification_sink: Optional[INotificationSink] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the alert engine.

        Args:
            config: System configuration; defaults are used when None
            key_value_store: Persistence port; a JSON file store in the
                configured storage directory when None
            fetcher: Listing source; the Vinted API fetcher when None
            notification_sink: Notification port; built from the
                notification configuration when None
            clock: Source of creation and detection timestamps
        """
        self.config = config or Configuration()
        self.logger = get_logger("engine")

        self.error_tracker = get_error_tracker()
        self.degradation_manager = get_degradation_manager()

        if key_value_store is None:
            key_value_store = JsonFileStore(self.config.storage.directory)
        if notification_sink is None:
            notification_sink = create_notification_sink(
                self.config.notifications.type, self.config.notifications.telegram
            )

        self.repository = StateRepository(key_value_store)
        self.fetcher = fetcher or VintedListingFetcher(self.config.fetcher)
        self.alert_store = AlertStore(clock=clock)
        self.ledger = ListingLedger()
        self.scheduler = Scheduler(self.ledger, clock=clock)
        self.query_view = QueryView()
        self.dispatcher = NotificationDispatcher(notification_sink)

        self._initialized = False
        self._shutdown_event = asyncio.Event()
        self._startup_time: Optional[datetime] = None
        self._unsubscribe_alerts: Optional[Callable[[], None]] = None
        self._last_error: Optional[AlertEngineError] = None
        self._signal_handlers_installed = False

    @with_error_handling(
        component="engine",
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.CRITICAL,
        fallback_value=False,
        suppress_exceptions=True,
    )
    async def initialize(self) -> bool:
        """
        Rehydrate persisted state and connect persistence.

        Returns:
            True if initialization successful, False otherwise.
        """
        if self._initialized:
            return True

        self.logger.info("Initializing Vinted Alerts engine...")

        self.alert_store.load(self.repository.load_alerts())
        self.ledger.merge(self.repository.load_matches())

        # a stored choice wins; the config only sets the default
        settings = self.repository.load_settings()
        if settings is None:
            enabled = self.config.notifications.enabled
        else:
            enabled = settings.notifications_enabled
        if enabled:
            self.dispatcher.enable()

        self._unsubscribe_alerts = self.alert_store.subscribe(self._persist_alerts)

        self._initialized = True
        self._startup_time = datetime.now()
        self.logger.info(
            "Engine initialization completed successfully",
            extra={
                "alerts": len(self.alert_store),
                "matches": len(self.ledger),
                "notifications_enabled": self.dispatcher.enabled,
            },
        )
        return True

    def add_alert(self, definition: AlertDefinition) -> Alert:
        """Create an alert; it takes part from the next polling cycle."""
        return self.alert_store.add(definition)

    def remove_alert(self, alert_id: str) -> bool:
        """Remove an alert; stored matches are kept."""
        return self.alert_store.remove(alert_id)

    def alerts(self) -> List[Alert]:
        return self.alert_store.list()

    async def start_polling(self, interval: Optional[float] = None) -> None:
        """Start (or restart) periodic polling."""
        if interval is None:
            interval = self.config.scheduler.polling_interval
        await self.scheduler.start(
            interval,
            self._fetch_listings,
            self.alert_store.list,
            on_matches=self._handle_matches,
            on_error=self._handle_error,
        )

    async def stop_polling(self) -> None:
        await self.scheduler.stop()

    async def poll_once(self) -> List[MatchRecord]:
        """Run a single polling cycle and return its match records."""
        return await self.scheduler.run_once(
            self._fetch_listings,
            self.alert_store.list,
            on_matches=self._handle_matches,
            on_error=self._handle_error,
        )

    def set_notifications_enabled(self, enabled: bool) -> bool:
        """
        Opt in or out of match notifications.

        Returns:
            Whether notifications are enabled afterwards; opting in stays off
            when the sink denies permission.
        """
        if enabled:
            enabled = self.dispatcher.enable()
        else:
            self.dispatcher.disable()

        self._persist_settings()
        self.logger.info(f"Notifications {'enabled' if enabled else 'disabled'}")
        return enabled

    def matches(
        self, query: str = "", sort_by: Union[SortMode, str] = SortMode.NEWEST
    ) -> List[MatchRecord]:
        """Stored matches filtered by a free-text query."""
        return self.query_view.view(self.ledger, query, sort_by)

    def clear_matches(self) -> None:
        self.ledger.clear()
        self._persist_matches()

    def current_query(self) -> str:
        """Search text for the next fetch: the first alert's term or the default."""
        alerts = self.alert_store.list()
        if alerts and alerts[0].term and alerts[0].term.strip():
            return alerts[0].term.strip()
        return self.config.fetcher.default_query

    async def _fetch_listings(self) -> List[Listing]:
        query = self.current_query()
        return await asyncio.get_running_loop().run_in_executor(
            None, self.fetcher.fetch, query
        )

    async def _handle_matches(self, batch: List[MatchRecord]) -> None:
        """Persist the ledger and notify once per match record."""
        self._persist_matches()

        if not self.dispatcher.enabled:
            return

        results = await asyncio.get_running_loop().run_in_executor(
            None, self.dispatcher.dispatch, batch
        )
        failed = [result for result in results if not result.success]
        if failed:
            self.logger.warning(
                f"{len(failed)} of {len(results)} notifications failed",
                extra={"first_error": failed[0].error_message},
            )

    def _handle_error(self, error: AlertEngineError) -> None:
        self._last_error = error
        self.logger.warning(
            f"Polling cycle failed: {error}",
            extra={"error_type": type(error).__name__},
        )

    @with_error_handling(
        component="engine",
        category=ErrorCategory.PERSISTENCE,
        fallback_value=False,
        suppress_exceptions=True,
    )
    def _persist_alerts(self, alerts: List[Alert]) -> bool:
        self.repository.save_alerts(alerts)
        return True

    @with_error_handling(
        component="engine",
        category=ErrorCategory.PERSISTENCE,
        fallback_value=False,
        suppress_exceptions=True,
    )
    def _persist_matches(self) -> bool:
        self.repository.save_matches(self.ledger.records())
        return True

    @with_error_handling(
        component="engine",
        category=ErrorCategory.PERSISTENCE,
        fallback_value=False,
        suppress_exceptions=True,
    )
    def _persist_settings(self) -> bool:
        self.repository.save_settings(
            Settings(notifications_enabled=self.dispatcher.enabled)
        )
        return True

    def get_status(self) -> Dict[str, Any]:
        """Get current engine status information."""
        scheduler_status = self.scheduler.get_status()
        return {
            "initialized": self._initialized,
            "polling": self.scheduler.is_running,
            "status": self.scheduler.status.value,
            "startup_time": format_timestamp(self._startup_time),
            "uptime": str(datetime.now() - self._startup_time)
            if self._startup_time
            else None,
            "alerts": len(self.alert_store),
            "matches": len(self.ledger),
            "notifications_enabled": self.dispatcher.enabled,
            "notifications_sent": self.dispatcher.sent_count,
            "notifications_failed": self.dispatcher.failed_count,
            "last_error": str(self._last_error) if self._last_error else None,
            "scheduler": scheduler_status,
            "degraded_components": self.degradation_manager.get_all_degraded(),
            "total_errors": self.error_tracker.get_error_stats()["total_errors"],
        }

    @property
    def has_error(self) -> bool:
        return self.scheduler.status is CycleStatus.ERROR

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        if sys.platform != "win32":
            loop = asyncio.get_running_loop()
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(signum, self._signal_handler, signum)
            self._signal_handlers_installed = True
        else:
            signal.signal(signal.SIGINT, lambda signum, frame: self._signal_handler(signum))
            signal.signal(signal.SIGBREAK, lambda signum, frame: self._signal_handler(signum))

    def _remove_signal_handlers(self) -> None:
        if not self._signal_handlers_installed:
            return
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)
        self._signal_handlers_installed = False

    def _signal_handler(self, signum: int) -> None:
        """Handle shutdown signals."""
        self.logger.info(
            "Received shutdown signal, initiating graceful shutdown",
            extra={"signal": signum},
        )
        self._shutdown_event.set()

    async def run(self) -> None:
        """Poll until shutdown is requested, then shut down."""
        try:
            if not await self.initialize():
                self.logger.error("Engine initialization failed")
                return

            self._setup_signal_handlers()
            await self.start_polling()
            await self._shutdown_event.wait()

        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt")
        finally:
            self._remove_signal_handlers()
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop polling and flush state."""
        self._shutdown_event.set()
        if not self._initialized:
            return

        self.logger.info("Initiating graceful shutdown...")
        await self.scheduler.stop()

        if self._unsubscribe_alerts:
            self._unsubscribe_alerts()
            self._unsubscribe_alerts = None

        self._persist_alerts(self.alert_store.list())
        self._persist_matches()
        self._initialized = False

        uptime = datetime.now() - self._startup_time if self._startup_time else None
        self.logger.info(f"Engine shutdown complete. Uptime: {uptime}")
