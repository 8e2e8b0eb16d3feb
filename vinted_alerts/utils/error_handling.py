"""
Error handling utilities for the Vinted Alerts system.

This module provides error tracking, retry backoff and graceful
degradation bookkeeping for engine components.
"""

import functools
import inspect
import random
import traceback
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .logging import get_logger


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""

    FETCH = "fetch"
    MATCHING = "matching"
    NOTIFICATION = "notification"
    PERSISTENCE = "persistence"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


@dataclass
class ErrorInfo:
    """Information about an error occurrence."""

    timestamp: datetime
    component: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception_type: str
    traceback: str
    context: Dict[str, Any]


class ErrorTracker:
    """
    Tracks errors and provides statistics for monitoring.
    """

    def __init__(self, max_errors: int = 1000):
        """
        Initialize error tracker.

        Args:
            max_errors: Maximum number of errors to keep in memory
        """
        self.max_errors = max_errors
        self.errors: List[ErrorInfo] = []
        self.error_counts: Dict[str, int] = {}
        self.component_errors: Dict[str, List[ErrorInfo]] = {}
        self.logger = get_logger("error_tracker")

    def record_error(
        self,
        component: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        message: str,
        exception: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> ErrorInfo:
        """
        Record an error occurrence.

        Args:
            component: Component where error occurred
            category: Error category
            severity: Error severity
            message: Error message
            exception: Exception object if available
            context: Additional context information

        Returns:
            ErrorInfo object
        """
        formatted_traceback = ""
        if exception is not None:
            formatted_traceback = "".join(
                traceback.format_exception(
                    type(exception), exception, exception.__traceback__
                )
            )

        error_info = ErrorInfo(
            timestamp=datetime.now(),
            component=component,
            category=category,
            severity=severity,
            message=message,
            exception_type=type(exception).__name__ if exception else "Unknown",
            traceback=formatted_traceback,
            context=context or {},
        )

        self.errors.append(error_info)
        if len(self.errors) > self.max_errors:
            self.errors.pop(0)

        error_key = f"{component}.{category.value}.{severity.value}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        component_errors = self.component_errors.setdefault(component, [])
        component_errors.append(error_info)
        if len(component_errors) > 100:
            component_errors.pop(0)

        self.logger.error(
            f"Error recorded: {message}",
            extra={
                "component": component,
                "category": category.value,
                "severity": severity.value,
                "exception_type": error_info.exception_type,
                "context": context,
            },
        )

        return error_info

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        now = datetime.now()
        last_hour = now - timedelta(hours=1)
        last_day = now - timedelta(days=1)

        return {
            "total_errors": len(self.errors),
            "errors_last_hour": len([e for e in self.errors if e.timestamp >= last_hour]),
            "errors_last_day": len([e for e in self.errors if e.timestamp >= last_day]),
            "error_counts": self.error_counts.copy(),
            "component_error_counts": {
                component: len(errors)
                for component, errors in self.component_errors.items()
            },
            "severity_breakdown": {
                severity.value: len([e for e in self.errors if e.severity == severity])
                for severity in ErrorSeverity
            },
            "category_breakdown": {
                category.value: len([e for e in self.errors if e.category == category])
                for category in ErrorCategory
            },
        }


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_backoff: bool = True,
        jitter: bool = True,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_backoff = exponential_backoff
        self.jitter = jitter

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before retrying after the given zero-based attempt."""
        delay = self.base_delay
        if self.exponential_backoff:
            delay = min(self.base_delay * (2**attempt), self.max_delay)

        if self.jitter:
            delay *= 0.5 + random.random() * 0.5

        return delay


_error_tracker: Optional[ErrorTracker] = None


def get_error_tracker() -> ErrorTracker:
    """Get global error tracker instance."""
    global _error_tracker
    if _error_tracker is None:
        _error_tracker = ErrorTracker()
    return _error_tracker


def with_error_handling(
    component: str,
    category: ErrorCategory,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    fallback_value: Any = None,
    suppress_exceptions: bool = False,
):
    """
    Decorator that records failures in the error tracker.

    When ``suppress_exceptions`` is set a failure returns ``fallback_value``
    instead of propagating.

    Args:
        component: Component name
        category: Error category
        severity: Error severity
        fallback_value: Value to return on failure
        suppress_exceptions: Whether to suppress exceptions
    """

    def decorator(func: Callable) -> Callable:
        def record(e: Exception) -> None:
            get_error_tracker().record_error(
                component=component,
                category=category,
                severity=severity,
                message=f"Error in {func.__name__}: {str(e)}",
                exception=e,
                context={"function": func.__name__},
            )

            if suppress_exceptions:
                get_logger(component).warning(
                    f"Suppressing exception in {func.__name__}: {str(e)}"
                )

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                record(e)
                if not suppress_exceptions:
                    raise
                return fallback_value

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                record(e)
                if not suppress_exceptions:
                    raise
                return fallback_value

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


class GracefulDegradation:
    """
    Manages graceful degradation of system functionality.

    Allows components to continue operating with reduced functionality
    when dependencies fail.
    """

    def __init__(self):
        self.degraded_components: Dict[str, Dict[str, Any]] = {}
        self.logger = get_logger("graceful_degradation")

    def degrade_component(
        self,
        component: str,
        reason: str,
        fallback_behavior: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    ):
        """
        Mark a component as degraded.

        Args:
            component: Component name
            reason: Reason for degradation
            fallback_behavior: Description of fallback behavior
            severity: Degradation severity
        """
        already_degraded = component in self.degraded_components
        self.degraded_components[component] = {
            "reason": reason,
            "fallback_behavior": fallback_behavior,
            "severity": severity.value,
            "timestamp": datetime.now().isoformat(),
        }

        if not already_degraded:
            self.logger.warning(
                f"Component degraded: {component}",
                extra={
                    "component": component,
                    "reason": reason,
                    "fallback_behavior": fallback_behavior,
                    "severity": severity.value,
                },
            )

    def restore_component(self, component: str):
        """Restore a component from degraded state."""
        if component in self.degraded_components:
            del self.degraded_components[component]
            self.logger.info(f"Component restored: {component}")

    def get_all_degraded(self) -> Dict[str, Dict[str, Any]]:
        """Get all degraded components."""
        return self.degraded_components.copy()


_degradation_manager: Optional[GracefulDegradation] = None


def get_degradation_manager() -> GracefulDegradation:
    """Get global graceful degradation manager."""
    global _degradation_manager
    if _degradation_manager is None:
        _degradation_manager = GracefulDegradation()
    return _degradation_manager
