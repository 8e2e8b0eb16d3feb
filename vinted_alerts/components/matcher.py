"""Matcher for evaluating listings against alert criteria."""

import math
from typing import Any, List, Optional, Sequence

from ..models.alert import Alert
from ..models.listing import Listing


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def matches_text(field: Any, query: Any) -> bool:
    """Case-insensitive containment; an empty query matches everything."""
    if not query:
        return True
    return _text(query).lower() in _text(field).lower()


def safe_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    return number if math.isfinite(number) else None


class Matcher:
    """Pure predicate engine mapping a listing to the alerts it satisfies."""

    def evaluate(self, listing: Listing, alerts: Sequence[Alert]) -> List[Alert]:
        """Return the alerts that match the listing, in the given order."""
        return [alert for alert in alerts if self.matches(listing, alert)]

    def matches(self, listing: Listing, alert: Alert) -> bool:
        """Check all alert clauses against the listing.

        Malformed listing fields count as a non-match rather than an error.
        """
        try:
            return (
                self._check_term(listing, alert)
                and self._check_brand(listing, alert)
                and self._check_size(listing, alert)
                and self._check_max_price(listing, alert)
                and self._check_condition(listing, alert)
            )
        except (AttributeError, TypeError, ValueError):
            return False

    def _check_term(self, listing: Listing, alert: Alert) -> bool:
        if not alert.term:
            return True
        return matches_text(listing.title, alert.term) or matches_text(
            listing.brand, alert.term
        )

    def _check_brand(self, listing: Listing, alert: Alert) -> bool:
        if not alert.brand:
            return True
        return matches_text(listing.brand, alert.brand)

    def _check_size(self, listing: Listing, alert: Alert) -> bool:
        if not alert.size:
            return True
        if listing.size is None or listing.size == "":
            return False
        return matches_text(str(listing.size), alert.size)

    def _check_max_price(self, listing: Listing, alert: Alert) -> bool:
        max_price = safe_number(alert.max_price)
        if max_price is None:
            return True

        price = safe_number(listing.price)
        if price is None:
            return False

        return price <= max_price

    def _check_condition(self, listing: Listing, alert: Alert) -> bool:
        if not alert.condition:
            return True
        return matches_text(listing.condition, alert.condition)


_default_matcher = Matcher()


def evaluate(listing: Listing, alerts: Sequence[Alert]) -> List[Alert]:
    """Module-level shortcut for ``Matcher().evaluate``."""
    return _default_matcher.evaluate(listing, alerts)
