"""Read-only filtered projection of the listing ledger."""

from typing import Iterable, List, Union

from ..models.match import MatchRecord, SortMode
from .listing_ledger import ListingLedger
from .matcher import matches_text


def record_matches_query(record: MatchRecord, query: str) -> bool:
    listing = record.listing
    return (
        matches_text(listing.title, query)
        or matches_text(listing.brand, query)
        or matches_text(listing.country, query)
        or matches_text(", ".join(record.matched_alert_names), query)
    )


def filter_records(records: Iterable[MatchRecord], query: str) -> List[MatchRecord]:
    """
    Keep records whose title, brand, country or matched alert names contain
    the query (case-insensitive). An empty query keeps everything.
    """
    needle = (query or "").strip()
    if not needle:
        return list(records)
    return [record for record in records if record_matches_query(record, needle)]


class QueryView:
    """Free-text view over a ledger, recomputed on every call."""

    def view(
        self,
        ledger: ListingLedger,
        query: str = "",
        sort_by: Union[SortMode, str] = SortMode.NEWEST,
    ) -> List[MatchRecord]:
        return filter_records(ledger.snapshot_sorted_by(sort_by), query)
