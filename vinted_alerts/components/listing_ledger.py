"""
Deduplicating ledger of matched listings.

The ledger holds exactly one MatchRecord per listing id. Merging a record
whose id is already present replaces the stored record as a whole
(last write wins); records are never patched field by field.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Union

from ..models.match import MatchRecord, SortMode
from .matcher import safe_number

logger = logging.getLogger(__name__)


def normalized_price(record: MatchRecord) -> float:
    """Price used for sorting; missing or non-numeric prices sort as 0."""
    return safe_number(record.listing.price) or 0.0


class ListingLedger:
    """Ordered mapping from listing id to its latest MatchRecord."""

    def __init__(self, records: Optional[Iterable[MatchRecord]] = None):
        self._records: Dict[str, MatchRecord] = {}
        if records:
            self.merge(records)

    def merge(self, records: Iterable[MatchRecord]) -> int:
        """
        Insert or overwrite records by listing id.

        Args:
            records: Match records to merge

        Returns:
            Number of records that were new to the ledger
        """
        added = 0
        replaced = 0
        for record in records:
            if record.id in self._records:
                replaced += 1
            else:
                added += 1
            self._records[record.id] = record

        if added or replaced:
            logger.debug(
                f"Merged {added + replaced} records into ledger "
                f"({added} new, {replaced} replaced, {len(self._records)} total)"
            )
        return added

    def snapshot_sorted_by(self, mode: Union[SortMode, str]) -> List[MatchRecord]:
        """
        Return all records in the requested order.

        "newest" sorts by seen_at descending; records seen at the same instant
        keep their insertion order. "price" sorts ascending by price with
        missing prices treated as 0.
        """
        sort_mode = SortMode(mode)
        records = list(self._records.values())

        if sort_mode is SortMode.PRICE:
            return sorted(records, key=normalized_price)
        return sorted(records, key=lambda record: record.seen_at, reverse=True)

    def records(self) -> List[MatchRecord]:
        """Records in insertion order."""
        return list(self._records.values())

    def get(self, listing_id: str) -> Optional[MatchRecord]:
        return self._records.get(listing_id)

    def clear(self) -> None:
        """Remove every record."""
        self._records.clear()
        logger.info("Listing ledger cleared")

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, listing_id: object) -> bool:
        return listing_id in self._records

    def __iter__(self) -> Iterator[MatchRecord]:
        return iter(self.records())
