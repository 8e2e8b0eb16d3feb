"""
Listing fetch components for the Vinted Alerts system.

This module fetches catalog items from the Vinted search API and falls back
to synthetic listings when the API is unreachable.
"""

import logging
import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import FetchFailure
from ..models.config import FetcherConfig
from ..models.listing import Listing, utc_now
from ..utils.error_handling import ErrorSeverity, get_degradation_manager
from .matcher import safe_number

logger = logging.getLogger(__name__)

COMPONENT_NAME = "listing_fetcher"


class MockListingGenerator:
    """Random listings for offline and demo use."""

    BRANDS = ["Zara", "H&M", "Nike", "Adidas", "Vintage"]
    TITLES = [
        "Cozy knit sweater",
        "Vintage windbreaker",
        "Denim jacket",
        "Sneakers size 42",
        "Retro dress",
    ]
    COUNTRIES = ["DE", "FR", "NL", "BE", "PL"]
    SIZES = ["S", "M", "L", "XL"]
    CONDITIONS = ["New", "Like New", "Good", "Fair"]

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def make_listing(self, sequence: int) -> Listing:
        brand = self.rng.choice(self.BRANDS)
        return Listing(
            id=f"mock-{sequence}-{int(time.time() * 1000)}",
            title=f"{self.rng.choice(self.TITLES)} - {brand}",
            brand=brand,
            size=self.rng.choice(self.SIZES),
            price=float(self.rng.randint(10, 99)),
            currency="EUR",
            condition=self.rng.choice(self.CONDITIONS),
            country=self.rng.choice(self.COUNTRIES),
            created_at=utc_now(),
            url="#",
        )

    def generate(self, count: int, page: int = 1) -> List[Listing]:
        """Generate ``count`` listings numbered after the requested page."""
        return [self.make_listing(i + page * count) for i in range(count)]


def _random_listing_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"vinted-{suffix}"


def _size_attribute(item: Mapping[str, Any]) -> Any:
    attributes = item.get("attributes")
    if not isinstance(attributes, list):
        return None

    for attribute in attributes:
        if isinstance(attribute, dict) and attribute.get("name") == "Size":
            values = attribute.get("values") or []
            return values[0] if values else None
    return None


def _first_present(*values: Any, default: Any = "") -> Any:
    for value in values:
        if value is not None:
            return value
    return default


class VintedListingFetcher:
    """Fetches catalog items from the Vinted search API."""

    SEARCH_PATH = "/api/v2/catalog/items"

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        mock_generator: Optional[MockListingGenerator] = None,
    ):
        """
        Initialize listing fetcher.

        Args:
            config: Fetcher configuration
            mock_generator: Source of fallback listings
        """
        self.config = config or FetcherConfig()
        self.mock_generator = mock_generator or MockListingGenerator()
        self.consecutive_failures = 0
        self.last_fetch_time: Optional[datetime] = None

        # Setup HTTP session with retry strategy
        self.session = requests.Session()
        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update(
            {
                "User-Agent": "Vinted-Alerts/0.1 (Listing Fetcher)",
                "Accept": "application/json",
            }
        )

    @property
    def search_url(self) -> str:
        return self.config.base_url.rstrip("/") + self.SEARCH_PATH

    def fetch(self, query: str, page: int = 1) -> List[Listing]:
        """
        Fetch one page of listings for a search query.

        Args:
            query: Free-text search term
            page: One-based result page

        Returns:
            Listings from the API, or synthetic listings when the API fails
            and the mock fallback is enabled

        Raises:
            FetchFailure: If the API fails and the fallback is disabled
        """
        per_page = self.config.per_page
        try:
            listings = self._fetch_from_api(query, page)
        except FetchFailure as e:
            self.consecutive_failures += 1
            logger.error(f"Error fetching Vinted listings: {e}")

            if not self.config.fallback_to_mock:
                raise

            get_degradation_manager().degrade_component(
                COMPONENT_NAME,
                reason=str(e),
                fallback_behavior="Serving synthetic listings",
                severity=ErrorSeverity.LOW,
            )
            logger.info(f"Falling back to {per_page} mock listings")
            return self.mock_generator.generate(per_page, page)

        if self.consecutive_failures:
            get_degradation_manager().restore_component(COMPONENT_NAME)
        self.consecutive_failures = 0
        self.last_fetch_time = utc_now()
        logger.debug(f"Fetched {len(listings)} listings for query '{query}'")
        return listings

    def _fetch_from_api(self, query: str, page: int) -> List[Listing]:
        params = {
            "search_text": query,
            "per_page": self.config.per_page,
            "page": page,
        }

        try:
            logger.debug(f"Requesting {self.search_url} with {params}")
            response = self.session.get(
                self.search_url, params=params, timeout=self.config.timeout
            )
        except requests.exceptions.Timeout as e:
            raise FetchFailure(f"Timeout fetching listings: {e}") from e
        except requests.exceptions.RequestException as e:
            raise FetchFailure(f"Network error fetching listings: {e}") from e

        if not response.ok:
            raise FetchFailure(
                f"Vinted API fetch failed with status: {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchFailure(f"Invalid JSON payload: {e}") from e

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise FetchFailure("Payload contains no items list")

        return [self.transform_item(item) for item in items if isinstance(item, dict)]

    @staticmethod
    def transform_item(item: Dict[str, Any]) -> Listing:
        """Convert a raw catalog item into a Listing."""
        price_data = item.get("price")
        if isinstance(price_data, dict):
            price = safe_number(price_data.get("amount"))
            currency = price_data.get("currency")
        else:
            price = safe_number(price_data)
            currency = None

        brand_data = item.get("brand")
        attributes = item.get("attributes")
        catalog = item.get("catalog")

        created_timestamp = safe_number(item.get("created_timestamp"))
        if created_timestamp is not None:
            created_at = datetime.fromtimestamp(created_timestamp, tz=timezone.utc)
        else:
            created_at = utc_now()

        location = item.get("location")
        item_id = item.get("id")

        return Listing(
            id=str(item_id) if item_id is not None else _random_listing_id(),
            title=_first_present(
                item.get("title"),
                catalog.get("title") if isinstance(catalog, dict) else None,
                default="Listing",
            ),
            brand=_first_present(
                brand_data.get("title") if isinstance(brand_data, dict) else None,
                item.get("brand_title"),
                attributes.get("brand") if isinstance(attributes, dict) else None,
            ),
            size=_first_present(
                item.get("size"), item.get("size_title"), _size_attribute(item)
            ),
            price=price,
            currency=_first_present(currency, item.get("currency_code"), default="EUR"),
            condition=_first_present(item.get("condition"), item.get("status")),
            country=_first_present(
                location.get("country") if isinstance(location, dict) else None,
                default="DE",
            ),
            created_at=created_at,
            url=_first_present(item.get("url"), default="#"),
        )
