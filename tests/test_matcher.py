"""Unit tests for the Matcher component."""

import math

import pytest
from factories import make_alert, make_listing

from vinted_alerts.components.matcher import (
    Matcher,
    evaluate,
    matches_text,
    safe_number,
)


class RaisingStr:
    """Value whose string conversion fails."""

    def __str__(self):
        raise ValueError("cannot stringify")


class TestHelpers:
    """Test cases for text and number helpers."""

    def test_matches_text_empty_query_matches_everything(self):
        assert matches_text("anything", "") is True
        assert matches_text(None, None) is True

    def test_matches_text_is_case_insensitive_containment(self):
        assert matches_text("Levi's 501 Jeans", "JEANS") is True
        assert matches_text("Levi's 501 Jeans", "skirt") is False

    def test_matches_text_handles_missing_field(self):
        assert matches_text(None, "jeans") is False

    @pytest.mark.parametrize(
        "value,expected",
        [
            (35, 35.0),
            (35.5, 35.5),
            ("40", 40.0),
            (" 12.5 ", 12.5),
            ("", None),
            (None, None),
            (True, None),
            ("abc", None),
            (float("inf"), None),
            (float("nan"), None),
        ],
    )
    def test_safe_number(self, value, expected):
        assert safe_number(value) == expected


class TestMatcher:
    """Test cases for alert evaluation."""

    def setup_method(self):
        self.matcher = Matcher()

    def test_jeans_under_max_price_matches(self, jeans_alert):
        listing = make_listing(title="Levi's 501 Jeans", price=35)

        assert self.matcher.evaluate(listing, [jeans_alert]) == [jeans_alert]

    def test_jeans_over_max_price_does_not_match(self, jeans_alert):
        listing = make_listing(title="Levi's 501 Jeans", price=45)

        assert self.matcher.evaluate(listing, [jeans_alert]) == []

    def test_max_price_is_inclusive(self, jeans_alert):
        listing = make_listing(title="Levi's 501 Jeans", price=40)

        assert self.matcher.matches(listing, jeans_alert) is True

    def test_evaluate_preserves_alert_order(self):
        first = make_alert("a_1", term="jeans")
        second = make_alert("a_2", term="sweater")
        third = make_alert("a_3", brand="levi")
        listing = make_listing(title="Levi's 501 Jeans")

        assert self.matcher.evaluate(listing, [third, second, first]) == [third, first]
        assert self.matcher.evaluate(listing, [first, second, third]) == [first, third]

    def test_evaluate_is_deterministic(self, jeans_alert):
        alerts = [jeans_alert, make_alert("a_2", brand="nike")]
        listing = make_listing(price=20)

        assert self.matcher.evaluate(listing, alerts) == self.matcher.evaluate(
            listing, alerts
        )

    def test_empty_alert_matches_everything(self):
        alert = make_alert("a_empty")
        listing = make_listing(title="Anything", price=None, size="")

        assert self.matcher.matches(listing, alert) is True

    def test_term_matches_brand(self):
        alert = make_alert(term="zara")
        listing = make_listing(title="Cozy knit sweater", brand="Zara")

        assert self.matcher.matches(listing, alert) is True

    def test_brand_filter(self):
        alert = make_alert(brand="nike")

        assert self.matcher.matches(make_listing(brand="Nike"), alert) is True
        assert self.matcher.matches(make_listing(brand="Adidas"), alert) is False

    def test_size_filter_uses_stringified_size(self):
        alert = make_alert(size="42")

        assert self.matcher.matches(make_listing(size=42), alert) is True
        assert self.matcher.matches(make_listing(size="EU 42"), alert) is True
        assert self.matcher.matches(make_listing(size="M"), alert) is False

    def test_size_filter_rejects_missing_listing_size(self):
        alert = make_alert(size="M")

        assert self.matcher.matches(make_listing(size=""), alert) is False
        assert self.matcher.matches(make_listing(size=None), alert) is False

    def test_condition_filter(self):
        alert = make_alert(condition="new")

        assert self.matcher.matches(make_listing(condition="Like New"), alert) is True
        assert self.matcher.matches(make_listing(condition="Good"), alert) is False

    def test_non_numeric_max_price_is_unconstrained(self):
        alert = make_alert(term="jeans", max_price="cheap")

        assert self.matcher.matches(make_listing(price=999), alert) is True

    def test_numeric_string_max_price_is_a_bound(self):
        alert = make_alert(term="jeans", max_price="40")

        assert self.matcher.matches(make_listing(price=39.99), alert) is True
        assert self.matcher.matches(make_listing(price=40.01), alert) is False

    def test_zero_max_price_is_a_bound(self):
        alert = make_alert(term="jeans", max_price=0)

        assert self.matcher.matches(make_listing(price=0), alert) is True
        assert self.matcher.matches(make_listing(price=5), alert) is False

    @pytest.mark.parametrize("price", [None, "", "n/a", math.inf, math.nan])
    def test_missing_or_non_numeric_price_fails_when_bounded(self, jeans_alert, price):
        listing = make_listing(price=price)

        assert self.matcher.matches(listing, jeans_alert) is False

    def test_malformed_listing_fails_closed(self):
        alert = make_alert(size="M")
        listing = make_listing(size=RaisingStr())

        assert self.matcher.matches(listing, alert) is False
        assert self.matcher.evaluate(listing, [alert]) == []

    def test_all_clauses_are_required(self):
        alert = make_alert(
            term="jeans", brand="levi", size="M", condition="good", max_price=50
        )

        assert self.matcher.matches(make_listing(price=35), alert) is True
        assert self.matcher.matches(make_listing(price=35, size="L"), alert) is False
        assert (
            self.matcher.matches(make_listing(price=35, condition="Fair"), alert)
            is False
        )

    def test_module_level_evaluate(self, jeans_alert):
        listing = make_listing(price=35)

        assert evaluate(listing, [jeans_alert]) == [jeans_alert]
