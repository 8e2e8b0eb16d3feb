"""Unit tests for the AlertStore component."""

import logging
from unittest.mock import Mock

from factories import make_alert

from vinted_alerts.components.alert_store import AlertStore, generate_alert_id
from vinted_alerts.models.alert import UNNAMED_ALERT, AlertDefinition


def fixed_ids(*ids):
    return iter(ids).__next__


class TestAlertStore:
    """Test cases for AlertStore."""

    def test_add_assigns_id_and_created_at(self, clock):
        store = AlertStore(clock=clock)

        alert = store.add(AlertDefinition(term="jeans", max_price=40))

        assert alert.id.startswith("a_")
        assert alert.created_at == clock.now
        assert alert.term == "jeans"
        assert alert.max_price == 40
        assert store.list() == [alert]

    def test_generated_ids_are_unique(self):
        assert len({generate_alert_id() for _ in range(200)}) == 200

    def test_name_derivation(self):
        store = AlertStore()

        assert store.add(AlertDefinition(name="Mine", term="jeans")).name == "Mine"
        assert store.add(AlertDefinition(term="jeans", brand="Levi")).name == "jeans"
        assert store.add(AlertDefinition(brand="Levi")).name == "Levi"
        assert store.add(AlertDefinition()).name == UNNAMED_ALERT

    def test_duplicate_candidate_ids_are_regenerated(self):
        store = AlertStore(id_factory=fixed_ids("a_1", "a_1", "a_2"))

        first = store.add(AlertDefinition(term="jeans"))
        second = store.add(AlertDefinition(term="skirt"))

        assert first.id == "a_1"
        assert second.id == "a_2"

    def test_ids_are_not_reused_after_removal(self):
        store = AlertStore(id_factory=fixed_ids("a_1", "a_1", "a_2"))
        first = store.add(AlertDefinition(term="jeans"))
        store.remove(first.id)

        second = store.add(AlertDefinition(term="jeans"))

        assert second.id == "a_2"

    def test_list_keeps_insertion_order(self):
        store = AlertStore()
        alerts = [store.add(AlertDefinition(term=term)) for term in ["c", "a", "b"]]

        assert store.list() == alerts

    def test_list_returns_snapshot(self):
        store = AlertStore()
        store.add(AlertDefinition(term="jeans"))

        snapshot = store.list()
        snapshot.clear()

        assert len(store) == 1

    def test_remove(self):
        store = AlertStore()
        alert = store.add(AlertDefinition(term="jeans"))

        assert store.remove(alert.id) is True
        assert store.list() == []
        assert alert.id not in store

    def test_remove_absent_is_noop(self):
        store = AlertStore()
        store.add(AlertDefinition(term="jeans"))
        subscriber = Mock()
        store.subscribe(subscriber)

        assert store.remove("missing") is False
        assert len(store) == 1
        subscriber.assert_not_called()

    def test_subscribers_receive_snapshot_on_mutation(self):
        store = AlertStore()
        subscriber = Mock()
        store.subscribe(subscriber)

        alert = store.add(AlertDefinition(term="jeans"))
        store.remove(alert.id)

        assert subscriber.call_count == 2
        assert subscriber.call_args_list[0].args[0] == [alert]
        assert subscriber.call_args_list[1].args[0] == []

    def test_unsubscribe(self):
        store = AlertStore()
        subscriber = Mock()
        unsubscribe = store.subscribe(subscriber)

        unsubscribe()
        store.add(AlertDefinition(term="jeans"))

        subscriber.assert_not_called()

    def test_failing_subscriber_does_not_undo_mutation(self, caplog):
        store = AlertStore()
        failing = Mock(side_effect=RuntimeError("disk full"))
        healthy = Mock()
        store.subscribe(failing)
        store.subscribe(healthy)

        with caplog.at_level(logging.ERROR):
            alert = store.add(AlertDefinition(term="jeans"))

        assert store.get(alert.id) == alert
        healthy.assert_called_once()
        assert "Alert subscriber failed" in caplog.text

    def test_load_replaces_contents_without_notifying(self):
        store = AlertStore(id_factory=fixed_ids("a_loaded", "a_new"))
        subscriber = Mock()
        store.subscribe(subscriber)
        loaded = make_alert("a_loaded", term="jeans")

        store.load([loaded])
        added = store.add(AlertDefinition(term="skirt"))

        assert store.list() == [loaded, added]
        assert added.id == "a_new"
        subscriber.assert_called_once()
