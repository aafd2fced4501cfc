"""Unit tests for the audit store and audit logger."""

import logging
from unittest.mock import MagicMock

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from financial_exorcist.core.audit_logger import AuditLogger
from financial_exorcist.core.enums import AuditAction
from financial_exorcist.domain.events import AMOUNT_MASK, AuditEvent, mask_snapshot
from financial_exorcist.store.audit_store import AuditStore, AuditStoreError
from tests.helpers.clock import NOON, FakeClock


@pytest.mark.unit
class TestAuditStore:
    """Test the append-only ledger."""

    def setup_method(self):
        self.store = AuditStore()

    def make_event(self, entity_id="abc"):
        return AuditEvent(
            action=AuditAction.OFFERING_CREATED, entity_type="Offering", entity_id=entity_id
        )

    def test_append_returns_sequence_numbers(self):
        assert self.store.append(self.make_event()) == 1
        assert self.store.append(self.make_event()) == 2
        assert len(self.store) == 2

    def test_duplicate_event_rejected(self):
        event = self.make_event()
        self.store.append(event)

        with pytest.raises(AuditStoreError):
            self.store.append(event)
        assert self.store.count() == 1

    def test_all_preserves_order(self):
        events = [self.make_event(str(i)) for i in range(3)]
        for event in events:
            self.store.append(event)

        assert [e.entity_id for e in self.store.all()] == ["0", "1", "2"]

    def test_all_is_a_snapshot(self):
        snapshot = self.store.all()
        self.store.append(self.make_event())

        assert snapshot == ()

    def test_by_entity(self):
        self.store.append(self.make_event("a"))
        self.store.append(self.make_event("b"))
        self.store.append(self.make_event("a"))

        assert len(self.store.by_entity("a")) == 2
        assert self.store.by_entity("missing") == ()

    def test_no_mutating_api(self):
        for name in ("delete", "remove", "update", "clear"):
            assert not hasattr(self.store, name)


@pytest.mark.unit
class TestAuditLogger:
    """Test audit logging, querying and masking."""

    def setup_method(self):
        self.clock = FakeClock()
        self.logger = AuditLogger(AuditStore(), session_id="session-1", clock=self.clock)

    def test_log_creates_event(self):
        event = self.logger.log(
            AuditAction.OFFERING_CREATED, "Offering", "abc", None, {"amount": 5000}
        )

        assert event is not None
        assert event.action == AuditAction.OFFERING_CREATED
        assert event.entity_id == "abc"
        assert event.timestamp == NOON
        assert event.session_id == "session-1"
        assert self.logger.count() == 1

    def test_log_accepts_action_strings_and_uuid_ids(self, make_offering):
        offering = make_offering()

        event = self.logger.log("OFFERING_DELETED", "Offering", offering.id)

        assert event.action == AuditAction.OFFERING_DELETED
        assert event.entity_id == str(offering.id)

    def test_session_override(self):
        event = self.logger.log(AuditAction.DATA_EXPORTED, "System", "export", session_id="other")
        assert event.session_id == "other"

    def test_invalid_event_is_swallowed_and_logged(self, caplog):
        with caplog.at_level(logging.ERROR):
            event = self.logger.log("NOT_AN_ACTION", "Offering", "abc")

        assert event is None
        assert self.logger.count() == 0
        assert "NOT_AN_ACTION" in caplog.text

    def test_missing_entity_id_is_swallowed(self):
        assert self.logger.log(AuditAction.OFFERING_CREATED, "Offering", None) is None
        assert self.logger.count() == 0

    def test_amounts_masked_by_default(self):
        self.logger.log(
            AuditAction.OFFERING_CREATED,
            "Offering",
            "abc",
            None,
            {"amount": 5000, "description": "Shoes"},
        )

        masked = self.logger.get_events()[0]
        unmasked = self.logger.get_events(unmask=True)[0]

        assert masked.after_snapshot == {"amount": AMOUNT_MASK, "description": "Shoes"}
        assert unmasked.after_snapshot == {"amount": 5000, "description": "Shoes"}

    def test_masking_never_changes_stored_event(self):
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "abc", None, {"amount": 5000})

        self.logger.get_events()

        assert self.logger.store.all()[0].after_snapshot["amount"] == 5000

    def test_returned_events_are_detached(self):
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "abc", None, {"tags": ["a"]})

        self.logger.get_events(unmask=True)[0].after_snapshot["tags"].append("b")

        assert self.logger.get_events(unmask=True)[0].after_snapshot["tags"] == ["a"]

    def test_caller_snapshot_changes_do_not_leak(self):
        after = {"amount": 5000}
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "abc", None, after)

        after["amount"] = 1

        assert self.logger.get_events(unmask=True)[0].after_snapshot["amount"] == 5000

    def test_filter_by_action_and_entity_type(self):
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "a")
        self.logger.log(AuditAction.RITUAL_STARTED, "Ritual", "r")
        self.logger.log(AuditAction.OFFERING_DELETED, "Offering", "a")

        assert len(self.logger.get_events(action=AuditAction.RITUAL_STARTED)) == 1
        assert len(self.logger.get_events(action="OFFERING_CREATED")) == 1
        assert len(self.logger.get_events(entity_type="Offering")) == 2
        assert self.logger.get_events(entity_type="System") == []

    def test_unknown_action_filter_rejected(self):
        with pytest.raises(ValueError):
            self.logger.get_events(action="OFFERING_EATEN")

        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "a")

        with pytest.raises(ValueError):
            self.logger.get_events(action="OFFERING_EATEN")

    def test_filter_by_time_range(self):
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "early")
        self.clock.advance(60)
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "late")

        assert [e.entity_id for e in self.logger.get_events(since=NOON + 1)] == ["late"]
        assert [e.entity_id for e in self.logger.get_events(until=NOON)] == ["early"]
        assert len(self.logger.get_events(since=NOON, until=NOON + 60_000)) == 2

    def test_events_by_entity(self, make_offering):
        offering = make_offering()
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", offering.id, None, {"amount": 1})
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "other")

        events = self.logger.get_events_by_entity(offering.id)

        assert len(events) == 1
        assert events[0].after_snapshot["amount"] == AMOUNT_MASK

    def test_export_is_always_masked(self):
        self.logger.log(AuditAction.OFFERING_CREATED, "Offering", "abc", {"amount": 1}, {"amount": 2})

        exported = self.logger.export_all()[0]

        assert exported.before_snapshot["amount"] == AMOUNT_MASK
        assert exported.after_snapshot["amount"] == AMOUNT_MASK


@pytest.mark.unit
class TestAuditLoggerFailures:
    """Test that broken stores never break the caller."""

    def test_store_failure_returns_none(self, caplog):
        store = MagicMock()
        store.append.side_effect = AuditStoreError("ledger unavailable")
        logger = AuditLogger(store)

        with caplog.at_level(logging.ERROR):
            event = logger.log(AuditAction.OFFERING_CREATED, "Offering", "abc")

        assert event is None
        store.append.assert_called_once()
        assert "ledger unavailable" in caplog.text


@pytest.mark.unit
class TestMaskingProperties:
    """Property-based checks of amount masking."""

    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        amount=st.one_of(st.integers(), st.floats(allow_nan=False)),
        extra=st.dictionaries(st.sampled_from(["description", "category", "total"]), st.integers()),
    )
    def test_numeric_amount_always_masked(self, amount, extra):
        snapshot = dict(extra, amount=amount)

        masked = mask_snapshot(snapshot)

        assert masked["amount"] == AMOUNT_MASK
        assert {k: v for k, v in masked.items() if k != "amount"} == extra
        assert snapshot["amount"] == amount
