"""Tests for in-memory repositories."""

import pytest

from triage_engine.core.exceptions import ValidationError
from triage_engine.core.models import (
    DeviceType,
    DiagnosticLogLevel,
    InventoryLookupQuery,
    InventoryRecord,
    InventorySourceType,
    KBSearchQuery,
    LookupField,
)
from triage_engine.normalization import normalize_article
from triage_engine.repositories.memory import (
    InMemoryDiagnosticsRepository,
    InMemoryInventoryRepository,
    InMemoryKBRepository,
    InMemoryResponseTemplateRepository,
    InMemoryTicketHistoryRepository,
    MemoryLogger,
)
from triage_engine.repositories.sqlite.inventory import linked_confidence


def _kb() -> InMemoryKBRepository:
    return InMemoryKBRepository(
        [
            normalize_article("mac", "Outlook on Mac", "Open Outlook on macOS\nRe-add the account", "kb/mac.md"),
            normalize_article("ios", "Outlook on iPhone", "Open Outlook on iOS\nRe-add the account", "kb/ios.md"),
            normalize_article("vpn", "VPN", "Connect with GlobalProtect", "kb/vpn.md"),
        ]
    )


def _inventory() -> InMemoryInventoryRepository:
    return InMemoryInventoryRepository(
        [
            InventoryRecord(
                source="macs",
                source_type=InventorySourceType.MANAGED_MAC,
                serial_number="c02 abc 12345",
                username="jdaley@example.com",
                display_name="TC-M-TEST",
            ),
            InventoryRecord(
                source="mobile",
                source_type=InventorySourceType.MANAGED_MOBILE,
                serial_number="DMP123456789",
                username="Jim Daley",
                phone_number="5551001000",
            ),
        ]
    )


@pytest.mark.unit
class TestInMemoryKBRepository:
    """Tests for InMemoryKBRepository."""

    def test_every_token_must_match(self) -> None:
        results = _kb().search(KBSearchQuery(text="outlook account"), limit=10)

        assert {r.article.id for r in results} == {"mac", "ios"}
        assert _kb().search(KBSearchQuery(text="outlook vpn"), limit=10) == []

    def test_prefix_match(self) -> None:
        results = _kb().search(KBSearchQuery(text="global"), limit=10)

        assert [r.article.id for r in results] == ["vpn"]

    def test_preferred_device_ranks_first(self) -> None:
        query = KBSearchQuery(text="outlook", preferred_device=DeviceType.IPHONE)

        results = _kb().search(query, limit=10)

        assert results[0].article.id == "ios"
        assert results[0].score > results[1].score

    def test_limit_and_blank_query(self) -> None:
        assert len(_kb().search(KBSearchQuery(text="outlook"), limit=1)) == 1
        assert _kb().search(KBSearchQuery(text="a !"), limit=5) == []


@pytest.mark.unit
class TestInMemoryInventoryRepository:
    """Tests for InMemoryInventoryRepository."""

    def test_serial_lookup_is_normalized(self) -> None:
        records = _inventory().lookup(
            InventoryLookupQuery(text="C02ABC 12345", field=LookupField.SERIAL_NUMBER), limit=5
        )

        assert [r.display_name for r in records] == ["TC-M-TEST"]
        assert records[0].serial_number == "C02ABC12345"

    def test_any_field_matches_substrings(self) -> None:
        records = _inventory().lookup(InventoryLookupQuery(text="daley"), limit=5)

        assert len(records) == 2

    def test_phone_lookup_and_blank_text(self) -> None:
        inventory = _inventory()

        assert len(inventory.lookup(InventoryLookupQuery("1001", LookupField.PHONE_NUMBER), 5)) == 1
        assert inventory.lookup(InventoryLookupQuery("  "), 5) == []

    def test_linked_context_confidence(self) -> None:
        inventory = _inventory()

        assert inventory.linked_context("C02ABC12345", None).confidence == 1.0
        assert inventory.linked_context(None, "jim daley").confidence == 0.8
        empty = inventory.linked_context(None, None)
        assert empty.records == []
        assert empty.confidence == 0.0

    def test_weak_confidence(self) -> None:
        record = InventoryRecord(source="assets", serial_number="OTHER")

        assert linked_confidence([record], "C02", "nobody") == 0.45


@pytest.mark.unit
class TestInMemoryTracking:
    """Tests for ticket history, templates and diagnostics."""

    def test_ticket_upsert_keeps_resolution(self) -> None:
        history = InMemoryTicketHistoryRepository()
        history.upsert("INC1", "text", "template", "Rebooted", ["Location"])
        history.upsert("INC1", "text 2", "template 2", None, [])

        record = history.get("INC1")
        assert record.resolution_summary == "Rebooted"
        assert record.source_text == "text 2"
        assert record.missing_fields == []
        assert len(history.list_recent(10)) == 1

    def test_ticket_requires_number(self) -> None:
        with pytest.raises(ValidationError):
            InMemoryTicketHistoryRepository().upsert(" ", "t", "r", None, [])

    def test_template_validation_and_upsert(self) -> None:
        templates = InMemoryResponseTemplateRepository()

        with pytest.raises(ValidationError, match="Template name is required"):
            templates.save_template(" ", "body")
        with pytest.raises(ValidationError, match="Template body is required"):
            templates.save_template("name", "   ")

        first = templates.save_template(" Short ", "Hello {{ticket_number}}")
        second = templates.save_template("Short", "Updated")
        assert first.id == second.id
        assert templates.list_templates(10)[0].body == "Updated"

        templates.delete_template(first.id)
        assert templates.list_templates(10) == []

    def test_diagnostics_normalize_entries(self) -> None:
        diagnostics = InMemoryDiagnosticsRepository(retention_days=0)

        entry_id = diagnostics.append(DiagnosticLogLevel.ERROR, "  ", "  ", "  ")

        entry = diagnostics.get(entry_id)
        assert entry.category == "general"
        assert entry.message == "No message provided."
        assert entry.details is None
        assert diagnostics.retention_days == 1

    def test_memory_logger(self) -> None:
        support_logger = MemoryLogger()
        support_logger.log("started")
        support_logger.error("failed")

        assert support_logger.events == [("info", "started"), ("error", "failed")]
        assert support_logger.errors == ["failed"]
