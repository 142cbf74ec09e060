"""Tests for response rendering and playbook guidance."""

import pytest

from triage_engine.conversation.composer import NO_CAUSES_PLACEHOLDER, ResponseComposer
from triage_engine.conversation.playbook import (
    FALLBACK_CAUSE,
    MAX_STEPS,
    SHORT_SERIAL_CAUSE,
    PlaybookBuilder,
)
from triage_engine.core.models import BotResponse, IntakeRecord, KBArticle, SourceCitation


def _article(body: str, title: str = "Article") -> KBArticle:
    return KBArticle(id="a1", title=title, body_text=body, source_path="kb/a.json")


@pytest.mark.unit
class TestResponseComposer:
    """Tests for ResponseComposer."""

    def test_orders_sections(self) -> None:
        response = BotResponse(
            steps=["Step one", "Step two"],
            possible_causes=["Cause one"],
            needed_info=["Need serial"],
            citations=[SourceCitation(title="Article A", path="kb/A.json")],
        )

        text = ResponseComposer().render(response)

        assert text.split("\n") == [
            "Troubleshooting steps",
            "1. Step one",
            "2. Step two",
            "Possible causes",
            "- Cause one",
            "What I need from you",
            "- Need serial",
            "Sources",
            "- Article A (kb/A.json)",
        ]

    def test_causes_section_always_present(self) -> None:
        text = ResponseComposer().render(BotResponse(needed_info=["Which app?"]))

        assert text.split("\n") == [
            "Possible causes",
            NO_CAUSES_PLACEHOLDER,
            "What I need from you",
            "- Which app?",
        ]


@pytest.mark.unit
class TestPlaybookBuilder:
    """Tests for PlaybookBuilder."""

    def test_steps_skip_title_line_and_links(self) -> None:
        article = _article("Outlook Login\n• Open Outlook\nhttps://example.com/help\nRemove and re-add the account")

        assert PlaybookBuilder().steps(article) == ["Open Outlook", "Remove and re-add the account"]

    def test_single_line_body_is_used_as_step(self) -> None:
        assert PlaybookBuilder().steps(_article("Restart the device")) == ["Restart the device"]

    def test_steps_fall_back_to_article_title(self) -> None:
        article = _article("Intro\nhttps://example.com", title="VPN Guide")

        assert PlaybookBuilder().steps(article) == [
            "Open VPN Guide and follow the documented procedure in order."
        ]

    def test_steps_are_capped(self) -> None:
        body = "\n".join(f"Line {n}" for n in range(20))

        assert len(PlaybookBuilder().steps(_article(body))) == MAX_STEPS

    def test_causes_from_intake_and_article(self) -> None:
        intake = IntakeRecord(app_in_use="Outlook", wifi_ssid="TC-Corp", serial_number="C02 12")
        article = _article("Reset your password\nClear the cache")

        causes = PlaybookBuilder().possible_causes(intake, article)

        assert causes[0].startswith("The issue may be specific to Outlook")
        assert "SSID 'TC-Corp'" in causes[1]
        assert causes[2] == SHORT_SERIAL_CAUSE
        assert len(causes) == 5

    def test_fallback_cause(self) -> None:
        assert PlaybookBuilder().possible_causes(IntakeRecord(), None) == [FALLBACK_CAUSE]
