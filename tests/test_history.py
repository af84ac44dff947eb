"""
tests/test_history.py
History read model — ordering, display fields, and interchangeability of
chat-written and form-written reports.
"""

import json
from datetime import datetime

import pytest

from orion.conversation.session import ConversationSession
from orion.history import (
    DEFAULT_AGENT,
    HistoryEntry,
    format_date,
    list_history,
    parse_timestamp,
    select_report,
    status_icon,
    status_tone,
    type_emoji,
    urgency_badge,
)
from orion.models.record import Report
from orion.report_form import ReportForm, submit_report
from orion.store.report_store import InMemoryReportStore, JsonFileReportStore


def _report(report_id, timestamp, **overrides):
    fields = dict(
        id=report_id, type="medical", urgency="urgent", location="Dakar",
        description="Malaise", timestamp=timestamp,
    )
    fields.update(overrides)
    return Report(**fields)


class TestFormatDate:
    def test_french_long_date(self):
        assert format_date("2026-03-15T14:30:00") == "15 mars 2026 à 14:30"

    def test_browser_iso_with_z(self):
        assert format_date("2026-08-01T09:05:00.000Z") == "1 août 2026 à 09:05"

    def test_unparseable_returned_as_is(self):
        assert format_date("hier") == "hier"
        assert format_date("") == ""

    def test_non_string_timestamp_is_unparseable(self):
        assert parse_timestamp(1767225600000) is None


class TestPresentation:
    @pytest.mark.parametrize("incident_type,emoji", [
        ("security", "🔒"),
        ("medical", "🏥"),
        ("technical", "🔧"),
        ("logistique", "🔧"),
        ("autre", "📋"),
        ("inconnu", "📋"),
    ])
    def test_type_emoji(self, incident_type, emoji):
        assert type_emoji(incident_type) == emoji

    def test_status(self):
        assert status_icon("En attente") == "clock"
        assert status_icon("En cours de traitement") == "loader"
        assert status_icon("Résolu") == "check-circle"
        assert status_icon("Archivé") == "alert-circle"
        assert status_tone("En attente") == "orange"
        assert status_tone("Résolu") == "green"
        assert status_tone("Archivé") == ""

    def test_urgency_badge(self):
        assert urgency_badge("urgent") == "🔴 Urgent"
        assert urgency_badge("non-urgent") == "🟡 Non urgent"

    def test_entry_fields(self):
        entry = HistoryEntry.from_report(_report("a", "2026-11-02T15:45:00", type="security"))
        assert entry.title == "Sécurité"
        assert entry.emoji == "🔒"
        assert entry.status_icon == "clock"
        assert entry.date_label == "2 novembre 2026 à 15:45"
        d = entry.to_dict()
        assert d["id"] == "a"
        assert d["urgency_label"] == "Urgent"
        assert d["agent_label"] is None

    def test_pending_report_has_no_agent(self):
        entry = HistoryEntry.from_report(_report("a", "2026-11-02T15:45:00"))
        assert entry.agent is None

    def test_handled_report_without_agent_gets_default(self):
        entry = HistoryEntry.from_report(_report("a", "2026-11-02T15:45:00", status="Résolu"))
        assert entry.agent == DEFAULT_AGENT

    def test_handled_report_keeps_its_agent(self):
        entry = HistoryEntry.from_report(
            _report("a", "2026-11-02T15:45:00", status="En cours de traitement", agent="Awa Ndiaye"))
        assert entry.agent == "Awa Ndiaye"
        assert entry.to_dict()["agent_label"] == "Awa Ndiaye"


class TestListing:
    def test_empty(self):
        assert list_history(InMemoryReportStore()) == []

    def test_newest_first(self):
        store = InMemoryReportStore([
            _report("old", "2026-10-01T08:00:00"),
            _report("new", "2026-11-01T08:00:00"),
            _report("mid", "2026-10-15T08:00:00"),
        ])
        assert [e.report.id for e in list_history(store)] == ["new", "mid", "old"]

    def test_select(self):
        store = InMemoryReportStore([_report("a", "2026-10-01T08:00:00")])
        assert select_report(store, "a").report.id == "a"
        assert select_report(store, "b") is None

    def test_entries_with_non_string_fields_are_skipped(self, tmp_path):
        path = tmp_path / "orion-reports.json"
        path.write_text(json.dumps([
            {"id": "a", "type": "medical", "description": "x", "timestamp": 1767225600000},
            {"id": "b", "type": "medical", "description": ["x"], "timestamp": "2026-10-01T08:00:00"},
            {"id": "c", "type": "medical", "description": "ok", "timestamp": "2026-10-01T08:00:00"},
        ]), encoding="utf-8")
        assert [e.report.id for e in list_history(JsonFileReportStore(path))] == ["c"]


class TestInterchangeable:
    def test_chat_and_form_reports_render_alike(self):
        store = InMemoryReportStore()
        now = datetime(2026, 11, 2, 15, 45)

        session = ConversationSession(store=store, clock=lambda: now)
        for text in ["médical", "Malaise en tribune", "Stade Léopold Sédar Senghor", "urgent", "oui"]:
            session.send(text)
        submit_report(
            ReportForm(type="medical", urgency="urgent", location="Stade Léopold Sédar Senghor",
                       description="Malaise en tribune"),
            store,
            now=now,
        )

        chat_entry, form_entry = (HistoryEntry.from_report(r) for r in store.list_all())
        assert set(chat_entry.report.to_dict()) == set(form_entry.report.to_dict())
        assert chat_entry.report.incident == form_entry.report.incident
        for attr in ("title", "emoji", "status_icon", "status_tone", "urgency_badge", "date_label"):
            assert getattr(chat_entry, attr) == getattr(form_entry, attr)

    def test_older_form_spellings_render_as_canonical(self):
        legacy = HistoryEntry.from_report(_report("a", "2026-10-30T08:15:00.000Z", type="securite"))
        assert legacy.emoji == "🔒"
        assert legacy.title == HistoryEntry.from_report(
            _report("b", "2026-10-30T08:15:00.000Z", type="security")).title
