"""
orion/history.py
"Mes signalements" — read side of the report store.
Lists reports newest first and derives the display fields (emoji, labels,
status icon, French date). Presentation only: nothing here writes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from orion.detectors.keyword_detector import type_label, urgency_label
from orion.models.record import (
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_RESOLVED,
    Report,
)
from orion.report_form import normalize_type
from orion.store.report_store import ReportStore

EMPTY_HISTORY_TITLE   = "Aucun signalement"
EMPTY_HISTORY_MESSAGE = "Vous n'avez pas encore effectué de signalement."

# Shown for handled reports that carry no agent name
DEFAULT_AGENT = "Mamadou Ndiaye"

TYPE_EMOJIS = {
    'security':   '🔒',
    'medical':    '🏥',
    'technical':  '🔧',
    'logistique': '🔧',
    'autre':      '📋',
}

STATUS_ICONS = {
    STATUS_PENDING:     'clock',
    STATUS_IN_PROGRESS: 'loader',
    STATUS_RESOLVED:    'check-circle',
}

STATUS_TONES = {
    STATUS_PENDING:     'orange',
    STATUS_IN_PROGRESS: 'blue',
    STATUS_RESOLVED:    'green',
}

URGENCY_BADGES = {
    'urgent':     '🔴 Urgent',
    'non-urgent': '🟡 Non urgent',
}

FRENCH_MONTHS = (
    'janvier', 'février', 'mars', 'avril', 'mai', 'juin',
    'juillet', 'août', 'septembre', 'octobre', 'novembre', 'décembre',
)


def canonical_type(incident_type: str) -> str:
    # Older form records say "securite" / "technique"
    return normalize_type(incident_type) or incident_type


def type_emoji(incident_type: str) -> str:
    return TYPE_EMOJIS.get(canonical_type(incident_type), "📋")


def status_icon(status: str) -> str:
    return STATUS_ICONS.get(status, 'alert-circle')


def status_tone(status: str) -> str:
    return STATUS_TONES.get(status, '')


def urgency_badge(urgency: str) -> str:
    return URGENCY_BADGES['urgent'] if urgency == 'urgent' else URGENCY_BADGES['non-urgent']


def assigned_agent(report: Report) -> Optional[str]:
    """Nobody is assigned while a report is still pending."""
    if report.status == STATUS_PENDING:
        return None
    return report.agent or DEFAULT_AGENT


def parse_timestamp(timestamp: str) -> Optional[datetime]:
    if not timestamp or not isinstance(timestamp, str):
        return None
    try:
        # Browser-written records end with 'Z'
        return datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    except ValueError:
        return None


def format_date(timestamp: str) -> str:
    """'2026-03-15T14:30:00' → '15 mars 2026 à 14:30'. Unparseable → as given."""
    dt = parse_timestamp(timestamp)
    if dt is None:
        return timestamp
    return f"{dt.day} {FRENCH_MONTHS[dt.month - 1]} {dt.year} à {dt:%H:%M}"


@dataclass(frozen=True)
class HistoryEntry:
    report:        Report
    title:         str
    emoji:         str
    status_icon:   str
    status_tone:   str
    urgency_badge: str
    date_label:    str
    agent:         Optional[str] = None

    @classmethod
    def from_report(cls, report: Report) -> 'HistoryEntry':
        return cls(
            report        = report,
            title         = type_label(canonical_type(report.type)),
            emoji         = type_emoji(report.type),
            status_icon   = status_icon(report.status),
            status_tone   = status_tone(report.status),
            urgency_badge = urgency_badge(report.urgency),
            date_label    = format_date(report.timestamp),
            agent         = assigned_agent(report),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.report.to_dict(),
            'title':         self.title,
            'emoji':         self.emoji,
            'status_icon':   self.status_icon,
            'status_tone':   self.status_tone,
            'urgency_label': urgency_label(self.report.urgency),
            'urgency_badge': self.urgency_badge,
            'date_label':    self.date_label,
            'agent_label':   self.agent,
        }


def _sort_key(report: Report) -> float:
    dt = parse_timestamp(report.timestamp)
    if dt is None:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.timestamp()


def list_history(store: ReportStore) -> List[HistoryEntry]:
    """All reports, newest first."""
    reports = sorted(store.list_all(), key=_sort_key, reverse=True)
    return [HistoryEntry.from_report(r) for r in reports]


def select_report(store: ReportStore, report_id: str) -> Optional[HistoryEntry]:
    report = store.get(report_id)
    return HistoryEntry.from_report(report) if report else None
