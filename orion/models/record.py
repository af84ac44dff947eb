"""
orion/models/record.py
Shared dataclass schema. The driver, session, form, store and history
all use these types. Do not add logic here — data and (de)serialization only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

# ── VOCABULARIES ─────────────────────────────────────────────

INCIDENT_TYPES = ('medical', 'security', 'technical', 'logistique', 'autre')
URGENCY_LEVELS = ('urgent', 'non-urgent')

SENDER_USER = 'user'
SENDER_AI   = 'ai'

STATUS_PENDING     = 'En attente'
STATUS_IN_PROGRESS = 'En cours de traitement'
STATUS_RESOLVED    = 'Résolu'


@dataclass(frozen=True)
class Message:
    """One line of the chat transcript."""
    id:        int              # monotonic per conversation, greeting is 1
    text:      str
    sender:    str              # user / ai
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id':        self.id,
            'text':      self.text,
            'sender':    self.sender,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class IncidentData:
    """Fields accumulated across the dialogue. Updated with dataclasses.replace."""
    type:        str = ''       # medical / security / technical / logistique / autre
    urgency:     str = ''       # urgent / non-urgent
    location:    str = ''
    description: str = ''

    def is_complete(self) -> bool:
        return bool(self.type.strip() and self.description.strip())

    def to_dict(self) -> Dict[str, str]:
        return {
            'type':        self.type,
            'urgency':     self.urgency,
            'location':    self.location,
            'description': self.description,
        }


def _text(data: Dict[str, Any], key: str, default: Optional[str] = '') -> Optional[str]:
    value = data.get(key, default)
    if value is None and default is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Report:
    """Persisted incident report. Never mutated after creation."""
    id:          str
    type:        str
    urgency:     str
    location:    str
    description: str
    timestamp:   str            # ISO-8601
    status:      str           = STATUS_PENDING
    photo:       Optional[str] = None     # file name picked in the manual form
    agent:       Optional[str] = None     # assigned once handled

    @classmethod
    def from_incident(
        cls,
        incident:  IncidentData,
        report_id: str,
        timestamp: Optional[datetime] = None,
        photo:     Optional[str]      = None,
    ) -> 'Report':
        ts = timestamp or datetime.now()
        return cls(
            id          = report_id,
            type        = incident.type,
            urgency     = incident.urgency,
            location    = incident.location,
            description = incident.description,
            timestamp   = ts.isoformat(),
            photo       = photo,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Report':
        """Build from a stored JSON object. Unknown keys are ignored."""
        return cls(
            id          = str(data['id']),
            type        = _text(data, 'type'),
            urgency     = _text(data, 'urgency'),
            location    = _text(data, 'location'),
            description = _text(data, 'description'),
            timestamp   = _text(data, 'timestamp'),
            status      = _text(data, 'status', STATUS_PENDING),
            photo       = _text(data, 'photo', None),
            agent       = _text(data, 'agent', None),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id':          self.id,
            'type':        self.type,
            'urgency':     self.urgency,
            'location':    self.location,
            'description': self.description,
            'timestamp':   self.timestamp,
            'status':      self.status,
        }
        if self.photo is not None:
            d['photo'] = self.photo
        if self.agent is not None:
            d['agent'] = self.agent
        return d

    @property
    def incident(self) -> IncidentData:
        return IncidentData(
            type        = self.type,
            urgency     = self.urgency,
            location    = self.location,
            description = self.description,
        )
