"""
orion/report_form.py
Manual report form — the structured alternative to the chat.
Collects the same four fields plus an optional photo name and writes to
the same report store, bypassing the classifier and the driver.
"""

import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from orion.models.record import INCIDENT_TYPES, URGENCY_LEVELS, IncidentData, Report
from orion.store.report_store import ReportStore

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Stade Léopold Sédar Senghor - Dakar"
REQUIRED_FIELDS_MESSAGE = "Veuillez remplir tous les champs obligatoires"

# Values the form's type picker may send, mapped to stored categories
TYPE_ALIASES = {
    'securite':   'security',
    'sécurité':   'security',
    'medical':    'medical',
    'médical':    'medical',
    'technique':  'technical',
    'logistique': 'logistique',
    'autre':      'autre',
}

_ID_ALPHABET = string.ascii_lowercase + string.digits


class FormValidationError(ValueError):
    """Required field missing or a value outside the allowed set."""


@dataclass
class ReportForm:
    type:        str           = ''
    urgency:     str           = 'non-urgent'
    location:    str           = DEFAULT_LOCATION
    description: str           = ''
    photo:       Optional[str] = None     # selected file name only

    def validate(self) -> IncidentData:
        """Return the normalized incident or raise FormValidationError."""
        if not self.type.strip() or not self.description.strip():
            raise FormValidationError(REQUIRED_FIELDS_MESSAGE)

        incident_type = normalize_type(self.type)
        if incident_type is None:
            raise FormValidationError(f"Type d'incident inconnu : {self.type}")
        if self.urgency not in URGENCY_LEVELS:
            raise FormValidationError(f"Niveau d'urgence inconnu : {self.urgency}")

        return IncidentData(
            type        = incident_type,
            urgency     = self.urgency,
            location    = self.location.strip(),
            description = self.description.strip(),
        )


def normalize_type(value: str) -> Optional[str]:
    key = (value or '').strip().lower()
    if key in INCIDENT_TYPES:
        return key
    return TYPE_ALIASES.get(key)


def random_report_id(rng: Optional[random.Random] = None, length: int = 9) -> str:
    """Short base-36 token, e.g. 'k3j9x0a1b'."""
    rng = rng or random.Random()
    return ''.join(rng.choice(_ID_ALPHABET) for _ in range(length))


def submit_report(
    form:  ReportForm,
    store: ReportStore,
    rng:   Optional[random.Random] = None,
    now:   Optional[datetime]      = None,
) -> Report:
    """
    Validate and store. Raises FormValidationError before anything is
    written; StoreError from the store propagates to the caller.
    """
    incident = form.validate()
    report = Report.from_incident(
        incident,
        report_id = random_report_id(rng),
        timestamp = now or datetime.now(),
        photo     = form.photo or None,
    )
    store.append(report)
    logger.info(f"Manual report {report.id} submitted ({report.type}/{report.urgency})")
    return report
