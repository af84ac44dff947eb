"""
orion/detectors/keyword_detector.py
Keyword classification — pure Python, zero dependencies, fully offline.
Guesses the incident category and urgency from free text by
case-insensitive substring matching against fixed vocabularies.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

# ── KEYWORD DICTIONARIES ─────────────────────────────────────
# Order matters: the first category with a hit wins.

TYPE_KEYWORDS: List[Tuple[str, List[str]]] = [
    ('medical',    ['accident', 'blessé', 'médical', 'santé']),
    ('security',   ['vol', 'danger', 'sécurité', 'suspect']),
    ('technical',  ['panne', 'technique', 'équipement']),
    ('logistique', ['logistique']),
]

# Categories that force urgency when detected
URGENT_TYPES = ('medical', 'security')

URGENCY_KEYWORDS: List[str] = ['urgent', 'grave', 'vite']

# Literal mentions of a category name, accented or not.
TYPE_MENTIONS: List[Tuple[str, List[str]]] = [
    ('security',   ['sécurité', 'securite']),
    ('medical',    ['médical', 'medical', 'santé']),
    ('technical',  ['technique']),
    ('logistique', ['logistique']),
]

# ── LABELS ───────────────────────────────────────────────────

TYPE_LABELS: Dict[str, str] = {
    'medical':    'Médical',
    'security':   'Sécurité',
    'technical':  'Technique',
    'logistique': 'Logistique',
    'autre':      'Autre',
}

# Lower-case names used inside sentences ("un incident médical")
TYPE_NAMES: Dict[str, str] = {
    'medical':    'médical',
    'security':   'sécurité',
    'technical':  'technique',
    'logistique': 'logistique',
}

URGENCY_LABELS: Dict[str, str] = {
    'urgent':     'Urgent',
    'non-urgent': 'Non urgent',
}


@dataclass(frozen=True)
class Classification:
    """Partial guess. None means no signal, not a default."""
    type:    Optional[str] = None
    urgency: Optional[str] = None


def classify(text: str) -> Classification:
    """
    Classify free text. Total: never raises, returns an empty
    Classification when nothing matches. Never yields 'autre'.
    """
    lower = (text or '').lower()

    detected_type:    Optional[str] = None
    detected_urgency: Optional[str] = None

    for category, keywords in TYPE_KEYWORDS:
        if _contains_any(lower, keywords):
            detected_type = category
            if category in URGENT_TYPES:
                detected_urgency = 'urgent'
            break

    if _contains_any(lower, URGENCY_KEYWORDS):
        detected_urgency = 'urgent'

    return Classification(type=detected_type, urgency=detected_urgency)


def mentioned_type(text: str) -> Optional[str]:
    """Category named literally in the text, or None."""
    lower = (text or '').lower()
    for category, mentions in TYPE_MENTIONS:
        if _contains_any(lower, mentions):
            return category
    return None


def type_label(incident_type: str) -> str:
    return TYPE_LABELS.get(incident_type, TYPE_LABELS['autre'])


def urgency_label(urgency: str) -> str:
    # Anything but 'urgent' reads as non urgent on the summary card
    return URGENCY_LABELS['urgent'] if urgency == 'urgent' else URGENCY_LABELS['non-urgent']


def _contains_any(lower: str, keywords: List[str]) -> bool:
    return any(kw in lower for kw in keywords)
