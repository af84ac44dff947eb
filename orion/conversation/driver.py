"""
orion/conversation/driver.py
ORION AI dialogue — a linear state machine over five questions.

  ASK_TYPE → ASK_DESCRIPTION → ASK_LOCATION → ASK_URGENCY → AWAIT_CONFIRMATION
                                                             ├→ CONFIRMED
                                                             └→ CANCELLED

Everything here is pure: transition() takes the current state, the
accumulated IncidentData and the user's text, and returns the next state,
a new IncidentData, the AI reply and the side effects the caller must run.
Persistence, pacing and navigation belong to the session.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from orion.detectors.keyword_detector import (
    TYPE_NAMES,
    classify,
    mentioned_type,
    type_label,
    urgency_label,
)
from orion.models.record import IncidentData


class ConversationState(Enum):
    ASK_TYPE           = 'ask_type'
    ASK_DESCRIPTION    = 'ask_description'
    ASK_LOCATION       = 'ask_location'
    ASK_URGENCY        = 'ask_urgency'
    AWAIT_CONFIRMATION = 'await_confirmation'
    CONFIRMED          = 'confirmed'
    CANCELLED          = 'cancelled'

    @property
    def step(self) -> Optional[int]:
        """0..4 position in the question sequence, None once terminal."""
        return _STEPS.get(self)

    @property
    def is_terminal(self) -> bool:
        return self in (ConversationState.CONFIRMED, ConversationState.CANCELLED)


_STEPS = {
    ConversationState.ASK_TYPE:           0,
    ConversationState.ASK_DESCRIPTION:    1,
    ConversationState.ASK_LOCATION:       2,
    ConversationState.ASK_URGENCY:        3,
    ConversationState.AWAIT_CONFIRMATION: 4,
}

_NEXT = {
    ConversationState.ASK_TYPE:        ConversationState.ASK_DESCRIPTION,
    ConversationState.ASK_DESCRIPTION: ConversationState.ASK_LOCATION,
    ConversationState.ASK_LOCATION:    ConversationState.ASK_URGENCY,
    ConversationState.ASK_URGENCY:     ConversationState.AWAIT_CONFIRMATION,
}


class Effect(Enum):
    PERSIST_REPORT        = 'persist_report'
    NAVIGATE_CONFIRMATION = 'navigate_confirmation'


@dataclass(frozen=True)
class Turn:
    state:    ConversationState
    incident: IncidentData
    reply:    str
    effects:  Tuple[Effect, ...] = ()


# ── SCRIPT ───────────────────────────────────────────────────

GREETING = (
    "Bonjour ! Je suis ORION AI, votre assistant intelligent. Je vais vous aider "
    "à signaler un incident. Quel type d'incident souhaitez-vous signaler : "
    "sécurité, médical, technique ou autre ?"
)

ASK_DESCRIPTION_SUFFIX = "Pouvez-vous me décrire brièvement ce qui s'est passé ?"

MENTION_ACKNOWLEDGEMENTS = {
    'security':   "D'accord, un incident de sécurité.",
    'medical':    "Je vois, un incident médical.",
    'technical':  "Compris, un problème technique.",
    'logistique': "D'accord, un problème logistique.",
}

GENERIC_DESCRIPTION_PROMPT = "Merci. Pouvez-vous me décrire ce qui s'est passé ?"

LOCATION_PROMPT = (
    "Merci pour ces détails. Où se situe l'incident ? (Ex: Stade Lat Dior à Thiès, "
    "Université Cheikh Anta Diop à Dakar, etc.)"
)

URGENCY_PROMPT = (
    "Je localise l'endroit… Parfait ! Quel est le niveau d'urgence de cet "
    "incident ? Urgent ou Non urgent ?"
)

URGENCY_CONFIRM_PROMPT = (
    "Je localise l'endroit… Parfait ! D'après votre description, je détecte que "
    "c'est une situation urgente. Confirmez-vous le niveau d'urgence : Urgent ou "
    "Non urgent ?"
)

SUCCESS_MESSAGE = (
    "Votre signalement a été transmis avec succès à l'équipe ORION. Merci pour "
    "votre contribution à la sécurité des JOJ 2026 ! 🎉"
)

CANCEL_MESSAGE = (
    "D'accord, le signalement a été annulé. Si vous souhaitez recommencer, "
    "retournez à l'accueil."
)

FALLBACK_MESSAGE = "Je n'ai pas bien compris. Pouvez-vous reformuler ?"

CONFIRM_KEYWORDS = ('oui', 'confirme', 'ok')

# Longest phrase first: "non urgent" also contains "urgent" and "non".
NON_URGENT_PHRASES = ('non urgent', 'non-urgent', 'pas urgent')
URGENT_REPLIES     = ('urgent', 'oui')
NEGATIVE_REPLIES   = ('non',)


# ── FIELD UPDATE ─────────────────────────────────────────────

def advance(text: str, state: ConversationState, incident: IncidentData) -> IncidentData:
    """
    Merge the user's answer into the accumulator for this state.
    Never clears a field already set, except the urgency parsed at ASK_URGENCY.
    """
    if state is ConversationState.ASK_TYPE:
        analysis = classify(text)
        if analysis.type:
            updated = replace(incident, type=analysis.type)
            if analysis.urgency:
                updated = replace(updated, urgency=analysis.urgency)
            return updated
        return replace(incident, type=mentioned_type(text) or 'autre')

    if state is ConversationState.ASK_DESCRIPTION:
        analysis = classify(text)
        updated  = replace(incident, description=text)
        if analysis.type and not updated.type:
            updated = replace(updated, type=analysis.type)
        if analysis.urgency and not updated.urgency:
            updated = replace(updated, urgency=analysis.urgency)
        return updated

    if state is ConversationState.ASK_LOCATION:
        return replace(incident, location=text)

    if state is ConversationState.ASK_URGENCY:
        parsed = parse_urgency(text)
        if parsed:
            return replace(incident, urgency=parsed)
        if not incident.urgency:
            return replace(incident, urgency='non-urgent')
        return incident

    return incident


def parse_urgency(text: str) -> Optional[str]:
    """Urgency stated in an answer, longest match first. None if unclear."""
    lower = (text or '').lower()
    if any(p in lower for p in NON_URGENT_PHRASES):
        return 'non-urgent'
    if any(p in lower for p in URGENT_REPLIES):
        return 'urgent'
    if any(p in lower for p in NEGATIVE_REPLIES):
        return 'non-urgent'
    return None


def is_confirmation(text: str) -> bool:
    lower = (text or '').lower()
    return any(kw in lower for kw in CONFIRM_KEYWORDS)


# ── PROMPTS ──────────────────────────────────────────────────

def next_prompt(text: str, state: ConversationState, incident: IncidentData) -> str:
    """
    AI reply to the answer just given at `state`.
    `incident` must already include this turn's update.
    """
    if state is ConversationState.ASK_TYPE:
        analysis = classify(text)
        if analysis.type:
            name = TYPE_NAMES.get(analysis.type, 'autre')
            return f"J'ai compris, il s'agit d'un incident {name}. {ASK_DESCRIPTION_SUFFIX}"
        mention = mentioned_type(text)
        if mention:
            return f"{MENTION_ACKNOWLEDGEMENTS[mention]} {ASK_DESCRIPTION_SUFFIX}"
        return GENERIC_DESCRIPTION_PROMPT

    if state is ConversationState.ASK_DESCRIPTION:
        return LOCATION_PROMPT

    if state is ConversationState.ASK_LOCATION:
        if incident.urgency == 'urgent':
            return URGENCY_CONFIRM_PROMPT
        return URGENCY_PROMPT

    if state is ConversationState.ASK_URGENCY:
        return summary_card(incident)

    return FALLBACK_MESSAGE


def summary_card(incident: IncidentData) -> str:
    return (
        "Parfait ! Voici un résumé de votre signalement :\n"
        "\n"
        f"📋 Type : {type_label(incident.type)}\n"
        f"🚨 Urgence : {urgency_label(incident.urgency)}\n"
        f"📍 Lieu : {incident.location}\n"
        f"📝 Description : {incident.description}\n"
        "\n"
        "Confirmez-vous l'envoi de ce signalement ?"
    )


# ── TRANSITION ───────────────────────────────────────────────

def transition(state: ConversationState, incident: IncidentData, text: str) -> Turn:
    """One user turn. Pure; the caller runs the returned effects."""
    if state is ConversationState.AWAIT_CONFIRMATION:
        if is_confirmation(text):
            return Turn(
                state    = ConversationState.CONFIRMED,
                incident = incident,
                reply    = SUCCESS_MESSAGE,
                effects  = (Effect.PERSIST_REPORT, Effect.NAVIGATE_CONFIRMATION),
            )
        return Turn(state=ConversationState.CANCELLED, incident=incident, reply=CANCEL_MESSAGE)

    if state.is_terminal:
        return Turn(state=state, incident=incident, reply=FALLBACK_MESSAGE)

    updated = advance(text, state, incident)
    return Turn(
        state    = _NEXT[state],
        incident = updated,
        reply    = next_prompt(text, state, updated),
    )
