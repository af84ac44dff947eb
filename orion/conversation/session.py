"""
orion/conversation/session.py
One chat with ORION AI: transcript, dialogue state, turn-taking and the
side effects the driver asks for (saving the report, moving to the
confirmation view).

Turns are strictly sequential. send() holds the turn lock while the
assistant "types"; a second send() during that window fails fast with
TurnInProgressError instead of queueing.

The typing delay goes through `pacer` (e.g. time.sleep). With no pacer
the reply is immediate, which is what the API and the tests use.
"""

import logging
import random
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from orion.config import DEFAULT_CONFIG
from orion.conversation.driver import (
    GREETING,
    ConversationState,
    Effect,
    Turn,
    transition,
)
from orion.models.record import (
    SENDER_AI,
    SENDER_USER,
    IncidentData,
    Message,
    Report,
)
from orion.navigation import NavigationSignal, View
from orion.store.report_store import ReportStore, StoreError

logger = logging.getLogger(__name__)

SAVED_NOTICE        = "Signalement enregistré avec succès"
SAVE_FAILED_NOTICE  = "Impossible d'enregistrer le signalement"
SAVE_FAILED_MESSAGE = (
    "Désolé, je n'ai pas pu enregistrer votre signalement. Répondez « oui » "
    "pour réessayer."
)
INCOMPLETE_MESSAGE = (
    "Il manque des informations à ce signalement, il n'a pas été envoyé. "
    "Retournez à l'accueil pour recommencer."
)


class EmptyMessageError(ValueError):
    """Blank or whitespace-only message."""


class TurnInProgressError(RuntimeError):
    """A reply to the previous message is still pending."""


@dataclass(frozen=True)
class Notification:
    level: str          # success / error / warning
    text:  str

    def to_dict(self) -> Dict[str, str]:
        return {'level': self.level, 'text': self.text}


@dataclass
class TurnOutcome:
    user_message:  Message
    reply:         Message
    state:         ConversationState
    incident:      IncidentData
    report:        Optional[Report]           = None
    notifications: List[Notification]         = field(default_factory=list)
    navigation:    Optional[NavigationSignal] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_message':  self.user_message.to_dict(),
            'reply':         self.reply.to_dict(),
            'state':         self.state.value,
            'step':          self.state.step,
            'incident':      self.incident.to_dict(),
            'report':        self.report.to_dict() if self.report else None,
            'notifications': [n.to_dict() for n in self.notifications],
            'navigation':    self.navigation.to_dict() if self.navigation else None,
        }


class ConversationSession:
    """
    Usage:
        session = ConversationSession(store=JsonFileReportStore(path))
        outcome = session.send("médical")
        outcome.reply.text
    """

    def __init__(
        self,
        store:  ReportStore,
        config: Optional[Dict[str, Any]]          = None,
        pacer:  Optional[Callable[[float], None]] = None,
        rng:    Optional[random.Random]           = None,
        clock:  Callable[[], datetime]            = datetime.now,
    ):
        self.id       = uuid.uuid4().hex
        self.store    = store
        self.config   = {**DEFAULT_CONFIG, **(config or {})}
        self._pacer   = pacer
        self._rng     = rng or random.Random()
        self._clock   = clock
        self._lock    = threading.Lock()

        self.state:         ConversationState          = ConversationState.ASK_TYPE
        self.incident:      IncidentData               = IncidentData()
        self.messages:      List[Message]              = []
        self.notifications: List[Notification]         = []
        self.navigation:    Optional[NavigationSignal] = None
        self.report:        Optional[Report]           = None
        self.is_typing:     bool                       = False

        self._append(GREETING, SENDER_AI)

    # ── TURN ──────────────────────────────────────────────────

    def send(self, text: str) -> TurnOutcome:
        """Submit one user message and return the assistant's reply."""
        if not text or not text.strip():
            raise EmptyMessageError("Message is empty")
        if not self._lock.acquire(blocking=False):
            raise TurnInProgressError("The assistant is still answering the previous message")

        try:
            self.is_typing = True
            user_message   = self._append(text, SENDER_USER)
            turn           = transition(self.state, self.incident, text)
            self._pace(self._delay_for(turn))

            outcome_state = turn.state
            reply_text    = turn.reply
            report:        Optional[Report]           = None
            navigation:    Optional[NavigationSignal] = None
            notifications: List[Notification]         = []

            if Effect.PERSIST_REPORT in turn.effects:
                if not turn.incident.is_complete():
                    logger.warning(f"Session {self.id}: incomplete incident, not persisted")
                    outcome_state = ConversationState.CANCELLED
                    reply_text    = INCOMPLETE_MESSAGE
                else:
                    try:
                        report = self._persist(turn.incident)
                        notifications.append(Notification('success', SAVED_NOTICE))
                    except StoreError as e:
                        logger.error(f"Session {self.id}: report not saved: {e}")
                        notifications.append(Notification('error', SAVE_FAILED_NOTICE))
                        outcome_state = ConversationState.AWAIT_CONFIRMATION
                        reply_text    = SAVE_FAILED_MESSAGE

            if Effect.NAVIGATE_CONFIRMATION in turn.effects and report is not None:
                navigation = NavigationSignal(
                    view    = View.CONFIRMATION,
                    payload = turn.incident,
                    delay   = self.config['redirect_delay_ms'] / 1000.0,
                )

            self.state    = outcome_state
            self.incident = turn.incident
            if report is not None:
                self.report = report
            if navigation is not None:
                self.navigation = navigation
            self.notifications.extend(notifications)

            reply = self._append(reply_text, SENDER_AI)
            logger.debug(f"Session {self.id}: turn done → {self.state.value}")

            return TurnOutcome(
                user_message  = user_message,
                reply         = reply,
                state         = self.state,
                incident      = self.incident,
                report        = report,
                notifications = notifications,
                navigation    = navigation,
            )
        finally:
            self.is_typing = False
            self._lock.release()

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    def snapshot(self) -> Dict[str, Any]:
        return {
            'id':            self.id,
            'state':         self.state.value,
            'step':          self.state.step,
            'finished':      self.is_finished,
            'is_typing':     self.is_typing,
            'incident':      self.incident.to_dict(),
            'messages':      [m.to_dict() for m in self.messages],
            'notifications': [n.to_dict() for n in self.notifications],
            'navigation':    self.navigation.to_dict() if self.navigation else None,
            'report':        self.report.to_dict() if self.report else None,
        }

    # ── INTERNAL ──────────────────────────────────────────────

    def _append(self, text: str, sender: str) -> Message:
        message = Message(
            id        = len(self.messages) + 1,
            text      = text,
            sender    = sender,
            timestamp = self._clock(),
        )
        self.messages.append(message)
        return message

    def _delay_for(self, turn: Turn) -> float:
        if turn.state is ConversationState.CONFIRMED and turn.effects:
            return self.config['success_delay_ms'] / 1000.0
        if turn.state is ConversationState.CANCELLED and self.state is ConversationState.AWAIT_CONFIRMATION:
            return self.config['cancel_delay_ms'] / 1000.0
        low  = self.config['typing_delay_min_ms']
        high = self.config['typing_delay_max_ms']
        return self._rng.uniform(low, high) / 1000.0

    def _pace(self, seconds: float) -> None:
        if self._pacer is not None and seconds > 0:
            self._pacer(seconds)

    def _persist(self, incident: IncidentData) -> Report:
        now    = self._clock()
        report = Report.from_incident(
            incident,
            report_id = str(int(now.timestamp() * 1000)),
            timestamp = now,
        )
        self.store.append(report)
        logger.info(f"Session {self.id}: report {report.id} submitted ({report.type}/{report.urgency})")
        return report
