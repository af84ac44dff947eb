"""
orion/confirmation.py
Screen shown after a successful submission: a reference number, two ways
out (home, history) and an automatic return home after a few seconds.
"""

import random
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from orion.models.record import IncidentData
from orion.navigation import NavigationSignal, View

TITLE   = "Signalement envoyé !"
MESSAGE = "Votre signalement a été transmis avec succès à l'équipe ORION."
THANKS  = "Merci pour votre contribution à la sécurité des JOJ 2026."

ACTIONS: List[Tuple[str, View]] = [
    ("Retour à l'accueil",    View.HOME),
    ("Voir mes signalements", View.HISTORY),
]

_REF_ALPHABET = string.ascii_uppercase + string.digits


def reference_number(rng: Optional[random.Random] = None) -> str:
    """'ORN-' followed by 8 upper-case base-36 characters."""
    rng = rng or random.Random()
    return 'ORN-' + ''.join(rng.choice(_REF_ALPHABET) for _ in range(8))


@dataclass
class ConfirmationView:
    incident:          Optional[IncidentData] = None
    auto_return_after: float                  = 5.0
    reference:         str                    = field(default_factory=reference_number)

    def auto_return(self) -> NavigationSignal:
        return NavigationSignal(view=View.HOME, delay=self.auto_return_after)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title':       TITLE,
            'message':     MESSAGE,
            'thanks':      THANKS,
            'reference':   self.reference,
            'incident':    self.incident.to_dict() if self.incident else None,
            'auto_return': self.auto_return().to_dict(),
            'actions': [
                {'label': label, 'view': view.name.lower(), 'path': view.value}
                for label, view in ACTIONS
            ],
        }
