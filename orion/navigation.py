"""
orion/navigation.py
Views of the application and the value a component returns to ask the
caller to move to another view. Routing itself is the caller's job.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from orion.models.record import IncidentData


class View(Enum):
    HOME         = '/'
    CHAT         = '/chat'
    REPORT       = '/report'
    HISTORY      = '/history'
    CONFIRMATION = '/confirmation'


@dataclass(frozen=True)
class NavigationSignal:
    view:    View
    payload: Optional[IncidentData] = None   # transient, never persisted
    delay:   float                  = 0.0    # seconds before the move

    def to_dict(self) -> Dict[str, Any]:
        return {
            'view':    self.view.name.lower(),
            'path':    self.view.value,
            'payload': self.payload.to_dict() if self.payload else None,
            'delay':   self.delay,
        }
