"""
orion/detectors — keyword classification of free-text incident descriptions.
"""

from orion.detectors.keyword_detector import (
    Classification,
    classify,
    mentioned_type,
)

__all__ = [
    "Classification",
    "classify",
    "mentioned_type",
]
