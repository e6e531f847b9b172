"""
Posture sécurité

Score et note de l'état des tiers de sécurité, avec recommandations.
"""

from .interfaces import (
    # Enums
    SecurityTier,
    IssueSeverity,
    # Data classes
    PostureSnapshot,
    PostureIssue,
    PostureAssessment,
    # Interfaces
    IPostureAssessor,
)
from .assessor import SecurityPostureAssessor, snapshot_from

__all__ = [
    # Enums
    "SecurityTier",
    "IssueSeverity",
    # Data classes
    "PostureSnapshot",
    "PostureIssue",
    "PostureAssessment",
    # Interfaces
    "IPostureAssessor",
    # Implementations
    "SecurityPostureAssessor",
    "snapshot_from",
]
