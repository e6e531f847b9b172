"""
Interfaces Posture sécurité

Évaluation pure et déterministe de l'état des trois tiers de sécurité
(accès réseau, détection des menaces, sécurité applicative).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class SecurityTier(Enum):
    NETWORK = 1
    THREAT_DETECTION = 2
    APPLICATION = 3


class IssueSeverity(Enum):
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class PostureSnapshot:
    """
    Compteurs lus sur les composants au moment de l'évaluation.

    Attributes:
        network_tier_active: Passerelle d'accès réseau opérationnelle
        threat_tier_active: Tier SIEM opérationnel
        application_tier_active: Cœur applicatif opérationnel
        unresolved_threats: Menaces ouvertes remontées par le SIEM
        blocked_ips: Blocages IP durs
        locked_identifiers: Verrouillages temporaires actifs
        active_sessions: Sessions en mémoire
    """

    network_tier_active: bool = True
    threat_tier_active: bool = True
    application_tier_active: bool = True
    unresolved_threats: int = 0
    blocked_ips: int = 0
    locked_identifiers: int = 0
    active_sessions: int = 0


@dataclass(frozen=True)
class PostureIssue:
    tier: SecurityTier
    severity: IssueSeverity
    issue: str
    penalty: int


@dataclass(frozen=True)
class PostureAssessment:
    score: int
    grade: str
    issues: List[PostureIssue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def critical_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == IssueSeverity.CRITICAL)


class IPostureAssessor(ABC):
    """Lecture pure: aucun état propre, aucune mutation."""

    @abstractmethod
    def assess(self, snapshot: PostureSnapshot) -> PostureAssessment:
        pass
