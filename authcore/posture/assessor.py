"""
Security Posture Assessor

Score 0..100 et note A-F par soustraction de pénalités fixes.
"""

from typing import List, Optional

from ..core.config import PostureThresholds
from .interfaces import (
    IPostureAssessor,
    IssueSeverity,
    PostureAssessment,
    PostureIssue,
    PostureSnapshot,
    SecurityTier,
)


class SecurityPostureAssessor(IPostureAssessor):
    """
    Évaluateur de posture sécurité.

    Pénalités:
        tier réseau inactif            -20
        tier détection inactif         -20
        menaces non résolues > seuil   -15 (critique)
        tier applicatif inactif        -20
        IP bloquées > seuil            -10
        identifiants verrouillés > seuil -10
        sessions actives > seuil        -5

    Example:
        assessor = SecurityPostureAssessor()
        assessment = assessor.assess(PostureSnapshot(blocked_ips=60))
        assessment.grade  # "A"
    """

    GRADES = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))

    def __init__(self, thresholds: Optional[PostureThresholds] = None):
        self.thresholds = thresholds or PostureThresholds()

    def assess(self, snapshot: PostureSnapshot) -> PostureAssessment:
        issues: List[PostureIssue] = []
        t = self.thresholds

        if not snapshot.network_tier_active:
            issues.append(
                PostureIssue(SecurityTier.NETWORK, IssueSeverity.HIGH, "Network security layer not active", 20)
            )

        if not snapshot.threat_tier_active:
            issues.append(
                PostureIssue(SecurityTier.THREAT_DETECTION, IssueSeverity.HIGH, "Threat detection layer not active", 20)
            )

        if snapshot.unresolved_threats > t.max_unresolved_threats:
            issues.append(
                PostureIssue(
                    SecurityTier.THREAT_DETECTION,
                    IssueSeverity.CRITICAL,
                    f"{snapshot.unresolved_threats} unresolved threats",
                    15,
                )
            )

        if not snapshot.application_tier_active:
            issues.append(
                PostureIssue(SecurityTier.APPLICATION, IssueSeverity.HIGH, "Application security layer not active", 20)
            )

        if snapshot.blocked_ips > t.max_blocked_ips:
            issues.append(
                PostureIssue(SecurityTier.APPLICATION, IssueSeverity.MEDIUM, f"{snapshot.blocked_ips} IPs blocked", 10)
            )

        if snapshot.locked_identifiers > t.max_locked_identifiers:
            issues.append(
                PostureIssue(
                    SecurityTier.APPLICATION,
                    IssueSeverity.MEDIUM,
                    f"{snapshot.locked_identifiers} identifiers locked out",
                    10,
                )
            )

        if snapshot.active_sessions > t.max_active_sessions:
            issues.append(
                PostureIssue(
                    SecurityTier.APPLICATION,
                    IssueSeverity.MEDIUM,
                    f"{snapshot.active_sessions} active sessions",
                    5,
                )
            )

        score = max(0, 100 - sum(issue.penalty for issue in issues))

        return PostureAssessment(
            score=score,
            grade=self.grade(score),
            issues=issues,
            recommendations=self.recommendations(issues),
        )

    @classmethod
    def grade(cls, score: int) -> str:
        for floor, letter in cls.GRADES:
            if score >= floor:
                return letter
        return "F"

    @staticmethod
    def recommendations(issues: List[PostureIssue]) -> List[str]:
        recommendations: List[str] = []

        if any(i.severity == IssueSeverity.CRITICAL for i in issues):
            recommendations.append("Address critical security issues immediately")
        if any(i.tier == SecurityTier.NETWORK for i in issues):
            recommendations.append("Enable and configure zero-trust network access")
        if any(i.tier == SecurityTier.THREAT_DETECTION for i in issues):
            recommendations.append("Enable threat detection and monitoring")
        if any(i.tier == SecurityTier.APPLICATION for i in issues):
            recommendations.append("Review lockouts, blocked origins and session volume")

        if not recommendations:
            recommendations.append("Maintain current security practices")
            recommendations.append("Conduct regular security audits")

        return recommendations


def snapshot_from(
    lockout=None,
    sessions=None,
    network_tier_active: bool = True,
    threat_tier_active: bool = True,
    application_tier_active: bool = True,
    unresolved_threats: int = 0,
) -> PostureSnapshot:
    """
    Construit un instantané depuis les composants vivants.

    Args:
        lockout: LockoutTracker (locked_count, blocked_count)
        sessions: SessionManager (active_count)
    """
    return PostureSnapshot(
        network_tier_active=network_tier_active,
        threat_tier_active=threat_tier_active,
        application_tier_active=application_tier_active,
        unresolved_threats=unresolved_threats,
        blocked_ips=lockout.blocked_count if lockout is not None else 0,
        locked_identifiers=lockout.locked_count if lockout is not None else 0,
        active_sessions=sessions.active_count if sessions is not None else 0,
    )
