"""
Interfaces Audit: événements de sécurité

Définit la file sortante d'événements de sécurité drainée par le tier
de détection des menaces (SIEM). Le cœur émet, il n'interprète jamais.

Invariants:
    EVT_001: Événements de sécurité émis dans l'ordre vers la file sortante
    EVT_002: Chaque événement haché SHA-384
    EVT_003: File d'événements bornée, plus anciens évincés
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class SecurityEventType(Enum):
    """Types d'événements publiés vers le SIEM."""
    # Parcours mot de passe
    AUTH_SUCCESS = "auth.success"
    AUTH_FAILURE = "auth.failure"
    AUTH_LOCKED = "auth.locked"

    # Parcours OTP
    OTP_SENT = "otp.sent"
    OTP_VERIFIED = "otp.verified"
    OTP_FAILED = "otp.failed"

    # Actions opérateur
    IP_BLOCKED = "ip.blocked"
    IP_UNBLOCKED = "ip.unblocked"
    SESSION_TERMINATED = "session.terminated"


@dataclass(frozen=True)
class SecurityEvent:
    """
    Événement de sécurité immuable (EVT_002).

    Porte soit principal_id soit masked_destination; jamais la
    destination en clair (OTP_005).
    """
    event_id: str
    event_type: SecurityEventType
    timestamp: datetime
    principal_id: Optional[str] = None
    masked_destination: Optional[str] = None
    channel: Optional[str] = None
    origin_ip: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    hash_value: Optional[str] = None  # SHA-384 de l'événement

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "principal_id": self.principal_id,
            "masked_destination": self.masked_destination,
            "channel": self.channel,
            "origin_ip": self.origin_ip,
            "metadata": self.metadata,
            "hash_value": self.hash_value,
        }


class ISecurityEventSink(ABC):
    """
    Interface file sortante d'événements de sécurité.

    Responsabilités:
        - Horodatage et hachage SHA-384 (EVT_002)
        - Ordre d'émission préservé (EVT_001)
        - Capacité bornée (EVT_003)
    """

    @abstractmethod
    async def emit(
        self,
        event_type: SecurityEventType,
        principal_id: Optional[str] = None,
        masked_destination: Optional[str] = None,
        channel: Optional[str] = None,
        origin_ip: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SecurityEvent:
        """
        Publie un événement dans la file.

        Returns:
            Événement haché

        Raises:
            SecurityEventSinkError: Type invalide ou sujet absent
        """
        pass

    @abstractmethod
    def drain(self, max_events: Optional[int] = None) -> List[SecurityEvent]:
        """
        Retire et retourne les événements en attente, plus anciens d'abord.

        Args:
            max_events: Nombre maximum à retirer (None = tous)
        """
        pass
