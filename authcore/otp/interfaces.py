"""
Interfaces OTP multi-canal

Définit les challenges OTP et le contrat unique de livraison vers les
canaux externes (SMS, WhatsApp, Telegram, email, appel vocal).

Invariants:
    OTP_001: Code OTP 6 chiffres minimum, source cryptographique
    OTP_004: Échec d'envoi = challenge supprimé
    OTP_005: Destination TOUJOURS masquée hors envoi
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class DeliveryChannelType(Enum):
    """Canaux de livraison OTP."""

    SMS = "sms"
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    EMAIL = "email"
    VOICE = "voice"


class DeliveryStatus(Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryPayload:
    """
    Contenu remis au canal.

    Attributes:
        code: Code OTP en clair (uniquement pour l'envoi)
        message: Texte formaté pour le canal
        expires_in_seconds: Durée de validité annoncée
        subject: Sujet (email uniquement)
        html: Corps HTML (email uniquement)
    """

    code: str
    message: str
    expires_in_seconds: int
    subject: Optional[str] = None
    html: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"DeliveryPayload(code='***', message='***', "
            f"expires_in_seconds={self.expires_in_seconds}, subject={self.subject!r})"
        )


@dataclass(frozen=True)
class DeliveryReceipt:
    status: DeliveryStatus
    provider_ref: Optional[str] = None
    provider: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.status == DeliveryStatus.SENT


@dataclass
class OtpChallenge:
    """
    Challenge OTP en attente.

    États: Issued → (Verified | Expired | AttemptsExhausted).
    Supprimé dès qu'il quitte l'état Issued.
    """

    id: str
    principal_id: str
    channel: DeliveryChannelType
    destination: str
    code: str
    created_at: datetime
    expires_at: datetime
    verified: bool = False
    attempts: int = 0
    origin_ip: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"OtpChallenge(id={self.id!r}, principal_id={self.principal_id!r}, "
            f"channel={self.channel.value}, attempts={self.attempts})"
        )


@dataclass(frozen=True)
class OtpInitiation:
    """Réponse à l'appelant: jamais de destination en clair (OTP_005)."""

    challenge_id: str
    channel: DeliveryChannelType
    masked_destination: str
    expires_in_seconds: int


class IDeliveryChannel(ABC):
    """
    Capacité de livraison asynchrone unique.

    Toute réponse autre que SENT, ou toute exception, fait échouer
    l'initiation (OTP_004).
    """

    @abstractmethod
    async def send(
        self,
        channel: DeliveryChannelType,
        destination: str,
        payload: DeliveryPayload,
    ) -> DeliveryReceipt:
        pass
