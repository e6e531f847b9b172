"""
OTP Delivery

Formatage des messages par canal et transports de livraison.

Le formatage propre à chaque canal vit ici, derrière la capacité
``IDeliveryChannel``; la passerelle OTP ne branche jamais sur le canal.

Invariants:
    OTP_005: Destination TOUJOURS masquée hors envoi
    OTP_007: Détail fournisseur JAMAIS exposé à l'utilisateur
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..core.clock import Clock, utc_now
from ..core.config import ChannelPolicy
from ..logging import ISensitiveMasker, IStructuredLogger, SensitiveMasker
from .interfaces import (
    DeliveryChannelType,
    DeliveryPayload,
    DeliveryReceipt,
    DeliveryStatus,
    IDeliveryChannel,
)


EMAIL_SUBJECT = "Your Verification Code"

EMAIL_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: #4F46E5; color: white; padding: 20px; text-align: center; }}
    .content {{ padding: 30px; background: #f9f9f9; }}
    .otp-code {{ font-size: 32px; font-weight: bold; color: #4F46E5; text-align: center; padding: 20px; background: white; border-radius: 8px; letter-spacing: 8px; }}
    .footer {{ text-align: center; padding: 20px; color: #666; font-size: 12px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>Verification Code</h1>
    </div>
    <div class="content">
      <p>Your verification code is:</p>
      <div class="otp-code">{code}</div>
      <p>This code will expire in {validity}.</p>
      <p>If you didn't request this code, please ignore this email.</p>
    </div>
    <div class="footer">
      <p>&copy; {year} {brand}. All rights reserved.</p>
    </div>
  </div>
</body>
</html>
"""


def _validity(expires_in_seconds: int) -> str:
    minutes = max(1, math.ceil(expires_in_seconds / 60))
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


class MessageFormatter:
    """
    Formatage des messages OTP par canal.

    - SMS: texte simple
    - WhatsApp: code en gras (``*123456*``)
    - Telegram: code en bloc (```` `123456` ````)
    - Email: sujet + gabarit HTML
    - Voix: chiffres séparés, répétés deux fois
    """

    def __init__(self, brand: str = "AuthCore", clock: Optional[Clock] = None):
        self.brand = brand
        self._clock = clock or utc_now
        self._formatters: Dict[DeliveryChannelType, Callable[[str, int], DeliveryPayload]] = {
            DeliveryChannelType.SMS: self._format_sms,
            DeliveryChannelType.WHATSAPP: self._format_whatsapp,
            DeliveryChannelType.TELEGRAM: self._format_telegram,
            DeliveryChannelType.EMAIL: self._format_email,
            DeliveryChannelType.VOICE: self._format_voice,
        }

    def format(self, channel: DeliveryChannelType, code: str, expires_in_seconds: int) -> DeliveryPayload:
        return self._formatters[channel](code, expires_in_seconds)

    def _format_sms(self, code: str, expires_in_seconds: int) -> DeliveryPayload:
        message = f"Your verification code is: {code}. Valid for {_validity(expires_in_seconds)}."
        return DeliveryPayload(code=code, message=message, expires_in_seconds=expires_in_seconds)

    def _format_whatsapp(self, code: str, expires_in_seconds: int) -> DeliveryPayload:
        message = (
            f"Your {self.brand} verification code: *{code}*\n\n"
            f"Valid for {_validity(expires_in_seconds)}."
        )
        return DeliveryPayload(code=code, message=message, expires_in_seconds=expires_in_seconds)

    def _format_telegram(self, code: str, expires_in_seconds: int) -> DeliveryPayload:
        message = f"Your verification code: `{code}`\n\nValid for {_validity(expires_in_seconds)}."
        return DeliveryPayload(code=code, message=message, expires_in_seconds=expires_in_seconds)

    def _format_email(self, code: str, expires_in_seconds: int) -> DeliveryPayload:
        validity = _validity(expires_in_seconds)
        html = EMAIL_TEMPLATE.format(code=code, validity=validity, year=self._clock().year, brand=self.brand)
        message = f"Your verification code is: {code}. This code will expire in {validity}."
        return DeliveryPayload(
            code=code,
            message=message,
            expires_in_seconds=expires_in_seconds,
            subject=EMAIL_SUBJECT,
            html=html,
        )

    def _format_voice(self, code: str, expires_in_seconds: int) -> DeliveryPayload:
        spoken = ", ".join(code)
        message = f"Your verification code is: {spoken}. I repeat: {spoken}"
        return DeliveryPayload(code=code, message=message, expires_in_seconds=expires_in_seconds)


@dataclass(frozen=True)
class OutboxMessage:
    """Message remis au transport de journalisation."""

    channel: DeliveryChannelType
    destination: str
    payload: DeliveryPayload
    provider: str
    provider_ref: str
    sent_at: datetime


class LoggingDeliveryChannel(IDeliveryChannel):
    """
    Transport de développement: journalise l'envoi (destination masquée,
    jamais le code) et conserve les messages dans une boîte d'envoi.

    Example:
        transport = LoggingDeliveryChannel(logger=logger)
        receipt = await transport.send(DeliveryChannelType.SMS, "+15551231234", payload)
        transport.last_message_to("+15551231234").payload.code
    """

    MAX_OUTBOX: int = 1000

    def __init__(
        self,
        channels: Optional[Dict[str, ChannelPolicy]] = None,
        logger: Optional[IStructuredLogger] = None,
        masker: Optional[ISensitiveMasker] = None,
        clock: Optional[Clock] = None,
    ):
        self._channels = channels or {}
        self._logger = logger
        self._masker = masker or SensitiveMasker()
        self._clock = clock or utc_now
        self._outbox: List[OutboxMessage] = []

    async def send(
        self,
        channel: DeliveryChannelType,
        destination: str,
        payload: DeliveryPayload,
    ) -> DeliveryReceipt:
        policy = self._channels.get(channel.value)
        provider = policy.provider if policy is not None else "log"
        provider_ref = str(uuid.uuid4())

        self._outbox.append(
            OutboxMessage(
                channel=channel,
                destination=destination,
                payload=payload,
                provider=provider,
                provider_ref=provider_ref,
                sent_at=self._clock(),
            )
        )
        del self._outbox[: -self.MAX_OUTBOX]

        if self._logger is not None:
            self._logger.info(
                f"Delivering verification message via {channel.value}",
                channel=channel.value,
                provider=provider,
                destination=self._masker.mask_destination(destination),
                provider_ref=provider_ref,
            )

        return DeliveryReceipt(status=DeliveryStatus.SENT, provider_ref=provider_ref, provider=provider)

    @property
    def outbox(self) -> List[OutboxMessage]:
        return list(self._outbox)

    def last_message_to(self, destination: str) -> Optional[OutboxMessage]:
        for message in reversed(self._outbox):
            if message.destination == destination:
                return message
        return None

    def clear(self) -> None:
        self._outbox.clear()


class ChannelRouter(IDeliveryChannel):
    """
    Aiguillage vers un transport par canal, avec transport par défaut.

    Un canal sans transport renvoie un reçu FAILED.

    Example:
        router = ChannelRouter(default=LoggingDeliveryChannel())
        router.register(DeliveryChannelType.SMS, twilio_sms)
    """

    def __init__(self, default: Optional[IDeliveryChannel] = None):
        self._default = default
        self._routes: Dict[DeliveryChannelType, IDeliveryChannel] = {}

    def register(self, channel: DeliveryChannelType, transport: IDeliveryChannel) -> None:
        self._routes[channel] = transport

    def unregister(self, channel: DeliveryChannelType) -> bool:
        return self._routes.pop(channel, None) is not None

    def transport_for(self, channel: DeliveryChannelType) -> Optional[IDeliveryChannel]:
        return self._routes.get(channel, self._default)

    async def send(
        self,
        channel: DeliveryChannelType,
        destination: str,
        payload: DeliveryPayload,
    ) -> DeliveryReceipt:
        transport = self.transport_for(channel)
        if transport is None:
            return DeliveryReceipt(status=DeliveryStatus.FAILED)
        return await transport.send(channel, destination, payload)
