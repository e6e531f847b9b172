"""
OTP multi-canal

Codes à usage unique livrés par SMS, WhatsApp, Telegram, email ou voix,
avec limite de débit, quota par canal et refroidissement.

Invariants couverts:
- OTP_001-007
"""

from .interfaces import (
    # Enums
    DeliveryChannelType,
    DeliveryStatus,
    # Data classes
    DeliveryPayload,
    DeliveryReceipt,
    OtpChallenge,
    OtpInitiation,
    # Interfaces
    IDeliveryChannel,
)
from .rate_limiter import SlidingWindowRateLimiter
from .delivery import EMAIL_SUBJECT, ChannelRouter, LoggingDeliveryChannel, MessageFormatter, OutboxMessage
from .gateway import (
    OtpChannelGateway,
    OtpGatewayError,
    ChannelUnavailableError,
    OtpCooldownError,
    OtpRateLimitedError,
    DeliveryFailedError,
)

__all__ = [
    # Enums
    "DeliveryChannelType",
    "DeliveryStatus",
    # Data classes
    "DeliveryPayload",
    "DeliveryReceipt",
    "OtpChallenge",
    "OtpInitiation",
    "OutboxMessage",
    # Interfaces
    "IDeliveryChannel",
    # Implementations
    "OtpChannelGateway",
    "SlidingWindowRateLimiter",
    "MessageFormatter",
    "LoggingDeliveryChannel",
    "ChannelRouter",
    # Constants
    "EMAIL_SUBJECT",
    # Exceptions
    "OtpGatewayError",
    "ChannelUnavailableError",
    "OtpCooldownError",
    "OtpRateLimitedError",
    "DeliveryFailedError",
]
