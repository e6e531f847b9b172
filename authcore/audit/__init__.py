"""
Audit: événements de sécurité

File sortante ordonnée, bornée et hachée, drainée par le tier SIEM.

Invariants couverts:
- EVT_001-003
"""

from .interfaces import ISecurityEventSink, SecurityEvent, SecurityEventType
from .event_sink import SecurityEventSink, SecurityEventSinkError

__all__ = [
    # Interfaces
    "ISecurityEventSink",
    # Data classes
    "SecurityEvent",
    "SecurityEventType",
    # Implementations
    "SecurityEventSink",
    # Exceptions
    "SecurityEventSinkError",
]
