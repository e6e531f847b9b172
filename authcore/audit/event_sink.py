"""
Security Event Sink Implementation

File sortante bornée d'événements de sécurité, drainée par le SIEM.

Invariants:
    EVT_001: Événements de sécurité émis dans l'ordre vers la file sortante
    EVT_002: Chaque événement haché SHA-384
    EVT_003: File d'événements bornée, plus anciens évincés
    LOG_005: Données sensibles JAMAIS en clair (masquées)
"""

import hashlib
import json
import threading
import uuid
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from ..core.clock import Clock, utc_now
from ..logging import ISensitiveMasker, IStructuredLogger, SensitiveMasker
from .interfaces import ISecurityEventSink, SecurityEvent, SecurityEventType


class SecurityEventSinkError(Exception):
    """Erreur d'émission d'événement de sécurité."""
    pass


class SecurityEventSink(ISecurityEventSink):
    """
    File d'événements de sécurité en anneau.

    Conformité:
        EVT_001: deque FIFO, ordre d'émission conservé
        EVT_002: hash SHA-384 sur représentation canonique
        EVT_003: capacité 1000 par défaut, éviction des plus anciens
        LOG_005: métadonnées masquées avant hachage

    Example:
        sink = SecurityEventSink()
        await sink.emit(SecurityEventType.AUTH_FAILURE, principal_id="user-1")
        events = sink.drain()
    """

    MAX_EVENTS: int = 1000
    MAX_METADATA_KEY_LENGTH: int = 100
    MAX_STRING_LENGTH: int = 1000

    def __init__(
        self,
        max_events: Optional[int] = None,
        masker: Optional[ISensitiveMasker] = None,
        logger: Optional[IStructuredLogger] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            max_events: Capacité de la file (défaut: 1000)
            masker: Masqueur des métadonnées (défaut: SensitiveMasker)
            logger: Journal structuré optionnel, une entrée INFO par événement
            clock: Horloge injectée
        """
        self.max_events = max_events or self.MAX_EVENTS
        self._masker = masker or SensitiveMasker()
        self._logger = logger
        self._clock = clock or utc_now

        self._queue: Deque[SecurityEvent] = deque(maxlen=self.max_events)
        self._lock = threading.Lock()
        self._emitted_count = 0
        self._dropped_count = 0

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
        Horodate, masque, hache puis publie un événement.

        Raises:
            SecurityEventSinkError: Type invalide ou ni principal ni destination
        """
        if not isinstance(event_type, SecurityEventType):
            raise SecurityEventSinkError(f"Type événement invalide: {event_type}")
        if not principal_id and not masked_destination and not origin_ip:
            raise SecurityEventSinkError("principal_id, masked_destination ou origin_ip obligatoire")

        preliminary = SecurityEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            timestamp=self._clock(),
            principal_id=principal_id,
            masked_destination=masked_destination,
            channel=channel,
            origin_ip=origin_ip,
            metadata=self._sanitize_metadata(metadata or {}),
        )
        event = SecurityEvent(
            event_id=preliminary.event_id,
            event_type=preliminary.event_type,
            timestamp=preliminary.timestamp,
            principal_id=preliminary.principal_id,
            masked_destination=preliminary.masked_destination,
            channel=preliminary.channel,
            origin_ip=preliminary.origin_ip,
            metadata=preliminary.metadata,
            hash_value=self.compute_event_hash(preliminary),
        )

        with self._lock:
            if len(self._queue) == self.max_events:
                self._dropped_count += 1
            self._queue.append(event)
            self._emitted_count += 1

        if self._logger is not None:
            self._logger.info(
                f"Security event {event_type.value}",
                event_id=event.event_id,
                principal_id=principal_id,
                destination=masked_destination,
                channel=channel,
                origin_ip=origin_ip,
            )

        return event

    def drain(self, max_events: Optional[int] = None) -> List[SecurityEvent]:
        with self._lock:
            count = len(self._queue) if max_events is None else min(max_events, len(self._queue))
            return [self._queue.popleft() for _ in range(count)]

    def get_events(self, event_type: Optional[SecurityEventType] = None) -> List[SecurityEvent]:
        """Lecture sans retrait, filtrable par type."""
        with self._lock:
            events = list(self._queue)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._queue)

    @property
    def emitted_count(self) -> int:
        return self._emitted_count

    @property
    def dropped_count(self) -> int:
        """Événements évincés faute de drainage (EVT_003)."""
        return self._dropped_count

    def compute_event_hash(self, event: SecurityEvent) -> str:
        """
        Calcule le hash SHA-384 d'un événement (EVT_002).

        Returns:
            Hash SHA-384 hexadécimal
        """
        hash_data = {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "timestamp": event.timestamp.isoformat(),
            "principal_id": event.principal_id,
            "masked_destination": event.masked_destination,
            "channel": event.channel,
            "origin_ip": event.origin_ip,
            "metadata": event.metadata,
        }
        canonical = json.dumps(hash_data, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha384(canonical.encode("utf-8")).hexdigest()

    def verify_event_hash(self, event: SecurityEvent) -> bool:
        """True si hash_value correspond au contenu de l'événement."""
        return event.hash_value is not None and event.hash_value == self.compute_event_hash(event)

    def _sanitize_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Clés non textuelles écartées, chaînes tronquées, sensibles masquées."""
        clean: Dict[str, Any] = {}
        for key, value in metadata.items():
            if not isinstance(key, str) or len(key) > self.MAX_METADATA_KEY_LENGTH:
                continue
            if isinstance(value, str) and len(value) > self.MAX_STRING_LENGTH:
                value = value[: self.MAX_STRING_LENGTH]
            if isinstance(value, (str, int, float, bool, dict, list)) or value is None:
                clean[key] = value
        return self._masker.mask(clean)
