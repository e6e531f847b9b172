"""
Session Manager Implementation

Gestion des sessions authentifiées avec expiration glissante.

Invariants:
    SESS_001: Identifiant de session aléatoire 256 bits
    SESS_002: Expiration glissante à chaque validation réussie
    SESS_003: Session expirée évincée dès la validation
    SESS_004: Balayage périodique des sessions expirées
"""

import asyncio
import secrets
import threading
from dataclasses import replace
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Set

from ..core.clock import Clock, utc_now
from .interfaces import ISessionManager, Session, SessionValidation


class SessionManagerError(Exception):
    """Erreur de gestion de session."""
    pass


class SessionManager(ISessionManager):
    """
    Gestionnaire de sessions.

    Conformité:
        SESS_001: Jeton secrets.token_hex(32)
        SESS_002: Chaque validation réussie repousse expires_at
        SESS_003: Une session expirée est supprimée au premier contrôle
        SESS_004: Tâche de balayage asyncio (start_sweeper / stop_sweeper)

    Note:
        Stockage en mémoire. Le verrou n'est jamais détenu pendant un await.
        Les sessions retournées sont des copies: seul le gestionnaire modifie expires_at.

    Example:
        session_manager = SessionManager(session_timeout=timedelta(hours=1))
        session = await session_manager.create_session("user-1", "10.0.0.5")
        result = await session_manager.validate_session(session.id)
    """

    SESSION_TIMEOUT: timedelta = timedelta(hours=1)
    SWEEP_INTERVAL: timedelta = timedelta(minutes=5)
    TOKEN_BYTES: int = 32  # 256 bits (SESS_001)

    def __init__(
        self,
        session_timeout: Optional[timedelta] = None,
        sweep_interval: Optional[timedelta] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            session_timeout: Durée initiale et de chaque renouvellement (défaut: 1h)
            sweep_interval: Période du balayage (défaut: 5 min)
            clock: Horloge injectée (défaut: UTC système)
        """
        self.session_timeout = session_timeout or self.SESSION_TIMEOUT
        self.sweep_interval = sweep_interval or self.SWEEP_INTERVAL
        self._clock = clock or utc_now

        self._sessions: Dict[str, Session] = {}
        self._principal_sessions: Dict[str, Set[str]] = {}  # principal_id -> session ids
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None
        self._sweep_hooks: List[Callable[[], int]] = []

    async def create_session(self, principal_id: str, origin_ip: str, channel: Optional[str] = None) -> Session:
        """
        Crée une nouvelle session, utilisable immédiatement.

        Raises:
            SessionManagerError: principal_id ou origin_ip manquant
        """
        if not principal_id or not origin_ip:
            raise SessionManagerError("principal_id et origin_ip sont obligatoires")

        now = self._clock()
        session = Session(
            id=secrets.token_hex(self.TOKEN_BYTES),
            principal_id=principal_id,
            origin_ip=origin_ip,
            created_at=now,
            last_activity_at=now,
            expires_at=now + self.session_timeout,
            channel=channel,
        )

        with self._lock:
            self._sessions[session.id] = session
            self._principal_sessions.setdefault(principal_id, set()).add(session.id)

        return replace(session)

    async def validate_session(self, session_id: str) -> SessionValidation:
        """
        Valide une session et prolonge son expiration (SESS_002).

        Une session expirée est évincée; les appels suivants répondent
        "not found" (SESS_003).
        """
        with self._lock:
            session = self._sessions.get(session_id) if session_id else None
            if session is None:
                return SessionValidation(valid=False, reason="not found")

            now = self._clock()
            if now > session.expires_at:
                self._evict(session_id)
                return SessionValidation(valid=False, reason="expired")

            session.last_activity_at = now
            session.expires_at = now + self.session_timeout
            return SessionValidation(valid=True, session=replace(session))

    async def terminate_session(self, session_id: str) -> bool:
        """
        Termine immédiatement une session.

        Returns:
            True si terminée, False si inexistante
        """
        with self._lock:
            return self._evict(session_id) is not None

    async def terminate_principal_sessions(self, principal_id: str) -> int:
        """
        Termine toutes les sessions d'un principal.

        Returns:
            Nombre de sessions terminées
        """
        with self._lock:
            session_ids = list(self._principal_sessions.get(principal_id, ()))
            return sum(1 for session_id in session_ids if self._evict(session_id) is not None)

    async def get_session(self, session_id: str) -> Optional[Session]:
        """Lecture sans prolongation; None si absente ou expirée."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or self._clock() > session.expires_at:
                return None
            return replace(session)

    async def get_principal_sessions(self, principal_id: str) -> List[Session]:
        """
        Sessions non expirées d'un principal.

        Returns:
            Liste triée, plus récentes en premier
        """
        with self._lock:
            now = self._clock()
            sessions = [
                replace(self._sessions[session_id])
                for session_id in self._principal_sessions.get(principal_id, ())
                if now <= self._sessions[session_id].expires_at
            ]

        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return sessions

    async def cleanup_expired_sessions(self) -> int:
        """
        Supprime toutes les sessions dont expires_at est dépassé (SESS_004).

        Returns:
            Nombre de sessions supprimées
        """
        with self._lock:
            now = self._clock()
            expired = [sid for sid, session in self._sessions.items() if now > session.expires_at]
            for session_id in expired:
                self._evict(session_id)
            return len(expired)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # ─────────────────────────────────────────────────────────────────
    # Balayage périodique
    # ─────────────────────────────────────────────────────────────────

    def start_sweeper(self) -> None:
        """
        Lance la tâche de balayage sur la boucle courante.

        Raises:
            SessionManagerError: Balayage déjà actif
            RuntimeError: Aucune boucle asyncio en cours
        """
        if self.is_sweeping:
            raise SessionManagerError("Balayage déjà actif")
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop_sweeper(self) -> None:
        """Annule la tâche de balayage et attend sa terminaison."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def add_sweep_hook(self, hook: Callable[[], int]) -> None:
        """
        Ajoute une purge exécutée à chaque passage du balayage.

        Args:
            hook: Callable synchrone retournant le nombre d'entrées supprimées
        """
        self._sweep_hooks.append(hook)

    async def sweep(self) -> int:
        """
        Un passage de balayage: sessions expirées puis purges enregistrées.

        Returns:
            Nombre total d'entrées supprimées
        """
        removed = await self.cleanup_expired_sessions()
        for hook in self._sweep_hooks:
            removed += hook()
        return removed

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval.total_seconds())
            await self.sweep()

    def _evict(self, session_id: str) -> Optional[Session]:
        """Appelant doit détenir ``self._lock``."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return None
        owned = self._principal_sessions.get(session.principal_id)
        if owned is not None:
            owned.discard(session_id)
            if not owned:
                del self._principal_sessions[session.principal_id]
        return session
