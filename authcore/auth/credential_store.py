"""
In-memory credential store (bcrypt)

Magasin d'identifiants de référence pour le développement et les tests.
"""

import threading
from typing import Dict, Optional, Tuple

import bcrypt

from .interfaces import ICredentialVerifier


class InMemoryCredentialStore(ICredentialVerifier):
    """
    Identifiants hachés bcrypt, indexés par identifiant de connexion.

    Un identifiant inconnu déclenche tout de même un ``checkpw`` sur un
    hash factice (AUTH_002).

    Example:
        store = InMemoryCredentialStore()
        store.register("alice@example.com", "Str0ng!Passw0rd", principal_id="user-1")
        principal = store.verify("alice@example.com", "Str0ng!Passw0rd")
    """

    DEFAULT_ROUNDS: int = 12
    MAX_SECRET_BYTES: int = 72  # limite bcrypt

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self._rounds = rounds
        self._credentials: Dict[str, Tuple[str, bytes]] = {}  # identifier -> (principal_id, hash)
        self._lock = threading.Lock()
        self._dummy_hash = bcrypt.hashpw(b"authcore-dummy-secret", bcrypt.gensalt(rounds=rounds))

    def register(self, identifier: str, secret: str, principal_id: Optional[str] = None) -> str:
        """
        Enregistre ou remplace un identifiant.

        Returns:
            principal_id associé (l'identifiant lui-même par défaut)

        Raises:
            ValueError: identifiant vide, secret vide ou trop long pour bcrypt
        """
        if not identifier:
            raise ValueError("Identifier must be a non-empty string")
        if not isinstance(secret, str) or len(secret) == 0:
            raise ValueError("Password must be a non-empty string")
        encoded = secret.encode("utf-8")
        if len(encoded) > self.MAX_SECRET_BYTES:
            raise ValueError(f"Password must not exceed {self.MAX_SECRET_BYTES} bytes")

        hashed = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds))
        principal_id = principal_id or identifier

        with self._lock:
            self._credentials[identifier] = (principal_id, hashed)

        return principal_id

    def remove(self, identifier: str) -> bool:
        with self._lock:
            return self._credentials.pop(identifier, None) is not None

    def verify(self, identifier: str, secret: str) -> Optional[str]:
        """Retourne le principal si le secret correspond, None sinon."""
        with self._lock:
            entry = self._credentials.get(identifier)

        encoded = (secret or "").encode("utf-8")
        if not encoded or len(encoded) > self.MAX_SECRET_BYTES:
            return None

        if entry is None:
            bcrypt.checkpw(encoded, self._dummy_hash)
            return None

        principal_id, hashed = entry
        if bcrypt.checkpw(encoded, hashed):
            return principal_id
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._credentials)
