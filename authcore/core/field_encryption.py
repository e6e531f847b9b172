"""
AUTHCORE - Field Encryption Service
Chiffrement authentifié des payloads structurés.

Invariants:
    CRYPT_001: Chiffrement des champs AEAD AES-256-GCM
    CRYPT_002: Nonce aléatoire unique par chiffrement
    CRYPT_003: Tag invalide = échec, JAMAIS de clair corrompu
"""

import binascii
import json
import os
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .interfaces import EncryptedPayload, IFieldEncryptionService


class DecryptionError(Exception):
    """Déchiffrement impossible: tag invalide ou payload malformé (CRYPT_003)."""

    pass


class FieldEncryptionService(IFieldEncryptionService):
    """
    Chiffrement AES-256-GCM d'objets sérialisables JSON.

    L'objet est sérialisé en JSON canonique (clés triées, séparateurs
    compacts) puis chiffré avec un nonce de 96 bits tiré à chaque appel.
    Le tag GCM (128 bits) est exposé séparément dans ``EncryptedPayload``.

    Example:
        service = FieldEncryptionService(key)
        payload = service.encrypt({"iban": "FR76..."})
        data = service.decrypt(payload)
    """

    KEY_SIZE: int = 32  # AES-256
    NONCE_SIZE: int = 12  # 96 bits
    TAG_SIZE: int = 16  # 128 bits

    def __init__(self, key: bytes):
        """
        Args:
            key: Clé 256 bits injectée (gestion des clés hors périmètre)

        Raises:
            ValueError: Si la clé n'est pas de 32 octets
        """
        if not isinstance(key, (bytes, bytearray)) or len(key) != self.KEY_SIZE:
            raise ValueError(f"Encryption key must be {self.KEY_SIZE} bytes")
        self._aead = AESGCM(bytes(key))

    @staticmethod
    def generate_key() -> bytes:
        """Génère une clé AES-256 aléatoire (tests, développement)."""
        return AESGCM.generate_key(bit_length=256)

    def encrypt(self, data: Any) -> EncryptedPayload:
        """
        Chiffre un objet (CRYPT_001, CRYPT_002).

        Raises:
            TypeError: Si l'objet n'est pas sérialisable JSON
        """
        plaintext = self._serialize(data)
        nonce = os.urandom(self.NONCE_SIZE)

        sealed = self._aead.encrypt(nonce, plaintext, None)
        ciphertext, tag = sealed[: -self.TAG_SIZE], sealed[-self.TAG_SIZE:]

        return EncryptedPayload(
            ciphertext=ciphertext.hex(),
            iv=nonce.hex(),
            auth_tag=tag.hex(),
        )

    def decrypt(self, payload: EncryptedPayload) -> Any:
        """
        Déchiffre et désérialise (CRYPT_003).

        Raises:
            DecryptionError: Tag invalide, hex malformé, tailles incorrectes
                ou clair non JSON
        """
        try:
            ciphertext = bytes.fromhex(payload.ciphertext)
            nonce = bytes.fromhex(payload.iv)
            tag = bytes.fromhex(payload.auth_tag)
        except (ValueError, TypeError, AttributeError, binascii.Error) as e:
            raise DecryptionError(f"Payload malformé: {e}")

        if len(nonce) != self.NONCE_SIZE:
            raise DecryptionError("Taille de nonce invalide")
        if len(tag) != self.TAG_SIZE:
            raise DecryptionError("Taille de tag invalide")

        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag:
            raise DecryptionError("Authentification du payload échouée")

        try:
            return json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecryptionError(f"Clair non désérialisable: {e}")

    @staticmethod
    def _serialize(data: Any) -> bytes:
        return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
