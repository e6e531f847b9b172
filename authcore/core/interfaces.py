"""
AUTHCORE - Core Interfaces
Contrats du module Core: configuration et chiffrement des champs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


class ValidationSeverity(Enum):
    BLOCKING = "blocking"
    WARNING = "warning"
    INFO = "info"


class ValidationError(BaseModel):
    """Erreur de validation d'un invariant."""

    rule_id: str
    message: str
    location: str
    value: Optional[str] = None
    severity: ValidationSeverity = ValidationSeverity.BLOCKING


class ValidationResult(BaseModel):
    """Résultat de validation d'une configuration."""

    valid: bool
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []
    checked_at: datetime


@dataclass(frozen=True)
class EncryptedPayload:
    """
    Résultat opaque d'un chiffrement de champ (CRYPT_001).

    Attributes:
        ciphertext: Texte chiffré (hex)
        iv: Nonce AES-GCM (hex, 96 bits)
        auth_tag: Tag d'authentification GCM (hex, 128 bits)
    """

    ciphertext: str
    iv: str
    auth_tag: str

    def to_dict(self) -> Dict[str, str]:
        return {"ciphertext": self.ciphertext, "iv": self.iv, "auth_tag": self.auth_tag}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptedPayload":
        """
        Reconstruit un payload stocké.

        Raises:
            KeyError: Si un champ est absent
        """
        return cls(
            ciphertext=str(data["ciphertext"]),
            iv=str(data["iv"]),
            auth_tag=str(data["auth_tag"]),
        )


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge la configuration sécurité une seule fois au démarrage."""

    @abstractmethod
    def load(self, path: Union[str, Path]) -> Any:
        """
        Charge et valide la configuration.

        Raises:
            ConfigIntegrityError: Si fichier absent, illisible ou invalide
        """
        pass


class IConfigValidator(ABC):
    """Valide configuration contre les invariants de sécurité."""

    @abstractmethod
    def validate(self, config: Any) -> ValidationResult:
        """
        Valide une config contre TOUS les invariants.
        Retourne TOUTES les erreurs (pas fail-fast).
        """
        pass

    @abstractmethod
    def validate_rule(self, rule_id: str, config: Any) -> Optional[ValidationError]:
        """Valide UNE règle spécifique."""
        pass


class IFieldEncryptionService(ABC):
    """Chiffrement authentifié de payloads structurés (CRYPT_001-003)."""

    @abstractmethod
    def encrypt(self, data: Any) -> EncryptedPayload:
        """
        Chiffre un objet sérialisable JSON.

        Returns:
            EncryptedPayload avec nonce frais (CRYPT_002)
        """
        pass

    @abstractmethod
    def decrypt(self, payload: EncryptedPayload) -> Any:
        """
        Déchiffre et désérialise un payload.

        Raises:
            DecryptionError: Tag invalide ou payload malformé (CRYPT_003)
        """
        pass
