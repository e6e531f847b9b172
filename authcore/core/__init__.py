"""
Core

Configuration sécurité (chargement YAML, validation contre invariants)
et chiffrement authentifié des champs (CRYPT_001-003).
"""

from .interfaces import (
    EncryptedPayload,
    IConfigLoader,
    IConfigValidator,
    IFieldEncryptionService,
    ValidationError,
    ValidationResult,
    ValidationSeverity,
)
from .config import ChannelPolicy, PasswordPolicy, PostureThresholds, SecurityConfig
from .config_loader import ConfigIntegrityError, ConfigLoader
from .config_validator import ConfigValidator
from .field_encryption import DecryptionError, FieldEncryptionService

__all__ = [
    # Interfaces
    "IConfigLoader",
    "IConfigValidator",
    "IFieldEncryptionService",
    # Data classes
    "EncryptedPayload",
    "ValidationError",
    "ValidationResult",
    "ValidationSeverity",
    "SecurityConfig",
    "PasswordPolicy",
    "ChannelPolicy",
    "PostureThresholds",
    # Implementations
    "ConfigLoader",
    "ConfigValidator",
    "FieldEncryptionService",
    # Exceptions
    "ConfigIntegrityError",
    "DecryptionError",
]
