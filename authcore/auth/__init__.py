"""
Authentication & Sessions

Invariants couverts:
- SESS_001-005 (Sessions)
- PWD_001-003 (Mots de passe)
- AUTH_001-004 (Authentification)
"""

from .interfaces import (
    # Enums
    AuthErrorCode,
    ViolationKind,
    StrengthLabel,
    # Data classes
    Session,
    SessionValidation,
    AuthSuccess,
    MfaRequired,
    AuthFailure,
    AuthLocked,
    AuthResult,
    PolicyViolation,
    PasswordStrength,
    PasswordValidation,
    # Interfaces
    ISessionManager,
    IPasswordPolicyEngine,
    ICredentialVerifier,
    IMfaVerifier,
    INetworkAccessGate,
)
from .session_manager import SessionManager, SessionManagerError
from .password_policy import PasswordPolicyEngine, SPECIAL_CHARACTERS
from .mfa_token import MfaTokenService, MfaTokenClaims, MfaTokenError, MfaTokenExpiredError
from .credential_store import InMemoryCredentialStore
from .credential_authenticator import CredentialAuthenticator

__all__ = [
    # Enums
    "AuthErrorCode",
    "ViolationKind",
    "StrengthLabel",
    # Data classes
    "Session",
    "SessionValidation",
    "AuthSuccess",
    "MfaRequired",
    "AuthFailure",
    "AuthLocked",
    "AuthResult",
    "PolicyViolation",
    "PasswordStrength",
    "PasswordValidation",
    "MfaTokenClaims",
    # Interfaces
    "ISessionManager",
    "IPasswordPolicyEngine",
    "ICredentialVerifier",
    "IMfaVerifier",
    "INetworkAccessGate",
    # Implementations
    "SessionManager",
    "PasswordPolicyEngine",
    "MfaTokenService",
    "InMemoryCredentialStore",
    "CredentialAuthenticator",
    # Constants
    "SPECIAL_CHARACTERS",
    # Exceptions
    "SessionManagerError",
    "MfaTokenError",
    "MfaTokenExpiredError",
]
