"""
AUTHCORE - Authentication & Session Security Core

Vérification d'identité, sessions, verrouillage et OTP multi-canal.
"""

from .security_core import AuthSecurityCore

__version__ = "1.0.0"

__all__ = ["AuthSecurityCore", "__version__"]
