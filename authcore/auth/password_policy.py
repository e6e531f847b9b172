"""
Password Policy Engine

Validation des mots de passe contre la politique active et score de robustesse.

Invariants:
    PWD_001: Longueur minimale mot de passe 8 caractères au moins
    PWD_003: Score de robustesse informatif, jamais décisionnel
"""

import re
from typing import List, Optional

from ..core.config import PasswordPolicy
from .interfaces import (
    IPasswordPolicyEngine,
    PasswordStrength,
    PasswordValidation,
    PolicyViolation,
    StrengthLabel,
    ViolationKind,
)

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

_UPPERCASE = re.compile(r"[A-Z]")
_LOWERCASE = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")


class PasswordPolicyEngine(IPasswordPolicyEngine):
    """
    Moteur de politique de mot de passe.

    La validité dépend uniquement des règles activées dans ``PasswordPolicy``;
    le score est calculé séparément et n'influence jamais ``valid`` (PWD_003).

    Example:
        engine = PasswordPolicyEngine()
        result = engine.validate("Str0ng!Passw0rd")
        assert result.valid
    """

    def __init__(self, policy: Optional[PasswordPolicy] = None):
        self.policy = policy or PasswordPolicy()

    def validate(self, password: str) -> PasswordValidation:
        """
        Contrôle chaque règle active et collecte toutes les violations.

        Returns:
            PasswordValidation avec violations et score informatif
        """
        password = password or ""
        violations: List[PolicyViolation] = []

        if not self.meets_minimum_length(password):
            violations.append(
                PolicyViolation(
                    ViolationKind.TOO_SHORT,
                    f"Password must be at least {self.policy.min_length} characters long",
                )
            )
        if self.policy.require_uppercase and not _UPPERCASE.search(password):
            violations.append(
                PolicyViolation(ViolationKind.MISSING_UPPERCASE, "Password must contain at least one uppercase letter")
            )
        if self.policy.require_numbers and not _DIGIT.search(password):
            violations.append(
                PolicyViolation(ViolationKind.MISSING_NUMBER, "Password must contain at least one number")
            )
        if self.policy.require_special and not _SPECIAL.search(password):
            violations.append(
                PolicyViolation(ViolationKind.MISSING_SPECIAL, "Password must contain at least one special character")
            )

        return PasswordValidation(
            valid=not violations,
            violations=violations,
            strength=self.score(password),
        )

    def score(self, password: str) -> PasswordStrength:
        """Score additif borné à 100: <40 weak, <70 medium, sinon strong."""
        password = password or ""
        value = 0

        if len(password) >= 8:
            value += 20
        if len(password) >= 12:
            value += 20
        if len(password) >= 16:
            value += 10
        if _LOWERCASE.search(password):
            value += 10
        if _UPPERCASE.search(password):
            value += 10
        if _DIGIT.search(password):
            value += 10
        if _SPECIAL.search(password):
            value += 20

        value = min(value, 100)

        if value < 40:
            label = StrengthLabel.WEAK
        elif value < 70:
            label = StrengthLabel.MEDIUM
        else:
            label = StrengthLabel.STRONG

        return PasswordStrength(value=value, label=label)

    def meets_minimum_length(self, password: str) -> bool:
        return len(password or "") >= self.policy.min_length
