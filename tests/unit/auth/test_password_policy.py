"""
Tests unitaires PasswordPolicyEngine

Invariants testés:
    PWD_001: Longueur minimale mot de passe 8 caractères au moins
    PWD_003: Score de robustesse informatif, jamais décisionnel
"""

import pytest

from authcore.auth import (
    SPECIAL_CHARACTERS,
    IPasswordPolicyEngine,
    PasswordPolicyEngine,
    StrengthLabel,
    ViolationKind,
)
from authcore.core import PasswordPolicy


@pytest.fixture
def engine():
    return PasswordPolicyEngine()


class TestPasswordValidation:
    """Tests des règles de composition."""

    def test_implements_interface(self, engine):
        assert isinstance(engine, IPasswordPolicyEngine)

    def test_strong_password_valid(self, engine):
        result = engine.validate("Str0ng!Passw0rd")

        assert result.valid is True
        assert result.violations == []

    def test_PWD_001_too_short(self, engine):
        result = engine.validate("Sh0rt!pw")

        assert result.valid is False
        assert result.violation_kinds == [ViolationKind.TOO_SHORT]
        assert result.violations[0].message == "Password must be at least 12 characters long"

    def test_all_violations_collected(self, engine):
        """Toutes les violations sont retournées, pas seulement la première."""
        result = engine.validate("password")

        assert result.violation_kinds == [
            ViolationKind.TOO_SHORT,
            ViolationKind.MISSING_UPPERCASE,
            ViolationKind.MISSING_NUMBER,
            ViolationKind.MISSING_SPECIAL,
        ]

    def test_empty_password(self, engine):
        result = engine.validate("")

        assert result.valid is False
        assert ViolationKind.TOO_SHORT in result.violation_kinds

    def test_disabled_rules_not_enforced(self):
        policy = PasswordPolicy(min_length=8, require_uppercase=False, require_numbers=False, require_special=False)
        engine = PasswordPolicyEngine(policy)

        assert engine.validate("lowercaseonly").valid is True
        assert engine.validate("short").violation_kinds == [ViolationKind.TOO_SHORT]

    @pytest.mark.parametrize("char", list(SPECIAL_CHARACTERS))
    def test_each_special_character_accepted(self, engine, char):
        result = engine.validate(f"Abcdefgh1234{char}")

        assert ViolationKind.MISSING_SPECIAL not in result.violation_kinds

    def test_unicode_symbol_not_special(self, engine):
        result = engine.validate("Abcdefgh1234€")

        assert result.violation_kinds == [ViolationKind.MISSING_SPECIAL]

    def test_meets_minimum_length(self, engine):
        assert engine.meets_minimum_length("x" * 12) is True
        assert engine.meets_minimum_length("x" * 11) is False


class TestPasswordStrength:
    """Tests PWD_003: score informatif."""

    def test_strong_score(self, engine):
        strength = engine.score("Str0ng!Passw0rd")

        assert strength.value == 90
        assert strength.label == StrengthLabel.STRONG

    def test_weak_score(self, engine):
        strength = engine.score("password")

        assert strength.value == 30
        assert strength.label == StrengthLabel.WEAK

    def test_medium_score(self, engine):
        strength = engine.score("Password1")

        assert strength.value == 50
        assert strength.label == StrengthLabel.MEDIUM

    def test_score_capped_at_100(self, engine):
        assert engine.score("Very!Long&Complex#Passw0rd2025").value == 100

    def test_empty_score(self, engine):
        assert engine.score("").value == 0

    def test_PWD_003_score_never_decides(self):
        """PWD_003: Un mot de passe faible peut être valide, un fort invalide."""
        lenient = PasswordPolicyEngine(
            PasswordPolicy(min_length=1, require_uppercase=False, require_numbers=False, require_special=False)
        )
        weak = lenient.validate("abc")
        assert weak.valid is True
        assert weak.strength.label == StrengthLabel.WEAK

        strict = PasswordPolicyEngine(PasswordPolicy(min_length=40))
        strong = strict.validate("Str0ng!Passw0rd")
        assert strong.valid is False
        assert strong.strength.label == StrengthLabel.STRONG
