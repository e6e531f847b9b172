"""
Test que toutes les règles sont définies correctement.
"""

import re
import pytest
from authcore.invariants.rules import (
    ALL_INVARIANTS,
    EXPECTED_COUNTS,
    TOTAL_INVARIANTS,
    Invariant,
    Severity,
)


class TestInvariantsExist:
    """Vérifie que toutes les règles attendues sont définies."""

    def test_total_count(self):
        """Le nombre total d'invariants doit être 35."""
        assert TOTAL_INVARIANTS == 35, f"Expected 35, got {TOTAL_INVARIANTS}"

    def test_counts_match_expected(self):
        """Le compte par section doit correspondre."""
        counts = {}
        for id in ALL_INVARIANTS.keys():
            prefix = id.split("_")[0]
            counts[prefix] = counts.get(prefix, 0) + 1

        for prefix, expected in EXPECTED_COUNTS.items():
            actual = counts.get(prefix, 0)
            assert actual == expected, f"{prefix}: expected {expected}, got {actual}"

    def test_expected_counts_sum_to_total(self):
        """La somme des sections doit égaler le total."""
        assert sum(EXPECTED_COUNTS.values()) == TOTAL_INVARIANTS

    def test_all_invariants_have_id(self):
        """Chaque invariant doit avoir un ID correspondant à sa clé."""
        for id, invariant in ALL_INVARIANTS.items():
            assert invariant.id == id, f"ID mismatch: key={id}, invariant.id={invariant.id}"

    def test_all_invariants_have_rule(self):
        """Chaque invariant doit avoir une règle non vide."""
        for id, invariant in ALL_INVARIANTS.items():
            assert invariant.rule, f"Invariant {id} has no rule"
            assert len(invariant.rule) >= 10, f"Invariant {id} rule too short: {invariant.rule}"

    def test_id_format(self):
        """Les IDs doivent respecter le format PREFIX_NNN."""
        pattern = r"^[A-Z]+_\d{3}$"
        for id in ALL_INVARIANTS.keys():
            assert re.match(pattern, id), f"Invalid ID format: {id}"

    def test_all_invariants_are_invariant_type(self):
        """Tous les éléments doivent être de type Invariant."""
        for id, invariant in ALL_INVARIANTS.items():
            assert isinstance(invariant, Invariant), f"{id} is not an Invariant"

    def test_severity_is_valid(self):
        """Toutes les sévérités doivent être valides."""
        for id, invariant in ALL_INVARIANTS.items():
            assert isinstance(invariant.severity, Severity), f"{id} has invalid severity"


class TestCriticalInvariants:
    """Vérifie que les invariants critiques sont présents."""

    @pytest.mark.parametrize(
        "rule_id",
        [
            "LOCK_001",  # Verrouillage après échecs
            "SESS_001",  # Session 256 bits
            "CRYPT_003",  # Tag invalide = échec
            "AUTH_002",  # Pas d'énumération de comptes
            "OTP_004",  # Échec d'envoi = rollback
            "LOG_005",  # Masquage
        ],
    )
    def test_critical_invariant_exists(self, rule_id: str):
        """Les invariants critiques doivent exister."""
        assert rule_id in ALL_INVARIANTS, f"Critical invariant {rule_id} missing"

    @pytest.mark.parametrize(
        "rule_id",
        [
            "LOCK_001",
            "SESS_001",
            "CRYPT_003",
            "AUTH_002",
            "OTP_004",
        ],
    )
    def test_critical_invariants_are_blocking(self, rule_id: str):
        """Les invariants critiques doivent être BLOCKING."""
        invariant = ALL_INVARIANTS[rule_id]
        assert invariant.severity == Severity.BLOCKING, f"{rule_id} should be BLOCKING"
