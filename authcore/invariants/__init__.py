"""
Invariants de sécurité

Registre des règles vérifiées par ConfigValidator et les tests de conformité.
"""

from .rules import ALL_INVARIANTS, EXPECTED_COUNTS, TOTAL_INVARIANTS, Invariant, Severity

__all__ = [
    "Invariant",
    "Severity",
    "ALL_INVARIANTS",
    "EXPECTED_COUNTS",
    "TOTAL_INVARIANTS",
]
