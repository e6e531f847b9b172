"""
AUTHCORE - Invariants de sécurité
Ces règles sont IMMUABLES et ne peuvent être assouplies par configuration.
"""

from enum import Enum
from typing import Final


class Severity(Enum):
    """Criticité d'un invariant."""

    BLOCKING = "blocking"
    WARNING = "warning"


class Invariant:
    """Définition d'un invariant de sécurité."""

    def __init__(self, id: str, rule: str, severity: Severity = Severity.BLOCKING):
        self.id = id
        self.rule = rule
        self.severity = severity

    def __repr__(self) -> str:
        return f"Invariant({self.id})"


# ══════════════════════════════════════════════════════════════════════════════
# VERROUILLAGE (LOCK_001-005)
# ══════════════════════════════════════════════════════════════════════════════

LOCK_001 = Invariant("LOCK_001", "Échecs consécutifs au seuil = identifiant verrouillé temporairement")
LOCK_002 = Invariant("LOCK_002", "Verrou expiré réinitialisé avant toute nouvelle évaluation")
LOCK_003 = Invariant("LOCK_003", "Blocage IP dur sans expiration, levée explicite uniquement")
LOCK_004 = Invariant("LOCK_004", "Absence d'enregistrement équivaut à zéro échec")
LOCK_005 = Invariant("LOCK_005", "Seuil d'échecs MAX 10 tentatives")

# ══════════════════════════════════════════════════════════════════════════════
# SESSIONS (SESS_001-005)
# ══════════════════════════════════════════════════════════════════════════════

SESS_001 = Invariant("SESS_001", "Identifiant de session aléatoire 256 bits")
SESS_002 = Invariant("SESS_002", "Expiration glissante à chaque validation réussie")
SESS_003 = Invariant("SESS_003", "Session expirée évincée dès la validation")
SESS_004 = Invariant("SESS_004", "Balayage périodique des sessions expirées", Severity.WARNING)
SESS_005 = Invariant("SESS_005", "Durée de session unique tous parcours MAX 24 heures")

# ══════════════════════════════════════════════════════════════════════════════
# MOTS DE PASSE (PWD_001-003)
# ══════════════════════════════════════════════════════════════════════════════

PWD_001 = Invariant("PWD_001", "Longueur minimale mot de passe 8 caractères au moins")
PWD_002 = Invariant("PWD_002", "Longueur recommandée 12 caractères", Severity.WARNING)
PWD_003 = Invariant("PWD_003", "Score de robustesse informatif, jamais décisionnel")

# ══════════════════════════════════════════════════════════════════════════════
# CRYPTOGRAPHIE (CRYPT_001-003)
# ══════════════════════════════════════════════════════════════════════════════

CRYPT_001 = Invariant("CRYPT_001", "Chiffrement des champs AEAD AES-256-GCM")
CRYPT_002 = Invariant("CRYPT_002", "Nonce aléatoire unique par chiffrement")
CRYPT_003 = Invariant("CRYPT_003", "Tag invalide = échec, JAMAIS de clair corrompu")

# ══════════════════════════════════════════════════════════════════════════════
# AUTHENTIFICATION (AUTH_001-004)
# ══════════════════════════════════════════════════════════════════════════════

AUTH_001 = Invariant("AUTH_001", "IP bloquée refusée avant toute vérification")
AUTH_002 = Invariant("AUTH_002", "Compte inexistant et mot de passe faux indiscernables")
AUTH_003 = Invariant("AUTH_003", "MFA vérifié avant émission de session si activé")
AUTH_004 = Invariant("AUTH_004", "Jeton MFA temporaire MAX 10 minutes")

# ══════════════════════════════════════════════════════════════════════════════
# OTP (OTP_001-007)
# ══════════════════════════════════════════════════════════════════════════════

OTP_001 = Invariant("OTP_001", "Code OTP 6 chiffres minimum, source cryptographique")
OTP_002 = Invariant("OTP_002", "Expiration OTP MAX 10 minutes, vérifiée avant les tentatives")
OTP_003 = Invariant("OTP_003", "Tentatives OTP MAX 5 puis suppression du challenge")
OTP_004 = Invariant("OTP_004", "Échec d'envoi = challenge supprimé")
OTP_005 = Invariant("OTP_005", "Destination TOUJOURS masquée hors envoi")
OTP_006 = Invariant("OTP_006", "Limite de débit par identifiant et quota par canal")
OTP_007 = Invariant("OTP_007", "Détail fournisseur JAMAIS exposé à l'utilisateur")

# ══════════════════════════════════════════════════════════════════════════════
# LOGGING (LOG_001-005)
# ══════════════════════════════════════════════════════════════════════════════

LOG_001 = Invariant("LOG_001", "Format JSON structuré obligatoire")
LOG_002 = Invariant("LOG_002", "Champs obligatoires: timestamp, level, correlation_id, message")
LOG_003 = Invariant("LOG_003", "Timestamp format ISO 8601 avec timezone UTC")
LOG_004 = Invariant("LOG_004", "Niveaux: DEBUG, INFO, WARN, ERROR, CRITICAL")
LOG_005 = Invariant("LOG_005", "Données sensibles JAMAIS en clair (masquées)")

# ══════════════════════════════════════════════════════════════════════════════
# ÉVÉNEMENTS SÉCURITÉ (EVT_001-003)
# ══════════════════════════════════════════════════════════════════════════════

EVT_001 = Invariant("EVT_001", "Événements de sécurité émis dans l'ordre vers la file sortante")
EVT_002 = Invariant("EVT_002", "Chaque événement haché SHA-384")
EVT_003 = Invariant("EVT_003", "File d'événements bornée, plus anciens évincés", Severity.WARNING)


ALL_INVARIANTS: Final[dict[str, Invariant]] = {
    # LOCK (5)
    "LOCK_001": LOCK_001,
    "LOCK_002": LOCK_002,
    "LOCK_003": LOCK_003,
    "LOCK_004": LOCK_004,
    "LOCK_005": LOCK_005,
    # SESS (5)
    "SESS_001": SESS_001,
    "SESS_002": SESS_002,
    "SESS_003": SESS_003,
    "SESS_004": SESS_004,
    "SESS_005": SESS_005,
    # PWD (3)
    "PWD_001": PWD_001,
    "PWD_002": PWD_002,
    "PWD_003": PWD_003,
    # CRYPT (3)
    "CRYPT_001": CRYPT_001,
    "CRYPT_002": CRYPT_002,
    "CRYPT_003": CRYPT_003,
    # AUTH (4)
    "AUTH_001": AUTH_001,
    "AUTH_002": AUTH_002,
    "AUTH_003": AUTH_003,
    "AUTH_004": AUTH_004,
    # OTP (7)
    "OTP_001": OTP_001,
    "OTP_002": OTP_002,
    "OTP_003": OTP_003,
    "OTP_004": OTP_004,
    "OTP_005": OTP_005,
    "OTP_006": OTP_006,
    "OTP_007": OTP_007,
    # LOG (5)
    "LOG_001": LOG_001,
    "LOG_002": LOG_002,
    "LOG_003": LOG_003,
    "LOG_004": LOG_004,
    "LOG_005": LOG_005,
    # EVT (3)
    "EVT_001": EVT_001,
    "EVT_002": EVT_002,
    "EVT_003": EVT_003,
}

# Comptage attendu par section
EXPECTED_COUNTS: Final[dict[str, int]] = {
    "LOCK": 5,
    "SESS": 5,
    "PWD": 3,
    "CRYPT": 3,
    "AUTH": 4,
    "OTP": 7,
    "LOG": 5,
    "EVT": 3,
}

TOTAL_INVARIANTS: Final[int] = len(ALL_INVARIANTS)
