"""
Logging - Sensitive Masker

Masquage automatique des données sensibles et des destinations OTP.

Invariants:
    LOG_005: Données sensibles JAMAIS en clair (masquées)
    OTP_005: Destination TOUJOURS masquée hors envoi
"""

from typing import Any, Dict, List, Optional

from .interfaces import ISensitiveMasker


class SensitiveMasker(ISensitiveMasker):
    """
    Masquage automatique des données sensibles.

    Implémente le masquage récursif pour protéger les données
    sensibles dans les logs et événements de sécurité.

    Example:
        masker = SensitiveMasker()
        safe_data = masker.mask({"password": "secret123"})
        # {"password": "***MASKED***"}
        masker.mask_destination("user@example.com")
        # "us***@example.com"
    """

    # Nombre de caractères conservés par type de destination
    EMAIL_LOCAL_VISIBLE: int = 2
    PHONE_PREFIX_VISIBLE: int = 2
    SUFFIX_VISIBLE: int = 4
    DESTINATION_MASK: str = "***"

    def __init__(self, additional_patterns: Optional[List[str]] = None) -> None:
        """
        Args:
            additional_patterns: Patterns supplémentaires à masquer
        """
        self._patterns: List[str] = list(self.SENSITIVE_PATTERNS)
        if additional_patterns:
            for pattern in additional_patterns:
                if pattern and pattern.lower() not in [p.lower() for p in self._patterns]:
                    self._patterns.append(pattern.lower())

    @property
    def patterns(self) -> List[str]:
        """Retourne les patterns sensibles configurés."""
        return list(self._patterns)

    def mask(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        LOG_005: Masque récursivement toutes les données sensibles.

        Comportement:
            - Clés contenant patterns sensibles → valeur masquée
            - Valeurs dict → récursion
            - Valeurs list → masque chaque élément

        Args:
            data: Dictionnaire à masquer

        Returns:
            Copie avec données sensibles masquées
        """
        if not isinstance(data, dict):
            return data

        result: Dict[str, Any] = {}

        for key, value in data.items():
            if self.is_sensitive_key(key):
                result[key] = self.MASK_VALUE
            elif isinstance(value, dict):
                result[key] = self.mask(value)
            elif isinstance(value, list):
                result[key] = self._mask_list(value)
            else:
                result[key] = value

        return result

    def _mask_list(self, items: List[Any]) -> List[Any]:
        result = []
        for item in items:
            if isinstance(item, dict):
                result.append(self.mask(item))
            elif isinstance(item, list):
                result.append(self._mask_list(item))
            else:
                result.append(item)
        return result

    def mask_string(self, value: str) -> str:
        """Masque valeur string sensible."""
        return self.MASK_VALUE

    def mask_destination(self, destination: str) -> str:
        """
        OTP_005: Masque une destination de livraison.

        Règles:
            - Email: 2 premiers caractères de la partie locale + domaine
              (``user@example.com`` → ``us***@example.com``)
            - Téléphone (``+``): préfixe court + 4 derniers chiffres
              (``+15551231234`` → ``+1***1234``)
            - Autre (chat id Telegram...): 4 derniers caractères

        Args:
            destination: Destination en clair

        Returns:
            Destination masquée (jamais la valeur d'origine)
        """
        if not destination:
            return self.DESTINATION_MASK

        value = destination.strip()

        if "@" in value:
            local, _, domain = value.rpartition("@")
            visible = local[: self.EMAIL_LOCAL_VISIBLE] if len(local) > self.EMAIL_LOCAL_VISIBLE else local[:1]
            return f"{visible}{self.DESTINATION_MASK}@{domain}"

        if value.startswith("+"):
            digits = value.replace(" ", "").replace("-", "")
            if len(digits) <= self.PHONE_PREFIX_VISIBLE + self.SUFFIX_VISIBLE:
                return f"{digits[:self.PHONE_PREFIX_VISIBLE]}{self.DESTINATION_MASK}"
            return (
                f"{digits[:self.PHONE_PREFIX_VISIBLE]}{self.DESTINATION_MASK}"
                f"{digits[-self.SUFFIX_VISIBLE:]}"
            )

        if len(value) <= self.SUFFIX_VISIBLE:
            return self.DESTINATION_MASK
        return f"{self.DESTINATION_MASK}{value[-self.SUFFIX_VISIBLE:]}"

    def is_sensitive_key(self, key: str) -> bool:
        """
        Vérifie si clé contient un pattern sensible (case-insensitive).

        Args:
            key: Nom de la clé à vérifier

        Returns:
            True si clé contient pattern sensible
        """
        if not key:
            return False

        key_lower = key.lower()

        for pattern in self._patterns:
            if pattern.lower() in key_lower:
                return True

        return False

    def add_pattern(self, pattern: str) -> None:
        """
        Ajoute pattern sensible personnalisé.

        Raises:
            ValueError: Si pattern vide
        """
        if not pattern or not pattern.strip():
            raise ValueError("Pattern cannot be empty")

        pattern_lower = pattern.lower().strip()
        if pattern_lower not in [p.lower() for p in self._patterns]:
            self._patterns.append(pattern_lower)

    def remove_pattern(self, pattern: str) -> bool:
        """
        Retire un pattern de la liste.

        Returns:
            True si pattern retiré, False si non trouvé
        """
        pattern_lower = pattern.lower().strip()
        for i, p in enumerate(self._patterns):
            if p.lower() == pattern_lower:
                self._patterns.pop(i)
                return True
        return False
