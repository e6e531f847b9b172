"""
AUTHCORE - Config Loader Implementation
Charge la configuration sécurité depuis un fichier YAML.
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config import SecurityConfig
from .interfaces import IConfigLoader


class ConfigIntegrityError(Exception):
    """Erreur d'intégrité de configuration."""

    pass


class ConfigLoader(IConfigLoader):
    """
    Chargement de la configuration depuis fichiers YAML.

    Le fichier peut contenir la configuration à la racine ou sous une clé
    ``security``. Les champs absents prennent leurs valeurs par défaut.

    Example:
        config = ConfigLoader().load("configs/security.yaml")
    """

    ROOT_KEY: str = "security"

    def load(self, path: Union[str, Path]) -> SecurityConfig:
        """
        Charge la configuration.

        Args:
            path: Chemin du fichier YAML

        Returns:
            SecurityConfig validée et immuable

        Raises:
            ConfigIntegrityError: Si fichier inexistant ou structure invalide
        """
        config_file = Path(path)

        if not config_file.exists():
            raise ConfigIntegrityError(f"Configuration non trouvée: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigIntegrityError(f"Erreur de parsing YAML: {e}")
        except OSError as e:
            raise ConfigIntegrityError(f"Erreur de lecture fichier: {e}")

        if raw is None:
            raw = {}

        if not isinstance(raw, dict):
            raise ConfigIntegrityError("Configuration doit être un objet YAML")

        return self.from_mapping(raw)

    def from_mapping(self, raw: Dict[str, Any]) -> SecurityConfig:
        """
        Construit la configuration depuis un dictionnaire déjà parsé.

        Raises:
            ConfigIntegrityError: Si la structure est invalide
        """
        if self.ROOT_KEY in raw:
            raw = raw[self.ROOT_KEY]
            if not isinstance(raw, dict):
                raise ConfigIntegrityError(f"{self.ROOT_KEY} doit être un objet")

        try:
            return SecurityConfig.model_validate(raw)
        except PydanticValidationError as e:
            raise ConfigIntegrityError(f"Configuration invalide: {e}")
