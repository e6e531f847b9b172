"""
AUTHCORE - Horloge injectable

Tous les composants à état lisent l'heure via une horloge injectée,
ce qui rend expirations et verrouillages déterministes en test.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Horloge par défaut: maintenant en UTC."""
    return datetime.now(timezone.utc)
