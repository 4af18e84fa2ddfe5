"""
Détection de la plateforme et sélection du provider

La plateforme est résolue une seule fois, à la construction de
l'échantillonneur, et reste fixe pour toute la vie du processus.
"""

import sys
from enum import Enum
from typing import Optional

from .base import MetricsProvider
from .linux import LinuxProvider
from .unsupported import UnsupportedProvider
from .windows import WindowsProvider


class PlatformType(Enum):
    """Plateformes reconnues par l'agent"""
    WINDOWS = "windows"
    LINUX = "linux"
    UNSUPPORTED = "unsupported"


def detect_platform(platform_name: Optional[str] = None) -> PlatformType:
    """
    Détermine la plateforme courante

    Args:
        platform_name: Valeur de sys.platform à utiliser (sys.platform par défaut)

    Returns:
        PlatformType: Plateforme détectée
    """
    name = platform_name or sys.platform

    if name == "win32":
        return PlatformType.WINDOWS
    elif name.startswith("linux"):
        return PlatformType.LINUX
    else:
        return PlatformType.UNSUPPORTED


def create_provider(config=None, logger=None, stop_event=None,
                    platform_type: Optional[PlatformType] = None) -> MetricsProvider:
    """
    Construit le provider correspondant à la plateforme

    Args:
        config: Instance de AgentConfig
        logger: Logger à utiliser
        stop_event: Événement d'arrêt partagé avec le planificateur
        platform_type: Plateforme imposée (détectée sinon)

    Returns:
        MetricsProvider: Provider de la plateforme
    """
    platform_type = platform_type or detect_platform()

    if platform_type is PlatformType.WINDOWS:
        return WindowsProvider(config, logger, stop_event)
    elif platform_type is PlatformType.LINUX:
        return LinuxProvider(config, logger, stop_event)
    else:
        return UnsupportedProvider(config, logger, stop_event)
