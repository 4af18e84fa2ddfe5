"""
Package des providers de métriques par plateforme

Ce package contient les providers qui lisent l'utilisation des
ressources avec les sources propres à chaque système d'exploitation :
- Windows (compteurs de performance PDH, WMI, volumes)
- Linux (/proc/stat, /proc/meminfo, df)
- Plateformes non supportées (toutes les métriques à zéro)
"""

from .base import MetricsProvider
from .detector import PlatformType, detect_platform, create_provider

__all__ = ['MetricsProvider', 'PlatformType', 'detect_platform', 'create_provider']
