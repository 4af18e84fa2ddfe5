"""
Watchman System Monitor - Surveillance multi-plateforme des ressources

Ce module principal fournit un agent qui échantillonne périodiquement
l'utilisation des ressources de l'hôte (CPU, mémoire, disque) et transmet
chaque échantillon à des plugins (fichier de log, API distante).

Author: Watchman Agent Client Team
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Watchman Agent Client Team"

# Imports principaux pour faciliter l'utilisation
from .core.config import AgentConfig
from .core.logger import AgentLogger
from .core.models import SystemUsageSnapshot
from .core.sampler import SystemSampler

__all__ = ['AgentConfig', 'AgentLogger', 'SystemUsageSnapshot', 'SystemSampler']
