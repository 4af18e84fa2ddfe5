"""
Package des plugins consommateurs d'échantillons

Chaque plugin reçoit les échantillons produits à chaque cycle :
- Plugin fichier (une ligne par échantillon)
- Plugin API (envoi HTTP vers un serveur central)
"""

from .base import MonitorPlugin
from .file_logger import FileLoggerPlugin
from .api import ApiPlugin

__all__ = ['MonitorPlugin', 'FileLoggerPlugin', 'ApiPlugin']
