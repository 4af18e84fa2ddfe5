"""
Classe de base des plugins consommateurs d'échantillons
"""

from abc import ABC, abstractmethod

from ..core.models import SystemUsageSnapshot


class MonitorPlugin(ABC):
    """
    Classe de base abstraite pour tous les plugins

    Un plugin reçoit chaque échantillon une fois produit. Ses erreurs
    sont isolées par le PluginDispatcher et n'empêchent ni la livraison
    aux autres plugins ni le cycle suivant.
    """

    def __init__(self, config, logger):
        """
        Args:
            config: Instance de AgentConfig
            logger: Instance de AgentLogger
        """
        self.config = config
        self.logger = logger.get_logger()
        self.name = self.__class__.__name__

    @abstractmethod
    def consume(self, snapshot: SystemUsageSnapshot) -> bool:
        """
        Traite un échantillon

        Returns:
            bool: True si l'échantillon a été traité
        """

    def close(self):
        """Libère les ressources du plugin (rien par défaut)"""
