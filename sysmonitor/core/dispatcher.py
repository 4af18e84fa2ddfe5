"""
Distribution des échantillons aux plugins

Chaque échantillon est remis à tous les plugins actifs ; l'échec d'un
plugin est journalisé et n'affecte ni les autres ni le cycle suivant.
"""

from typing import Dict, List, Optional

from .models import SystemUsageSnapshot
from ..plugins.api import ApiPlugin
from ..plugins.base import MonitorPlugin
from ..plugins.file_logger import FileLoggerPlugin


# Nom de l'option dans la section [plugins] -> classe du plugin
PLUGIN_REGISTRY = {
    'file_logger': FileLoggerPlugin,
    'api': ApiPlugin,
}


class PluginDispatcher:
    """Remet chaque échantillon à l'ensemble des plugins actifs"""

    def __init__(self, config, logger, plugins: Optional[List[MonitorPlugin]] = None):
        """
        Args:
            config: Instance de AgentConfig
            logger: Instance de AgentLogger
            plugins: Plugins imposés (construits depuis la configuration sinon)
        """
        self.config = config
        self.agent_logger = logger
        self.logger = logger.get_logger()

        self.plugins = plugins if plugins is not None else self._load_plugins()
        self.failures: Dict[str, int] = {plugin.name: 0 for plugin in self.plugins}

        names = ', '.join(plugin.name for plugin in self.plugins) or 'aucun'
        self.logger.info(f"PluginDispatcher initialisé (plugins: {names})")

    def _load_plugins(self) -> List[MonitorPlugin]:
        plugins = []
        for key, enabled in self.config.get_plugins_config().items():
            if not enabled:
                continue
            try:
                plugins.append(PLUGIN_REGISTRY[key](self.config, self.agent_logger))
            except Exception as e:
                self.logger.error(f"[Plugin Error] Chargement de '{key}' impossible: {e}")
        return plugins

    def dispatch(self, snapshot: SystemUsageSnapshot) -> Dict[str, bool]:
        """
        Remet l'échantillon à chaque plugin

        Args:
            snapshot: Échantillon du cycle

        Returns:
            dict: Nom du plugin -> succès
        """
        results = {}

        for plugin in self.plugins:
            try:
                success = bool(plugin.consume(snapshot))
            except Exception as e:
                self.logger.error(f"[Plugin Error] {plugin.name}: {e}")
                success = False

            if not success:
                self.failures[plugin.name] = self.failures.get(plugin.name, 0) + 1
            results[plugin.name] = success

        return results

    def close(self):
        for plugin in self.plugins:
            try:
                plugin.close()
            except Exception as e:
                self.logger.warning(f"[Plugin Error] Fermeture de {plugin.name}: {e}")
