"""
Module de configuration pour l'agent de surveillance

Ce module gère la configuration de l'agent, incluant :
- Lecture des fichiers de configuration
- Validation des paramètres
- Valeurs par défaut
- Chemins spécifiques par plateforme
"""

import os
import sys
import configparser
from typing import Dict, Any, Optional


VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class AgentConfig:
    """
    Gestionnaire de configuration pour l'agent de surveillance

    Cette classe centralise la configuration de l'agent : intervalle
    d'échantillonnage, plugins actifs, API distante et journalisation.
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialise la configuration de l'agent

        Args:
            config_file: Chemin vers le fichier de configuration (optionnel)
        """
        self.config = configparser.ConfigParser()
        self.config_file = config_file or self._get_default_config_path()

        # Définir les valeurs par défaut
        self._set_defaults()

        # Charger la configuration depuis le fichier
        self._load_config()

    def _get_default_config_path(self) -> str:
        """
        Détermine le chemin par défaut du fichier de configuration selon la plateforme

        Returns:
            str: Chemin vers le fichier de configuration
        """
        if sys.platform == "win32":
            return os.path.join(
                os.environ.get("PROGRAMFILES", "C:\\Program Files"),
                "Watchman System Monitor",
                "config",
                "monitor.ini"
            )
        else:
            return "/etc/watchman-system-monitor/monitor.ini"

    def _set_defaults(self):
        """
        Définit les valeurs de configuration par défaut

        Ces valeurs sont utilisées si aucun fichier de configuration n'est trouvé
        ou si certaines sections/clés sont manquantes.
        """
        # Échantillonnage
        self.config.add_section('monitoring')
        self.config.set('monitoring', 'interval_seconds', '5')
        self.config.set('monitoring', 'command_timeout', '10')

        # Agent
        self.config.add_section('agent')
        self.config.set('agent', 'log_level', 'INFO')

        # Plugins actifs
        self.config.add_section('plugins')
        self.config.set('plugins', 'file_logger', 'true')
        self.config.set('plugins', 'api', 'false')

        # Plugin fichier
        self.config.add_section('file_logger')
        self.config.set('file_logger', 'path', self._get_default_data_path())

        # Plugin API
        self.config.add_section('api')
        self.config.set('api', 'url', 'http://localhost:8000/api/v1/metrics')
        self.config.set('api', 'auth_token', '')
        self.config.set('api', 'timeout', '30')
        self.config.set('api', 'verify_ssl', 'false')
        self.config.set('api', 'max_retries', '0')
        self.config.set('api', 'retry_delay', '2')

        # Logging
        self.config.add_section('logging')
        self.config.set('logging', 'log_file', self._get_default_log_path())
        self.config.set('logging', 'max_log_size', '10485760')  # 10MB
        self.config.set('logging', 'backup_count', '5')

    def _get_log_dir(self) -> str:
        if sys.platform == "win32":
            return os.path.join(
                os.environ.get("PROGRAMDATA", "C:\\ProgramData"),
                "WatchmanSystemMonitor",
                "logs"
            )
        return "/var/log/watchman-system-monitor"

    def _get_default_log_path(self) -> str:
        """
        Détermine le chemin par défaut des logs selon la plateforme

        Returns:
            str: Chemin vers le fichier de log
        """
        return os.path.join(self._get_log_dir(), "agent.log")

    def _get_default_data_path(self) -> str:
        """Fichier dans lequel le plugin fichier écrit les échantillons"""
        return os.path.join(self._get_log_dir(), "monitor.log")

    def _load_config(self):
        """
        Charge la configuration depuis le fichier

        Si le fichier n'existe pas, utilise les valeurs par défaut.
        En cas d'erreur de lecture, affiche l'erreur et continue avec les défauts.
        """
        try:
            if os.path.exists(self.config_file):
                self.config.read(self.config_file, encoding='utf-8')
                print(f"Configuration chargée depuis: {self.config_file}")
            else:
                print(f"Fichier de configuration non trouvé: {self.config_file}")
                print("Utilisation des valeurs par défaut")

        except configparser.Error as e:
            print(f"Erreur lors du chargement de la configuration: {e}")
            print("Utilisation des valeurs par défaut")

    def get(self, section: str, option: str, fallback: Any = None) -> str:
        """
        Récupère une valeur de configuration

        Args:
            section: Nom de la section
            option: Nom de l'option
            fallback: Valeur par défaut si non trouvée

        Returns:
            str: Valeur de configuration
        """
        return self.config.get(section, option, fallback=fallback)

    def getboolean(self, section: str, option: str, fallback: bool = False) -> bool:
        """Récupère une valeur booléenne de configuration"""
        return self.config.getboolean(section, option, fallback=fallback)

    def getint(self, section: str, option: str, fallback: int = 0) -> int:
        """Récupère une valeur entière de configuration"""
        return self.config.getint(section, option, fallback=fallback)

    def set(self, section: str, option: str, value: Any):
        """
        Définit une valeur de configuration

        Args:
            section: Nom de la section
            option: Nom de l'option
            value: Nouvelle valeur
        """
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, option, str(value))

    def save(self):
        """
        Sauvegarde la configuration dans le fichier

        Crée les dossiers parents si nécessaire.
        """
        try:
            config_dir = os.path.dirname(self.config_file)
            if config_dir and not os.path.exists(config_dir):
                os.makedirs(config_dir, exist_ok=True)

            with open(self.config_file, 'w', encoding='utf-8') as f:
                self.config.write(f)

            print(f"Configuration sauvegardée dans: {self.config_file}")

        except OSError as e:
            print(f"Erreur lors de la sauvegarde de la configuration: {e}")
            raise

    def get_monitoring_config(self) -> Dict[str, Any]:
        """
        Récupère la configuration de l'échantillonnage

        Returns:
            dict: Configuration de l'échantillonnage
        """
        return {
            'interval_seconds': self.getint('monitoring', 'interval_seconds', 5),
            'command_timeout': self.getint('monitoring', 'command_timeout', 10)
        }

    def get_plugins_config(self) -> Dict[str, bool]:
        """
        Récupère l'état d'activation de chaque plugin

        Returns:
            dict: Nom du plugin -> activé
        """
        return {
            'file_logger': self.getboolean('plugins', 'file_logger', True),
            'api': self.getboolean('plugins', 'api', False)
        }

    def get_api_config(self) -> Dict[str, Any]:
        """
        Récupère la configuration complète de l'API distante

        Returns:
            dict: Configuration API
        """
        return {
            'url': self.get('api', 'url'),
            'auth_token': self.get('api', 'auth_token', ''),
            'timeout': self.getint('api', 'timeout', 30),
            'verify_ssl': self.getboolean('api', 'verify_ssl', True),
            'max_retries': self.getint('api', 'max_retries', 0),
            'retry_delay': self.getint('api', 'retry_delay', 2)
        }

    def validate(self) -> bool:
        """
        Valide la configuration courante

        Returns:
            bool: True si la configuration est valide, False sinon
        """
        errors = []

        try:
            interval = self.getint('monitoring', 'interval_seconds')
            if interval <= 0:
                errors.append("Intervalle d'échantillonnage invalide (doit être > 0)")
        except ValueError:
            errors.append("Intervalle d'échantillonnage non numérique")

        try:
            if self.getint('monitoring', 'command_timeout') <= 0:
                errors.append("Timeout des commandes invalide (doit être > 0)")
        except ValueError:
            errors.append("Timeout des commandes non numérique")

        log_level = self.get('agent', 'log_level', 'INFO')
        if log_level.upper() not in VALID_LOG_LEVELS:
            errors.append("Niveau de log invalide")

        try:
            api_enabled = self.getboolean('plugins', 'api', False)
        except ValueError:
            errors.append("Activation du plugin API invalide")
            api_enabled = False

        if api_enabled:
            api_url = self.get('api', 'url')
            if not api_url or not api_url.startswith(('http://', 'https://')):
                errors.append("URL de l'API invalide")

        if errors:
            for error in errors:
                print(f"Erreur de configuration: {error}")
            return False

        return True


def create_default_config(config_path: str) -> AgentConfig:
    """
    Crée un fichier de configuration par défaut

    Args:
        config_path: Chemin où créer le fichier de configuration

    Returns:
        AgentConfig: Instance de configuration créée
    """
    config = AgentConfig(config_path)
    config.save()
    return config
