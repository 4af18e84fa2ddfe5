"""
Journalisation de l'agent de surveillance

Un seul logger nommé est partagé par tous les composants. L'historique va
dans un fichier avec rotation (section [logging]), les avertissements sont
aussi affichés sur stderr. Le chemin du fichier vient toujours de la
configuration, qui porte les valeurs par défaut de chaque plateforme.
"""

import os
import sys
import logging
import logging.handlers


LOGGER_NAME = 'WatchmanSystemMonitor'

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class AgentLogger:
    """
    Configure le logger de l'agent à partir d'une AgentConfig

    Les handlers ne sont attachés qu'une fois par processus : les instances
    suivantes réutilisent le logger déjà configuré.
    """

    def __init__(self, config):
        self.config = config
        self.log_file = config.get('logging', 'log_file')
        self.logger = logging.getLogger(LOGGER_NAME)

        if not self.logger.handlers:
            self._configure()

    def _configure(self):
        level_name = self.config.get('agent', 'log_level', 'INFO').upper()
        level = getattr(logging, level_name, logging.INFO)
        self.logger.setLevel(level)

        file_handler = self._build_file_handler(level)
        if file_handler is not None:
            self.logger.addHandler(file_handler)

        # stdout reçoit déjà la ligne de chaque cycle
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(max(level, logging.WARNING))
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        self.logger.addHandler(console_handler)

        self.logger.info(f"Journalisation initialisée (niveau {level_name}, fichier {self.log_file})")

    def _build_file_handler(self, level):
        """
        Crée le handler fichier avec rotation

        Returns:
            RotatingFileHandler ou None si le fichier ne peut pas être ouvert
        """
        try:
            log_dir = os.path.dirname(self.log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            handler = logging.handlers.RotatingFileHandler(
                filename=self.log_file,
                maxBytes=self.config.getint('logging', 'max_log_size', 10485760),
                backupCount=self.config.getint('logging', 'backup_count', 5),
                encoding='utf-8'
            )
        except OSError as e:
            print(f"Journal fichier indisponible ({self.log_file}): {e}", file=sys.stderr)
            return None

        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        return handler

    def get_logger(self) -> logging.Logger:
        return self.logger

    def log_startup_info(self):
        """
        Journalise la plateforme et la configuration effective

        Le token d'API n'apparaît que masqué.
        """
        self.logger.info(
            f"Plateforme: {sys.platform} | Python {sys.version.split()[0]} | "
            f"Répertoire de travail: {os.getcwd()}"
        )

        sections = {
            'monitoring': self.config.get_monitoring_config(),
            'plugins': self.config.get_plugins_config(),
            'api': self.config.get_api_config(),
        }
        for section, values in sections.items():
            for key, value in values.items():
                if key == 'auth_token':
                    value = mask_token(value)
                self.logger.info(f"{section}.{key} = {value}")


def mask_token(token: str) -> str:
    """Ne garde que les 4 premiers caractères d'un token"""
    if not token:
        return "non configuré"
    if len(token) <= 8:
        return "***"
    return token[:4] + "..."


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Logger de l'agent, pour les composants construits sans AgentLogger"""
    return logging.getLogger(name)
