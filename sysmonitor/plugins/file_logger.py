"""
Plugin d'écriture des échantillons dans un fichier texte
"""

import os

from .base import MonitorPlugin
from ..core.models import SystemUsageSnapshot


class FileLoggerPlugin(MonitorPlugin):
    """Ajoute une ligne horodatée par échantillon au fichier configuré"""

    def __init__(self, config, logger, file_path: str = None):
        super().__init__(config, logger)
        self.file_path = file_path or config.get('file_logger', 'path')
        self.lines_written = 0

        self.logger.info(f"FileLoggerPlugin initialisé (fichier: {self.file_path})")

    def format_entry(self, snapshot: SystemUsageSnapshot) -> str:
        entry = f"{snapshot.timestamp.isoformat()} | {snapshot.format_line()}"
        if snapshot.failed_metrics:
            entry += f" | failed: {','.join(snapshot.failed_metrics)}"
        return entry

    def consume(self, snapshot: SystemUsageSnapshot) -> bool:
        try:
            log_dir = os.path.dirname(self.file_path)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir, exist_ok=True)

            with open(self.file_path, 'a', encoding='utf-8') as f:
                f.write(self.format_entry(snapshot) + '\n')

            self.lines_written += 1
            return True

        except OSError as e:
            self.logger.error(f"Erreur écriture {self.file_path}: {e}")
            return False
