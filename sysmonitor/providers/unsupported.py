"""
Provider pour les plateformes ni Windows ni Linux

Aucune source de métriques n'est utilisée : toutes les valeurs valent 0.
"""

import sys

from .base import MetricsProvider
from ..core.errors import MetricUnavailableError
from ..core.models import MetricResult


class UnsupportedProvider(MetricsProvider):
    """Provider sélectionné quand la plateforme n'est pas supportée"""

    platform_label = "Unsupported"

    def __init__(self, config=None, logger=None, stop_event=None, platform_name: str = None):
        super().__init__(config, logger, stop_event)
        self.platform_name = platform_name or sys.platform
        self.logger.warning(
            f"Plateforme non supportée ({self.platform_name}): toutes les métriques vaudront 0"
        )

    def _unavailable(self) -> float:
        raise MetricUnavailableError(f"Plateforme non supportée: {self.platform_name}")

    _read_cpu_usage = _unavailable
    _read_ram_used_mb = _unavailable
    _read_total_ram_mb = _unavailable
    _read_disk_used_mb = _unavailable
    _read_total_disk_mb = _unavailable

    def _safe_metric(self, name, func, scope) -> MetricResult:
        # Déjà signalé au démarrage, inutile d'avertir à chaque cycle
        try:
            return MetricResult.success(name, func())
        except MetricUnavailableError as e:
            self.logger.debug(f"[{self.platform_label} {scope}] {name}: {e}")
            return MetricResult.failure(name, str(e))
