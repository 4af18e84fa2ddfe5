"""
Modèle de données des échantillons de ressources

Un échantillon est produit à chaque cycle, n'est jamais modifié après sa
construction et appartient uniquement à l'appelant qui l'a demandé.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, Optional, Tuple


# Noms des métriques (identiques aux champs de SystemUsageSnapshot)
METRIC_CPU = 'cpu_usage_percent'
METRIC_RAM_USED = 'ram_used_mb'
METRIC_RAM_TOTAL = 'total_ram_mb'
METRIC_DISK_USED = 'disk_used_mb'
METRIC_DISK_TOTAL = 'total_disk_mb'

ALL_METRICS = (
    METRIC_CPU,
    METRIC_RAM_USED,
    METRIC_RAM_TOTAL,
    METRIC_DISK_USED,
    METRIC_DISK_TOTAL,
)


@dataclass(frozen=True)
class MetricResult:
    """
    Résultat d'une lecture de métrique

    Soit une valeur mesurée, soit zéro accompagné de la cause de l'échec
    (déjà journalisée par le provider).
    """
    name: str
    value: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, name: str, value: float) -> 'MetricResult':
        return cls(name=name, value=float(value))

    @classmethod
    def failure(cls, name: str, error: str) -> 'MetricResult':
        return cls(name=name, value=0.0, error=error)


@dataclass(frozen=True)
class SystemUsageSnapshot:
    """
    Échantillon d'utilisation des ressources système

    Les valeurs de mémoire et de disque sont exprimées en mégaoctets,
    le disque ne concerne que le volume fixe principal. Une métrique
    qui n'a pas pu être mesurée vaut 0 et son nom figure dans
    ``failed_metrics``.
    """
    cpu_usage_percent: float = 0.0
    ram_used_mb: float = 0.0
    total_ram_mb: float = 0.0
    disk_used_mb: float = 0.0
    total_disk_mb: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    failed_metrics: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> 'SystemUsageSnapshot':
        """Échantillon entièrement à zéro, toutes les métriques en échec"""
        return cls(failed_metrics=ALL_METRICS)

    @property
    def is_complete(self) -> bool:
        return not self.failed_metrics

    def to_dict(self) -> Dict[str, Any]:
        """
        Convertit l'échantillon en dictionnaire sérialisable en JSON

        Returns:
            dict: Données de l'échantillon
        """
        return {
            'timestamp': self.timestamp.isoformat(),
            'cpu_usage_percent': round(self.cpu_usage_percent, 2),
            'ram_used_mb': round(self.ram_used_mb, 2),
            'total_ram_mb': round(self.total_ram_mb, 2),
            'disk_used_mb': round(self.disk_used_mb, 2),
            'total_disk_mb': round(self.total_disk_mb, 2),
            'failed_metrics': list(self.failed_metrics),
        }

    def format_line(self) -> str:
        """Ligne lisible utilisée par la console et le plugin fichier"""
        return (
            f"CPU: {self.cpu_usage_percent:.2f}% | "
            f"RAM: {self.ram_used_mb:.2f}/{self.total_ram_mb:.2f} MB | "
            f"Disk: {self.disk_used_mb:.2f}/{self.total_disk_mb:.2f} MB"
        )
