"""
Module d'échantillonnage des ressources système

Ce module orchestre la lecture des métriques :
- Sélection unique du provider de la plateforme
- Lecture séquentielle de chaque métrique, isolée des autres
- Assemblage d'un SystemUsageSnapshot toujours complet
"""

import threading
from typing import Any, Dict, List, Optional

from .models import (
    MetricResult,
    SystemUsageSnapshot,
    METRIC_CPU,
    METRIC_RAM_USED,
    METRIC_RAM_TOTAL,
    METRIC_DISK_USED,
    METRIC_DISK_TOTAL,
)
from ..providers.detector import create_provider, detect_platform


class SystemSampler:
    """
    Échantillonneur principal de l'utilisation des ressources

    ``sample()`` ne lève jamais d'exception : chaque métrique qui échoue vaut 0
    et une erreur imprévue produit un échantillon entièrement à zéro.
    Les appels concurrents sont sérialisés, car les compteurs du provider
    n'acceptent qu'un lecteur à la fois.
    """

    def __init__(self, config, logger, provider=None, stop_event: Optional[threading.Event] = None):
        """
        Initialise l'échantillonneur

        Args:
            config: Instance de AgentConfig
            logger: Instance de AgentLogger
            provider: Provider imposé (détecté selon la plateforme sinon)
            stop_event: Événement d'arrêt partagé avec le planificateur
        """
        self.config = config
        self.logger = logger.get_logger()
        self.stop_event = stop_event or threading.Event()
        self._lock = threading.Lock()

        self.platform_type = None
        self.provider = provider
        if self.provider is None:
            try:
                self.platform_type = detect_platform()
                self.provider = create_provider(config, self.logger, self.stop_event, self.platform_type)
            except Exception:
                self.logger.exception("[SystemUsage Error] Impossible de créer le provider de la plateforme")
                self.provider = None

        # Statistiques
        self.samples_taken = 0
        self.degraded_samples = 0
        self.last_snapshot: Optional[SystemUsageSnapshot] = None

        provider_name = self.provider.__class__.__name__ if self.provider else "aucun"
        self.logger.info(f"SystemSampler initialisé (provider: {provider_name})")

    def sample(self) -> SystemUsageSnapshot:
        """
        Produit un échantillon de l'utilisation des ressources

        Returns:
            SystemUsageSnapshot: Échantillon complet, zéro pour chaque métrique en échec
        """
        with self._lock:
            try:
                snapshot = self._sample_provider()
            except Exception as e:
                self.logger.error(f"[SystemUsage Error] {e}")
                snapshot = SystemUsageSnapshot.empty()

            self.samples_taken += 1
            if not snapshot.is_complete:
                self.degraded_samples += 1
                self.logger.debug(f"Métriques en échec: {', '.join(snapshot.failed_metrics)}")

            self.last_snapshot = snapshot
            return snapshot

    def _sample_provider(self) -> SystemUsageSnapshot:
        if self.provider is None:
            self.logger.debug("Aucun provider disponible, échantillon à zéro")
            return SystemUsageSnapshot.empty()

        self.provider.start_cycle()

        # Lecture séquentielle : le CPU bloque pendant le délai de stabilisation
        results = [
            self.provider.get_cpu_usage(),
            self.provider.get_ram_used_mb(),
            self.provider.get_total_ram_mb(),
            self.provider.get_disk_used_mb(),
            self.provider.get_total_disk_mb(),
        ]
        return self._build_snapshot(results)

    def _build_snapshot(self, results: List[MetricResult]) -> SystemUsageSnapshot:
        """
        Assemble l'échantillon à partir des résultats de chaque métrique

        Args:
            results: Résultats retournés par le provider

        Returns:
            SystemUsageSnapshot: Échantillon normalisé
        """
        values = {result.name: result.value if result.ok else 0.0 for result in results}
        failed = tuple(result.name for result in results if not result.ok)

        cpu = values.get(METRIC_CPU, 0.0)
        clamped_cpu = min(max(cpu, 0.0), 100.0)
        if clamped_cpu != cpu:
            self.logger.debug(f"Utilisation CPU hors bornes ramenée à {clamped_cpu}: {cpu}")

        ram_used = self._cap_used(values.get(METRIC_RAM_USED, 0.0), values.get(METRIC_RAM_TOTAL, 0.0), "RAM")
        disk_used = self._cap_used(values.get(METRIC_DISK_USED, 0.0), values.get(METRIC_DISK_TOTAL, 0.0), "Disk")

        return SystemUsageSnapshot(
            cpu_usage_percent=clamped_cpu,
            ram_used_mb=ram_used,
            total_ram_mb=values.get(METRIC_RAM_TOTAL, 0.0),
            disk_used_mb=disk_used,
            total_disk_mb=values.get(METRIC_DISK_TOTAL, 0.0),
            failed_metrics=failed,
        )

    def _cap_used(self, used: float, total: float, label: str) -> float:
        """Plafonne l'utilisé au total quand les deux valeurs ont été mesurées"""
        if used and total and used > total:
            self.logger.debug(f"{label} utilisé ({used:.2f} MB) supérieur au total ({total:.2f} MB)")
            return total
        return used

    def close(self):
        """Libère les ressources du provider"""
        if self.provider is not None:
            self.provider.close()

    def get_stats(self) -> Dict[str, Any]:
        """
        Retourne les statistiques d'échantillonnage

        Returns:
            dict: Statistiques de l'échantillonneur et du provider
        """
        return {
            'platform': self.platform_type.value if self.platform_type else None,
            'provider': self.provider.__class__.__name__ if self.provider else None,
            'samples_taken': self.samples_taken,
            'degraded_samples': self.degraded_samples,
            'last_snapshot': self.last_snapshot.to_dict() if self.last_snapshot else None,
            'provider_stats': self.provider.get_collection_stats() if self.provider else None,
        }
