"""
Classe de base pour tous les providers de métriques

Ce module définit l'interface commune que tous les providers
doivent implémenter, ainsi que des utilitaires partagés :
- Isolation des erreurs au niveau de chaque métrique
- Mesure en deux points avec délai de stabilisation annulable
- Exécution de commandes et lecture de fichiers
"""

import subprocess
import threading
from collections import deque
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.errors import SamplingCancelledError, MonitorError
from ..core.logger import get_logger
from ..core.models import (
    MetricResult,
    METRIC_CPU,
    METRIC_RAM_USED,
    METRIC_RAM_TOTAL,
    METRIC_DISK_USED,
    METRIC_DISK_TOTAL,
)


BYTES_PER_MB = 1024.0 * 1024.0
DEFAULT_COMMAND_TIMEOUT = 10


class MeasurementPhase(Enum):
    """États d'une mesure en deux points"""
    PRIMED = "primed"
    SAMPLING = "sampling"
    DONE = "done"
    CANCELLED = "cancelled"


class TwoPointMeasurement:
    """
    Mesure d'un compteur cumulatif en deux lectures séparées

    PRIMED -> SAMPLING(première lecture) -> DONE(seconde lecture).
    L'attente entre les deux lectures se fait sur un Event : si l'arrêt
    est demandé pendant le délai, la mesure passe en CANCELLED.
    Une instance ne sert qu'une seule fois.
    """

    def __init__(self, read_func: Callable[[], Any], delay: float,
                 stop_event: Optional[threading.Event] = None):
        self.read_func = read_func
        self.delay = delay
        self.stop_event = stop_event or threading.Event()

        self.phase = MeasurementPhase.PRIMED
        self.first_reading = None
        self.second_reading = None

    def run(self) -> Tuple[Any, Any]:
        """
        Exécute les deux lectures

        Returns:
            tuple: (première lecture, seconde lecture)

        Raises:
            SamplingCancelledError: Arrêt demandé pendant le délai
        """
        if self.phase is not MeasurementPhase.PRIMED:
            raise MonitorError(f"Mesure déjà exécutée (état: {self.phase.value})")

        self.first_reading = self.read_func()
        self.phase = MeasurementPhase.SAMPLING

        # wait() retourne True dès que l'événement d'arrêt est positionné
        if self.stop_event.wait(timeout=self.delay):
            self.phase = MeasurementPhase.CANCELLED
            raise SamplingCancelledError("Arrêt demandé pendant le délai de stabilisation")

        self.second_reading = self.read_func()
        self.phase = MeasurementPhase.DONE
        return self.first_reading, self.second_reading


class MetricsProvider(ABC):
    """
    Classe de base abstraite pour tous les providers de métriques

    Chaque sous-classe implémente les lectures brutes (``_read_*``), qui
    peuvent lever n'importe quelle exception. Les méthodes publiques
    ``get_*`` les encapsulent : une erreur est journalisée avec l'étiquette
    de la métrique et la valeur retombe à zéro sans jamais se propager.
    """

    platform_label = "Generic"

    def __init__(self, config=None, logger=None, stop_event: Optional[threading.Event] = None):
        """
        Initialise le provider de base

        Args:
            config: Instance de AgentConfig (optionnelle)
            logger: Logger à utiliser (logger de l'agent par défaut)
            stop_event: Événement d'arrêt partagé, annule les délais de mesure
        """
        self.config = config
        self.logger = logger or get_logger()
        self.stop_event = stop_event or threading.Event()

        self.provider_name = self.__class__.__name__
        self.command_timeout = DEFAULT_COMMAND_TIMEOUT
        if config is not None:
            self.command_timeout = config.getint('monitoring', 'command_timeout', DEFAULT_COMMAND_TIMEOUT)

        # Historique borné : le provider vit aussi longtemps que le processus
        self.collection_errors = deque(maxlen=100)

    @abstractmethod
    def _read_cpu_usage(self) -> float:
        """Utilisation CPU instantanée en pourcentage"""

    @abstractmethod
    def _read_ram_used_mb(self) -> float:
        pass

    @abstractmethod
    def _read_total_ram_mb(self) -> float:
        pass

    @abstractmethod
    def _read_disk_used_mb(self) -> float:
        pass

    @abstractmethod
    def _read_total_disk_mb(self) -> float:
        pass

    def get_cpu_usage(self) -> MetricResult:
        return self._safe_metric(METRIC_CPU, self._read_cpu_usage, "CPU")

    def get_ram_used_mb(self) -> MetricResult:
        return self._safe_metric(METRIC_RAM_USED, self._read_ram_used_mb, "Memory")

    def get_total_ram_mb(self) -> MetricResult:
        return self._safe_metric(METRIC_RAM_TOTAL, self._read_total_ram_mb, "Memory")

    def get_disk_used_mb(self) -> MetricResult:
        return self._safe_metric(METRIC_DISK_USED, self._read_disk_used_mb, "Disk")

    def get_total_disk_mb(self) -> MetricResult:
        return self._safe_metric(METRIC_DISK_TOTAL, self._read_total_disk_mb, "Disk")

    def _safe_metric(self, name: str, func: Callable[[], float], scope: str) -> MetricResult:
        """
        Exécute la lecture d'une métrique de manière sécurisée

        Args:
            name: Nom de la métrique
            func: Lecture brute
            scope: Étiquette utilisée dans les logs (CPU, Memory, Disk)

        Returns:
            MetricResult: Valeur lue ou zéro avec la cause de l'échec
        """
        try:
            return MetricResult.success(name, func())
        except Exception as e:
            error_details = f"[{self.platform_label} {scope} Error] {name}: {e}"
            self.collection_errors.append(error_details)
            self.logger.warning(error_details)
            return MetricResult.failure(name, error_details)

    def _measure(self, read_func: Callable[[], Any], delay: float) -> Tuple[Any, Any]:
        """Lance une mesure en deux points sur l'événement d'arrêt du provider"""
        measurement = TwoPointMeasurement(read_func, delay, self.stop_event)
        return measurement.run()

    def _execute_command(self, command: List[str]) -> Optional[str]:
        """
        Exécute une commande système et retourne le résultat

        subprocess.run libère le processus et ses flux sur tous les chemins,
        y compris en cas de timeout.

        Args:
            command: Commande et arguments

        Returns:
            str: Sortie de la commande ou None en cas d'erreur
        """
        command_str = ' '.join(command)
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.command_timeout
            )

            if result.returncode == 0:
                return result.stdout.strip()
            else:
                self.logger.warning(f"Commande échouée: {command_str} (code: {result.returncode})")
                return None

        except subprocess.TimeoutExpired:
            self.logger.warning(f"Timeout pour la commande: {command_str}")
            return None
        except OSError as e:
            self.logger.warning(f"Erreur lors de l'exécution de '{command_str}': {e}")
            return None

    def _read_file(self, file_path: str) -> Optional[str]:
        """
        Lit un fichier de manière sécurisée

        Args:
            file_path: Chemin vers le fichier

        Returns:
            str: Contenu du fichier ou None
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            self.logger.debug(f"Fichier non trouvé: {file_path}")
            return None
        except OSError as e:
            self.logger.warning(f"Erreur lecture fichier {file_path}: {e}")
            return None

    def start_cycle(self):
        """Appelé par l'échantillonneur avant les lectures d'un cycle (rien par défaut)"""

    def close(self):
        """Libère les ressources du provider (rien par défaut)"""

    def get_collection_stats(self) -> Dict[str, Any]:
        """
        Retourne les statistiques d'erreurs du provider

        Returns:
            dict: Statistiques du provider
        """
        return {
            'provider_name': self.provider_name,
            'errors_count': len(self.collection_errors),
            'errors': list(self.collection_errors)
        }
