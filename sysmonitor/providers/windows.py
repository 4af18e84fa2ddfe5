"""
Provider de métriques spécifique Windows

Ce module utilise les API Windows :
- Compteurs de performance PDH (pywin32 / win32pdh)
- WMI pour la mémoire physique visible
- Énumération des volumes (psutil)
"""

import psutil

from .base import MetricsProvider, BYTES_PER_MB
from ..core.errors import MetricUnavailableError


CPU_COUNTER_PATH = r"\Processor(_Total)\% Processor Time"
AVAILABLE_MEMORY_COUNTER_PATH = r"\Memory\Available MBytes"
TOTAL_MEMORY_QUERY = "SELECT TotalVisibleMemorySize FROM Win32_OperatingSystem"


class PerformanceCounter:
    """
    Compteur de performance PDH ouvert pour la durée de vie du provider

    Chaque compteur a sa propre requête PDH : une collecte sur un compteur
    ne décale pas la fenêtre de mesure d'un autre.
    """

    def __init__(self, counter_path: str):
        import win32pdh

        self._pdh = win32pdh
        self.counter_path = counter_path
        self._query = win32pdh.OpenQuery()
        try:
            # Chemin anglais, indépendant de la langue du système
            self._counter = win32pdh.AddEnglishCounter(self._query, counter_path)
        except Exception:
            win32pdh.CloseQuery(self._query)
            raise

    def prime(self):
        """Première collecte, sans lecture : un compteur de taux a besoin de deux collectes"""
        self._pdh.CollectQueryData(self._query)

    def next_value(self) -> float:
        """Collecte puis retourne la valeur formatée du compteur"""
        self._pdh.CollectQueryData(self._query)
        _, value = self._pdh.GetFormattedCounterValue(self._counter, self._pdh.PDH_FMT_DOUBLE)
        return float(value)

    def close(self):
        if self._query is not None:
            self._pdh.CloseQuery(self._query)
            self._query = None


class WindowsProvider(MetricsProvider):
    """
    Provider spécifique pour Windows

    Le CPU et la mémoire disponible viennent de compteurs PDH acquis à la
    construction, la mémoire totale d'une requête WMI et le disque du
    premier volume fixe prêt. Les compteurs ne doivent pas être lus par
    deux cycles en parallèle.
    """

    platform_label = "Windows"
    cpu_settle_delay = 1.0

    def __init__(self, config=None, logger=None, stop_event=None,
                 cpu_counter=None, memory_counter=None, wmi_connection=None,
                 counter_factory=PerformanceCounter):
        """
        Initialise le provider Windows et amorce le compteur CPU

        Args:
            config: Instance de AgentConfig
            logger: Logger à utiliser
            stop_event: Événement d'arrêt partagé
            cpu_counter: Compteur CPU déjà ouvert (optionnel)
            memory_counter: Compteur de mémoire disponible déjà ouvert (optionnel)
            wmi_connection: Connexion WMI réutilisée (optionnelle)
            counter_factory: Fabrique de compteurs à partir d'un chemin PDH
        """
        super().__init__(config, logger, stop_event)
        self.counter_factory = counter_factory
        self._wmi = wmi_connection
        self._cycle_total_ram_mb = None

        self.cpu_counter = cpu_counter if cpu_counter is not None else self._open_counter(CPU_COUNTER_PATH)
        self.memory_counter = (memory_counter if memory_counter is not None
                               else self._open_counter(AVAILABLE_MEMORY_COUNTER_PATH))

        # La première lecture après acquisition donne 0 ou 100, on la jette
        if self.cpu_counter is not None:
            try:
                self.cpu_counter.prime()
            except Exception as e:
                self.logger.warning(f"[Windows CPU Error] Amorçage du compteur impossible: {e}")

    def _open_counter(self, counter_path: str):
        try:
            return self.counter_factory(counter_path)
        except Exception as e:
            self.logger.warning(f"[Windows Counter Error] Ouverture de {counter_path} impossible: {e}")
            return None

    def _require_counter(self, counter, counter_path: str):
        if counter is None:
            raise MetricUnavailableError(f"Compteur {counter_path} non disponible")
        return counter

    def _read_cpu_usage(self) -> float:
        counter = self._require_counter(self.cpu_counter, CPU_COUNTER_PATH)
        _, second_reading = self._measure(counter.next_value, self.cpu_settle_delay)
        return second_reading

    def start_cycle(self):
        self._cycle_total_ram_mb = None

    def _total_ram_for_cycle(self) -> float:
        """Mémoire totale interrogée une seule fois par cycle, partagée par utilisé et total"""
        if self._cycle_total_ram_mb is None:
            self._cycle_total_ram_mb = self._query_wmi_total_ram_mb()
        return self._cycle_total_ram_mb

    def _read_total_ram_mb(self) -> float:
        return self._total_ram_for_cycle()

    def _query_wmi_total_ram_mb(self) -> float:
        if self._wmi is not None:
            return self._query_total_memory_mb(self._wmi)

        # Le thread du planificateur doit initialiser COM avant d'utiliser WMI
        import pythoncom
        import wmi

        pythoncom.CoInitialize()
        try:
            return self._query_total_memory_mb(wmi.WMI())
        finally:
            pythoncom.CoUninitialize()

    def _query_total_memory_mb(self, connection) -> float:
        for os_info in connection.query(TOTAL_MEMORY_QUERY):
            return float(os_info.TotalVisibleMemorySize) / 1024.0
        raise MetricUnavailableError("Win32_OperatingSystem sans résultat")

    def _read_ram_used_mb(self) -> float:
        counter = self._require_counter(self.memory_counter, AVAILABLE_MEMORY_COUNTER_PATH)
        total_mb = self._total_ram_for_cycle()
        return total_mb - counter.next_value()

    def _primary_fixed_volume_usage(self):
        """
        Retourne l'utilisation du premier volume fixe prêt

        Raises:
            MetricUnavailableError: Aucun volume fixe prêt
        """
        for partition in psutil.disk_partitions(all=False):
            if 'fixed' not in partition.opts.split(','):
                continue
            try:
                return psutil.disk_usage(partition.mountpoint)
            except OSError as e:
                # Volume non prêt (lecteur sans média, BitLocker verrouillé...)
                self.logger.debug(f"Volume {partition.mountpoint} ignoré: {e}")

        raise MetricUnavailableError("Aucun volume fixe prêt")

    def _read_disk_used_mb(self) -> float:
        return self._primary_fixed_volume_usage().used / BYTES_PER_MB

    def _read_total_disk_mb(self) -> float:
        return self._primary_fixed_volume_usage().total / BYTES_PER_MB

    def close(self):
        """Ferme les requêtes PDH"""
        for counter in (self.cpu_counter, self.memory_counter):
            if counter is None:
                continue
            try:
                counter.close()
            except Exception as e:
                self.logger.warning(f"[Windows Counter Error] Fermeture impossible: {e}")
        self.cpu_counter = None
        self.memory_counter = None
