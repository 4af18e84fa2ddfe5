"""
Provider de métriques spécifique Linux

Ce module utilise les interfaces Linux :
- /proc/stat pour les compteurs de temps CPU agrégés
- /proc/meminfo pour la mémoire
- Requête directe du système de fichiers racine (psutil) et ``df -m /``
"""

from typing import Callable, Dict, List, NamedTuple, Optional

import psutil

from .base import MetricsProvider, BYTES_PER_MB
from ..core.errors import MetricUnavailableError


PROC_STAT_PATH = '/proc/stat'
PROC_MEMINFO_PATH = '/proc/meminfo'
ROOT_PATH = '/'
DF_COMMAND = ['df', '-m', '/']

# Le préfixe avec espace distingue la ligne agrégée des lignes par cœur (cpu0, cpu1...)
AGGREGATE_CPU_PREFIX = 'cpu '
MEMINFO_KEYS = ('MemTotal', 'MemAvailable')


class CpuTimeSample(NamedTuple):
    """Compteurs cumulés depuis le démarrage, seul l'écart entre deux lectures a un sens"""
    idle_ticks: int
    total_ticks: int


def _to_int(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        return 0


def parse_cpu_times(stat_content: str) -> CpuTimeSample:
    """
    Extrait les temps idle et total de la ligne CPU agrégée

    idle = idle + iowait (champs 3 et 4), total = somme de tous les champs.
    Une ligne absente ou de moins de 5 champs donne (0, 0).

    Args:
        stat_content: Contenu de /proc/stat

    Returns:
        CpuTimeSample: Compteurs idle et total
    """
    cpu_line = next(
        (line for line in stat_content.splitlines() if line.startswith(AGGREGATE_CPU_PREFIX)),
        None
    )
    if not cpu_line or not cpu_line.strip():
        return CpuTimeSample(0, 0)

    fields = [_to_int(token) for token in cpu_line.split()[1:]]
    if len(fields) < 5:
        return CpuTimeSample(0, 0)

    return CpuTimeSample(idle_ticks=fields[3] + fields[4], total_ticks=sum(fields))


def compute_cpu_usage(first: CpuTimeSample, second: CpuTimeSample) -> float:
    """
    Calcule l'utilisation CPU entre deux lectures

    Returns:
        float: 100 * (1 - Δidle / Δtotal), 0 si aucun tick ne s'est écoulé
    """
    idle_delta = second.idle_ticks - first.idle_ticks
    total_delta = second.total_ticks - first.total_ticks

    # Compteurs figés ou revenus en arrière (anomalie d'horloge)
    if total_delta <= 0:
        return 0.0

    return 100.0 * (1.0 - idle_delta / total_delta)


def parse_meminfo(meminfo_content: str) -> Dict[str, float]:
    """
    Extrait MemTotal et MemAvailable de /proc/meminfo (valeurs en kB)

    Les autres lignes sont ignorées, une clé absente vaut 0.

    Raises:
        ValueError: Valeur non numérique pour une clé recherchée
    """
    values = {key: 0.0 for key in MEMINFO_KEYS}

    for line in meminfo_content.splitlines():
        key, separator, rest = line.partition(':')
        if not separator or key.strip() not in values:
            continue
        tokens = rest.split()
        if not tokens:
            raise ValueError(f"Valeur manquante pour {key.strip()}")
        values[key.strip()] = float(tokens[0])

    return values


def parse_df_total_mb(df_output: str) -> float:
    """
    Extrait la capacité totale (Mo) de la sortie de ``df -m /``

    Le second champ de la première ligne après l'en-tête. Quand le nom du
    système de fichiers est trop long, df le place seul sur sa ligne et
    renvoie les valeurs à la ligne suivante.

    Raises:
        MetricUnavailableError: Sortie vide ou sans ligne de données
        ValueError: Champ non numérique
    """
    lines = [line for line in df_output.splitlines() if line.strip()]
    if len(lines) < 2:
        raise MetricUnavailableError("Sortie df sans ligne de données")

    parts = ' '.join(lines[1:]).split()
    if len(parts) < 2:
        raise MetricUnavailableError(f"Ligne df inexploitable: {lines[1]!r}")

    return float(parts[1])


class LinuxProvider(MetricsProvider):
    """
    Provider spécifique pour Linux

    Le CPU est mesuré par deux lectures de /proc/stat séparées de 1,5 s,
    la mémoire est lue dans /proc/meminfo et le disque concerne le volume
    racine. La capacité totale du disque vient de ``df``, plus fiable que
    la requête directe sur certains systèmes virtualisés.
    """

    platform_label = "Linux"
    cpu_settle_delay = 1.5

    def __init__(self, config=None, logger=None, stop_event=None,
                 command_runner: Optional[Callable[[List[str]], Optional[str]]] = None,
                 proc_stat_path: str = PROC_STAT_PATH,
                 meminfo_path: str = PROC_MEMINFO_PATH):
        """
        Initialise le provider Linux

        Args:
            config: Instance de AgentConfig
            logger: Logger à utiliser
            stop_event: Événement d'arrêt partagé
            command_runner: Exécute une commande et retourne sa sortie (None si échec)
            proc_stat_path: Chemin de /proc/stat
            meminfo_path: Chemin de /proc/meminfo
        """
        super().__init__(config, logger, stop_event)
        self.command_runner = command_runner or self._execute_command
        self.proc_stat_path = proc_stat_path
        self.meminfo_path = meminfo_path

    def read_cpu_times(self) -> CpuTimeSample:
        """Lit les compteurs CPU agrégés"""
        content = self._read_file(self.proc_stat_path)
        if content is None:
            raise MetricUnavailableError(f"{self.proc_stat_path} illisible")
        return parse_cpu_times(content)

    def _read_cpu_usage(self) -> float:
        first, second = self._measure(self.read_cpu_times, self.cpu_settle_delay)
        return compute_cpu_usage(first, second)

    def _read_meminfo(self) -> Dict[str, float]:
        content = self._read_file(self.meminfo_path)
        if content is None:
            raise MetricUnavailableError(f"{self.meminfo_path} illisible")
        return parse_meminfo(content)

    def _read_ram_used_mb(self) -> float:
        # Peut être négatif si MemTotal manque, la valeur est remontée telle quelle
        meminfo = self._read_meminfo()
        return (meminfo['MemTotal'] - meminfo['MemAvailable']) / 1024.0

    def _read_total_ram_mb(self) -> float:
        return self._read_meminfo()['MemTotal'] / 1024.0

    def _read_disk_used_mb(self) -> float:
        # used = (f_blocks - f_bfree) : les blocs réservés à root ne comptent pas
        return psutil.disk_usage(ROOT_PATH).used / BYTES_PER_MB

    def _read_total_disk_mb(self) -> float:
        output = self.command_runner(DF_COMMAND)
        if not output:
            raise MetricUnavailableError(f"Aucune sortie pour '{' '.join(DF_COMMAND)}'")
        return parse_df_total_mb(output)
