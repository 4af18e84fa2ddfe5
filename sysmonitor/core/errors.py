"""
Exceptions de l'agent de surveillance

Ces exceptions ne sortent jamais de l'échantillonneur : elles sont
capturées au niveau de chaque métrique, journalisées, puis converties
en valeur nulle.
"""


class MonitorError(Exception):
    """Erreur de base de l'agent de surveillance"""


class MetricUnavailableError(MonitorError):
    """La source d'une métrique est absente, vide ou inexploitable"""


class SamplingCancelledError(MonitorError):
    """L'arrêt a été demandé pendant le délai de stabilisation d'une mesure"""
