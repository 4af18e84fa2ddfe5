import threading

import pytest

from sysmonitor.core.config import AgentConfig
from sysmonitor.core.logger import AgentLogger
from sysmonitor.core.models import MetricResult
from sysmonitor.providers.base import MetricsProvider


@pytest.fixture
def config(tmp_path):
    cfg = AgentConfig(str(tmp_path / "monitor.ini"))
    cfg.set('logging', 'log_file', str(tmp_path / "agent.log"))
    cfg.set('file_logger', 'path', str(tmp_path / "samples" / "monitor.log"))
    return cfg


@pytest.fixture
def agent_logger(config):
    return AgentLogger(config)


@pytest.fixture
def stop_event():
    return threading.Event()


class StubProvider(MetricsProvider):
    """Provider de test : chaque lecture renvoie la valeur suivante ou lève l'exception fournie"""

    platform_label = "Stub"

    def __init__(self, **readings):
        super().__init__()
        self.readings = {name: list(values) for name, values in readings.items()}
        self.closed = False

    def _next(self, name):
        values = self.readings.get(name)
        if not values:
            raise RuntimeError(f"{name} indisponible")
        value = values.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    def _read_cpu_usage(self):
        return self._next('cpu')

    def _read_ram_used_mb(self):
        return self._next('ram_used')

    def _read_total_ram_mb(self):
        return self._next('ram_total')

    def _read_disk_used_mb(self):
        return self._next('disk_used')

    def _read_total_disk_mb(self):
        return self._next('disk_total')

    def close(self):
        self.closed = True


class BrokenProvider(StubProvider):
    """Provider dont la méthode publique elle-même lève une exception"""

    def get_cpu_usage(self) -> MetricResult:
        raise RuntimeError("panne inattendue")


@pytest.fixture
def stub_provider_cls():
    return StubProvider


@pytest.fixture
def broken_provider_cls():
    return BrokenProvider
