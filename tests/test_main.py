import json
from unittest import mock

from sysmonitor import main as main_module
from sysmonitor.main import SystemMonitorAgent


def write_config(config, tmp_path):
    config.set('file_logger', 'path', str(tmp_path / "monitor.log"))
    config.save()
    return config.config_file


def test_run_once_prints_and_dispatches(config, tmp_path, capsys, stub_provider_cls):
    config_path = write_config(config, tmp_path)
    provider = stub_provider_cls(cpu=[10.0], ram_used=[1.0], ram_total=[2.0], disk_used=[3.0], disk_total=[4.0])

    with mock.patch('sysmonitor.core.sampler.create_provider', return_value=provider):
        agent = SystemMonitorAgent(config_path)
        snapshot = agent.run_once()

    assert "CPU: 10.00% | RAM: 1.00/2.00 MB | Disk: 3.00/4.00 MB" in capsys.readouterr().out
    assert snapshot.is_complete
    assert provider.closed
    assert "CPU: 10.00%" in (tmp_path / "monitor.log").read_text(encoding='utf-8')


def test_main_once_writes_output(config, tmp_path, stub_provider_cls):
    config_path = write_config(config, tmp_path)
    output = tmp_path / "sample.json"
    argv = ['watchman-system-monitor', '--config', config_path, '--mode', 'once', '--output', str(output)]

    with mock.patch('sysmonitor.core.sampler.create_provider', return_value=stub_provider_cls()), \
            mock.patch('sys.argv', argv):
        assert main_module.main() == 0

    data = json.loads(output.read_text(encoding='utf-8'))
    assert data['cpu_usage_percent'] == 0.0
    assert len(data['failed_metrics']) == 5


def test_main_create_and_validate_config(tmp_path):
    config_path = str(tmp_path / "new" / "monitor.ini")

    with mock.patch('sys.argv', ['watchman-system-monitor', '--config', config_path, '--create-config']):
        assert main_module.main() == 0

    with mock.patch('sys.argv', ['watchman-system-monitor', '--config', config_path, '--validate-config']):
        assert main_module.main() == 0


def test_test_mode_checks_api_connection(config, tmp_path, capsys, stub_provider_cls):
    config.set('plugins', 'api', 'true')
    config.set('api', 'url', 'https://metrics.example.com/api/v1/metrics')
    config.set('api', 'max_retries', '0')
    config_path = write_config(config, tmp_path)

    with mock.patch('sysmonitor.core.sampler.create_provider', return_value=stub_provider_cls()), \
            mock.patch('sysmonitor.plugins.api.requests.post', return_value=mock.Mock(status_code=200)), \
            mock.patch('sysmonitor.plugins.api.requests.get', return_value=mock.Mock(status_code=405)):
        agent = SystemMonitorAgent(config_path)
        status = agent.run_test_mode()

    assert "Connexion API: Connexion OK" in capsys.readouterr().out
    assert status['sampler']['samples_taken'] == 1
    assert status['plugins']['api']['total_attempts'] == 1
    assert status['plugins']['file_logger'] == {'failures': 0}
    assert status['scheduler'] is None
