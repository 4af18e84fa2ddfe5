import subprocess
from collections import namedtuple
from unittest import mock

import pytest

from sysmonitor.core.errors import MetricUnavailableError
from sysmonitor.providers.linux import (
    DF_COMMAND,
    CpuTimeSample,
    LinuxProvider,
    compute_cpu_usage,
    parse_cpu_times,
    parse_df_total_mb,
    parse_meminfo,
)

MB = 1024 * 1024
DiskUsage = namedtuple('DiskUsage', 'total used free percent')

DF_OUTPUT = (
    "Filesystem     1M-blocks  Used Available Use% Mounted on\n"
    "/dev/sda1         100000 40000     60000  40% /\n"
)


def make_provider(tmp_path, stop_event=None, **kwargs):
    provider = LinuxProvider(
        stop_event=stop_event,
        proc_stat_path=str(tmp_path / "stat"),
        meminfo_path=str(tmp_path / "meminfo"),
        **kwargs
    )
    provider.cpu_settle_delay = 0
    return provider


class TestParseCpuTimes:
    def test_aggregate_line(self):
        sample = parse_cpu_times("cpu 100 0 100 600 200 0 0 0\n")
        assert sample == CpuTimeSample(idle_ticks=800, total_ticks=1000)

    def test_real_proc_stat_layout(self):
        content = (
            "cpu  100 0 100 600 200 0 0 0 0 0\n"
            "cpu0 50 0 50 300 100 0 0 0 0 0\n"
            "intr 12345 0 0\n"
        )
        assert parse_cpu_times(content) == CpuTimeSample(800, 1000)

    def test_per_core_lines_are_skipped(self):
        content = "cpu0 1 1 1 1 1\ncpu 10 0 10 60 20\n"
        assert parse_cpu_times(content) == CpuTimeSample(80, 100)

    def test_short_line_is_unreadable(self):
        assert parse_cpu_times("cpu 1 2 3 4\n") == CpuTimeSample(0, 0)

    def test_missing_line(self):
        assert parse_cpu_times("intr 1 2 3\nctxt 4\n") == CpuTimeSample(0, 0)

    def test_non_numeric_tokens_count_as_zero(self):
        assert parse_cpu_times("cpu 10 x 10 60 20\n") == CpuTimeSample(80, 100)


class TestComputeCpuUsage:
    def test_delta_between_two_samples(self):
        first = parse_cpu_times("cpu 100 0 100 600 200 0 0 0")
        second = parse_cpu_times("cpu 110 0 110 700 200 0 0 0")

        # idle 800 -> 900, total 1000 -> 1120
        assert compute_cpu_usage(first, second) == pytest.approx(100.0 * (1.0 - 100.0 / 120.0))

    def test_zero_total_delta(self):
        sample = CpuTimeSample(800, 1000)
        assert compute_cpu_usage(sample, sample) == 0.0

    def test_counters_going_backwards(self):
        assert compute_cpu_usage(CpuTimeSample(900, 1120), CpuTimeSample(800, 1000)) == 0.0

    def test_fully_busy(self):
        assert compute_cpu_usage(CpuTimeSample(800, 1000), CpuTimeSample(800, 1100)) == pytest.approx(100.0)


class TestLinuxCpuMetric:
    def test_two_snapshots(self, tmp_path):
        provider = make_provider(tmp_path)
        readings = [CpuTimeSample(800, 1000), CpuTimeSample(900, 1120)]

        with mock.patch.object(provider, 'read_cpu_times', side_effect=readings) as read:
            result = provider.get_cpu_usage()

        assert result.ok
        assert result.value == pytest.approx(100.0 / 6.0)
        assert read.call_count == 2

    def test_reads_proc_stat_file(self, tmp_path):
        (tmp_path / "stat").write_text("cpu  10 0 10 60 20 0 0 0\n")
        provider = make_provider(tmp_path)

        result = provider.get_cpu_usage()

        # Fichier identique entre les deux lectures : aucun tick écoulé
        assert result.ok
        assert result.value == 0.0

    def test_missing_stat_file(self, tmp_path):
        provider = make_provider(tmp_path)

        result = provider.get_cpu_usage()

        assert not result.ok
        assert result.value == 0.0
        assert "[Linux CPU Error]" in result.error

    def test_cancelled_during_settle_delay(self, tmp_path, stop_event):
        (tmp_path / "stat").write_text("cpu  10 0 10 60 20 0 0 0\n")
        provider = make_provider(tmp_path, stop_event=stop_event)
        provider.cpu_settle_delay = 5
        stop_event.set()

        result = provider.get_cpu_usage()

        assert not result.ok
        assert result.value == 0.0


class TestLinuxMemoryMetric:
    MEMINFO = (
        "MemTotal:       16000000 kB\n"
        "MemFree:         1000000 kB\n"
        "MemAvailable:    8000000 kB\n"
        "Buffers:          200000 kB\n"
    )

    def test_parse_meminfo(self):
        assert parse_meminfo(self.MEMINFO) == {'MemTotal': 16000000.0, 'MemAvailable': 8000000.0}

    def test_used_and_total(self, tmp_path):
        (tmp_path / "meminfo").write_text(self.MEMINFO)
        provider = make_provider(tmp_path)

        used = provider.get_ram_used_mb()
        total = provider.get_total_ram_mb()

        assert used.ok and total.ok
        assert used.value == pytest.approx((16000000 - 8000000) / 1024)
        assert total.value == pytest.approx(16000000 / 1024)

    def test_missing_total_gives_negative_used(self, tmp_path):
        (tmp_path / "meminfo").write_text("MemAvailable:    8000000 kB\n")
        provider = make_provider(tmp_path)

        used = provider.get_ram_used_mb()
        total = provider.get_total_ram_mb()

        assert used.ok
        assert used.value == pytest.approx(-8000000 / 1024)
        assert total.ok
        assert total.value == 0.0

    def test_malformed_value(self, tmp_path):
        (tmp_path / "meminfo").write_text("MemTotal: abc kB\nMemAvailable: 10 kB\n")
        provider = make_provider(tmp_path)

        result = provider.get_total_ram_mb()

        assert not result.ok
        assert result.value == 0.0

    def test_missing_meminfo_file(self, tmp_path):
        provider = make_provider(tmp_path)

        assert not provider.get_ram_used_mb().ok
        assert not provider.get_total_ram_mb().ok


class TestLinuxDiskMetric:
    def test_used_from_root_filesystem(self, tmp_path):
        provider = make_provider(tmp_path)
        usage = DiskUsage(total=100000 * MB, used=39000 * MB, free=60000 * MB, percent=39.0)

        with mock.patch('sysmonitor.providers.linux.psutil.disk_usage', return_value=usage) as disk_usage:
            result = provider.get_disk_used_mb()

        disk_usage.assert_called_once_with('/')
        assert result.ok
        assert result.value == pytest.approx(39000.0)

    def test_reserved_blocks_not_counted_as_used(self, tmp_path):
        provider = make_provider(tmp_path)
        # 5000 MB réservés à root : ni utilisés ni disponibles
        usage = DiskUsage(total=100000 * MB, used=90000 * MB, free=5000 * MB, percent=94.7)

        with mock.patch('sysmonitor.providers.linux.psutil.disk_usage', return_value=usage):
            result = provider.get_disk_used_mb()

        assert result.value == pytest.approx(90000.0)

    def test_used_query_failure(self, tmp_path):
        provider = make_provider(tmp_path)

        with mock.patch('sysmonitor.providers.linux.psutil.disk_usage', side_effect=OSError("EIO")):
            result = provider.get_disk_used_mb()

        assert not result.ok
        assert result.value == 0.0

    def test_total_from_df(self, tmp_path):
        runner = mock.Mock(return_value=DF_OUTPUT)
        provider = make_provider(tmp_path, command_runner=runner)

        result = provider.get_total_disk_mb()

        runner.assert_called_once_with(DF_COMMAND)
        assert result.ok
        assert result.value == 100000.0

    def test_df_command_failure(self, tmp_path):
        provider = make_provider(tmp_path, command_runner=mock.Mock(return_value=None))

        result = provider.get_total_disk_mb()

        assert not result.ok
        assert result.value == 0.0

    def test_df_runner_raises(self, tmp_path):
        provider = make_provider(tmp_path, command_runner=mock.Mock(side_effect=OSError("fork failed")))

        assert provider.get_total_disk_mb().value == 0.0

    def test_parse_df_wrapped_line(self):
        output = (
            "Filesystem     1M-blocks  Used Available Use% Mounted on\n"
            "/dev/mapper/very-long-volume-group-name\n"
            "                  51200 20000     31200  40% /\n"
        )
        assert parse_df_total_mb(output) == 51200.0

    def test_parse_df_header_only(self):
        with pytest.raises(MetricUnavailableError):
            parse_df_total_mb("Filesystem     1M-blocks  Used Available Use% Mounted on\n")


class TestExecuteCommand:
    def test_timeout_returns_none(self, tmp_path):
        provider = make_provider(tmp_path)

        with mock.patch('sysmonitor.providers.base.subprocess.run',
                        side_effect=subprocess.TimeoutExpired(DF_COMMAND, 10)):
            assert provider._execute_command(DF_COMMAND) is None

    def test_uses_configured_timeout(self, tmp_path, config):
        config.set('monitoring', 'command_timeout', '3')
        provider = LinuxProvider(config=config)
        completed = subprocess.CompletedProcess(DF_COMMAND, 0, stdout=DF_OUTPUT + "\n", stderr="")

        with mock.patch('sysmonitor.providers.base.subprocess.run', return_value=completed) as run:
            output = provider._execute_command(DF_COMMAND)

        assert output == DF_OUTPUT.strip()
        assert run.call_args.kwargs['timeout'] == 3

    def test_non_zero_exit_code(self, tmp_path):
        provider = make_provider(tmp_path)
        completed = subprocess.CompletedProcess(DF_COMMAND, 1, stdout="", stderr="df: error")

        with mock.patch('sysmonitor.providers.base.subprocess.run', return_value=completed):
            assert provider._execute_command(DF_COMMAND) is None
