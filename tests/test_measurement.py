import pytest

from sysmonitor.core.errors import MonitorError, SamplingCancelledError
from sysmonitor.providers.base import MeasurementPhase, TwoPointMeasurement


def test_phases_and_readings():
    readings = iter([3, 7])
    measurement = TwoPointMeasurement(lambda: next(readings), delay=0)
    assert measurement.phase is MeasurementPhase.PRIMED

    assert measurement.run() == (3, 7)
    assert measurement.phase is MeasurementPhase.DONE
    assert measurement.first_reading == 3
    assert measurement.second_reading == 7


def test_single_use():
    measurement = TwoPointMeasurement(lambda: 1, delay=0)
    measurement.run()

    with pytest.raises(MonitorError):
        measurement.run()


def test_cancelled_during_delay(stop_event):
    calls = []
    measurement = TwoPointMeasurement(lambda: calls.append(1) or len(calls), delay=30, stop_event=stop_event)
    stop_event.set()

    with pytest.raises(SamplingCancelledError):
        measurement.run()

    assert measurement.phase is MeasurementPhase.CANCELLED
    assert measurement.first_reading == 1
    assert measurement.second_reading is None
    assert len(calls) == 1
