"""Global configuration and fixtures for all pytest-based tests"""

import pytest

from flowprep.runtime.scheduler import Scheduler, VirtualClock


@pytest.fixture(name="clock")
def fixture_clock():
    return VirtualClock()


@pytest.fixture(name="scheduler")
def fixture_scheduler(clock):
    return Scheduler("test", clock=clock)
