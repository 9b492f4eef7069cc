import os
import time

import pytest

# US Eastern time as a POSIX rule, so no zoneinfo database is needed.
EASTERN_RULE = "EST5EDT,M3.2.0,M11.1.0"


@pytest.fixture(name="eastern_local_time")
def eastern_local_time_fixture():
    """Make US Eastern time the process-local zone for one test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = EASTERN_RULE
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()
