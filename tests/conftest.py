import pytest
from structlog.testing import capture_logs


@pytest.fixture(autouse=True)
def log_events():
    with capture_logs() as events:
        yield events
