import pytest

from aspnet_dev_agent.log import configure_logging


@pytest.fixture(autouse=True)
def reset_logging():
    """CliRunner swaps sys.stderr; point loguru back at the real one afterwards."""
    yield
    configure_logging("WARNING")
