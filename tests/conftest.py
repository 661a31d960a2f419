import logging

import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_respawn_logger():
    """setup_logging() turns propagation off; caplog needs it on."""
    yield
    logger = logging.getLogger("respawn")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
