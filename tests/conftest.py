"""
Pytest configuration and fixtures for globalstore
"""

import logging
import os

import pytest

from globalstore import GlobalStore, reset_coordinator

from tests.factories import RecordingLogger


GLOBALSTORE_ENV_KEYS = [
    'GLOBALSTORE_DEBUG_MODE',
    'GLOBALSTORE_CONSOLE_LOGGING',
    'GLOBALSTORE_LOG_LEVEL',
    'GLOBALSTORE_CONFIG',
]


@pytest.fixture(autouse=True)
def reset_global_store_isolation():
    """
    Autouse fixture keeping the process-wide coordinator and GLOBALSTORE_*
    environment isolated between tests.
    """
    original_env = {key: os.environ.get(key) for key in GLOBALSTORE_ENV_KEYS}
    for key in GLOBALSTORE_ENV_KEYS:
        os.environ.pop(key, None)
    # never pick up a host-level config file
    os.environ['GLOBALSTORE_CONFIG'] = os.path.join(os.path.dirname(__file__), 'missing-config.json')
    reset_coordinator()

    yield

    reset_coordinator()
    package_logger = logging.getLogger("globalstore")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    for key, value in original_env.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def recorder():
    return RecordingLogger()


@pytest.fixture
def store(recorder):
    """Fresh coordinator with a recording logger attached"""
    return GlobalStore(chain_logger=recorder)
