import pandas as pd
import pytest

from endo_model.config.models import EngineConfig, ModelSettings
from endo_model.engines.transition_matrix import build_transition_matrix
from endo_model.parameters.defaults import default_parameter_tables


# Define pytest markers for test categories
def pytest_configure(config):
    """
    Register custom markers to avoid pytest warnings.
    """
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line("markers", "integration: mark a test as an integration test")
    config.addinivalue_line("markers", "slow: mark a test as a slow test")


@pytest.fixture
def tables():
    return default_parameter_tables()


@pytest.fixture
def base_matrix(tables):
    return build_transition_matrix(tables.transitions)


@pytest.fixture
def engine_config():
    return EngineConfig()


@pytest.fixture
def settings():
    return ModelSettings()


@pytest.fixture
def small_matrix():
    """Symptomatic states with remission and death, large improvement edges."""
    states = ["Mild", "Moderate", "Severe", "Remission", "Death"]
    return pd.DataFrame(
        [
            [0.80, 0.10, 0.05, 0.04, 0.01],
            [0.40, 0.35, 0.10, 0.14, 0.01],
            [0.10, 0.20, 0.48, 0.18, 0.04],
            [0.05, 0.00, 0.00, 0.94, 0.01],
            [0.00, 0.00, 0.00, 0.00, 1.00],
        ],
        index=states,
        columns=states,
    )
