"""Pytest configuration and shared fixtures."""

import pytest
import random
import sys
from itertools import count
from pathlib import Path

import numpy as np

# Add the source directory and the repository root (for examples/) to the Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir / "src"))
sys.path.insert(0, str(root_dir))


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Set random seeds for reproducibility and reset the Agent ID generator."""
    from evonet.phenotype.agent import Agent

    np.random.seed(42)
    random.seed(42)
    Agent._id_generator = count(0)

    yield

    np.random.seed(None)
    random.seed(None)


@pytest.fixture
def default_config():
    """A Config holding the default values, with a small network."""
    from evonet.run.config import Config

    config = Config()
    config.layer_sizes = [3, 2, 1]
    config.population_size = 4
    config.promotion_threshold = 0.5
    return config
