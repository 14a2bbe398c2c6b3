"""pytest configuration: ensure glmsparsenet is importable from src/ layout."""
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add src/ to sys.path so glmsparsenet is importable
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def xy_small():
    """20x5 synthetic feature matrix and a random response."""
    rng = np.random.default_rng(0)
    x = rng.normal(size=(20, 5))
    y = rng.normal(size=20)
    return x, y


@pytest.fixture
def xy_signal():
    """60x6 data where y depends on the first two features."""
    rng = np.random.default_rng(1)
    x = rng.normal(size=(60, 6))
    y = 3.0 * x[:, 0] - 2.0 * x[:, 1] + 0.1 * rng.normal(size=60)
    return x, y


@pytest.fixture
def xy_binary():
    """80x5 data with a binary outcome driven by the first feature."""
    rng = np.random.default_rng(2)
    x = rng.normal(size=(80, 5))
    y = np.where(x[:, 0] + 0.5 * rng.normal(size=80) > 0, "case", "control")
    return x, y


@pytest.fixture
def frame_small(xy_small):
    """xy_small as a labelled DataFrame / Series pair."""
    x, y = xy_small
    idx = [f"s{i}" for i in range(x.shape[0])]
    xdf = pd.DataFrame(x, index=idx, columns=[f"g{j}" for j in range(x.shape[1])])
    return xdf, pd.Series(y, index=idx, name="y")
