"""Shared fixtures: a seeded synthetic sample and a fast configuration."""

import numpy as np
import pandas as pd
import pytest

from pretrial_equity.core.config import Config
from pretrial_equity.data.sample import make_pretrial_sample


def fast_config(tmp_path, **overrides) -> Config:
    """Small grid, sequential workers, quiet console."""
    params = dict(
        output_folder=str(tmp_path / "out"),
        n_trees_grid=[20, 40],
        depth_grid=[2, 3],
        shrinkage_grid=[0.1],
        cv_folds=3,
        n_jobs=1,
        log_to_file=False,
        verbose=False,
    )
    params.update(overrides)
    return Config(**params)


@pytest.fixture
def config(tmp_path):
    return fast_config(tmp_path)


@pytest.fixture
def sample():
    return make_pretrial_sample(800, seed=60615, sentinel_rate=0.05)


@pytest.fixture
def binary_frame():
    """400 rows with one informative numeric, one categorical and one boolean input."""
    rng = np.random.default_rng(7)
    n = 400
    x = rng.normal(size=n)
    charge = rng.choice(["Drug", "Property", "Violent"], size=n)
    felony = rng.random(n) < 0.4
    logit = -1.0 + 1.5 * x + 0.5 * (charge == "Violent")
    y = rng.random(n) < 1 / (1 + np.exp(-logit))
    return pd.DataFrame(
        {
            "PRIORS": x,
            "CHARGE": pd.Categorical(charge),
            "FELONY": pd.array(felony, dtype="boolean"),
            "FTA_OUT": y,
        }
    )


@pytest.fixture
def messages():
    """Collects log lines from components that take a ``log`` callable."""
    return []
