"""Synthetic pretrial-release dataset for demos and tests.

The generated file looks like a labelled statistical-package export: stored
numeric codes with value labels, repeated-9 placeholders for unknown values
and a few columns the catalog does not describe.
"""

from typing import Tuple

import numpy as np
import pandas as pd

from ..core.catalog import CatalogEntry, VariableCatalog
from ..core.cleaning import RawDataset

__all__ = ["make_pretrial_sample", "sample_catalog", "CHARGES"]

CHARGES = ["Drug", "Property", "Violent", "Public order", "DUI"]
COUNTIES = [f"County {i:02d}" for i in range(1, 9)]

YES_NO = {0.0: "No", 1.0: "Yes"}
VALUE_LABELS = {
    "GENDER": {1.0: "Male", 2.0: "Female", 9.0: "Unknown"},
    "FTA1": {0.0: "No", 1.0: "Yes, FTA", 7.0: "Not applicable"},
    "FTA2": {0.0: "No", 1.0: "Yes, FTA", 7.0: "Not applicable"},
    "HISPANIC": YES_NO,
    "BLACK": YES_NO,
    "WHITE": YES_NO,
    "RELEASED": YES_NO,
    "FINREL": YES_NO,
}
COLUMN_LABELS = {
    "YEARSEQ": "Case sequence number",
    "GENDER": "Sex of defendant",
    "AGE": "Age at arrest",
    "HISPANIC": "Hispanic origin",
    "BLACK": "Race: Black",
    "WHITE": "Race: White",
    "PRIORS": "Number of prior arrests",
    "FELONY": "Most serious charge is a felony",
    "CHARGE": "Most serious arrest charge",
    "COUNTY": "County of arrest",
    "RELEASED": "Released before disposition",
    "FINREL": "Released on financial conditions",
    "BAILAMT": "Bail amount set",
    "FTA1": "Failed to appear for a court date",
    "FTA2": "Bench warrant issued for failure to appear",
}

SENTINEL_COLUMNS = {"AGE": 99.0, "PRIORS": 99.0, "BAILAMT": 999999.0, "GENDER": 9.0}


def sample_catalog() -> VariableCatalog:
    """Catalog matching :func:`make_pretrial_sample`.

    Release and bail columns are post-decision information, so they are
    tagged as outcomes and never used as model inputs.
    """
    rows = [
        ("YEARSEQ", True, False, False),
        ("GENDER", True, False, True),
        ("AGE", True, False, True),
        ("HISPANIC", True, False, True),
        ("BLACK", True, False, True),
        ("WHITE", True, False, True),
        ("PRIORS", True, False, False),
        ("FELONY", True, False, False),
        ("CHARGE", True, False, False),
        ("COUNTY", True, False, False),
        ("RELEASED", True, True, False),
        ("FINREL", True, True, False),
        ("BAILAMT", True, True, False),
        ("FTA1", True, True, False),
        ("FTA2", True, True, False),
        ("PRETRIAL_RISK", True, False, False),
    ]
    return VariableCatalog(
        CatalogEntry(value=name, keep=keep, outcome=outcome, discrim=discrim, label=COLUMN_LABELS.get(name))
        for name, keep, outcome, discrim in rows
    )


def make_pretrial_sample(
    n: int = 2000,
    *,
    seed: int = 60615,
    sentinel_rate: float = 0.05,
) -> Tuple[RawDataset, VariableCatalog]:
    """Generate ``n`` synthetic defendants and the catalog that describes them.

    ``sentinel_rate`` is the share of cells replaced by repeated-9 codes in
    each of AGE, PRIORS, BAILAMT and GENDER.
    """
    if n < 1:
        raise ValueError("n must be positive")
    if not 0 <= sentinel_rate < 1:
        raise ValueError("sentinel_rate must be in [0, 1)")
    rng = np.random.default_rng(seed)

    gender = rng.choice([1.0, 2.0], size=n, p=[0.78, 0.22])
    age = np.clip(np.round(rng.gamma(shape=6.0, scale=5.5, size=n) + 16), 18, 85)
    race = rng.choice(["Latinx", "Black", "White", "Other"], size=n, p=[0.25, 0.35, 0.32, 0.08])
    priors = np.minimum(rng.poisson(lam=np.where(age < 25, 1.5, 3.0)), 40).astype(float)
    # Two-digit counts so 99 reads as a placeholder
    priors[: min(n, 2)] = [12.0, 30.0][: min(n, 2)]
    charge = rng.choice(CHARGES, size=n, p=[0.3, 0.3, 0.15, 0.15, 0.1])
    felony = (rng.random(n) < np.where(np.isin(charge, ["Violent", "Drug"]), 0.7, 0.35)).astype(float)
    county = rng.choice(COUNTIES, size=n)

    # Judges: more serious cases get bail set and are less often released
    severity = 0.8 * felony + 0.08 * priors + (charge == "Violent") * 0.9 + (race == "Black") * 0.2
    bail_set = rng.random(n) < 1 / (1 + np.exp(-(severity - 1.0)))
    bail_amount = np.where(bail_set, np.round(rng.lognormal(mean=8.5 + 0.4 * felony, sigma=0.8, size=n), -2), 0.0)
    bail_amount = np.clip(bail_amount, 0, 250000)
    released = np.where(bail_set, rng.random(n) < 0.55, rng.random(n) < 0.95)
    financial = (released & bail_set).astype(float)

    # Appearance is only observed for released defendants
    risk = -1.6 + 0.12 * priors - 0.025 * (age - 30) + 0.3 * (charge == "Public order") + 0.25 * (charge == "Drug")
    fta = rng.random(n) < 1 / (1 + np.exp(-risk))
    fta1 = np.where(released, fta.astype(float), 7.0)
    fta2 = np.where(released, (fta & (rng.random(n) < 0.6)).astype(float), 7.0)

    frame = pd.DataFrame(
        {
            "YEARSEQ": np.arange(1, n + 1, dtype=float),
            "GENDER": gender,
            "AGE": age,
            "HISPANIC": (race == "Latinx").astype(float),
            "BLACK": (race == "Black").astype(float),
            "WHITE": (race == "White").astype(float),
            "PRIORS": priors,
            "FELONY": felony,
            "CHARGE": charge,
            "COUNTY": county,
            "RELEASED": released.astype(float),
            "FINREL": financial,
            "BAILAMT": bail_amount,
            "FTA1": fta1,
            "FTA2": fta2,
            "NOTES": rng.choice(["", "interpreter", "transfer"], size=n),
        }
    )

    for column, code in SENTINEL_COLUMNS.items():
        hits = rng.random(n) < sentinel_rate
        frame.loc[hits, column] = code

    raw = RawDataset(
        frame=frame,
        column_labels=dict(COLUMN_LABELS),
        value_labels={k: dict(v) for k, v in VALUE_LABELS.items()},
        source="synthetic",
    )
    return raw, sample_catalog()
