"""Tabular results handed to reporting"""

from dataclasses import dataclass

import pandas as pd


@dataclass
class SummaryTable:
    """A named result table. Values are left unformatted."""

    name: str
    title: str
    frame: pd.DataFrame
