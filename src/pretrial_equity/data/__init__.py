"""Data loading and sample datasets for pretrial_equity."""

from .load import load_catalog, load_cleaned, load_dataset, save_cleaned
from .sample import make_pretrial_sample

__all__ = [
    "load_dataset",
    "load_catalog",
    "save_cleaned",
    "load_cleaned",
    "make_pretrial_sample",
]
