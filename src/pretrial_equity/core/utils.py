"""Utility functions shared by the pipeline stages"""

import re
import time
from datetime import datetime
from typing import Iterable, List

import numpy as np
import psutil


def safe_print(msg, file=None):
    try:
        if file:
            file.write(msg + "\n")
            file.flush()
        else:
            print(msg)
    except UnicodeEncodeError:
        encoded_msg = msg.encode("ascii", errors="replace").decode("ascii")
        if file:
            file.write(encoded_msg + "\n")
            file.flush()
        else:
            print(encoded_msg)


def now_str() -> str:
    """Return current time as string"""
    return datetime.now().strftime("%H:%M:%S")


def sys_metrics() -> str:
    """Return system metrics as string"""
    try:
        cpu = psutil.cpu_percent(interval=0.1)
        mem = psutil.virtual_memory().percent
        return f" | CPU={int(cpu)}% RAM={int(mem)}%"
    except (psutil.Error, OSError):
        return ""


_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9._]")


def make_names(names: Iterable[str]) -> List[str]:
    """Turn arbitrary labels into safe, unique column names.

    Invalid characters become ``.``, names that start with a digit, an
    underscore or a dot followed by a digit get an ``X`` prefix, and repeated
    names receive ``.1``, ``.2`` ... suffixes in order of appearance.
    """
    cleaned = []
    for name in names:
        safe = _INVALID_NAME_CHARS.sub(".", str(name))
        if not safe or safe[0].isdigit() or safe[0] == "_" or re.match(r"^\.\d", safe):
            safe = "X" + safe
        cleaned.append(safe)

    seen = {}
    unique = []
    taken = set(cleaned)
    for safe in cleaned:
        if safe not in seen:
            seen[safe] = 0
            unique.append(safe)
            continue
        seen[safe] += 1
        candidate = f"{safe}.{seen[safe]}"
        while candidate in taken:
            seen[safe] += 1
            candidate = f"{safe}.{seen[safe]}"
        taken.add(candidate)
        unique.append(candidate)
    return unique


def predict_positive_proba(model, X, *, positive_label=True) -> np.ndarray:
    """Return positive-class probabilities as a 1D numpy array."""
    proba = np.asarray(model.predict_proba(X))
    if proba.ndim == 1:
        return proba
    if proba.shape[1] == 1:
        return proba[:, 0]
    classes = getattr(model, "classes_", None)
    if classes is not None:
        matches = np.where(np.asarray(classes) == positive_label)[0]
        if len(matches):
            return proba[:, int(matches[0])]
    return proba[:, -1]


class Timer:
    """Context manager for timing operations"""

    def __init__(self, label: str, logger=print):
        self.label, self.logger, self.t0 = label, logger, None
        self.elapsed = None

    def __enter__(self):
        self.t0 = time.time()
        self.logger(f"[{now_str()}] >> {self.label} starting{sys_metrics()}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed = time.time() - self.t0
        if exc_type:
            self.logger(
                f"[{now_str()}] << {self.label} completed ({self.elapsed:.2f}s) - FAIL: {exc}{sys_metrics()}"
            )
        else:
            self.logger(f"[{now_str()}] << {self.label} completed ({self.elapsed:.2f}s) - OK{sys_metrics()}")
