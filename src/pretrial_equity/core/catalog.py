"""Variable catalog: which columns to keep and what role each one plays"""

from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Union

import pandas as pd
from pydantic import BaseModel, Field, ValidationError

from ..utils.error_handler import ConfigError


class ColumnRole(str, Enum):
    KEEP = "keep"
    OUTCOME = "outcome"
    DEMOGRAPHIC = "discrim"


class CatalogEntry(BaseModel):
    """One row of the catalog file."""

    value: str = Field(..., min_length=1)
    keep: bool = False
    outcome: bool = False
    discrim: bool = False
    label: Optional[str] = None

    def has_role(self, role: ColumnRole) -> bool:
        return bool(getattr(self, role.value))


class VariableCatalog:
    """Catalog of variables, loaded once and handed to every stage."""

    def __init__(self, entries: Iterable[CatalogEntry]):
        self._entries: Dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.value in self._entries:
                raise ConfigError(f"Duplicate catalog entry: {entry.value}")
            self._entries[entry.value] = entry

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "VariableCatalog":
        if "value" not in frame.columns:
            raise ConfigError("Catalog needs a 'value' column with variable names")
        entries = []
        for i, row in enumerate(frame.to_dict(orient="records")):
            # Blank cells fall back to the field defaults
            payload = {k: v for k, v in row.items() if not pd.isna(v) and str(v).strip() != ""}
            try:
                entries.append(CatalogEntry(**payload))
            except ValidationError as exc:
                raise ConfigError(f"Invalid catalog row {i + 1}: {exc}") from exc
        return cls(entries)

    @classmethod
    def from_csv(cls, path: Union[str, Path]) -> "VariableCatalog":
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Catalog file not found: {p}")
        frame = pd.read_csv(p, dtype=str, keep_default_na=False)
        return cls.from_frame(frame)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, name: str) -> CatalogEntry:
        return self._entries[name]

    @property
    def entries(self) -> List[CatalogEntry]:
        return list(self._entries.values())

    def names(self, role: ColumnRole) -> Set[str]:
        return {name for name, entry in self._entries.items() if entry.has_role(role)}

    def present(self, role: ColumnRole, columns: Iterable[str]) -> List[str]:
        """Catalog names with ``role`` that also exist in ``columns`` (column order kept)."""
        tagged = self.names(role)
        return [c for c in columns if c in tagged]

    def label_for(self, name: str) -> Optional[str]:
        entry = self._entries.get(name)
        return entry.label if entry is not None else None

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "value": e.value,
                    "keep": e.keep,
                    "outcome": e.outcome,
                    "discrim": e.discrim,
                    "label": e.label,
                }
                for e in self._entries.values()
            ]
        )
