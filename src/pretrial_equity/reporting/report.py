import json
from pathlib import Path
from typing import Iterable

import pandas as pd

from ..core.summary import SummaryTable


def save_metrics(metrics: dict, out_dir: str) -> Path:
    """Persist run metrics as JSON."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / "metrics.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(metrics, f, indent=2, default=str)
    return path


def write_tables(xlsx_path: str, tables: Iterable[SummaryTable]) -> Path:
    """Write summary tables to one Excel workbook, one sheet per table.

    Overwrites an existing file. Sheet names are cut to Excel's 31 characters.
    """
    path = Path(xlsx_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    used = set()
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        for table in tables:
            if table.frame is None:
                continue
            sheet = table.name[:31]
            suffix = 1
            while sheet in used:
                suffix += 1
                sheet = f"{table.name[:28]}_{suffix}"
            used.add(sheet)
            table.frame.to_excel(w, sheet_name=sheet, index=False)
    return path
