# tp53-status/src/tp53_status/adapters/hotspots.py
from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from .. import _shared
from ..schema import normalize_table, read_table

# cancerhotspots.org v2 ships an xlsx with one sheet per variant class.
SNV_SHEET = "SNV-hotspots"
INDEL_SHEET = "INDEL-hotspots"


@dataclass(frozen=True)
class HotspotAdapterConfig:
    gene: str = "TP53"
    # For Excel exports, read the SNV sheet and (optionally) the indel sheet.
    sheets: tuple[str, ...] = (SNV_SHEET, INDEL_SHEET)
    include_indels: bool = True


def _positions_from_frame(df: pd.DataFrame, gene: str) -> list[int]:
    sub = df[df["hugo_symbol"].str.upper() == gene.upper()]
    out: set[int] = set()
    for raw in sub["amino_acid_position"].tolist():
        # indel sheets carry ranges ("245-249"); keep every codon in the range
        s = _shared.clean_str(raw)
        if not s:
            continue
        if "-" in s:
            lo_s, hi_s = s.split("-", 1)
            lo, hi = _shared.to_int(lo_s), _shared.to_int(hi_s)
            if lo is None or hi is None:
                continue
            out.update(range(min(lo, hi), max(lo, hi) + 1))
            continue
        p = _shared.to_int(s)
        if p is not None and p > 0:
            out.add(p)
    return sorted(out)


def read_hotspot_positions(path: str, *, config: HotspotAdapterConfig | None = None) -> list[int]:
    """
    Read amino-acid hotspot positions for one gene from a cancer-hotspots export.

    Excel (.xlsx) workbooks are read sheet by sheet (requires openpyxl); delimited
    text is read as a single table with `Hugo_Symbol` and `Amino_Acid_Position`.
    """
    cfg = config or HotspotAdapterConfig()
    p = str(path).lower()
    if p.endswith((".xlsx", ".xls")):
        sheets = cfg.sheets if cfg.include_indels else cfg.sheets[:1]
        xls = pd.read_excel(path, sheet_name=None, engine="openpyxl", dtype=str)
        frames = [
            normalize_table(xls[name], "hotspots", read_mode="excel")
            for name in sheets
            if name in xls
        ]
        if not frames:
            raise ValueError(
                f"hotspot workbook has none of the expected sheets {list(sheets)}: "
                f"found {list(xls)}"
            )
        df = pd.concat(frames, ignore_index=True)
    else:
        df = read_table(str(path), "hotspots")
    return _positions_from_frame(df, cfg.gene)
