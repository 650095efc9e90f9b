# tp53-status/src/tp53_status/schema.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Literal

import pandas as pd

from . import _shared

# -----------------------------------------------------------------------------
# Input table schema gate (tool-facing contract)
# -----------------------------------------------------------------------------
# Every upstream table is normalized to canonical snake_case columns before any
# evidence is derived from it.
#
# Policy:
# - enforce a "core required" set per table kind and auto-fill optional columns
# - keep cells as strings on read (no implicit NA conversion); parse explicitly
# - record provenance (read_mode, raw columns) in df.attrs for auditability
# -----------------------------------------------------------------------------

TableKind = Literal["snv", "cnv", "sv", "fusion", "histologies", "scores", "hotspots"]
ReadMode = Literal["tsv", "sniff", "whitespace", "excel"]

_BIOSPECIMEN_ALIASES = {
    "biospecimen_id": "biospecimen_id",
    "kids_first_biospecimen_id": "biospecimen_id",
    "tumor_sample_barcode": "biospecimen_id",
    "kids_first_biospecimen_id_tumor": "biospecimen_id",
    "sample": "biospecimen_id",
    "sample_name": "biospecimen_id",
    "bs_id": "biospecimen_id",
}

ALIASES: dict[str, dict[str, str]] = {
    "snv": {
        **_BIOSPECIMEN_ALIASES,
        "hugo_symbol": "hugo_symbol",
        # VEP MAFs also carry `Gene` (Ensembl ID); it must not alias Hugo_Symbol.
        "gene_symbol": "hugo_symbol",
        "variant_classification": "variant_classification",
        "hgvsp_short": "hgvsp_short",
        "protein_change": "hgvsp_short",
        "protein_position": "protein_position",
        "chromosome": "chromosome",
        "chrom": "chromosome",
        "start_position": "start_position",
        "start": "start_position",
        "reference_allele": "reference_allele",
        "tumor_seq_allele2": "tumor_seq_allele2",
    },
    "cnv": {
        **_BIOSPECIMEN_ALIASES,
        "gene_symbol": "gene_symbol",
        "hugo_symbol": "gene_symbol",
        "gene": "gene_symbol",
        "status": "status",
        "cnv_status": "status",
        "copy_number": "copy_number",
        "ploidy": "ploidy",
        "cytoband": "cytoband",
    },
    "sv": {
        **_BIOSPECIMEN_ALIASES,
        "sv_chrom": "chrom",
        "chrom": "chrom",
        "chromosome": "chrom",
        "sv_start": "start",
        "start": "start",
        "sv_end": "end",
        "end": "end",
        "sv_type": "sv_type",
        "svtype": "sv_type",
        "type": "sv_type",
    },
    "fusion": {
        **_BIOSPECIMEN_ALIASES,
        "fusionname": "fusion_name",
        "fusion_name": "fusion_name",
        "leftbreakpoint": "left_breakpoint",
        "left_breakpoint": "left_breakpoint",
        "rightbreakpoint": "right_breakpoint",
        "right_breakpoint": "right_breakpoint",
        "caller": "caller",
    },
    "histologies": {
        **_BIOSPECIMEN_ALIASES,
        "sample_id": "sample_id",
        "experimental_strategy": "experimental_strategy",
        "cancer_predispositions": "cancer_predispositions",
        "cancer_predisposition": "cancer_predispositions",
        "kids_first_participant_id": "participant_id",
        "participant_id": "participant_id",
        "sample_type": "sample_type",
        "cancer_group": "cancer_group",
        "broad_histology": "broad_histology",
    },
    "scores": {
        **_BIOSPECIMEN_ALIASES,
        "score": "score",
        "tp53_score": "score",
        "classifier_score": "score",
    },
    "hotspots": {
        "hugo_symbol": "hugo_symbol",
        "gene": "hugo_symbol",
        "amino_acid_position": "amino_acid_position",
        "position": "amino_acid_position",
        "codon": "amino_acid_position",
    },
}

CORE_REQUIRED: dict[str, list[str]] = {
    "snv": ["biospecimen_id", "hugo_symbol", "variant_classification"],
    "cnv": ["biospecimen_id", "gene_symbol", "status"],
    "sv": ["biospecimen_id", "chrom", "start", "end"],
    "fusion": ["biospecimen_id", "fusion_name", "left_breakpoint", "right_breakpoint"],
    "histologies": ["biospecimen_id", "sample_id", "experimental_strategy"],
    "scores": ["biospecimen_id", "score"],
    "hotspots": ["hugo_symbol", "amino_acid_position"],
}

# Columns that should exist after normalization (auto-filled with "" if missing).
OPTIONAL_COLS: dict[str, list[str]] = {
    "snv": [
        "hgvsp_short",
        "protein_position",
        "chromosome",
        "start_position",
        "reference_allele",
        "tumor_seq_allele2",
    ],
    "cnv": ["copy_number"],
    "sv": ["sv_type"],
    "fusion": [],
    "histologies": ["cancer_predispositions", "participant_id", "sample_type", "cancer_group"],
    "scores": [],
    "hotspots": [],
}

# Excel formula injection starters (output-only defense).
_EXCEL_FORMULA_START = ("=", "+", "-", "@")


def normalize_col(c: object) -> str:
    # Normalize common messiness while keeping it conservative.
    s = str(c).strip().lstrip("\ufeff")
    s = s.replace(" ", "_").replace("-", "_").replace(".", "_")
    s = re.sub(r"_+", "_", s)
    return s.lower()


@dataclass(frozen=True)
class TableReadResult:
    df: pd.DataFrame
    read_mode: ReadMode


def _read_flexible(path: str, *, sheet_name: str | int = 0) -> TableReadResult:
    ext = os.path.splitext(str(path))[1].lower()
    if ext in {".xlsx", ".xls"}:
        df_x = pd.read_excel(path, sheet_name=sheet_name, engine="openpyxl", dtype=str)
        return TableReadResult(df=df_x, read_mode="excel")

    # robust defaults: BOM, comments, gzip, do not auto-convert NA tokens
    common_kwargs = dict(
        encoding="utf-8-sig",
        comment="#",
        compression="infer",
        keep_default_na=False,
        na_values=[],
        dtype=str,
    )

    # 1) TSV first (expected)
    df = pd.read_csv(path, sep="\t", low_memory=False, **common_kwargs)
    if df.shape[1] > 1:
        return TableReadResult(df=df, read_mode="tsv")

    # 2) sniff delimiter (csv/tsv/others)
    df2 = pd.read_csv(path, sep=None, engine="python", **common_kwargs)
    if df2.shape[1] > 1:
        return TableReadResult(df=df2, read_mode="sniff")

    # 3) whitespace fallback
    df3 = pd.read_csv(path, sep=r"\s+", engine="python", **common_kwargs)
    return TableReadResult(df=df3, read_mode="whitespace")


def normalize_table(
    df_raw: pd.DataFrame, kind: TableKind, *, read_mode: str = "frame"
) -> pd.DataFrame:
    """
    Map aliases to canonical columns, check core columns, auto-fill optional ones and
    strip string cells.

    Raises
    ------
    ValueError
        On unknown `kind`, duplicate columns after aliasing, or missing core columns.
    """
    if kind not in ALIASES:
        raise ValueError(f"unknown table kind: {kind!r}")
    aliases = ALIASES[kind]

    raw_columns = list(df_raw.columns)
    cols_norm = [normalize_col(c) for c in raw_columns]
    cols_mapped = [aliases.get(c, c) for c in cols_norm]

    df = df_raw.copy()
    df.columns = cols_mapped

    dup = df.columns[df.columns.duplicated()].tolist()
    if dup:
        raise ValueError(
            f"{kind} table has duplicate columns after aliasing: "
            f"{sorted(set(dup))}. "
            f"read_mode={read_mode}. "
            f"raw_columns={raw_columns} "
            f"normalized_columns={cols_norm} "
            f"mapped_columns={cols_mapped}"
        )

    missing_core = [c for c in CORE_REQUIRED[kind] if c not in df.columns]
    if missing_core:
        raise ValueError(
            f"{kind} table missing core columns: {missing_core}. "
            f"read_mode={read_mode}. "
            f"raw_columns={raw_columns} "
            f"normalized_columns={cols_norm} "
            f"mapped_columns={cols_mapped}"
        )

    for c in OPTIONAL_COLS[kind]:
        if c not in df.columns:
            df[c] = ""

    for c in CORE_REQUIRED[kind] + OPTIONAL_COLS[kind]:
        df[c] = df[c].map(_shared.clean_str)

    df = df.reset_index(drop=True)
    df.attrs["table_kind"] = kind
    df.attrs["read_mode"] = read_mode
    df.attrs["raw_columns"] = raw_columns
    return df


def read_table(path: str, kind: TableKind, *, sheet_name: str | int = 0) -> pd.DataFrame:
    """Read one upstream table and normalize it under the contract for `kind`."""
    rr = _read_flexible(str(path), sheet_name=sheet_name)
    df = normalize_table(rr.df, kind, read_mode=rr.read_mode)
    df.attrs["path"] = str(path)
    return df


def _excel_safe(x: object) -> object:
    if isinstance(x, str) and x.startswith(_EXCEL_FORMULA_START):
        return "'" + x
    return x


def write_tsv(df: pd.DataFrame, path: str, *, excel_safe: bool = False) -> None:
    out = df.copy()
    if excel_safe:
        for c in out.columns:
            if pd.api.types.is_object_dtype(out[c]) or pd.api.types.is_string_dtype(out[c]):
                out[c] = out[c].map(_excel_safe)
    parent = os.path.dirname(str(path))
    if parent:
        os.makedirs(parent, exist_ok=True)
    out.to_csv(path, sep="\t", index=False)
