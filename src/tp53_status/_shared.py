# tp53-status/src/tp53_status/_shared.py
from __future__ import annotations

import math
import re
from typing import Any

import pandas as pd

# -----------------------------------------------------------------------------
# _shared.py (minimal)
# -----------------------------------------------------------------------------
# Purpose:
#   - Centralize parsing rules that every input table and evidence builder uses.
#   - If these change, counts/flags (and therefore labels) may change.
#
# Policy:
#   - NA handling is explicit; pandas default NA conversion is disabled on read.
#   - Do NOT force uppercasing of sample/biospecimen IDs.
#   - Evidence strings are comma-joined, de-duplicated, order-preserving.
# -----------------------------------------------------------------------------


# NA tokens used across layers (string forms).
NA_TOKENS: set[str] = {"", "na", "nan", "none", "NA", "<NA>", "null"}
NA_TOKENS_L: set[str] = {t.lower() for t in NA_TOKENS}

# Canonical join delimiter for evidence strings (HGVSp_Short, SV types, ...).
EVIDENCE_JOIN_DELIM = ","

_PROTEIN_POS_RE = re.compile(r"^\s*(\d+)")
_HGVSP_POS_RE = re.compile(r"^p\.[A-Za-z*]+?(\d+)")
_TRUE_TOKENS = {"1", "true", "t", "yes", "y"}
_FALSE_TOKENS = {"0", "false", "f", "no", "n"}


def is_na_scalar(x: object) -> bool:
    """
    pd.isna is unsafe for list-like; only treat scalars as NA here.
    """
    if x is None:
        return True
    if isinstance(x, (list, tuple, set, dict)):
        return False
    try:
        return bool(pd.isna(x))
    except Exception:
        return False


def is_na_token(x: object) -> bool:
    if is_na_scalar(x):
        return True
    return str(x).strip().lower() in NA_TOKENS_L


def clean_str(x: object) -> str:
    return "" if is_na_token(x) else str(x).strip()


def optional_str(x: object) -> str | None:
    s = clean_str(x)
    return s or None


def dedup_preserve_order(items: list[str]) -> list[str]:
    """
    Deterministic de-duplication while preserving first occurrence order.
    """
    seen: set[str] = set()
    out: list[str] = []
    for x in items:
        if x and x not in seen:
            seen.add(x)
            out.append(x)
    return out


def join_evidence(items: Any) -> str:
    """Join an iterable of evidence tokens into the canonical evidence string."""
    toks = [clean_str(x) for x in list(items)]
    return EVIDENCE_JOIN_DELIM.join(dedup_preserve_order(toks))


def to_float(x: object) -> float | None:
    if is_na_token(x):
        return None
    try:
        v = float(x)  # type: ignore[arg-type]
    except Exception:
        return None
    if not math.isfinite(v):
        return None
    return v


def to_int(x: object) -> int | None:
    v = to_float(x)
    if v is None:
        return None
    return int(v)


def to_bool(x: object) -> bool:
    """
    Parse flag-like values written by R/pandas exports (TRUE/FALSE, 1/0, yes/no).

    Unknown tokens raise; NA is False.
    """
    if isinstance(x, bool):
        return x
    if is_na_token(x):
        return False
    s = str(x).strip().lower()
    if s in _TRUE_TOKENS:
        return True
    if s in _FALSE_TOKENS:
        return False
    raise ValueError(f"not a boolean flag: {x!r}")


def normalize_chrom(x: object) -> str:
    """
    "17" / "chr17" / "CHR17" -> "chr17". Empty stays empty.
    """
    s = clean_str(x)
    if not s:
        return ""
    if s.lower().startswith("chr"):
        s = s[3:]
    return f"chr{s}"


def normalize_protein_change(x: object) -> str:
    """
    HGVSp short form with the "p." prefix ("R273C" -> "p.R273C").
    """
    s = clean_str(x)
    if not s:
        return ""
    return s if s.startswith("p.") else f"p.{s}"


def parse_protein_position(protein_position: object, hgvsp_short: object = None) -> int | None:
    """
    Amino-acid position of a coding call.

    Prefers the VEP `Protein_position` column ("273/393", "248-249/393"); falls back to
    the number embedded in HGVSp_Short ("p.R273C" -> 273).
    """
    s = clean_str(protein_position)
    if s:
        m = _PROTEIN_POS_RE.match(s)
        if m:
            return int(m.group(1))
    h = normalize_protein_change(hgvsp_short)
    if h:
        m = _HGVSP_POS_RE.match(h)
        if m:
            return int(m.group(1))
    return None


def parse_breakpoint(x: object) -> tuple[str, int] | None:
    """
    Parse a fusion breakpoint "chr17:7675994:-" (strand optional) into (chrom, pos).
    """
    s = clean_str(x)
    if not s:
        return None
    parts = s.split(":")
    if len(parts) < 2:
        return None
    pos = to_int(parts[1])
    if pos is None:
        return None
    return normalize_chrom(parts[0]), pos
