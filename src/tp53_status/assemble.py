# tp53-status/src/tp53_status/assemble.py
from __future__ import annotations

import logging

import pandas as pd

from . import _shared
from .config import AnnotationConfig
from .evidence import (
    build_sample_map,
    cnv_loss_evidence,
    fusion_evidence,
    predisposition_by_sample,
    score_by_sample,
    snv_evidence,
    sv_evidence,
)

COUNT_COLS = ["snv_indel_counts", "cnv_loss_counts", "sv_counts", "fusion_counts"]
FLAG_COLS = ["hotspot", "activating"]
EVIDENCE_STR_COLS = [
    "hgvsp_short",
    "cnv_loss_evidence",
    "sv_type",
    "fusion_evidence",
    "cancer_predispositions",
]

# Output column order of the wide per-sample table (before classification columns).
ALTERATION_TABLE_COLS = [
    "sample_id",
    "biospecimen_ids_dna",
    "biospecimen_ids_rna",
    "cancer_group",
    "tp53_score",
    *COUNT_COLS,
    *FLAG_COLS,
    *EVIDENCE_STR_COLS,
]


def _sample_universe(sample_map: pd.DataFrame) -> pd.DataFrame:
    def _ids(mask: pd.Series) -> pd.Series:
        sub = sample_map[mask]
        return sub.groupby("sample_id")["biospecimen_id"].agg(
            lambda s: _shared.join_evidence(sorted(s))
        )

    base = pd.DataFrame({"sample_id": sorted(set(sample_map["sample_id"].tolist()))})
    base = base.merge(
        _ids(~sample_map["is_rna"]).rename("biospecimen_ids_dna"),
        left_on="sample_id",
        right_index=True,
        how="left",
    )
    base = base.merge(
        _ids(sample_map["is_rna"]).rename("biospecimen_ids_rna"),
        left_on="sample_id",
        right_index=True,
        how="left",
    )
    groups = (
        sample_map[sample_map["cancer_group"] != ""]
        .groupby("sample_id")["cancer_group"]
        .first()
        .rename("cancer_group")
    )
    base = base.merge(groups, left_on="sample_id", right_index=True, how="left")
    for c in ("biospecimen_ids_dna", "biospecimen_ids_rna", "cancer_group"):
        base[c] = base[c].fillna("")
    return base


def assemble_alteration_table(
    *,
    histologies: pd.DataFrame,
    config: AnnotationConfig,
    snv: pd.DataFrame | None = None,
    cnv: pd.DataFrame | None = None,
    sv: pd.DataFrame | None = None,
    fusions: pd.DataFrame | None = None,
    scores: pd.DataFrame | None = None,
) -> pd.DataFrame:
    """
    Join per-type evidence into one row per tumor sample.

    The sample universe is every non-normal sample in `histologies`. Missing counts
    become 0, missing flags False, missing evidence strings "", and a sample without a
    scored RNA library gets a null `tp53_score`.

    All inputs are expected to be normalized by `schema.read_table` / `normalize_table`.
    A None input means "no calls of that type".
    """
    sample_map = build_sample_map(histologies)
    base = _sample_universe(sample_map)

    parts: list[pd.DataFrame] = []
    if snv is not None:
        parts.append(snv_evidence(snv, sample_map, config))
    if cnv is not None:
        parts.append(cnv_loss_evidence(cnv, sample_map, config))
    if sv is not None:
        parts.append(sv_evidence(sv, sample_map, config))
    if fusions is not None:
        parts.append(fusion_evidence(fusions, sample_map, config))
    parts.append(predisposition_by_sample(sample_map))
    if scores is not None:
        parts.append(score_by_sample(scores, sample_map))

    out = base
    for part in parts:
        out = out.merge(part, on="sample_id", how="left")

    for c in COUNT_COLS:
        if c not in out.columns:
            out[c] = 0
        out[c] = out[c].fillna(0).astype(int)
    for c in FLAG_COLS:
        if c not in out.columns:
            out[c] = False
        out[c] = out[c].fillna(False).astype(bool)
    for c in EVIDENCE_STR_COLS:
        if c not in out.columns:
            out[c] = ""
        out[c] = out[c].fillna("")
    if "tp53_score" not in out.columns:
        out["tp53_score"] = float("nan")
    out["tp53_score"] = pd.to_numeric(out["tp53_score"], errors="coerce").astype(float)

    n_any = int((out[COUNT_COLS].sum(axis=1) > 0).sum())
    logging.info(
        "assembled %d sample(s); %d with at least one %s alteration", len(out), n_any, config.gene
    )
    return out[ALTERATION_TABLE_COLS].reset_index(drop=True)
