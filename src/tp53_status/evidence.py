# tp53-status/src/tp53_status/evidence.py
from __future__ import annotations

import logging

import pandas as pd

from . import _shared
from .config import AnnotationConfig

# -----------------------------------------------------------------------------
# Evidence builders
# -----------------------------------------------------------------------------
# Each builder takes a normalized input table (schema.read_table) plus the
# biospecimen -> sample map and returns ONE row per sample_id with counts of
# DISTINCT qualifying events. Samples without events are absent here; the
# assembly step fills them with zeros.
# -----------------------------------------------------------------------------

RNA_STRATEGIES = {"rna-seq", "rnaseq", "rna"}
NORMAL_SAMPLE_TYPES = {"normal"}

SNV_COLS = ["sample_id", "snv_indel_counts", "hotspot", "activating", "hgvsp_short"]
CNV_COLS = ["sample_id", "cnv_loss_counts", "cnv_loss_evidence"]
SV_COLS = ["sample_id", "sv_counts", "sv_type"]
FUSION_COLS = ["sample_id", "fusion_counts", "fusion_evidence"]
PREDISPOSITION_COLS = ["sample_id", "cancer_predispositions"]
SCORE_COLS = ["sample_id", "tp53_score"]


def _empty(cols: list[str]) -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype=object) for c in cols})


def build_sample_map(histologies: pd.DataFrame) -> pd.DataFrame:
    """
    Biospecimen -> sample map from a normalized histologies table.

    Normal (germline) biospecimens are dropped. Each biospecimen is tagged as RNA
    (experimental_strategy RNA-Seq) or DNA (anything else).

    Raises
    ------
    ValueError
        If a biospecimen is assigned to more than one sample_id.
    """
    df = histologies.copy()
    df = df[df["biospecimen_id"] != ""]
    df = df[~df["sample_type"].str.lower().isin(NORMAL_SAMPLE_TYPES)]
    df = df[df["sample_id"] != ""]
    df["is_rna"] = df["experimental_strategy"].str.lower().isin(RNA_STRATEGIES)

    conflicts = df.groupby("biospecimen_id")["sample_id"].nunique()
    conflicts = conflicts[conflicts > 1]
    if len(conflicts) > 0:
        raise ValueError(
            "histologies maps biospecimens to more than one sample_id: "
            f"{conflicts.index.tolist()[:10]}"
        )

    keep = [
        "biospecimen_id",
        "sample_id",
        "is_rna",
        "experimental_strategy",
        "participant_id",
        "cancer_predispositions",
        "cancer_group",
    ]
    return df[keep].drop_duplicates(subset=["biospecimen_id"]).reset_index(drop=True)


def _attach_sample_id(df: pd.DataFrame, sample_map: pd.DataFrame, what: str) -> pd.DataFrame:
    merged = df.merge(
        sample_map[["biospecimen_id", "sample_id"]], on="biospecimen_id", how="left"
    )
    unmapped = merged["sample_id"].isna()
    if unmapped.any():
        ids = sorted(set(merged.loc[unmapped, "biospecimen_id"].tolist()))
        logging.warning(
            "%s: %d row(s) from %d biospecimen(s) not in histologies; dropped (e.g. %s)",
            what,
            int(unmapped.sum()),
            len(ids),
            ids[:3],
        )
    return merged[~unmapped].copy()


def _snv_key(row: pd.Series) -> str:
    chrom = _shared.normalize_chrom(row["chromosome"])
    start = _shared.clean_str(row["start_position"])
    if chrom and start:
        ref = _shared.clean_str(row["reference_allele"])
        alt = _shared.clean_str(row["tumor_seq_allele2"])
        return f"{chrom}:{start}:{ref}>{alt}"
    hgvsp = _shared.normalize_protein_change(row["hgvsp_short"])
    if hgvsp:
        return hgvsp
    return f"row:{row.name}"


def snv_evidence(
    snv: pd.DataFrame, sample_map: pd.DataFrame, config: AnnotationConfig
) -> pd.DataFrame:
    """
    Qualifying SNV/indel calls in the configured gene, per sample.

    Calls with an excluded Variant_Classification (silent, intronic, UTR, flank) do not
    count. Duplicate calls of the same variant (e.g. WGS and panel libraries of the
    same sample) count once.
    """
    df = snv[snv["hugo_symbol"] == config.gene]
    excluded = set(config.excluded_variant_classes)
    df = df[~df["variant_classification"].isin(excluded)]
    if df.empty:
        return _empty(SNV_COLS)

    df = _attach_sample_id(df.reset_index(drop=True), sample_map, "snv")
    if df.empty:
        return _empty(SNV_COLS)

    hotspots = set(config.hotspot_positions)
    activating = set(config.activating_changes)

    df["variant_key"] = df.apply(_snv_key, axis=1)
    df["hgvsp_norm"] = df["hgvsp_short"].map(_shared.normalize_protein_change)
    df["aa_pos"] = [
        _shared.parse_protein_position(pp, hg)
        for pp, hg in zip(df["protein_position"], df["hgvsp_short"], strict=False)
    ]
    df["is_hotspot"] = df["aa_pos"].map(lambda p: p is not None and p in hotspots)
    df["is_activating"] = df["hgvsp_norm"].isin(activating)

    out = (
        df.groupby("sample_id", sort=True)
        .agg(
            snv_indel_counts=("variant_key", "nunique"),
            hotspot=("is_hotspot", "any"),
            activating=("is_activating", "any"),
            hgvsp_short=("hgvsp_norm", _shared.join_evidence),
        )
        .reset_index()
    )
    out["snv_indel_counts"] = out["snv_indel_counts"].astype(int)
    out["hotspot"] = out["hotspot"].astype(bool)
    out["activating"] = out["activating"].astype(bool)
    logging.debug(
        "snv: %d qualifying call(s) in %s across %d sample(s)", len(df), config.gene, len(out)
    )
    return out[SNV_COLS]


def cnv_loss_evidence(
    cnv: pd.DataFrame, sample_map: pd.DataFrame, config: AnnotationConfig
) -> pd.DataFrame:
    """Copy-number loss segments overlapping the gene, per sample."""
    loss = set(config.cnv_loss_statuses)
    df = cnv[(cnv["gene_symbol"] == config.gene) & (cnv["status"].str.lower().isin(loss))]
    if df.empty:
        return _empty(CNV_COLS)

    df = _attach_sample_id(df.reset_index(drop=True), sample_map, "cnv")
    if df.empty:
        return _empty(CNV_COLS)

    df["status_l"] = df["status"].str.lower()
    # same call from several DNA libraries of one sample counts once
    df["segment_key"] = df["status_l"] + "|" + df["copy_number"]
    out = (
        df.groupby("sample_id", sort=True)
        .agg(
            cnv_loss_counts=("segment_key", "nunique"),
            cnv_loss_evidence=("status_l", _shared.join_evidence),
        )
        .reset_index()
    )
    out["cnv_loss_counts"] = out["cnv_loss_counts"].astype(int)
    return out[CNV_COLS]


def sv_evidence(sv: pd.DataFrame, sample_map: pd.DataFrame, config: AnnotationConfig) -> pd.DataFrame:
    """Structural variants whose interval overlaps the gene locus, per sample."""
    if sv.empty:
        return _empty(SV_COLS)
    df = sv.copy()
    df["start_i"] = df["start"].map(_shared.to_int)
    df["end_i"] = df["end"].map(_shared.to_int)
    bad = df["start_i"].isna() | df["end_i"].isna()
    if bad.any():
        raise ValueError(
            f"sv table has non-numeric start/end at rows: {df.index[bad].tolist()[:10]}"
        )
    hit = [
        config.locus.overlaps(c, int(s), int(e))
        for c, s, e in zip(df["chrom"], df["start_i"], df["end_i"], strict=False)
    ]
    df = df[hit]
    if df.empty:
        return _empty(SV_COLS)

    df = _attach_sample_id(df.reset_index(drop=True), sample_map, "sv")
    if df.empty:
        return _empty(SV_COLS)

    df["sv_key"] = (
        df["chrom"].map(_shared.normalize_chrom)
        + ":"
        + df["start_i"].astype(int).astype(str)
        + "-"
        + df["end_i"].astype(int).astype(str)
        + ":"
        + df["sv_type"]
    )
    out = (
        df.groupby("sample_id", sort=True)
        .agg(sv_counts=("sv_key", "nunique"), sv_type=("sv_type", _shared.join_evidence))
        .reset_index()
    )
    out["sv_counts"] = out["sv_counts"].astype(int)
    return out[SV_COLS]


def _breakpoint_in_locus(x: object, config: AnnotationConfig) -> bool:
    bp = _shared.parse_breakpoint(x)
    if bp is None:
        return False
    return config.locus.contains(bp[0], bp[1])


def fusion_evidence(
    fusions: pd.DataFrame, sample_map: pd.DataFrame, config: AnnotationConfig
) -> pd.DataFrame:
    """Fusions with a breakpoint inside the gene's exon/intron span, per sample."""
    if fusions.empty:
        return _empty(FUSION_COLS)
    hit = fusions["left_breakpoint"].map(
        lambda x: _breakpoint_in_locus(x, config)
    ) | fusions["right_breakpoint"].map(lambda x: _breakpoint_in_locus(x, config))
    df = fusions[hit]
    if df.empty:
        return _empty(FUSION_COLS)

    df = _attach_sample_id(df.reset_index(drop=True), sample_map, "fusion")
    if df.empty:
        return _empty(FUSION_COLS)

    out = (
        df.groupby("sample_id", sort=True)
        .agg(
            fusion_counts=("fusion_name", "nunique"),
            fusion_evidence=("fusion_name", _shared.join_evidence),
        )
        .reset_index()
    )
    out["fusion_counts"] = out["fusion_counts"].astype(int)
    return out[FUSION_COLS]


def predisposition_by_sample(sample_map: pd.DataFrame) -> pd.DataFrame:
    """First annotated predisposition per sample (empty when none)."""
    if sample_map.empty:
        return _empty(PREDISPOSITION_COLS)
    df = sample_map[["sample_id", "cancer_predispositions"]].copy()
    df["cancer_predispositions"] = df["cancer_predispositions"].map(_shared.clean_str)
    df = df[df["cancer_predispositions"] != ""]
    if df.empty:
        return _empty(PREDISPOSITION_COLS)
    out = df.groupby("sample_id", sort=True)["cancer_predispositions"].first().reset_index()
    return out[PREDISPOSITION_COLS]


def score_by_sample(scores: pd.DataFrame, sample_map: pd.DataFrame) -> pd.DataFrame:
    """
    Classifier score per sample from RNA biospecimen scores.

    A sample with more than one RNA library takes the maximum score.

    Raises
    ------
    ValueError
        On non-numeric scores or scores outside [0, 1].
    """
    if scores.empty:
        return _empty(SCORE_COLS)
    df = scores.copy()
    df["score_f"] = df["score"].map(_shared.to_float)
    bad = df["score_f"].isna() & ~df["score"].map(_shared.is_na_token)
    if bad.any():
        raise ValueError(
            f"scores table has non-numeric scores for: {df.loc[bad, 'biospecimen_id'].tolist()[:10]}"
        )
    df = df[df["score_f"].notna()]
    out_of_range = (df["score_f"] < 0.0) | (df["score_f"] > 1.0)
    if out_of_range.any():
        raise ValueError(
            "scores must be within [0, 1]; offending biospecimens: "
            f"{df.loc[out_of_range, 'biospecimen_id'].tolist()[:10]}"
        )

    df = _attach_sample_id(df.reset_index(drop=True), sample_map, "scores")
    if df.empty:
        return _empty(SCORE_COLS)
    out = (
        df.groupby("sample_id", sort=True)
        .agg(tp53_score=("score_f", "max"))
        .reset_index()
    )
    return out[SCORE_COLS]
