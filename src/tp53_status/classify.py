# tp53-status/src/tp53_status/classify.py
from __future__ import annotations

import pandas as pd

from .labels import (
    RULE_ACTIVATING,
    RULE_BIALLELIC,
    RULE_HOTSPOT,
    RULE_LFS_SCORE,
    RULE_LFS_SNV,
    RULE_LFS_STRUCTURAL,
    RULE_MULTI_SNV,
    RULE_NONE,
    RULE_SCORE_ALTERED,
    Label,
    label_for_rule,
)
from .record import SampleAlterationRecord, records_from_table

LI_FRAUMENI = "Li-Fraumeni syndrome"
SCORE_THRESHOLD = 0.5

STATUS_COL = "tp53_altered"
RULE_COL = "tp53_altered_rule"


def _score_above(record: SampleAlterationRecord, threshold: float) -> bool:
    # NULL score never passes the threshold.
    s = record.expression_score
    return s is not None and s > threshold


def explain(
    record: SampleAlterationRecord,
    *,
    predisposition_label: str = LI_FRAUMENI,
    score_threshold: float = SCORE_THRESHOLD,
) -> str:
    """
    Return the code of the first rule that decides `record`.

    Rules are evaluated top to bottom; activating evidence wins over any loss evidence.
    """
    snv = record.snv_indel_count
    structural = record.structural_count >= 1
    lfs = record.predisposition == predisposition_label
    high_score = _score_above(record, score_threshold)

    if record.activating_flag:
        return RULE_ACTIVATING
    if record.hotspot_flag:
        return RULE_HOTSPOT
    if snv >= 1 and structural:
        return RULE_BIALLELIC
    if snv > 1:
        return RULE_MULTI_SNV
    if snv >= 1 and lfs:
        return RULE_LFS_SNV
    if structural and lfs:
        return RULE_LFS_STRUCTURAL
    if high_score and lfs:
        return RULE_LFS_SCORE
    # TODO: confirm with the curation team whether a high score plus any single event
    # should really call loss; it is broader than the biallelic/hotspot rules above.
    if high_score and record.has_any_alteration:
        return RULE_SCORE_ALTERED
    return RULE_NONE


def classify(
    record: SampleAlterationRecord,
    *,
    predisposition_label: str = LI_FRAUMENI,
    score_threshold: float = SCORE_THRESHOLD,
) -> Label:
    """Functional status call for one sample: "activated", "loss" or "other"."""
    code = explain(
        record, predisposition_label=predisposition_label, score_threshold=score_threshold
    )
    return label_for_rule(code)  # type: ignore[return-value]


def classify_table(
    df: pd.DataFrame,
    *,
    predisposition_label: str = LI_FRAUMENI,
    score_threshold: float = SCORE_THRESHOLD,
) -> pd.DataFrame:
    """
    Append `tp53_altered` and `tp53_altered_rule` to a wide per-sample table.

    Rows are validated into SampleAlterationRecord first, so malformed rows raise
    ValueError here (the loading boundary), not inside `classify`.
    """
    out = df.copy()
    records = records_from_table(out)
    codes = [
        explain(r, predisposition_label=predisposition_label, score_threshold=score_threshold)
        for r in records
    ]
    out[STATUS_COL] = [label_for_rule(c) for c in codes]
    out[RULE_COL] = codes
    return out
