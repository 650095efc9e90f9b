# tp53-status/src/tp53_status/labels.py
from __future__ import annotations

from typing import Final, Literal

# Keep these stable: they are written into tp53_altered_status.tsv and read downstream.

LABEL_ACTIVATED: Final[str] = "activated"
LABEL_LOSS: Final[str] = "loss"
LABEL_OTHER: Final[str] = "other"

LABELS: Final[tuple[str, ...]] = (LABEL_ACTIVATED, LABEL_LOSS, LABEL_OTHER)

Label = Literal["activated", "loss", "other"]

# Rule codes (which guard decided the label), in evaluation order.
RULE_ACTIVATING: Final[str] = "activating"
RULE_HOTSPOT: Final[str] = "hotspot"
RULE_BIALLELIC: Final[str] = "biallelic"
RULE_MULTI_SNV: Final[str] = "multi_snv"
RULE_LFS_SNV: Final[str] = "lfs_snv"
RULE_LFS_STRUCTURAL: Final[str] = "lfs_structural"
RULE_LFS_SCORE: Final[str] = "lfs_score"
RULE_SCORE_ALTERED: Final[str] = "score_altered"
RULE_NONE: Final[str] = "none"

LOSS_RULES: Final[tuple[str, ...]] = (
    RULE_HOTSPOT,
    RULE_BIALLELIC,
    RULE_MULTI_SNV,
    RULE_LFS_SNV,
    RULE_LFS_STRUCTURAL,
    RULE_LFS_SCORE,
    RULE_SCORE_ALTERED,
)

ALL_RULES: Final[tuple[str, ...]] = (RULE_ACTIVATING,) + LOSS_RULES + (RULE_NONE,)


def label_for_rule(code: str) -> str:
    """
    Map a rule code to the label it implies.

    Parameters
    ----------
    code : str
        One of ALL_RULES.

    Returns
    -------
    str
        "activated", "loss" or "other".

    Raises
    ------
    ValueError
        If `code` is not a known rule code.
    """
    if code == RULE_ACTIVATING:
        return LABEL_ACTIVATED
    if code in LOSS_RULES:
        return LABEL_LOSS
    if code == RULE_NONE:
        return LABEL_OTHER
    raise ValueError(f"unknown rule code: {code!r}")

