# tp53-status/src/tp53_status/record.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

import pandas as pd

from . import _shared

# Wide-table column for each record field (tp53_altered_status.tsv contract).
RECORD_COLUMNS: dict[str, str] = {
    "sample_id": "sample_id",
    "snv_indel_count": "snv_indel_counts",
    "cnv_loss_count": "cnv_loss_counts",
    "sv_count": "sv_counts",
    "fusion_count": "fusion_counts",
    "hotspot_flag": "hotspot",
    "activating_flag": "activating",
    "predisposition": "cancer_predispositions",
    "expression_score": "tp53_score",
}


@dataclass(frozen=True)
class SampleAlterationRecord:
    """
    Per-sample evidence for one gene, joined across variant types.

    Construct with `from_mapping` at the loading boundary to get validation;
    the dataclass itself only carries values.
    """

    sample_id: str
    snv_indel_count: int = 0
    cnv_loss_count: int = 0
    sv_count: int = 0
    fusion_count: int = 0
    hotspot_flag: bool = False
    activating_flag: bool = False
    predisposition: str | None = None
    expression_score: float | None = None

    @property
    def structural_count(self) -> int:
        return self.cnv_loss_count + self.sv_count + self.fusion_count

    @property
    def has_any_alteration(self) -> bool:
        return self.snv_indel_count >= 1 or self.structural_count >= 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> SampleAlterationRecord:
        """
        Build a validated record from a wide-table row (or plain dict).

        Accepts either record field names or wide-table column names
        (e.g. "snv_indel_counts", "tp53_score").

        Raises
        ------
        ValueError
            On a missing sample_id, negative counts, a score outside [0, 1],
            or flags set without any SNV/indel call.
        """

        def _get(field: str) -> Any:
            if field in row:
                return row[field]
            return row.get(RECORD_COLUMNS[field], None)

        sample_id = _shared.clean_str(_get("sample_id"))
        if not sample_id:
            raise ValueError("SampleAlterationRecord: sample_id is empty")

        counts: dict[str, int] = {}
        for field in ("snv_indel_count", "cnv_loss_count", "sv_count", "fusion_count"):
            raw = _get(field)
            v = _shared.to_int(raw)
            if v is None:
                if not _shared.is_na_token(raw):
                    raise ValueError(f"{sample_id}: {field} is not numeric: {raw!r}")
                v = 0
            if v < 0:
                raise ValueError(f"{sample_id}: {field} must be >= 0 (got {v})")
            counts[field] = v

        hotspot = _shared.to_bool(_get("hotspot_flag"))
        activating = _shared.to_bool(_get("activating_flag"))
        if (hotspot or activating) and counts["snv_indel_count"] == 0:
            raise ValueError(
                f"{sample_id}: hotspot/activating flags require snv_indel_count > 0"
            )

        raw_score = _get("expression_score")
        score = _shared.to_float(raw_score)
        if score is None and not _shared.is_na_token(raw_score):
            raise ValueError(f"{sample_id}: expression_score is not numeric: {raw_score!r}")
        if score is not None and not (0.0 <= score <= 1.0):
            raise ValueError(f"{sample_id}: expression_score must be within [0, 1] (got {score})")

        return cls(
            sample_id=sample_id,
            hotspot_flag=hotspot,
            activating_flag=activating,
            predisposition=_shared.optional_str(_get("predisposition")),
            expression_score=score,
            **counts,
        )


def records_from_table(df: pd.DataFrame) -> list[SampleAlterationRecord]:
    """Validate every row of a wide per-sample table into records (row order kept)."""
    if df is None or df.empty:
        return []
    return [SampleAlterationRecord.from_mapping(row) for row in df.to_dict(orient="records")]


def records_to_table(records: list[SampleAlterationRecord]) -> pd.DataFrame:
    rows = [{RECORD_COLUMNS[k]: v for k, v in r.to_dict().items()} for r in records]
    return pd.DataFrame(rows, columns=list(RECORD_COLUMNS.values()))
