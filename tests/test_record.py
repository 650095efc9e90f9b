# tp53-status/tests/test_record.py
from __future__ import annotations

import dataclasses
import math

import pandas as pd
import pytest

from tp53_status.record import (
    SampleAlterationRecord,
    records_from_table,
    records_to_table,
)


def test_from_mapping_accepts_wide_table_names():
    r = SampleAlterationRecord.from_mapping(
        {
            "sample_id": " 7316-100 ",
            "snv_indel_counts": "2",
            "cnv_loss_counts": 1.0,
            "sv_counts": "",
            "fusion_counts": None,
            "hotspot": "TRUE",
            "activating": "FALSE",
            "cancer_predispositions": "NA",
            "tp53_score": "0.83",
        }
    )
    assert r.sample_id == "7316-100"
    assert (r.snv_indel_count, r.cnv_loss_count, r.sv_count, r.fusion_count) == (2, 1, 0, 0)
    assert r.hotspot_flag is True
    assert r.activating_flag is False
    assert r.predisposition is None
    assert r.expression_score == pytest.approx(0.83)


def test_from_mapping_accepts_field_names():
    r = SampleAlterationRecord.from_mapping(
        {"sample_id": "S", "snv_indel_count": 1, "expression_score": math.nan}
    )
    assert r.snv_indel_count == 1
    assert r.expression_score is None


@pytest.mark.parametrize(
    "row, msg",
    [
        ({"sample_id": ""}, "sample_id"),
        ({"sample_id": "S", "cnv_loss_counts": -2}, "cnv_loss_count"),
        ({"sample_id": "S", "sv_counts": "many"}, "not numeric"),
        ({"sample_id": "S", "tp53_score": 1.5}, "within"),
        ({"sample_id": "S", "tp53_score": "high"}, "not numeric"),
        ({"sample_id": "S", "hotspot": True}, "snv_indel_count > 0"),
        ({"sample_id": "S", "snv_indel_counts": 1, "activating": "maybe"}, "boolean"),
    ],
)
def test_from_mapping_rejects_malformed_rows(row, msg):
    with pytest.raises(ValueError, match=msg):
        SampleAlterationRecord.from_mapping(row)


def test_record_is_frozen():
    r = SampleAlterationRecord(sample_id="S")
    with pytest.raises(dataclasses.FrozenInstanceError):
        r.snv_indel_count = 3  # type: ignore[misc]


def test_table_round_trip_keeps_order():
    df = pd.DataFrame(
        [
            {"sample_id": "b", "snv_indel_counts": 1, "hotspot": True, "tp53_score": 0.2},
            {"sample_id": "a", "snv_indel_counts": 0, "hotspot": False, "tp53_score": None},
        ]
    )
    recs = records_from_table(df)
    assert [r.sample_id for r in recs] == ["b", "a"]
    back = records_to_table(recs)
    assert back["sample_id"].tolist() == ["b", "a"]
    assert back["hotspot"].tolist() == [True, False]
    assert records_from_table(pd.DataFrame()) == []
