# tp53-status/tests/test_score.py
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from tp53_status.score import (
    LinearClassifier,
    apply_classifier,
    read_expression_matrix,
    zscore_genes,
)


def _clf() -> LinearClassifier:
    coef = pd.DataFrame(
        {"gene": ["(Intercept)", "CDKN1A", "MDM2", "RRM2B"], "weight": ["0.1", "-1.5", "-1.0", "-0.5"]}
    )
    return LinearClassifier.from_frame(coef)


def test_from_frame_reads_intercept():
    clf = _clf()
    assert clf.intercept == pytest.approx(0.1)
    assert list(clf.weights.index) == ["CDKN1A", "MDM2", "RRM2B"]


@pytest.mark.parametrize(
    "coef, msg",
    [
        (pd.DataFrame({"gene": ["A"], "coef": [1.0]}), "'gene' and 'weight'"),
        (pd.DataFrame({"gene": ["A"], "weight": ["x"]}), "non-numeric"),
        (pd.DataFrame({"gene": ["A", "A"], "weight": [1.0, 2.0]}), "more than once"),
        (pd.DataFrame({"gene": ["(intercept)"], "weight": [1.0]}), "no gene weights"),
    ],
)
def test_from_frame_rejects_bad_coefficients(coef, msg):
    with pytest.raises(ValueError, match=msg):
        LinearClassifier.from_frame(coef)


def test_zscore_constant_gene_is_zero():
    z = zscore_genes(pd.DataFrame({"a": [1.0, 5.0], "b": [3.0, 5.0]}, index=["G1", "G2"]))
    assert z.loc["G1"].tolist() == pytest.approx([-1.0, 1.0])
    assert z.loc["G2"].tolist() == [0.0, 0.0]


def test_apply_classifier_low_p53_targets_score_high():
    expr = pd.DataFrame(
        {
            "BS_R1": [1.0, 2.0, 1.0, 9.0],  # low p53 targets
            "BS_R2": [10.0, 12.0, 8.0, 9.0],
            "BS_R3": [5.0, 6.0, 4.0, 9.0],
        },
        index=["CDKN1A", "MDM2", "RRM2B", "GAPDH"],
    )
    out = apply_classifier(expr, _clf())
    assert out["biospecimen_id"].tolist() == ["BS_R1", "BS_R2", "BS_R3"]
    s = out.set_index("biospecimen_id")["score"]
    assert ((s > 0) & (s < 1)).all()
    assert s["BS_R1"] > s["BS_R3"] > s["BS_R2"]
    assert s["BS_R1"] > 0.5 > s["BS_R2"]


def test_apply_classifier_tolerates_missing_genes_but_not_all(caplog):
    expr = pd.DataFrame({"BS_R1": [1.0], "BS_R2": [3.0]}, index=["CDKN1A"])
    out = apply_classifier(expr, _clf())
    assert len(out) == 2
    assert "absent from expression matrix" in caplog.text

    with pytest.raises(ValueError, match="no classifier genes"):
        apply_classifier(pd.DataFrame({"BS_R1": [1.0]}, index=["GAPDH"]), _clf())


def test_apply_classifier_log_transform_keeps_order():
    expr = pd.DataFrame(
        {"BS_R1": [1.0, 2.0, 1.0], "BS_R2": [100.0, 120.0, 80.0]},
        index=["CDKN1A", "MDM2", "RRM2B"],
    )
    s = apply_classifier(expr, _clf(), log_transform=True).set_index("biospecimen_id")["score"]
    assert s["BS_R1"] > s["BS_R2"]
    assert np.isfinite(s.to_numpy()).all()


def test_read_expression_matrix(tmp_path):
    p = tmp_path / "expr.tsv"
    p.write_text("gene_id\tBS_R1\tBS_R2\nCDKN1A\t1.5\t2\nMDM2\tNA\t3\n", encoding="utf-8")
    m = read_expression_matrix(str(p))
    assert list(m.columns) == ["BS_R1", "BS_R2"]
    assert m.loc["CDKN1A", "BS_R2"] == 2.0
    assert np.isnan(m.loc["MDM2", "BS_R1"])

    with pytest.raises(ValueError, match="not supported"):
        read_expression_matrix(str(tmp_path / "expr.rds"))
