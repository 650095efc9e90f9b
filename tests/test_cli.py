# tp53-status/tests/test_cli.py
from __future__ import annotations

import csv
import json
import subprocess
import sys

import pandas as pd
import pytest


def _write_tsv(path, header, rows):
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f, delimiter="\t")
        w.writerow(header)
        w.writerows(rows)


def _write_inputs(tmp_path) -> dict[str, str]:
    hist = tmp_path / "histologies.tsv"
    _write_tsv(
        hist,
        [
            "Kids_First_Biospecimen_ID",
            "sample_id",
            "experimental_strategy",
            "sample_type",
            "cancer_predispositions",
            "cancer_group",
        ],
        [
            ["BS_D1", "S1", "WGS", "Tumor", "NA", "High-grade glioma"],
            ["BS_R1", "S1", "RNA-Seq", "Tumor", "NA", "High-grade glioma"],
            ["BS_D2", "S2", "WGS", "Tumor", "NA", "Medulloblastoma"],
            ["BS_R2", "S2", "RNA-Seq", "Tumor", "NA", "Medulloblastoma"],
            ["BS_D3", "S3", "WGS", "Tumor", "Li-Fraumeni syndrome", "Medulloblastoma"],
            ["BS_R3", "S3", "RNA-Seq", "Tumor", "Li-Fraumeni syndrome", "Medulloblastoma"],
            ["BS_D4", "S4", "WGS", "Tumor", "NA", "Ependymoma"],
            ["BS_N4", "S4N", "WGS", "Normal", "NA", "NA"],
        ],
    )

    snv = tmp_path / "snv_consensus.maf.tsv"
    _write_tsv(
        snv,
        ["Tumor_Sample_Barcode", "Hugo_Symbol", "Variant_Classification", "HGVSp_Short", "Protein_position"],
        [
            ["BS_D1", "TP53", "Missense_Mutation", "p.R273C", "273/393"],
            ["BS_D2", "TP53", "Missense_Mutation", "p.R175H", "175/393"],
            ["BS_D3", "TP53", "Missense_Mutation", "p.Y220C", "220/393"],
            ["BS_D4", "TP53", "Silent", "p.P72=", "72/393"],
        ],
    )

    cnv = tmp_path / "cnv.tsv"
    _write_tsv(cnv, ["biospecimen_id", "gene_symbol", "status"], [["BS_D3", "TP53", "loss"]])

    scores = tmp_path / "scores.tsv"
    _write_tsv(
        scores,
        ["sample_name", "tp53_score"],
        [["BS_R1", "0.40"], ["BS_R2", "0.95"], ["BS_R3", "0.85"]],
    )
    return {"histologies": str(hist), "snv": str(snv), "cnv": str(cnv), "scores": str(scores)}


def _run_cli(tmp_path, *extra: str):
    inputs = _write_inputs(tmp_path)
    outdir = tmp_path / "out"
    outdir.mkdir(parents=True, exist_ok=True)
    cmd = [
        sys.executable,
        "-m",
        "tp53_status.cli",
        "run",
        "--histologies",
        inputs["histologies"],
        "--snv",
        inputs["snv"],
        "--cnv",
        inputs["cnv"],
        "--scores",
        inputs["scores"],
        "--outdir",
        str(outdir),
        *extra,
    ]
    subprocess.check_call(cmd)
    return outdir


def test_cli_run_writes_status_table_and_meta(tmp_path):
    outdir = _run_cli(tmp_path)

    status = pd.read_csv(outdir / "tp53_altered_status.tsv", sep="\t", keep_default_na=False)
    got = dict(zip(status["sample_id"], status["tp53_altered"], strict=True))
    assert got == {"S1": "activated", "S2": "loss", "S3": "loss", "S4": "other"}
    rules = dict(zip(status["sample_id"], status["tp53_altered_rule"], strict=True))
    assert rules["S2"] == "hotspot"
    assert rules["S3"] == "biallelic"

    meta = json.loads((outdir / "run_meta.json").read_text(encoding="utf-8"))
    assert meta["status"] == "ok"
    assert meta["label_counts"] == {"loss": 2, "activated": 1, "other": 1}
    assert "sha256" in meta["inputs"]["histologies"]

    assert (outdir / "report.md").exists()
    assert (outdir / "tp53_status_summary.tsv").exists()
    assert (outdir / "tp53_score_by_status.png").exists()
    assert (outdir / "annotation_config.resolved.json").exists()


def test_cli_run_threshold_from_config(tmp_path):
    card = tmp_path / "annotation_config.json"
    card.write_text(json.dumps({"score_threshold": 0.9}), encoding="utf-8")
    outdir = _run_cli(tmp_path, "--config", str(card), "--no-plot")

    status = pd.read_csv(outdir / "tp53_altered_status.tsv", sep="\t", keep_default_na=False)
    rules = dict(zip(status["sample_id"], status["tp53_altered_rule"], strict=True))
    # S3: SNV + CNV loss decides before any score rule
    assert rules["S3"] == "biallelic"
    assert not (outdir / "tp53_score_by_status.png").exists()


def test_cli_run_refuses_non_empty_outdir(tmp_path):
    outdir = _run_cli(tmp_path, "--no-plot")
    inputs = _write_inputs(tmp_path)
    cmd = [
        sys.executable,
        "-m",
        "tp53_status.cli",
        "run",
        "--histologies",
        inputs["histologies"],
        "--outdir",
        str(outdir),
    ]
    r = subprocess.run(cmd, capture_output=True, text=True)
    assert r.returncode != 0
    assert "outdir is not empty" in r.stderr


def test_cli_classify_pre_assembled_table(tmp_path):
    inp = tmp_path / "evidence.tsv"
    _write_tsv(
        inp,
        [
            "sample_id",
            "snv_indel_counts",
            "cnv_loss_counts",
            "sv_counts",
            "fusion_counts",
            "hotspot",
            "activating",
            "cancer_predispositions",
            "tp53_score",
        ],
        [
            ["S1", "1", "0", "0", "0", "TRUE", "TRUE", "", ""],
            ["S2", "0", "1", "0", "0", "FALSE", "FALSE", "Li-Fraumeni syndrome", ""],
            ["S3", "0", "0", "0", "0", "FALSE", "FALSE", "", "0.75"],
            ["S4", "0", "0", "1", "0", "FALSE", "FALSE", "", "0.75"],
        ],
    )
    out = tmp_path / "classified" / "status.tsv"
    subprocess.check_call(
        [
            sys.executable,
            "-m",
            "tp53_status.cli",
            "classify",
            "--input",
            str(inp),
            "--output",
            str(out),
        ]
    )
    df = pd.read_csv(out, sep="\t", keep_default_na=False)
    assert df["tp53_altered"].tolist() == ["activated", "loss", "other", "loss"]


def test_cli_score_then_plot(tmp_path):
    expr = tmp_path / "expr.tsv"
    _write_tsv(
        expr,
        ["gene", "BS_R1", "BS_R2", "BS_R3"],
        [["CDKN1A", "1", "10", "5"], ["MDM2", "2", "12", "6"]],
    )
    coef = tmp_path / "coef.tsv"
    _write_tsv(coef, ["gene", "weight"], [["(Intercept)", "0"], ["CDKN1A", "-1"], ["MDM2", "-1"]])

    scores = tmp_path / "scores.tsv"
    subprocess.check_call(
        [
            sys.executable,
            "-m",
            "tp53_status.cli",
            "score",
            "--expression",
            str(expr),
            "--classifier",
            str(coef),
            "--output",
            str(scores),
        ]
    )
    df = pd.read_csv(scores, sep="\t")
    assert df["biospecimen_id"].tolist() == ["BS_R1", "BS_R2", "BS_R3"]
    assert df["score"].between(0, 1).all()


@pytest.mark.smoke
def test_run_pipeline_scores_expression_in_process(tmp_path):
    from tp53_status import RunConfig, run_pipeline

    inputs = _write_inputs(tmp_path)
    expr = tmp_path / "expr.tsv"
    _write_tsv(
        expr,
        ["gene", "BS_R1", "BS_R2", "BS_R3"],
        [["CDKN1A", "10", "1", "2"], ["MDM2", "12", "2", "1"]],
    )
    coef = tmp_path / "coef.tsv"
    _write_tsv(coef, ["gene", "weight"], [["CDKN1A", "-2"], ["MDM2", "-2"]])

    res = run_pipeline(
        RunConfig(
            histologies=inputs["histologies"],
            outdir=str(tmp_path / "run"),
            snv=inputs["snv"],
            expression=str(expr),
            classifier=str(coef),
        )
    )
    assert "scores_tsv" in res.artifacts
    s = res.status_table.set_index("sample_id")
    assert s.loc["S4", "tp53_altered"] == "other"
    assert s["tp53_score"].notna().sum() == 3
    # S1 carries an activating change regardless of its score
    assert s.loc["S1", "tp53_altered"] == "activated"


def test_run_pipeline_expression_without_classifier_raises(tmp_path):
    from tp53_status import RunConfig, run_pipeline

    inputs = _write_inputs(tmp_path)
    with pytest.raises(ValueError, match="without classifier"):
        run_pipeline(
            RunConfig(
                histologies=inputs["histologies"],
                outdir=str(tmp_path / "run"),
                expression=inputs["scores"],
            )
        )
