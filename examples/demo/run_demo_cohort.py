#!/usr/bin/env python3
# tp53-status/examples/demo/run_demo_cohort.py
from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

from tp53_status import RunConfig, run_pipeline
from tp53_status.schema import write_tsv


def _write_demo_inputs(indir: Path) -> dict[str, str]:
    indir.mkdir(parents=True, exist_ok=True)

    hist = pd.DataFrame(
        [
            ["BS_D1", "7316-1", "WGS", "Tumor", "", "High-grade glioma"],
            ["BS_R1", "7316-1", "RNA-Seq", "Tumor", "", "High-grade glioma"],
            ["BS_D2", "7316-2", "WGS", "Tumor", "", "Medulloblastoma"],
            ["BS_R2", "7316-2", "RNA-Seq", "Tumor", "", "Medulloblastoma"],
            ["BS_D3", "7316-3", "WXS", "Tumor", "Li-Fraumeni syndrome", "Choroid plexus tumor"],
            ["BS_R3", "7316-3", "RNA-Seq", "Tumor", "Li-Fraumeni syndrome", "Choroid plexus tumor"],
            ["BS_D4", "7316-4", "WGS", "Tumor", "", "Ependymoma"],
            ["BS_R4", "7316-4", "RNA-Seq", "Tumor", "", "Ependymoma"],
            ["BS_D5", "7316-5", "WGS", "Tumor", "", "Low-grade glioma"],
        ],
        columns=[
            "Kids_First_Biospecimen_ID",
            "sample_id",
            "experimental_strategy",
            "sample_type",
            "cancer_predispositions",
            "cancer_group",
        ],
    )
    snv = pd.DataFrame(
        [
            ["BS_D1", "TP53", "Missense_Mutation", "p.R248W", "248/393"],
            ["BS_D2", "TP53", "Missense_Mutation", "p.Y220C", "220/393"],
            ["BS_D2", "TP53", "Nonsense_Mutation", "p.R342*", "342/393"],
            ["BS_D3", "TP53", "Splice_Site", "", ""],
        ],
        columns=[
            "Tumor_Sample_Barcode",
            "Hugo_Symbol",
            "Variant_Classification",
            "HGVSp_Short",
            "Protein_position",
        ],
    )
    sv = pd.DataFrame(
        [["BS_D4", "17", "7670000", "7690000", "DEL"]],
        columns=["Kids.First.Biospecimen.ID.Tumor", "SV.chrom", "SV.start", "SV.end", "SV.type"],
    )
    scores = pd.DataFrame(
        [["BS_R1", 0.31], ["BS_R2", 0.92], ["BS_R3", 0.44], ["BS_R4", 0.81]],
        columns=["sample_name", "tp53_score"],
    )

    paths = {
        "histologies": indir / "histologies.tsv",
        "snv": indir / "snv_consensus.maf.tsv",
        "sv": indir / "sv_manta.tsv",
        "scores": indir / "tp53_scores.tsv",
    }
    write_tsv(hist, str(paths["histologies"]))
    write_tsv(snv, str(paths["snv"]))
    write_tsv(sv, str(paths["sv"]))
    write_tsv(scores, str(paths["scores"]))
    return {k: str(v) for k, v in paths.items()}


def main() -> None:
    ap = argparse.ArgumentParser(description="demo: synthetic cohort -> TP53 alteration status")
    ap.add_argument("--outdir", required=True, help="Output directory (inputs go to <outdir>_inputs)")
    ap.add_argument("--force", action="store_true", help="Allow a non-empty outdir")
    args = ap.parse_args()

    outdir = Path(args.outdir).resolve()
    inputs = _write_demo_inputs(outdir.parent / f"{outdir.name}_inputs")

    res = run_pipeline(
        RunConfig(
            histologies=inputs["histologies"],
            snv=inputs["snv"],
            sv=inputs["sv"],
            scores=inputs["scores"],
            outdir=str(outdir),
            force=bool(args.force),
        )
    )

    cols = ["sample_id", "tp53_altered", "tp53_altered_rule", "tp53_score"]
    print(res.status_table[cols].to_string(index=False))
    print("[OK] wrote status table:", res.artifacts["status_tsv"])


if __name__ == "__main__":
    main()
