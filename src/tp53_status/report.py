# tp53-status/src/tp53_status/report.py
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from .classify import RULE_COL, STATUS_COL
from .labels import ALL_RULES, LABELS

SUMMARY_TSV = "tp53_status_summary.tsv"
REPORT_MD = "report.md"


def _require_columns(df: pd.DataFrame, cols: list[str], who: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"{who}: missing required columns: {missing}")


def _safe_table_md(df: pd.DataFrame, n: int = 20) -> str:
    if df is None or df.empty:
        return "_(empty)_"
    d = df.head(n).astype(str)
    header = "| " + " | ".join(d.columns) + " |"
    sep = "| " + " | ".join(["---"] * len(d.columns)) + " |"
    rows = ["| " + " | ".join(r) + " |" for r in d.itertuples(index=False, name=None)]
    return "\n".join([header, sep, *rows])


def summarize_status(df: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """
    Label and rule counts, plus a cancer_group x label crosstab when available.

    Every label appears in the label counts, including zero-count ones.
    """
    _require_columns(df, [STATUS_COL], "summarize_status")

    labels = df[STATUS_COL].astype(str)
    counts = labels.value_counts().reindex(list(LABELS), fill_value=0)
    n = int(len(df))
    label_counts = pd.DataFrame(
        {
            "label": counts.index,
            "n": counts.values.astype(int),
            "fraction": [(c / n) if n else 0.0 for c in counts.values],
        }
    )

    out: dict[str, pd.DataFrame] = {"labels": label_counts}

    if RULE_COL in df.columns:
        rc = df[RULE_COL].astype(str).value_counts().reindex(list(ALL_RULES), fill_value=0)
        out["rules"] = pd.DataFrame({"rule": rc.index, "n": rc.values.astype(int)})

    if "cancer_group" in df.columns:
        grp = df["cancer_group"].astype(str).replace("", "Unknown")
        ct = pd.crosstab(grp, labels).reindex(columns=list(LABELS), fill_value=0)
        ct.index.name = "cancer_group"
        ct = ct.reset_index()
        ct.columns.name = None
        out["by_cancer_group"] = ct

    return out


def write_report(df: pd.DataFrame, outdir: str, *, gene: str = "TP53") -> dict[str, str]:
    """
    Write the label summary TSV and a short markdown report into `outdir`.

    Returns
    -------
    dict[str, str]
        Artifact name -> path.
    """
    out = Path(outdir)
    out.mkdir(parents=True, exist_ok=True)

    summ = summarize_status(df)
    summary_path = out / SUMMARY_TSV
    summ["labels"].to_csv(summary_path, sep="\t", index=False)

    lines = [
        f"# {gene} alteration status",
        "",
        f"- generated: {datetime.now(timezone.utc).isoformat(timespec='seconds')}",
        f"- samples: {len(df)}",
        "",
        "## Labels",
        "",
        _safe_table_md(summ["labels"]),
        "",
    ]
    if "rules" in summ:
        lines += ["## Deciding rule", "", _safe_table_md(summ["rules"], n=len(ALL_RULES)), ""]
    if "by_cancer_group" in summ:
        lines += ["## By cancer group", "", _safe_table_md(summ["by_cancer_group"], n=100), ""]

    report_path = out / REPORT_MD
    report_path.write_text("\n".join(lines), encoding="utf-8")
    return {"summary_tsv": str(summary_path), "report_md": str(report_path)}
