# tp53-status/src/tp53_status/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from .classify import classify_table
from .config import AnnotationConfig
from .pipeline import RunConfig, run_pipeline
from .schema import write_tsv
from .score import LinearClassifier, apply_classifier, read_expression_matrix
from .viz import ScorePlotConfig, plot_score_by_status


def cmd_run(args: argparse.Namespace) -> None:
    cfg = RunConfig(
        histologies=args.histologies,
        outdir=args.outdir,
        snv=args.snv,
        cnv=args.cnv,
        sv=args.sv,
        fusion=args.fusion,
        scores=args.scores,
        expression=args.expression,
        classifier=args.classifier,
        annotation_config=args.config,
        hotspots=args.hotspots,
        force=args.force,
        plot=not args.no_plot,
        run_meta_name=args.run_meta,
    )
    try:
        res = run_pipeline(cfg)
    except Exception as e:
        print(f"[ERROR] {type(e).__name__}: {e}", file=sys.stderr)
        raise
    print(f"[OK] wrote status table: {res.artifacts['status_tsv']}")


def cmd_classify(args: argparse.Namespace) -> None:
    card = AnnotationConfig.from_json(args.config).with_env_overrides()
    df = pd.read_csv(args.input, sep="\t", keep_default_na=False, na_values=[""], dtype=str)
    out = classify_table(
        df,
        predisposition_label=card.predisposition_label,
        score_threshold=card.score_threshold,
    )
    write_tsv(out, args.output, excel_safe=True)
    print(f"[OK] classified {len(out)} sample(s): {args.output}")


def cmd_score(args: argparse.Namespace) -> None:
    clf = LinearClassifier.read_tsv(args.classifier)
    expr = read_expression_matrix(args.expression)
    scored = apply_classifier(expr, clf, log_transform=bool(args.log_transform))
    write_tsv(scored, args.output)
    print(f"[OK] scored {len(scored)} biospecimen(s): {args.output}")


def cmd_plot(args: argparse.Namespace) -> None:
    df = pd.read_csv(args.input, sep="\t")
    out = plot_score_by_status(
        df,
        args.output,
        config=ScorePlotConfig(threshold=args.threshold, dpi=int(args.dpi)),
    )
    print(f"[OK] wrote plot: {out}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tp53-status")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Run normalize → evidence → classify → report")
    p_run.add_argument("--histologies", required=True, help="Histologies TSV (biospecimen → sample)")
    p_run.add_argument("--outdir", required=True, help="output directory")
    p_run.add_argument("--snv", default=None, help="Consensus SNV/indel MAF (TSV, gz ok)")
    p_run.add_argument("--cnv", default=None, help="Gene-annotated consensus CNV TSV")
    p_run.add_argument("--sv", default=None, help="Annotated SV calls TSV")
    p_run.add_argument("--fusion", default=None, help="Fusion calls TSV")
    p_run.add_argument("--scores", default=None, help="Classifier scores per RNA biospecimen")
    p_run.add_argument(
        "--expression",
        default=None,
        help="Expression matrix (genes x RNA biospecimens); scored when --scores is absent",
    )
    p_run.add_argument(
        "--classifier", default=None, help="Classifier coefficients TSV (gene, weight)"
    )
    p_run.add_argument("--config", default=None, help="annotation_config.json (optional)")
    p_run.add_argument(
        "--hotspots", default=None, help="Cancer hotspots database (xlsx or TSV; optional)"
    )
    p_run.add_argument(
        "--force", action="store_true", help="Allow writing into an existing non-empty outdir"
    )
    p_run.add_argument("--no-plot", action="store_true", help="Skip the score-by-status plot")
    p_run.add_argument(
        "--run-meta", default="run_meta.json", help="Filename for run metadata JSON inside outdir"
    )
    p_run.set_defaults(func=cmd_run)

    p_cls = sub.add_parser(
        "classify", help="Classify a pre-assembled per-sample evidence table"
    )
    p_cls.add_argument("--input", required=True, help="Per-sample evidence TSV")
    p_cls.add_argument("--output", required=True, help="Output TSV with tp53_altered column")
    p_cls.add_argument("--config", default=None, help="annotation_config.json (optional)")
    p_cls.set_defaults(func=cmd_classify)

    p_score = sub.add_parser("score", help="Apply classifier coefficients to expression")
    p_score.add_argument("--expression", required=True, help="Expression matrix TSV")
    p_score.add_argument("--classifier", required=True, help="Coefficients TSV (gene, weight)")
    p_score.add_argument("--output", required=True, help="Output scores TSV")
    p_score.add_argument(
        "--log-transform", action="store_true", help="log2(x + 1) expression before z-scoring"
    )
    p_score.set_defaults(func=cmd_score)

    p_plot = sub.add_parser("plot", help="Plot classifier score by alteration status")
    p_plot.add_argument("--input", required=True, help="tp53_altered_status.tsv")
    p_plot.add_argument("--output", required=True, help="Output PNG path")
    p_plot.add_argument("--threshold", type=float, default=0.5)
    p_plot.add_argument("--dpi", type=int, default=200)
    p_plot.set_defaults(func=cmd_plot)

    return p


def main(argv: list[str] | None = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(message)s")
    if getattr(args, "output", None):
        Path(args.output).parent.mkdir(parents=True, exist_ok=True)
    args.func(args)


if __name__ == "__main__":
    main()
