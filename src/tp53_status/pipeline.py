# tp53-status/src/tp53_status/pipeline.py
from __future__ import annotations

import hashlib
import json
import logging
import platform
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from .adapters.hotspots import HotspotAdapterConfig, read_hotspot_positions
from .assemble import assemble_alteration_table
from .classify import STATUS_COL, classify_table
from .config import AnnotationConfig
from .report import write_report
from .schema import normalize_table, read_table, write_tsv
from .score import LinearClassifier, apply_classifier, read_expression_matrix
from .viz import ScorePlotConfig, plot_score_by_status

STATUS_TSV = "tp53_altered_status.tsv"
SCORES_TSV = "tp53_scores.tsv"
SCORE_PLOT_PNG = "tp53_score_by_status.png"


@dataclass(frozen=True)
class RunConfig:
    histologies: str
    outdir: str
    snv: str | None = None
    cnv: str | None = None
    sv: str | None = None
    fusion: str | None = None
    scores: str | None = None
    expression: str | None = None
    classifier: str | None = None
    annotation_config: str | None = None
    hotspots: str | None = None
    force: bool = False
    plot: bool = True
    run_meta_name: str = "run_meta.json"


@dataclass(frozen=True)
class RunResult:
    run_id: str
    outdir: str
    artifacts: dict[str, str]
    meta_path: str
    status_table: pd.DataFrame


def _require_file(path: str, label: str) -> Path:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"{label} not found: {path}")
    if not p.is_file():
        raise IsADirectoryError(f"{label} is not a file: {path}")
    return p


def _file_fingerprint(path: str) -> dict[str, Any]:
    p = Path(path)
    st = p.stat()
    return {
        "path": str(p),
        "size_bytes": int(st.st_size),
        "mtime_epoch": float(st.st_mtime),
        "sha256": _sha256_file(p),
    }


def _safe_mkdir_outdir(outdir: str, force: bool) -> None:
    p = Path(outdir)
    if p.exists():
        if not p.is_dir():
            raise NotADirectoryError(f"outdir exists but is not a directory: {outdir}")
        if not force and any(p.iterdir()):
            raise FileExistsError(f"outdir is not empty: {outdir} (use --force)")
    p.mkdir(parents=True, exist_ok=True)


def _write_json(path: str | Path, obj: Any) -> None:
    """Atomic-ish JSON write: write temp then replace."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
        f.write("\n")
    tmp.replace(path)


def _sha256_text(s: str) -> str:
    h = hashlib.sha256()
    h.update(s.encode("utf-8"))
    return h.hexdigest()


def _sha256_file(path: str | Path, *, chunk_size: int = 1024 * 1024) -> str:
    """Streaming sha256 for large files."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            b = f.read(chunk_size)
            if not b:
                break
            h.update(b)
    return h.hexdigest()


def _tool_version() -> str:
    try:  # pragma: no cover
        import importlib.metadata as _ilm

        return str(_ilm.version("tp53-status"))
    except Exception:  # pragma: no cover
        return "unknown"


def _env_fingerprint() -> dict[str, Any]:
    return {
        "python": sys.version.replace("\n", " "),
        "platform": platform.platform(),
        "pandas": getattr(pd, "__version__", "unknown"),
        "tool_version": _tool_version(),
    }


def _make_run_id(cfg: RunConfig) -> str:
    payload = json.dumps(asdict(cfg), sort_keys=True, ensure_ascii=False)
    return f"{int(time.time())}_{_sha256_text(payload)[:10]}"


def _input_paths(cfg: RunConfig) -> dict[str, str]:
    named = {
        "histologies": cfg.histologies,
        "snv": cfg.snv,
        "cnv": cfg.cnv,
        "sv": cfg.sv,
        "fusion": cfg.fusion,
        "scores": cfg.scores,
        "expression": cfg.expression,
        "classifier": cfg.classifier,
        "annotation_config": cfg.annotation_config,
        "hotspots": cfg.hotspots,
    }
    return {k: v for k, v in named.items() if v}


def resolve_annotation_config(cfg: RunConfig) -> AnnotationConfig:
    """
    Single source of truth for the annotation card used by a run.
    Priority (high -> low): env knobs, hotspot file, JSON card, defaults.
    """
    card = AnnotationConfig.from_json(cfg.annotation_config)
    if cfg.hotspots:
        positions = read_hotspot_positions(
            cfg.hotspots, config=HotspotAdapterConfig(gene=card.gene)
        )
        if not positions:
            raise ValueError(f"hotspot file has no positions for {card.gene}: {cfg.hotspots}")
        card = card.with_hotspot_positions(positions)
    return card.with_env_overrides()


def run_pipeline(cfg: RunConfig, *, run_id: str | None = None) -> RunResult:
    """
    Run the annotation pipeline:
      normalize inputs → (score) → evidence + assemble → classify → report (+ plot).
    """
    if cfg.expression and not cfg.classifier:
        raise ValueError("expression matrix given without classifier coefficients")
    inputs = _input_paths(cfg)
    for label, path in inputs.items():
        _require_file(path, label)

    _safe_mkdir_outdir(cfg.outdir, cfg.force)

    outdir = Path(cfg.outdir)
    meta_path = outdir / cfg.run_meta_name
    rid = str(run_id or _make_run_id(cfg))

    meta: dict[str, Any] = {
        "tool": "tp53-status",
        "cmd": "run",
        "run_id": rid,
        "status": "running",
        "started_epoch": time.time(),
        "config": asdict(cfg),
        "env": _env_fingerprint(),
        "inputs": {k: _file_fingerprint(v) for k, v in inputs.items()},
        "artifacts": {},
    }
    _write_json(meta_path, meta)

    def _mark_step(step: str) -> None:
        meta["step"] = step
        _write_json(meta_path, meta)
        logging.info("[%s] step=%s", rid, step)

    try:
        # 0) annotation card
        _mark_step("resolve_config")
        card = resolve_annotation_config(cfg)
        _write_json(outdir / "annotation_config.resolved.json", card.model_dump())
        meta["artifacts"]["annotation_config_resolved_json"] = str(
            outdir / "annotation_config.resolved.json"
        )

        # 1) normalize inputs under internal contract
        _mark_step("normalize_inputs")
        histologies = read_table(cfg.histologies, "histologies")
        snv = read_table(cfg.snv, "snv") if cfg.snv else None
        cnv = read_table(cfg.cnv, "cnv") if cfg.cnv else None
        sv = read_table(cfg.sv, "sv") if cfg.sv else None
        fusions = read_table(cfg.fusion, "fusion") if cfg.fusion else None
        scores = read_table(cfg.scores, "scores") if cfg.scores else None

        # 2) classifier score from expression (only when no score table is given)
        if scores is None and cfg.expression and cfg.classifier:
            _mark_step("score")
            clf = LinearClassifier.read_tsv(cfg.classifier)
            scored = apply_classifier(read_expression_matrix(cfg.expression), clf)
            write_tsv(scored, str(outdir / SCORES_TSV))
            meta["artifacts"]["scores_tsv"] = str(outdir / SCORES_TSV)
            scores = normalize_table(scored, "scores")

        # 3) evidence + assembly
        _mark_step("assemble")
        table = assemble_alteration_table(
            histologies=histologies,
            config=card,
            snv=snv,
            cnv=cnv,
            sv=sv,
            fusions=fusions,
            scores=scores,
        )
        if table.empty:
            raise RuntimeError(f"[assemble] produced 0 samples (histologies={cfg.histologies}).")

        # 4) classify
        _mark_step("classify")
        status = classify_table(
            table,
            predisposition_label=card.predisposition_label,
            score_threshold=card.score_threshold,
        )
        write_tsv(status, str(outdir / STATUS_TSV), excel_safe=True)
        meta["artifacts"]["status_tsv"] = str(outdir / STATUS_TSV)
        meta["label_counts"] = {
            str(k): int(v) for k, v in status[STATUS_COL].value_counts().items()
        }

        # 5) report
        _mark_step("report")
        meta["artifacts"].update(write_report(status, str(outdir), gene=card.gene))

        # 6) plot (only when at least one sample has a score)
        if cfg.plot and status["tp53_score"].notna().any():
            _mark_step("plot")
            png = plot_score_by_status(
                status,
                str(outdir / SCORE_PLOT_PNG),
                config=ScorePlotConfig(
                    threshold=card.score_threshold,
                    title=f"{card.gene} classifier score by alteration status",
                ),
            )
            meta["artifacts"]["score_plot_png"] = str(png)

        meta["status"] = "ok"
        meta["finished_epoch"] = time.time()
        _write_json(meta_path, meta)

    except KeyboardInterrupt:
        meta["status"] = "aborted"
        meta["finished_epoch"] = time.time()
        _write_json(meta_path, meta)
        raise
    except Exception as e:
        meta["status"] = "error"
        meta["finished_epoch"] = time.time()
        meta["error"] = {"type": type(e).__name__, "message": str(e), "step": meta.get("step")}
        _write_json(meta_path, meta)
        raise

    return RunResult(
        run_id=rid,
        outdir=str(outdir),
        artifacts=dict(meta["artifacts"]),
        meta_path=str(meta_path),
        status_table=status,
    )
