# tp53-status/src/tp53_status/config.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import _shared
from .classify import LI_FRAUMENI, SCORE_THRESHOLD

ENV_SCORE_THRESHOLD = "TP53STATUS_SCORE_THRESHOLD"

# Consequences that never count as a qualifying SNV/indel.
DEFAULT_EXCLUDED_VARIANT_CLASSES: list[str] = [
    "Silent",
    "Intron",
    "3'UTR",
    "5'UTR",
    "3'Flank",
    "5'Flank",
]

# Recurrent TP53 codons (cancerhotspots.org); replaced when a hotspot file is given.
DEFAULT_TP53_HOTSPOT_POSITIONS: list[int] = [175, 245, 248, 249, 273, 282]

# Gain-of-function TP53 changes.
DEFAULT_TP53_ACTIVATING_CHANGES: list[str] = ["p.R273C", "p.R248W"]

DEFAULT_CNV_LOSS_STATUSES: list[str] = ["loss", "deep deletion"]


class GeneLocus(BaseModel):
    """Gene bounds (GRCh38, 1-based inclusive) used for SV/fusion overlap."""

    model_config = ConfigDict(frozen=True)

    chrom: str = "chr17"
    start: int = 7661779
    end: int = 7687538

    @field_validator("chrom", mode="before")
    @classmethod
    def _normalize_chrom(cls, v: Any) -> str:
        s = _shared.normalize_chrom(v)
        if not s:
            raise ValueError("locus chrom is empty")
        return s

    @model_validator(mode="after")
    def _check_bounds(self) -> GeneLocus:
        if self.start < 0 or self.end < 0:
            raise ValueError("locus bounds must be >= 0")
        if self.start > self.end:
            raise ValueError(f"locus start > end ({self.start} > {self.end})")
        return self

    def overlaps(self, chrom: str, start: int, end: int) -> bool:
        if _shared.normalize_chrom(chrom) != self.chrom:
            return False
        lo, hi = (start, end) if start <= end else (end, start)
        return lo <= self.end and hi >= self.start

    def contains(self, chrom: str, pos: int) -> bool:
        return self.overlaps(chrom, pos, pos)


class AnnotationConfig(BaseModel):
    """
    Tool-facing annotation card (JSON). Every field has a TP53 default, so an empty
    card `{}` is valid.
    """

    model_config = ConfigDict(extra="ignore")

    gene: str = "TP53"
    locus: GeneLocus = Field(default_factory=GeneLocus)
    excluded_variant_classes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_VARIANT_CLASSES)
    )
    hotspot_positions: list[int] = Field(
        default_factory=lambda: list(DEFAULT_TP53_HOTSPOT_POSITIONS)
    )
    activating_changes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TP53_ACTIVATING_CHANGES)
    )
    cnv_loss_statuses: list[str] = Field(default_factory=lambda: list(DEFAULT_CNV_LOSS_STATUSES))
    predisposition_label: str = LI_FRAUMENI
    score_threshold: float = SCORE_THRESHOLD

    @field_validator("gene", mode="before")
    @classmethod
    def _normalize_gene(cls, v: Any) -> str:
        s = _shared.clean_str(v)
        if not s:
            raise ValueError("gene is empty")
        return s

    @field_validator("activating_changes", mode="before")
    @classmethod
    def _normalize_activating(cls, v: Any) -> list[str]:
        xs = [_shared.normalize_protein_change(x) for x in (v or [])]
        return _shared.dedup_preserve_order(xs)

    @field_validator("cnv_loss_statuses", mode="before")
    @classmethod
    def _normalize_statuses(cls, v: Any) -> list[str]:
        xs = [_shared.clean_str(x).lower() for x in (v or [])]
        return _shared.dedup_preserve_order(xs)

    @field_validator("hotspot_positions", mode="before")
    @classmethod
    def _normalize_positions(cls, v: Any) -> list[int]:
        out: list[int] = []
        for x in v or []:
            p = _shared.to_int(x)
            if p is None or p <= 0:
                raise ValueError(f"invalid hotspot position: {x!r}")
            out.append(p)
        return sorted(set(out))

    @field_validator("score_threshold")
    @classmethod
    def _check_threshold(cls, v: float) -> float:
        if not (0.0 <= float(v) <= 1.0):
            raise ValueError(f"score_threshold must be within [0, 1] (got {v})")
        return float(v)

    @classmethod
    def from_json(cls, path: str | Path | None) -> AnnotationConfig:
        if path is None or str(path).strip() == "":
            return cls()
        with open(path, encoding="utf-8") as f:
            obj = json.load(f)
        if not isinstance(obj, dict):
            raise ValueError(f"annotation config must be a JSON object: {path}")
        return cls.model_validate(obj)

    def with_env_overrides(self) -> AnnotationConfig:
        """
        Apply environment knobs (env wins over the card).
        Malformed values raise ValueError.
        """
        s = (os.environ.get(ENV_SCORE_THRESHOLD, "") or "").strip()
        if not s:
            return self
        return self.model_validate({**self.model_dump(), "score_threshold": float(s)})

    def with_hotspot_positions(self, positions: list[int]) -> AnnotationConfig:
        return self.model_validate({**self.model_dump(), "hotspot_positions": positions})
