# tp53-status/src/tp53_status/__init__.py
from __future__ import annotations

from .classify import classify, classify_table, explain
from .pipeline import RunConfig, RunResult, run_pipeline
from .record import SampleAlterationRecord

__all__ = [
    "__version__",
    "RunConfig",
    "RunResult",
    "SampleAlterationRecord",
    "classify",
    "classify_table",
    "explain",
    "run_pipeline",
]

try:
    from importlib.metadata import PackageNotFoundError, version
    __version__ = version("tp53-status")
except PackageNotFoundError:
    __version__ = "0+unknown"
