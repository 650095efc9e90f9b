# tp53-status/src/tp53_status/score.py
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from . import _shared

INTERCEPT_TOKENS = {"(intercept)", "intercept", "_intercept", "bias"}


@dataclass(frozen=True)
class LinearClassifier:
    """
    Pre-trained linear gene-expression classifier.

    score = sigmoid(intercept + sum_g weight_g * z_g), where z_g is the per-gene
    z-score of expression across the scored cohort.
    """

    weights: pd.Series
    intercept: float = 0.0

    @classmethod
    def from_frame(cls, coef: pd.DataFrame) -> LinearClassifier:
        """
        Build from a coefficient table with `gene` and `weight` columns.
        An intercept row is recognized by gene "(intercept)".

        Raises
        ------
        ValueError
            On missing columns, non-numeric weights, duplicated genes, or no gene rows.
        """
        cols = {str(c).strip().lower(): c for c in coef.columns}
        if "gene" not in cols or "weight" not in cols:
            raise ValueError(
                f"classifier coefficients need 'gene' and 'weight' columns: {list(coef.columns)}"
            )
        genes = coef[cols["gene"]].map(_shared.clean_str)
        weights = coef[cols["weight"]].map(_shared.to_float)
        if weights.isna().any():
            bad = genes[weights.isna()].tolist()
            raise ValueError(f"classifier coefficients have non-numeric weights: {bad[:10]}")

        is_icpt = genes.str.lower().isin(INTERCEPT_TOKENS)
        intercept = float(weights[is_icpt].sum()) if is_icpt.any() else 0.0

        w = pd.Series(weights[~is_icpt].astype(float).values, index=genes[~is_icpt].values)
        w = w[w.index != ""]
        if w.index.duplicated().any():
            raise ValueError(
                "classifier coefficients list a gene more than once: "
                f"{sorted(set(w.index[w.index.duplicated()]))[:10]}"
            )
        if w.empty:
            raise ValueError("classifier coefficients contain no gene weights")
        return cls(weights=w, intercept=intercept)

    @classmethod
    def read_tsv(cls, path: str) -> LinearClassifier:
        df = pd.read_csv(path, sep=None, engine="python", comment="#", dtype=str)
        return cls.from_frame(df)


def _sigmoid(z: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-z))


def zscore_genes(expr: pd.DataFrame) -> pd.DataFrame:
    """
    Row-wise (per-gene) z-score of a genes x samples matrix.

    Constant genes get z = 0; NaNs stay NaN.
    """
    x = expr.to_numpy(dtype=float)
    mu = np.nanmean(x, axis=1, keepdims=True)
    sd = np.nanstd(x, axis=1, keepdims=True)
    sd = np.where(sd > 0, sd, 1.0)
    z = (x - mu) / sd
    return pd.DataFrame(z, index=expr.index, columns=expr.columns)


def apply_classifier(
    expr: pd.DataFrame, clf: LinearClassifier, *, log_transform: bool = False
) -> pd.DataFrame:
    """
    Score every sample (column) of a genes x samples expression matrix.

    Genes missing from the matrix, and NaN cells, contribute 0 to the linear term.

    Returns
    -------
    pandas.DataFrame
        Columns `biospecimen_id`, `score` (in [0, 1]), one row per sample column.
    """
    if expr.empty or expr.shape[1] == 0:
        return pd.DataFrame({"biospecimen_id": [], "score": []})

    m = expr.copy()
    m.index = [str(g).strip() for g in m.index]
    # multiple rows per gene symbol (e.g. transcripts collapsed upstream) -> mean
    if m.index.duplicated().any():
        m = m.groupby(level=0).mean()

    shared = [g for g in clf.weights.index if g in m.index]
    missing = len(clf.weights) - len(shared)
    if missing:
        logging.warning(
            "classifier: %d of %d gene(s) absent from expression matrix",
            missing,
            len(clf.weights),
        )
    if not shared:
        raise ValueError("classifier: no classifier genes found in the expression matrix")

    sub = m.loc[shared]
    if log_transform:
        sub = np.log2(sub.clip(lower=0) + 1.0)
    z = zscore_genes(sub).fillna(0.0)

    w = clf.weights.loc[shared].to_numpy(dtype=float)
    lin = w @ z.to_numpy(dtype=float) + float(clf.intercept)
    scores = _sigmoid(lin)

    return pd.DataFrame({"biospecimen_id": [str(c) for c in expr.columns], "score": scores})


def read_expression_matrix(path: str) -> pd.DataFrame:
    """
    Read a genes x samples matrix (TSV/CSV, gzip ok). The first column holds gene
    symbols; every other column is one RNA biospecimen.
    """
    if str(path).endswith((".rds", ".RDS")):
        raise ValueError(f"R serialized matrices are not supported; export to TSV first: {path}")
    df = pd.read_csv(path, sep=None, engine="python", comment="#", compression="infer")
    if df.shape[1] < 2:
        raise ValueError(f"expression matrix needs a gene column and >= 1 sample: {path}")
    df = df.set_index(df.columns[0])
    return df.apply(pd.to_numeric, errors="coerce")
