"""
Binomial 族: logistic 回归弹性网路径

目标函数 (与 glmnet 一致):
  -loglik / n + lambda * sum_j pf_j [alpha |b_j| + (1 - alpha)/2 b_j^2]

求解器: sklearn LogisticRegression(penalty="elasticnet", solver="saga"),
沿 lambda 递减方向 warm start, C = 1 / (n * lambda).
"""
from __future__ import annotations

import logging
import warnings
from typing import Optional

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression

from .base import PathResult, build_design, resolve_lambdas, unscale_path

logger = logging.getLogger(__name__)


def prepare_response(y) -> tuple[np.ndarray, np.ndarray]:
    """
    将二分类响应编码为 0/1.

    Returns:
        (y01, classes), classes[1] 为正类 (排序后的第二个取值).

    Raises:
        ValueError: 取值不是恰好两类.
    """
    y = np.asarray(y)
    classes = np.unique(y)
    if len(classes) != 2:
        raise ValueError(f"binomial 响应必须恰好两类, 得到 {len(classes)} 类: {classes[:10].tolist()}")
    return (y == classes[1]).astype(float), classes


def fit_binomial(
    X: np.ndarray,
    y: np.ndarray,
    penalty: np.ndarray,
    *,
    alpha: float = 1.0,
    lambdas: Optional[np.ndarray] = None,
    n_lambda: int = 100,
    lambda_min_ratio: Optional[float] = None,
    standardize: bool = True,
    fit_intercept: bool = True,
    max_iter: int = 10000,
    tol: float = 1e-4,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    拟合 binomial 弹性网路径

    Args:
        y: 0/1 编码的响应 (见 prepare_response).

    Returns:
        (lambdas (L,), coef (p, L), intercepts (L,))
    """
    n, p = X.shape
    design = build_design(X, penalty, standardize=standardize, fit_intercept=fit_intercept)

    p0 = float(y.mean()) if fit_intercept else 0.5
    lam = resolve_lambdas(design.X.T @ (y - p0), n, alpha, lambdas, n_lambda, lambda_min_ratio)

    model = LogisticRegression(
        penalty="elasticnet",
        solver="saga",
        l1_ratio=alpha,
        fit_intercept=fit_intercept,
        max_iter=max_iter,
        tol=tol,
        warm_start=True,
    )
    coefs = np.zeros((design.X.shape[1], len(lam)))
    intercepts = np.zeros(len(lam))
    n_warn = 0
    for k, lam_k in enumerate(lam):
        model.set_params(C=1.0 / (n * lam_k))
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ConvergenceWarning)
            model.fit(design.X, y)
        n_warn += any(issubclass(w.category, ConvergenceWarning) for w in caught)
        coefs[:, k] = model.coef_.ravel()
        intercepts[k] = float(model.intercept_[0]) if fit_intercept else 0.0

    if n_warn:
        logger.warning("binomial 路径: %d/%d 个 lambda 未收敛 (max_iter=%d)", n_warn, len(lam), max_iter)

    path = PathResult(lambdas=lam, coef=coefs, intercepts=intercepts)
    coef, intercepts = unscale_path(design, path, p)
    logger.debug("binomial 路径: %d lambda, 最终非零系数 %d", len(lam), int((coef[:, -1] != 0).sum()))
    return lam, coef, intercepts
