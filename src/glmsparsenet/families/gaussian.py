"""
Gaussian 族: 线性回归弹性网路径

目标函数 (与 glmnet 一致):
  1/(2n) ||y - b0 - X b||^2 + lambda * sum_j pf_j [alpha |b_j| + (1 - alpha)/2 b_j^2]

求解器: sklearn.linear_model.enet_path (坐标下降), 在中心化数据上拟合.
"""
from __future__ import annotations

import logging
import warnings
from typing import Optional

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import enet_path

from .base import PathResult, build_design, resolve_lambdas, unscale_path

logger = logging.getLogger(__name__)


def prepare_response(y) -> tuple[np.ndarray, None]:
    y = np.asarray(y, dtype=float)
    if not np.isfinite(y).all():
        raise ValueError("gaussian 响应含 NaN 或 Inf")
    return y, None


def fit_gaussian(
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
    tol: float = 1e-7,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    拟合 gaussian 弹性网路径

    Returns:
        (lambdas (L,), coef (p, L), intercepts (L,))
    """
    n, p = X.shape
    design = build_design(X, penalty, standardize=standardize, fit_intercept=fit_intercept)

    y_center = float(y.mean()) if fit_intercept else 0.0
    yc = y - y_center

    lam = resolve_lambdas(design.X.T @ yc, n, alpha, lambdas, n_lambda, lambda_min_ratio)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        _, coefs, _ = enet_path(
            design.X, yc,
            l1_ratio=alpha,
            alphas=lam,
            max_iter=max_iter,
            tol=tol,
        )
    n_warn = sum(issubclass(w.category, ConvergenceWarning) for w in caught)
    if n_warn:
        logger.warning("gaussian 路径: %d/%d 个 lambda 未收敛 (max_iter=%d)", n_warn, len(lam), max_iter)

    path = PathResult(lambdas=lam, coef=np.asarray(coefs), intercepts=np.full(len(lam), y_center))
    coef, intercepts = unscale_path(design, path, p)
    logger.debug("gaussian 路径: %d lambda, 最终非零系数 %d", len(lam), int((coef[:, -1] != 0).sum()))
    return lam, coef, intercepts
