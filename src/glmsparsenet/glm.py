"""
网络惩罚弹性网: 单次拟合与交叉验证入口

  glm_sparse_net:     数据 → 网络 → 度数 → 惩罚系数 → 弹性网路径
  cv_glm_sparse_net:  同上, 网络与惩罚系数在全数据上计算一次,
                      各折沿全数据的 lambda 序列重新拟合并在留出样本上评分

评分/选择:
  cvm = 按折样本数加权的平均损失, cvsd = 其标准误
  lambda_min = cvm 最优的 lambda, lambda_1se = cvm 在最优值一个标准误内的最大 lambda
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, StratifiedKFold

from . import evaluation
from .data import prepare_xdata, prepare_ydata
from .families import FAMILIES, fit_path, prepare_response
from .options import NetworkOptions, network_options
from .penalty import PenaltyFactors, calc_penalty
from .utils import concurrent_map

logger = logging.getLogger(__name__)

_PROB_CLIP = 1e-5


# ── 结果类型 ──

@dataclass
class SparseNetFit:
    """弹性网路径拟合结果 (系数在原始特征尺度上)."""

    family: str
    lambdas: np.ndarray
    coef_path: np.ndarray
    intercepts: np.ndarray
    penalty: PenaltyFactors
    options: NetworkOptions
    alpha: float
    classes: Optional[np.ndarray] = None

    @property
    def feature_names(self) -> list[str]:
        return self.penalty.feature_names

    @property
    def degrees(self) -> np.ndarray:
        return self.penalty.degrees

    @property
    def penalty_factor(self) -> np.ndarray:
        return self.penalty.penalty

    @property
    def n_nonzero(self) -> np.ndarray:
        """每个 lambda 上的非零系数个数."""
        return (self.coef_path != 0).sum(axis=0)

    def _at(self, lam: float) -> tuple[np.ndarray, float]:
        """lambda 处的系数和截距; 路径内线性插值, 路径外取端点."""
        lams = self.lambdas
        lam = float(lam)
        if lam >= lams[0]:
            return self.coef_path[:, 0], float(self.intercepts[0])
        if lam <= lams[-1]:
            return self.coef_path[:, -1], float(self.intercepts[-1])
        k = int(np.searchsorted(-lams, -lam, side="right")) - 1
        if lams[k] == lam:
            return self.coef_path[:, k], float(self.intercepts[k])
        w = (lam - lams[k + 1]) / (lams[k] - lams[k + 1])
        coef = w * self.coef_path[:, k] + (1 - w) * self.coef_path[:, k + 1]
        b0 = w * self.intercepts[k] + (1 - w) * self.intercepts[k + 1]
        return coef, float(b0)

    def coef(self, lam: Optional[float] = None):
        """
        系数.

        Args:
            lam: None 返回整条路径 (DataFrame, 列为 lambda); 否则返回该 lambda 的系数 Series.
        """
        if lam is None:
            return self.coef_frame()
        coef, _ = self._at(lam)
        return pd.Series(coef, index=self.feature_names, name=float(lam))

    def intercept(self, lam: float) -> float:
        return self._at(lam)[1]

    def coef_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.coef_path, index=self.feature_names, columns=self.lambdas)

    def selected(self, lam: float) -> list[str]:
        """lambda 处非零系数的特征名."""
        coef, _ = self._at(lam)
        return [name for name, c in zip(self.feature_names, coef) if c != 0]

    def _newx(self, x) -> np.ndarray:
        """整理预测输入: 有列名时按特征名对齐, 否则按位置."""
        if isinstance(x, (pd.DataFrame, Mapping)):
            matrix, names, _ = prepare_xdata(x)
            if names != self.feature_names:
                missing = sorted(set(self.feature_names) - set(names))
                if missing:
                    raise ValueError(f"预测数据缺少特征: {missing[:10]}")
                pos = {n: i for i, n in enumerate(names)}
                matrix = matrix[:, [pos[n] for n in self.feature_names]]
            return matrix
        matrix = np.asarray(x, dtype=float)
        if matrix.ndim == 1:
            matrix = matrix[None, :]
        if matrix.shape[1] != len(self.feature_names):
            raise ValueError(f"预测数据应有 {len(self.feature_names)} 列, 得到 {matrix.shape[1]}")
        return matrix

    def predict(self, x, lam: Optional[float] = None, kind: str = "response") -> np.ndarray:
        """
        预测.

        Args:
            x: 新数据.
            lam: None 时返回整条路径上的预测 (n, L), 否则 (n,).
            kind: "link" (线性预测), "response" (gaussian 同 link, binomial 为概率),
                  "class" (仅 binomial).
        """
        if kind not in ("link", "response", "class"):
            raise ValueError(f"kind='{kind}' 不合法, 可选: ['link', 'response', 'class']")
        if kind == "class" and self.family != "binomial":
            raise ValueError("kind='class' 仅适用于 binomial 族")

        matrix = self._newx(x)
        if lam is None:
            link = matrix @ self.coef_path + self.intercepts
        else:
            coef, b0 = self._at(lam)
            link = matrix @ coef + b0

        if kind == "link" or self.family == "gaussian":
            return link
        prob = 1.0 / (1.0 + np.exp(-link))
        if kind == "response":
            return prob
        return self.classes[(prob > 0.5).astype(int)]

    def summary(self) -> dict[str, Any]:
        return {
            "family": self.family,
            "alpha": self.alpha,
            "n_features": len(self.feature_names),
            "n_lambda": len(self.lambdas),
            "lambda_range": [float(self.lambdas[-1]), float(self.lambdas[0])],
            "n_excluded": int(len(self.penalty.excluded)),
            "options": self.options.summary(),
        }


@dataclass
class CVSparseNetFit:
    """交叉验证结果."""

    fit: SparseNetFit
    cvm: np.ndarray
    cvsd: np.ndarray
    measure: str
    fold_ids: np.ndarray
    index_min: int
    index_1se: int
    fold_losses: np.ndarray = field(repr=False, default=None)

    @property
    def lambdas(self) -> np.ndarray:
        return self.fit.lambdas

    @property
    def lambda_min(self) -> float:
        return float(self.lambdas[self.index_min])

    @property
    def lambda_1se(self) -> float:
        return float(self.lambdas[self.index_1se])

    @property
    def cvup(self) -> np.ndarray:
        return self.cvm + self.cvsd

    @property
    def cvlo(self) -> np.ndarray:
        return self.cvm - self.cvsd

    @property
    def n_nonzero(self) -> np.ndarray:
        return self.fit.n_nonzero

    @property
    def nfolds(self) -> int:
        return len(np.unique(self.fold_ids))

    def _lam(self, lam) -> float:
        if lam == "lambda_1se":
            return self.lambda_1se
        if lam == "lambda_min":
            return self.lambda_min
        return float(lam)

    def coef(self, lam="lambda_1se") -> pd.Series:
        return self.fit.coef(self._lam(lam))

    def selected(self, lam="lambda_1se") -> list[str]:
        return self.fit.selected(self._lam(lam))

    def predict(self, x, lam="lambda_1se", kind: str = "response") -> np.ndarray:
        return self.fit.predict(x, lam=self._lam(lam), kind=kind)

    def to_frame(self) -> pd.DataFrame:
        """每个 lambda 一行: lambda, cvm, cvsd, cvup, cvlo, nzero."""
        return pd.DataFrame({
            "lambda": self.lambdas,
            "cvm": self.cvm,
            "cvsd": self.cvsd,
            "cvup": self.cvup,
            "cvlo": self.cvlo,
            "nzero": self.n_nonzero,
        })

    def summary(self) -> dict[str, Any]:
        return {
            **self.fit.summary(),
            "measure": self.measure,
            "nfolds": self.nfolds,
            "lambda_min": self.lambda_min,
            "lambda_1se": self.lambda_1se,
            "cvm_min": float(self.cvm[self.index_min]),
            "nzero_min": int(self.n_nonzero[self.index_min]),
            "nzero_1se": int(self.n_nonzero[self.index_1se]),
        }


# ── 内部: 数据准备 ──

@dataclass
class _Prepared:
    matrix: np.ndarray
    y: np.ndarray
    classes: Optional[np.ndarray]
    penalty: PenaltyFactors


def _check_args(family: str, alpha: float) -> str:
    f = str(family).lower().strip()
    if f not in FAMILIES:
        raise ValueError(f"未知分布族: '{family}', 可选: {list(FAMILIES)}")
    if not 0.0 <= float(alpha) <= 1.0:
        raise ValueError(f"alpha={alpha} 应在 [0, 1] 范围内")
    return f


def _prepare(xdata, ydata, network, options: NetworkOptions, family: str) -> _Prepared:
    matrix, names, index = prepare_xdata(xdata)
    y = prepare_ydata(ydata, matrix.shape[0], index)
    y_enc, classes = prepare_response(family, y)
    pf = calc_penalty(matrix, names, network, options)
    return _Prepared(matrix=matrix, y=y_enc, classes=classes, penalty=pf)


def _fit(prep: _Prepared, options: NetworkOptions, family: str, alpha: float, fit_kw: dict) -> SparseNetFit:
    lambdas, coef, intercepts = fit_path(
        family, prep.matrix, prep.y, prep.penalty.penalty, alpha=alpha, **fit_kw
    )
    result = SparseNetFit(
        family=family,
        lambdas=lambdas,
        coef_path=coef,
        intercepts=intercepts,
        penalty=prep.penalty,
        options=options,
        alpha=float(alpha),
        classes=prep.classes,
    )
    logger.info("%s 路径拟合完成: %d 样本, %d 特征, %d lambda, 变换=%s",
                family, prep.matrix.shape[0], prep.matrix.shape[1], len(lambdas),
                options.trans_fun.label)
    return result


# ── 单次拟合 ──

def glm_sparse_net(
    xdata,
    ydata,
    network,
    options: Optional[NetworkOptions] = None,
    *,
    family: str = "gaussian",
    alpha: float = 1.0,
    n_lambda: int = 100,
    lambda_min_ratio: Optional[float] = None,
    lambdas=None,
    standardize: bool = True,
    fit_intercept: bool = True,
    max_iter: Optional[int] = None,
    tol: Optional[float] = None,
) -> SparseNetFit:
    """
    网络惩罚弹性网拟合

    Args:
        xdata: ndarray / DataFrame / {来源名: DataFrame}.
        ydata: 响应向量 (gaussian 为数值, binomial 为两类标签).
        network: "correlation" / "covariance" / p×p 邻接矩阵 / 长度 p 的度数向量.
        options: 网络选项, None 时使用 network_options().
        family: "gaussian" 或 "binomial".
        alpha: 弹性网混合参数, 1 为 lasso, 0 为 ridge.
        n_lambda, lambda_min_ratio, lambdas: lambda 序列设置.
        standardize: 拟合前是否标准化特征 (系数总在原始尺度返回).
        fit_intercept: 是否拟合截距.
        max_iter, tol: 求解器参数, None 使用各族默认值.

    Returns:
        SparseNetFit
    """
    options = options if options is not None else network_options()
    family = _check_args(family, alpha)
    prep = _prepare(xdata, ydata, network, options, family)
    return _fit(prep, options, family, alpha, dict(
        lambdas=lambdas, n_lambda=n_lambda, lambda_min_ratio=lambda_min_ratio,
        standardize=standardize, fit_intercept=fit_intercept, max_iter=max_iter, tol=tol,
    ))


# ── 交叉验证 ──

def make_folds(
    y: np.ndarray,
    nfolds: int,
    family: str,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    生成折编号 (0..nfolds-1); binomial 使用分层抽样.

    binomial 中某类样本少于 nfolds 时, 各类样本打乱后轮流分配到各折,
    该类成员落在不同的折中, 只要该类至少 2 个样本, 每个训练集都保留两类.

    Raises:
        ValueError: nfolds < 3 或大于样本数.
    """
    n = len(y)
    if nfolds < 3:
        raise ValueError(f"nfolds={nfolds} 至少为 3")
    if nfolds > n:
        raise ValueError(f"nfolds={nfolds} 不能大于样本数 {n}")

    if family == "binomial" and np.bincount(y.astype(int)).min() >= nfolds:
        splitter = StratifiedKFold(n_splits=nfolds, shuffle=True, random_state=seed)
        splits = splitter.split(np.zeros(n), y)
    elif family == "binomial":
        return _round_robin_folds(y, nfolds, seed)
    else:
        splitter = KFold(n_splits=nfolds, shuffle=True, random_state=seed)
        splits = splitter.split(np.zeros(n))

    fold_ids = np.empty(n, dtype=int)
    for k, (_, test_idx) in enumerate(splits):
        fold_ids[test_idx] = k
    return fold_ids


def _round_robin_folds(y: np.ndarray, nfolds: int, seed: Optional[int]) -> np.ndarray:
    rng = np.random.default_rng(seed)
    fold_ids = np.empty(len(y), dtype=int)
    offset = 0
    for cls in np.unique(y):
        idx = rng.permutation(np.flatnonzero(y == cls))
        fold_ids[idx] = (offset + np.arange(len(idx))) % nfolds
        offset += len(idx)
    return fold_ids


def _check_fold_ids(fold_ids, n: int) -> np.ndarray:
    ids = np.asarray(fold_ids)
    if ids.shape != (n,):
        raise ValueError(f"fold_ids 长度必须为样本数 {n}, 得到形状 {ids.shape}")
    _, codes = np.unique(ids, return_inverse=True)
    if codes.max() + 1 < 3:
        raise ValueError(f"fold_ids 至少需要 3 个不同的折, 得到 {codes.max() + 1}")
    return codes


def _intercept_only(y01: np.ndarray, n_features: int, n_lambda: int) -> tuple[np.ndarray, np.ndarray]:
    """单类训练集的 binomial 路径: 系数全为 0, 截距为截断后比例的 logit."""
    p0 = float(np.clip(y01.mean(), _PROB_CLIP, 1 - _PROB_CLIP))
    return np.zeros((n_features, n_lambda)), np.full(n_lambda, np.log(p0 / (1 - p0)))


def _aggregate(losses: np.ndarray, weights: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """按折样本数加权的均值和标准误; 忽略 NaN (例如单类折的 AUC)."""
    valid = ~np.isnan(losses)
    w = np.where(valid, weights[:, None], 0.0)
    wsum = w.sum(axis=0)
    filled = np.where(valid, losses, 0.0)
    with np.errstate(invalid="ignore", divide="ignore"):
        cvm = (w * filled).sum(axis=0) / wsum
        var = (w * (filled - cvm) ** 2).sum(axis=0) / wsum
        k_eff = valid.sum(axis=0)
        cvsd = np.sqrt(var / np.maximum(k_eff - 1, 1))
    return cvm, cvsd


def _select(cvm: np.ndarray, cvsd: np.ndarray, larger_better: bool) -> tuple[int, int]:
    """返回 (最优 lambda 下标, 一个标准误规则下标); lambdas 递减, 下标越小 lambda 越大."""
    if np.isnan(cvm).all():
        raise ValueError("所有 lambda 的交叉验证损失都是 NaN, 无法选择 lambda")
    if larger_better:
        i_min = int(np.nanargmax(cvm))
        ok = cvm >= cvm[i_min] - cvsd[i_min]
    else:
        i_min = int(np.nanargmin(cvm))
        ok = cvm <= cvm[i_min] + cvsd[i_min]
    i_1se = int(np.flatnonzero(ok)[0])
    return i_min, i_1se


def cv_glm_sparse_net(
    xdata,
    ydata,
    network,
    options: Optional[NetworkOptions] = None,
    *,
    nfolds: int = 10,
    fold_ids=None,
    type_measure: str = "default",
    seed: Optional[int] = None,
    n_jobs: int = 1,
    family: str = "gaussian",
    alpha: float = 1.0,
    **fit_kwargs,
) -> CVSparseNetFit:
    """
    交叉验证网络惩罚弹性网

    Args:
        xdata, ydata, network, options, family, alpha: 同 glm_sparse_net.
        nfolds: 折数 (>= 3), fold_ids 给定时忽略.
        fold_ids: 每个样本的折编号.
        type_measure: "default" / "mse" / "mae" / "deviance" / "class" / "auc".
        seed: 随机划分种子.
        n_jobs: 并行拟合各折的线程数.
        **fit_kwargs: 透传给路径拟合 (n_lambda, lambdas, standardize ...).

    Returns:
        CVSparseNetFit
    """
    options = options if options is not None else network_options()
    family = _check_args(family, alpha)
    measure = evaluation.resolve_measure(type_measure, family)

    prep = _prepare(xdata, ydata, network, options, family)
    n = prep.matrix.shape[0]
    folds = _check_fold_ids(fold_ids, n) if fold_ids is not None else make_folds(prep.y, nfolds, family, seed)
    n_folds = int(folds.max()) + 1

    full = _fit(prep, options, family, alpha, fit_kwargs)
    fold_kw = {k: v for k, v in fit_kwargs.items() if k not in ("lambdas", "n_lambda", "lambda_min_ratio")}

    def _run_fold(k: int) -> np.ndarray:
        test = folds == k
        y_train = prep.y[~test]
        if family == "binomial" and np.unique(y_train).size < 2:
            logger.warning("第 %d 折训练集只有一类, 使用仅截距模型", k)
            coef, b0 = _intercept_only(y_train, prep.matrix.shape[1], len(full.lambdas))
        else:
            _, coef, b0 = fit_path(
                family, prep.matrix[~test], y_train, prep.penalty.penalty,
                alpha=alpha, lambdas=full.lambdas, **fold_kw,
            )
        link = prep.matrix[test] @ coef + b0
        pred = link if family == "gaussian" else 1.0 / (1.0 + np.exp(-link))
        return evaluation.evaluate(measure, prep.y[test], pred)

    losses = np.vstack(concurrent_map(_run_fold, range(n_folds), max_workers=n_jobs, desc="CV folds"))
    weights = np.bincount(folds, minlength=n_folds).astype(float)
    cvm, cvsd = _aggregate(losses, weights)
    i_min, i_1se = _select(cvm, cvsd, evaluation.higher_is_better(measure))

    result = CVSparseNetFit(
        fit=full, cvm=cvm, cvsd=cvsd, measure=measure, fold_ids=folds,
        index_min=i_min, index_1se=i_1se, fold_losses=losses,
    )
    logger.info("交叉验证完成: %d 折, measure=%s, lambda_min=%.4g (nzero=%d), lambda_1se=%.4g (nzero=%d)",
                n_folds, measure, result.lambda_min, int(full.n_nonzero[i_min]),
                result.lambda_1se, int(full.n_nonzero[i_1se]))
    return result
