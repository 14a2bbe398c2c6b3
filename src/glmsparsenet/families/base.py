"""
各分布族共享的路径拟合工具

惩罚系数注入方式 (列缩放):
  1. 排除惩罚为 inf 的特征
  2. 惩罚系数归一化, 使其和等于参与拟合的特征数 (glmnet 约定)
  3. 零惩罚下限为 PF_FLOOR (近似不惩罚)
  4. 第 j 列除以 pf_j 后交给求解器, 系数再除以 pf_j 还原

L1 项被精确还原; L2 项的权重变为 pf_j^2.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

PF_FLOOR = 1e-6
ALPHA_FLOOR = 1e-3  # alpha = 0 (ridge) 时计算 lambda_max 使用的下限


@dataclass
class PathResult:
    """求解器在加权、标准化空间得到的路径, 以及还原所需的量."""

    lambdas: np.ndarray          # (L,) 递减
    coef: np.ndarray             # (p_active, L)
    intercepts: np.ndarray       # (L,)
    n_iter: Optional[np.ndarray] = None


@dataclass
class Design:
    """拟合用设计矩阵: 已排除、标准化并按惩罚系数缩放."""

    X: np.ndarray                # (n, p_active) 求解器看到的矩阵
    active: np.ndarray           # bool (p,)
    center: np.ndarray           # (p_active,)
    scale: np.ndarray            # (p_active,)
    pf: np.ndarray               # (p_active,) 归一化后的惩罚系数


def normalize_penalty(pf: np.ndarray) -> np.ndarray:
    """归一化惩罚系数 (和 = 特征数), 零值提升到 PF_FLOOR."""
    pf = np.asarray(pf, dtype=float)
    total = pf.sum()
    if total > 0:
        pf = pf * (len(pf) / total)
    return np.maximum(pf, PF_FLOOR)


def build_design(
    X: np.ndarray,
    penalty: np.ndarray,
    standardize: bool = True,
    fit_intercept: bool = True,
) -> Design:
    """
    由原始矩阵和惩罚系数构建求解器输入.

    Raises:
        ValueError: 所有特征都被排除.
    """
    active = np.isfinite(penalty)
    if not active.any():
        raise ValueError("所有特征的惩罚系数都是 inf, 没有可拟合的特征")

    Xa = X[:, active]
    center = Xa.mean(axis=0) if fit_intercept else np.zeros(Xa.shape[1])
    if standardize:
        scale = np.sqrt(((Xa - center) ** 2).mean(axis=0))
        scale[scale == 0] = 1.0
    else:
        scale = np.ones(Xa.shape[1])

    pf = normalize_penalty(penalty[active])
    Xw = (Xa - center) / scale / pf
    return Design(X=Xw, active=active, center=center, scale=scale, pf=pf)


def lambda_sequence(
    lambda_max: float,
    n_lambda: int,
    lambda_min_ratio: float,
) -> np.ndarray:
    """从 lambda_max 到 lambda_max * ratio 的对数等距递减序列."""
    if lambda_max <= 0:
        lambda_max = 1e-6
    if n_lambda == 1:
        return np.array([lambda_max])
    return np.exp(np.linspace(np.log(lambda_max), np.log(lambda_max * lambda_min_ratio), n_lambda))


def default_min_ratio(n_samples: int, n_features: int) -> float:
    return 1e-4 if n_samples > n_features else 1e-2


def resolve_lambdas(
    grad: np.ndarray,
    n_samples: int,
    alpha: float,
    lambdas: Optional[np.ndarray],
    n_lambda: int,
    lambda_min_ratio: Optional[float],
) -> np.ndarray:
    """
    给定 lambdas 时排序去重后返回; 否则由零点梯度 (KKT) 推出 lambda_max 生成序列.

    Args:
        grad: X_w^T (y - 零模型预测), 形状 (p_active,).
    """
    if lambdas is not None:
        lam = np.sort(np.unique(np.asarray(lambdas, dtype=float)))[::-1]
        if lam.size == 0 or (lam <= 0).any():
            raise ValueError("lambdas 必须是非空的正数序列")
        return lam
    if n_lambda < 1:
        raise ValueError(f"n_lambda={n_lambda} 必须为正整数")
    ratio = lambda_min_ratio if lambda_min_ratio is not None else default_min_ratio(n_samples, len(grad))
    if not 0 < ratio < 1:
        raise ValueError(f"lambda_min_ratio={ratio} 应在 (0, 1) 范围内")
    lambda_max = float(np.max(np.abs(grad))) / (n_samples * max(alpha, ALPHA_FLOOR))
    return lambda_sequence(lambda_max, n_lambda, ratio)


def unscale_path(design: Design, path: PathResult, n_features: int) -> tuple[np.ndarray, np.ndarray]:
    """
    将求解器路径还原到原始特征尺度.

    Returns:
        (coef (p, L), intercepts (L,)); 被排除的特征系数为 0.
    """
    beta_active = path.coef / design.pf[:, None] / design.scale[:, None]
    intercepts = path.intercepts - design.center @ beta_active

    coef = np.zeros((n_features, beta_active.shape[1]))
    coef[design.active] = beta_active
    return coef, intercepts
