"""
惩罚系数构建

流程:
  度数 (network_degrees) → min_degree 截断 → 度数变换 → n_largest 排除 → 合法性检查

结果中的 inf 表示特征被排除在模型之外; 其余值必须是非负有限数.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import networkx as nx
import numpy as np
import pandas as pd

from .network import network_degrees
from .options import NetworkOptions
from .transforms import DegreeDomainError

logger = logging.getLogger(__name__)


@dataclass
class PenaltyFactors:
    """惩罚系数及其来源."""

    degrees: np.ndarray
    penalty: np.ndarray
    feature_names: list[str]
    graph: nx.Graph | None = None

    @property
    def excluded(self) -> np.ndarray:
        """被排除特征的位置."""
        return np.flatnonzero(np.isinf(self.penalty))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"feature": self.feature_names, "degree": self.degrees, "penalty_factor": self.penalty}
        )


def clamp_min_degree(degrees: np.ndarray, min_degree: float) -> np.ndarray:
    """度数 <= min_degree 的特征提升到 min_degree."""
    out = np.asarray(degrees, dtype=float).copy()
    out[out <= min_degree] = min_degree
    return out


def keep_n_largest(penalty: np.ndarray, degrees: np.ndarray, n_largest: int) -> np.ndarray:
    """度数不在前 n_largest 的特征惩罚设为 inf (稳定排序, 同度数按原顺序)."""
    out = penalty.copy()
    if n_largest >= len(degrees):
        return out
    order = np.argsort(-degrees, kind="stable")
    out[order[n_largest:]] = np.inf
    return out


def compute_penalty(degrees: np.ndarray, options: NetworkOptions) -> np.ndarray:
    """
    由度数向量计算惩罚系数.

    Raises:
        DegreeDomainError: 变换结果含 NaN、Inf 或负数, 或度数超出变换定义域.
    """
    clamped = clamp_min_degree(degrees, options.min_degree)
    penalty = np.asarray(options.trans_fun(clamped), dtype=float)

    bad = np.flatnonzero(~np.isfinite(penalty) | (penalty < 0))
    if bad.size:
        raise DegreeDomainError(options.trans_fun.name, bad, "惩罚系数必须是非负有限数")

    if options.n_largest is not None:
        penalty = keep_n_largest(penalty, clamped, options.n_largest)
    return penalty


def calc_penalty(
    matrix: np.ndarray,
    feature_names: list[str],
    network,
    options: NetworkOptions,
) -> PenaltyFactors:
    """
    计算每个特征的惩罚系数

    Args:
        matrix: n×p 数据矩阵.
        feature_names: 特征名.
        network: 网络规格 (见 network.network_degrees).
        options: 网络选项.

    Returns:
        PenaltyFactors
    """
    degrees, G = network_degrees(matrix, feature_names, network, options)
    penalty = compute_penalty(degrees, options)

    n_excluded = int(np.isinf(penalty).sum())
    logger.info(
        "惩罚系数: 变换=%s, min_degree=%.3g, 度数范围 [%.3g, %.3g], 排除 %d 个特征",
        options.trans_fun.label, options.min_degree,
        float(degrees.min()), float(degrees.max()), n_excluded,
    )
    return PenaltyFactors(degrees=degrees, penalty=penalty, feature_names=list(feature_names), graph=G)
