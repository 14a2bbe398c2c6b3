"""
交叉验证损失度量: 含输入验证和边界情况处理

纯函数, 输入为真实响应 y (n,) 和整条路径上的预测 pred (n, L),
输出每个 lambda 一个值 (L,).

度量:
  - mse:      均方误差                  (越小越好)
  - mae:      平均绝对误差              (越小越好)
  - deviance: binomial 偏差             (越小越好)
  - class:    误分类率                  (越小越好)
  - auc:      ROC 曲线下面积            (越大越好)
"""
from __future__ import annotations

import numpy as np
import pandas as pd

_PROB_CLIP = 1e-5


def _validate_inputs(y, pred) -> tuple[np.ndarray, np.ndarray]:
    """验证通用输入, pred 为 1 维时视为单个 lambda."""
    y = np.asarray(y, dtype=float)
    pred = np.asarray(pred, dtype=float)
    if y.ndim != 1:
        raise ValueError(f"y 必须是 1 维, 得到形状 {y.shape}")
    if pred.ndim == 1:
        pred = pred[:, None]
    if pred.shape[0] != y.shape[0]:
        raise ValueError(f"pred 行数 {pred.shape[0]} 与 y 长度 {y.shape[0]} 不一致")
    if y.size == 0:
        raise ValueError("y 不能为空")
    return y, pred


def mse(y, pred) -> np.ndarray:
    y, pred = _validate_inputs(y, pred)
    return ((pred - y[:, None]) ** 2).mean(axis=0)


def mae(y, pred) -> np.ndarray:
    y, pred = _validate_inputs(y, pred)
    return np.abs(pred - y[:, None]).mean(axis=0)


def binomial_deviance(y, prob) -> np.ndarray:
    """
    Binomial 偏差: -2 * mean(y log p + (1 - y) log(1 - p)).

    概率被截断到 [1e-5, 1 - 1e-5], 避免 log(0).
    """
    y, prob = _validate_inputs(y, prob)
    p = np.clip(prob, _PROB_CLIP, 1 - _PROB_CLIP)
    yy = y[:, None]
    return -2.0 * (yy * np.log(p) + (1 - yy) * np.log(1 - p)).mean(axis=0)


def misclassification(y, prob) -> np.ndarray:
    """误分类率, 阈值 0.5."""
    y, prob = _validate_inputs(y, prob)
    return ((prob > 0.5).astype(float) != y[:, None]).mean(axis=0)


def auroc(y, score) -> np.ndarray:
    """
    AUROC: 随机选一个正例和一个负例, 正例得分更高的概率

    用平均秩 (Mann-Whitney U) 计算, 并列得分各计一半.
    全正或全负时返回 NaN.
    """
    y, score = _validate_inputs(y, score)
    pos = y == 1
    n_pos = int(pos.sum())
    n_neg = len(y) - n_pos
    if n_pos == 0 or n_neg == 0:
        return np.full(score.shape[1], np.nan)
    ranks = pd.DataFrame(score).rank(axis=0, method="average").to_numpy()
    u = ranks[pos].sum(axis=0) - n_pos * (n_pos + 1) / 2.0
    return u / (n_pos * n_neg)


# 名称 → (函数, 适用分布族, 是否越大越好, 可读名称)
MEASURES = {
    "mse": (mse, ("gaussian", "binomial"), False, "Mean-Squared Error"),
    "mae": (mae, ("gaussian", "binomial"), False, "Mean Absolute Error"),
    "deviance": (binomial_deviance, ("binomial",), False, "Binomial Deviance"),
    "class": (misclassification, ("binomial",), False, "Misclassification Error"),
    "auc": (auroc, ("binomial",), True, "AUC"),
}

_DEFAULTS = {"gaussian": "mse", "binomial": "deviance"}


def resolve_measure(type_measure: str, family: str) -> str:
    """
    解析度量名称; "default" 按分布族选择.

    Raises:
        ValueError: 未知度量, 或度量不适用于该分布族.
    """
    name = str(type_measure).lower().strip()
    if name == "default":
        return _DEFAULTS[family]
    if name not in MEASURES:
        raise ValueError(f"未知度量: '{type_measure}', 可选: {['default'] + sorted(MEASURES)}")
    if family not in MEASURES[name][1]:
        raise ValueError(f"度量 '{name}' 不适用于 {family} 族, 可选: {list_measures(family)}")
    return name


def list_measures(family: str) -> list[str]:
    return sorted(k for k, v in MEASURES.items() if family in v[1])


def evaluate(name: str, y, pred) -> np.ndarray:
    """按名称计算度量."""
    return MEASURES[name][0](y, pred)


def higher_is_better(name: str) -> bool:
    return MEASURES[name][2]
