"""
度数变换: 将特征网络度数映射为惩罚系数

四种变换 (封闭集合):
  - IDENTITY: f(x) = x                      (默认, 度数即惩罚)
  - DEGREE:   f(x) = 1/x                    (惩罚低度数特征, 偏好 hub)
  - ORPHAN:   heuristic_scale, 随度数单调不增 (低度数/孤立特征的惩罚乘数更大)
  - HUB:      同一曲线镜像,   随度数单调不减 (高度数/hub 特征的惩罚乘数更大)

启发式曲线 (作用于归一化度数 t = x / max(x)):
  h(t) = exp(exp_mult * (10^t - sub_exp10)) - sub_exp

所有变换都拒绝负数、NaN、Inf; DEGREE 在 x = 0 处抛出 DegreeDomainError,
不会把 inf 静默传给求解器.
"""
from __future__ import annotations

from enum import Enum

import numpy as np


class DegreeDomainError(ValueError):
    """度数超出变换定义域 (负数、非有限值, 或 1/x 的零度数)."""

    def __init__(self, transform: str, positions, reason: str):
        self.transform = transform
        self.positions = [int(i) for i in positions]
        shown = self.positions[:10]
        more = "" if len(self.positions) <= 10 else f" ... (共 {len(self.positions)} 个)"
        super().__init__(f"{transform} 变换定义域错误: {reason}, 特征位置 {shown}{more}")


def _as_degrees(x, transform: str) -> np.ndarray:
    """转为 float 数组, 并检查非负有限."""
    arr = np.asarray(x, dtype=float)
    bad = np.flatnonzero(~np.isfinite(arr))
    if bad.size:
        raise DegreeDomainError(transform, bad, "度数必须是有限值")
    bad = np.flatnonzero(arr < 0)
    if bad.size:
        raise DegreeDomainError(transform, bad, "度数不能为负")
    return arr


def _normalize(x: np.ndarray) -> np.ndarray:
    """按最大值归一化到 [0, 1]; 全零时原样返回."""
    if x.size == 0:
        return x
    top = x.max()
    return x / top if top != 0 else x


def identity(x) -> np.ndarray:
    return _as_degrees(x, "IDENTITY").copy()


def inverse_degree(x) -> np.ndarray:
    """
    1/x 变换.

    Raises:
        DegreeDomainError: 存在零度数, 或度数过小使 1/x 溢出 (上游应通过 min_degree 排除).
    """
    arr = _as_degrees(x, "DEGREE")
    zeros = np.flatnonzero(arr == 0)
    if zeros.size:
        raise DegreeDomainError("DEGREE", zeros, "1/x 在度数为 0 时无定义, 请设置 min_degree > 0")
    with np.errstate(over="ignore"):
        out = 1.0 / arr
    overflow = np.flatnonzero(~np.isfinite(out))
    if overflow.size:
        raise DegreeDomainError("DEGREE", overflow, "度数过小, 1/x 溢出为 inf, 请设置 min_degree > 0")
    return out


def heuristic_scale(x, sub_exp10: float = -1.0, exp_mult: float = -1.0, sub_exp: float = -1.0) -> np.ndarray:
    """
    启发式缩放曲线.

    公式: exp(exp_mult * (10^t - sub_exp10)) - sub_exp,  t = x / max(x)

    Args:
        x: 度数向量 (非负).
        sub_exp10: 从 10 的幂中减去的值 (10^0 - sub_exp10 = 1 - sub_exp10).
        exp_mult: 指数乘子, 负数得到递减曲线, 正数得到递增曲线.
        sub_exp: 从指数中减去的值 (e^0 - sub_exp = 1 - sub_exp).

    Returns:
        与 x 同形的系数数组.
    """
    t = _normalize(_as_degrees(x, "HEURISTIC"))
    return np.exp(exp_mult * (np.power(10.0, t) - sub_exp10)) - sub_exp


def orphan_scale(x) -> np.ndarray:
    """Orphan 启发式: 随度数单调不增, 孤立特征得到最大乘数."""
    arr = _as_degrees(x, "ORPHAN")
    return heuristic_scale(arr, exp_mult=-1.0)


def hub_scale(x) -> np.ndarray:
    """Hub 启发式: Orphan 曲线在度数轴上镜像, 随度数单调不减."""
    arr = _as_degrees(x, "HUB")
    if arr.size == 0:
        return arr
    return heuristic_scale(arr.max() - arr, exp_mult=-1.0)


class DegreeTransform(Enum):
    """度数变换的封闭集合; 成员可直接调用: DegreeTransform.HUB(degrees)."""

    IDENTITY = "identity"
    DEGREE = "degree"
    ORPHAN = "orphan"
    HUB = "hub"

    def __call__(self, x) -> np.ndarray:
        return _FUNCS[self](x)

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value) -> "DegreeTransform":
        """接受成员或名称 (不区分大小写)."""
        if isinstance(value, cls):
            return value
        key = str(value).lower().strip()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(
            f"未知度数变换: {value!r}\n"
            f"  可选: {[m.value for m in cls]}"
        )


_FUNCS = {
    DegreeTransform.IDENTITY: identity,
    DegreeTransform.DEGREE: inverse_degree,
    DegreeTransform.ORPHAN: orphan_scale,
    DegreeTransform.HUB: hub_scale,
}


def degree_transform() -> DegreeTransform:
    """返回 1/x 变换."""
    return DegreeTransform.DEGREE


def orphan_heuristic() -> DegreeTransform:
    """返回 Orphan 启发式变换."""
    return DegreeTransform.ORPHAN


def hub_heuristic() -> DegreeTransform:
    """返回 Hub 启发式变换."""
    return DegreeTransform.HUB
