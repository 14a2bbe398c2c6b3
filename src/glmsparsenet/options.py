"""
网络选项: 构建特征网络和惩罚系数所需的全部参数

NetworkOptions 为不可变记录; 需要替换度数变换时使用 with_transform()
得到新对象, 调用方持有的原对象不会被修改.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Optional

from .config import Config, VALID_METHODS
from .transforms import DegreeTransform


@dataclass(frozen=True)
class NetworkOptions:
    """
    特征网络选项.

    Attributes:
        method: 相关系数方法 (pearson / spearman / kendall).
        cutoff: 绝对权重低于该值的边被丢弃.
        consider_unweighted: True 时度数为保留边的条数, 否则为权重之和.
        min_degree: 度数 <= min_degree 的特征被提升到 min_degree.
        n_largest: 仅保留度数最大的 n 个特征, 其余特征被排除 (惩罚为 inf).
        trans_fun: 度数变换.
    """

    method: str = "pearson"
    cutoff: float = 0.0
    consider_unweighted: bool = False
    min_degree: float = 0.0
    n_largest: Optional[int] = None
    trans_fun: DegreeTransform = DegreeTransform.IDENTITY

    def __post_init__(self):
        if self.method not in VALID_METHODS:
            raise ValueError(f"method='{self.method}' 不合法, 可选: {sorted(VALID_METHODS)}")
        if self.cutoff < 0:
            raise ValueError(f"cutoff={self.cutoff} 不能为负数")
        if self.min_degree < 0:
            raise ValueError(f"min_degree={self.min_degree} 不能为负数")
        if self.n_largest is not None and self.n_largest < 1:
            raise ValueError(f"n_largest={self.n_largest} 必须为正整数")
        if not isinstance(self.trans_fun, DegreeTransform):
            object.__setattr__(self, "trans_fun", DegreeTransform.parse(self.trans_fun))

    def with_transform(self, trans_fun) -> "NetworkOptions":
        """返回仅替换 trans_fun 的新选项对象."""
        return replace(self, trans_fun=DegreeTransform.parse(trans_fun))

    @classmethod
    def from_config(cls, cfg: Config) -> "NetworkOptions":
        """从配置的 network 段构建."""
        return cls(
            method=cfg.method,
            cutoff=cfg.cutoff,
            consider_unweighted=cfg.consider_unweighted,
            min_degree=cfg.min_degree,
            n_largest=cfg.n_largest,
            trans_fun=DegreeTransform.parse(cfg.trans_fun),
        )

    def summary(self) -> dict[str, Any]:
        d = asdict(self)
        d["trans_fun"] = self.trans_fun.label
        return d


def network_options(**overrides) -> NetworkOptions:
    """默认选项构造器; 关键字参数覆盖对应字段."""
    return NetworkOptions(**overrides)
