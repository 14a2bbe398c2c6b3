"""
分布族模块

支持的族:
  - gaussian: 线性回归 (sklearn enet_path)
  - binomial: logistic 回归 (sklearn LogisticRegression, saga)
"""
from .base import PF_FLOOR, normalize_penalty, lambda_sequence
from .gaussian import fit_gaussian
from .binomial import fit_binomial
from . import gaussian, binomial

__all__ = ["FAMILIES", "PF_FLOOR", "normalize_penalty", "lambda_sequence",
           "fit_gaussian", "fit_binomial", "prepare_response", "fit_path"]

FAMILIES = ("gaussian", "binomial")

_MODULES = {"gaussian": gaussian, "binomial": binomial}
_FITTERS = {"gaussian": fit_gaussian, "binomial": fit_binomial}


def _check_family(family: str) -> str:
    f = str(family).lower().strip()
    if f not in _FITTERS:
        raise ValueError(f"未知分布族: '{family}', 可选: {list(FAMILIES)}")
    return f


def prepare_response(family: str, y):
    """按分布族编码响应, 返回 (y, classes 或 None)."""
    return _MODULES[_check_family(family)].prepare_response(y)


def fit_path(family: str, X, y, penalty, **kwargs):
    """根据分布族拟合弹性网路径; 值为 None 的关键字参数使用各族默认值."""
    fitter = _FITTERS[_check_family(family)]
    return fitter(X, y, penalty, **{k: v for k, v in kwargs.items() if v is not None})
