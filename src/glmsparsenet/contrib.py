"""
按度数变换命名的便捷入口

每个函数只替换选项中的度数变换, 其余参数原样转发:

  glm_orphan / cv_glm_orphan  → ORPHAN 启发式 (低度数特征的惩罚乘数更大)
  glm_hub    / cv_glm_hub     → HUB 启发式    (高度数特征的惩罚乘数更大)
  glm_degree / cv_glm_degree  → 1/x           (惩罚低度数特征; 零度数需 min_degree > 0)

调用方传入的 options 不会被修改 (with_transform 返回新对象).
"""
from __future__ import annotations

from typing import Optional

from . import glm
from .options import NetworkOptions, network_options
from .transforms import degree_transform, hub_heuristic, orphan_heuristic


def _install(options: Optional[NetworkOptions], transform) -> NetworkOptions:
    if options is None:
        options = network_options()
    return options.with_transform(transform)


def glm_orphan(xdata, ydata, network, options: Optional[NetworkOptions] = None, **kwargs):
    """
    使用 Orphan 启发式惩罚系数拟合弹性网路径.

    示例:
        x = np.random.default_rng(0).normal(size=(20, 5))
        glm_orphan(x, x[:, 0], "correlation", network_options(min_degree=0.2))
    """
    return glm.glm_sparse_net(xdata, ydata, network, _install(options, orphan_heuristic()), **kwargs)


def glm_hub(xdata, ydata, network, options: Optional[NetworkOptions] = None, **kwargs):
    """使用 Hub 启发式惩罚系数拟合弹性网路径."""
    return glm.glm_sparse_net(xdata, ydata, network, _install(options, hub_heuristic()), **kwargs)


def glm_degree(xdata, ydata, network, options: Optional[NetworkOptions] = None, **kwargs):
    """使用 1/degree 惩罚系数拟合弹性网路径."""
    return glm.glm_sparse_net(xdata, ydata, network, _install(options, degree_transform()), **kwargs)


def cv_glm_orphan(xdata, ydata, network, options: Optional[NetworkOptions] = None, **kwargs):
    """
    交叉验证版 glm_orphan.

    示例:
        cv_glm_orphan(x, y, "correlation", network_options(min_degree=0.2), nfolds=5)
    """
    return glm.cv_glm_sparse_net(xdata, ydata, network, _install(options, orphan_heuristic()), **kwargs)


def cv_glm_hub(xdata, ydata, network, options: Optional[NetworkOptions] = None, **kwargs):
    """交叉验证版 glm_hub."""
    return glm.cv_glm_sparse_net(xdata, ydata, network, _install(options, hub_heuristic()), **kwargs)


def cv_glm_degree(xdata, ydata, network, options: Optional[NetworkOptions] = None, **kwargs):
    """交叉验证版 glm_degree."""
    return glm.cv_glm_sparse_net(xdata, ydata, network, _install(options, degree_transform()), **kwargs)


FACADES = {
    "orphan": (glm_orphan, cv_glm_orphan),
    "hub": (glm_hub, cv_glm_hub),
    "degree": (glm_degree, cv_glm_degree),
}
