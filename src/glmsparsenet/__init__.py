"""
glmsparsenet - 网络惩罚弹性网回归

由特征网络的度数构建逐特征惩罚系数, 注入弹性网求解器:

  xdata ──→ 网络 (correlation / covariance / 邻接矩阵 / 度数向量)
              ↓
            度数 → min_degree 截断 → 度数变换 → 惩罚系数
              ↓
  ydata ──→ 弹性网路径 (gaussian / binomial) ──→ 交叉验证选择 lambda

度数变换:
  - IDENTITY: x
  - DEGREE:   1/x        (glm_degree, cv_glm_degree)
  - ORPHAN:   启发式     (glm_orphan, cv_glm_orphan)
  - HUB:      启发式镜像 (glm_hub, cv_glm_hub)
"""

__version__ = "0.3.0"

from .contrib import (
    glm_orphan, glm_hub, glm_degree,
    cv_glm_orphan, cv_glm_hub, cv_glm_degree,
)
from .glm import glm_sparse_net, cv_glm_sparse_net, SparseNetFit, CVSparseNetFit
from .options import NetworkOptions, network_options
from .transforms import (
    DegreeTransform, DegreeDomainError,
    degree_transform, orphan_heuristic, hub_heuristic,
)

__all__ = [
    "glm_orphan", "glm_hub", "glm_degree",
    "cv_glm_orphan", "cv_glm_hub", "cv_glm_degree",
    "glm_sparse_net", "cv_glm_sparse_net", "SparseNetFit", "CVSparseNetFit",
    "NetworkOptions", "network_options",
    "DegreeTransform", "DegreeDomainError",
    "degree_transform", "orphan_heuristic", "hub_heuristic",
]
