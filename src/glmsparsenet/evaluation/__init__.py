"""
交叉验证评估模块

  - 损失度量: mse, mae, deviance, class, auc
  - 按分布族解析默认度量
"""
from .metrics import (
    mse, mae, binomial_deviance, misclassification, auroc,
    MEASURES, resolve_measure, list_measures, evaluate, higher_is_better,
)

__all__ = [
    "mse", "mae", "binomial_deviance", "misclassification", "auroc",
    "MEASURES", "resolve_measure", "list_measures", "evaluate", "higher_is_better",
]
