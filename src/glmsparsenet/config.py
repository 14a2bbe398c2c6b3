"""
配置加载模块: 含验证、类型安全和错误提示

支持配置继承: base.yaml → override.yaml (例如 experiment.yaml)

配置段:
    - network: 网络构建与度数变换 (method, cutoff, min_degree, trans_fun ...)
    - fit:     弹性网拟合参数 (family, alpha, n_lambda ...)
    - cv:      交叉验证参数 (nfolds, type_measure, seed, n_jobs)
    - paths:   输出目录
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger("glmsparsenet.config")

# ── 常量: 合理范围 ──
VALID_METHODS = {"pearson", "spearman", "kendall"}
VALID_FAMILIES = {"gaussian", "binomial"}
VALID_TRANSFORMS = {"identity", "degree", "orphan", "hub"}
VALID_MEASURES = {"default", "mse", "mae", "deviance", "class", "auc"}
_MAX_LAMBDA = 1000
_MAX_FOLDS = 100
_MAX_JOBS = 64


class ConfigValidationError(Exception):
    """配置验证失败, 包含多条错误信息."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        msg = f"配置验证失败 ({len(errors)} 个错误):\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(msg)


@dataclass
class Config:
    """配置数据类: 带类型安全属性和验证."""

    raw: dict = field(default_factory=dict)

    # ── 路径 ──
    @property
    def output_dir(self) -> Path:
        return Path((self.raw.get("paths") or {}).get("output_dir", "./output"))

    # ── 子配置 dict ──
    @property
    def network(self) -> dict:
        return self.raw.get("network", {}) or {}

    @property
    def fit(self) -> dict:
        return self.raw.get("fit", {}) or {}

    @property
    def cv(self) -> dict:
        return self.raw.get("cv", {}) or {}

    # ── 网络 ──
    @property
    def method(self) -> str:
        return str(self.network.get("method", "pearson")).lower().strip()

    @property
    def cutoff(self) -> float:
        return max(0.0, float(self.network.get("cutoff", 0.0)))

    @property
    def consider_unweighted(self) -> bool:
        return bool(self.network.get("consider_unweighted", False))

    @property
    def min_degree(self) -> float:
        return max(0.0, float(self.network.get("min_degree", 0.0)))

    @property
    def n_largest(self) -> Optional[int]:
        val = self.network.get("n_largest")
        if val is None:
            return None
        return max(1, int(val))

    @property
    def trans_fun(self) -> str:
        return str(self.network.get("trans_fun", "identity")).lower().strip()

    # ── 拟合 (含范围校验) ──
    @property
    def family(self) -> str:
        return str(self.fit.get("family", "gaussian")).lower().strip()

    @property
    def alpha(self) -> float:
        val = float(self.fit.get("alpha", 1.0))
        return max(0.0, min(val, 1.0))

    @property
    def n_lambda(self) -> int:
        val = int(self.fit.get("n_lambda", 100))
        return max(1, min(val, _MAX_LAMBDA))

    @property
    def lambda_min_ratio(self) -> Optional[float]:
        val = self.fit.get("lambda_min_ratio")
        return None if val is None else float(val)

    @property
    def standardize(self) -> bool:
        return bool(self.fit.get("standardize", True))

    # ── 交叉验证 ──
    @property
    def nfolds(self) -> int:
        val = int(self.cv.get("nfolds", 10))
        return max(3, min(val, _MAX_FOLDS))

    @property
    def type_measure(self) -> str:
        return str(self.cv.get("type_measure", "default")).lower().strip()

    @property
    def seed(self) -> Optional[int]:
        val = self.cv.get("seed")
        return None if val is None else int(val)

    @property
    def n_jobs(self) -> int:
        val = int(self.cv.get("n_jobs", 1))
        return max(1, min(val, _MAX_JOBS))

    # ── 便捷: 拟合关键字参数 ──
    def fit_kwargs(self) -> dict[str, Any]:
        """返回传给 glm_sparse_net 的关键字参数."""
        kwargs: dict[str, Any] = {
            "family": self.family,
            "alpha": self.alpha,
            "n_lambda": self.n_lambda,
            "standardize": self.standardize,
        }
        if self.lambda_min_ratio is not None:
            kwargs["lambda_min_ratio"] = self.lambda_min_ratio
        return kwargs

    def cv_kwargs(self) -> dict[str, Any]:
        """返回传给 cv_glm_sparse_net 的额外关键字参数."""
        return {
            "nfolds": self.nfolds,
            "type_measure": self.type_measure,
            "seed": self.seed,
            "n_jobs": self.n_jobs,
        }

    # ── 验证 ──
    def validate(self) -> list[str]:
        """
        验证配置完整性.

        Returns:
            错误列表 (空列表表示通过)
        """
        errors: list[str] = []

        if self.method not in VALID_METHODS:
            errors.append(f"network.method='{self.method}' 不合法, 可选: {sorted(VALID_METHODS)}")

        if self.trans_fun not in VALID_TRANSFORMS:
            errors.append(f"network.trans_fun='{self.trans_fun}' 不合法, 可选: {sorted(VALID_TRANSFORMS)}")

        if self.family not in VALID_FAMILIES:
            errors.append(f"fit.family='{self.family}' 不合法, 可选: {sorted(VALID_FAMILIES)}")

        if self.type_measure not in VALID_MEASURES:
            errors.append(f"cv.type_measure='{self.type_measure}' 不合法, 可选: {sorted(VALID_MEASURES)}")

        for key in ("cutoff", "min_degree"):
            if self.network.get(key) is not None:
                try:
                    v = float(self.network[key])
                    if v < 0:
                        errors.append(f"network.{key}={v} 不能为负数")
                except (ValueError, TypeError) as e:
                    errors.append(f"network.{key} 无法解析为浮点数: {e}")

        if self.fit.get("alpha") is not None:
            try:
                a = float(self.fit["alpha"])
                if a < 0 or a > 1:
                    errors.append(f"fit.alpha={a} 应在 [0, 1] 范围内")
            except (ValueError, TypeError) as e:
                errors.append(f"fit.alpha 无法解析为浮点数: {e}")

        if self.cv.get("nfolds") is not None:
            try:
                n = int(self.cv["nfolds"])
                if n < 3:
                    errors.append(f"cv.nfolds={n} 至少为 3")
            except (ValueError, TypeError) as e:
                errors.append(f"cv.nfolds 无法解析为整数: {e}")

        return errors

    def validate_or_raise(self) -> None:
        """验证配置, 有错误时抛出 ConfigValidationError."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError(errors)

    def summary(self) -> dict[str, Any]:
        """返回配置摘要字典 (用于日志和 manifest)."""
        return {
            "output_dir": str(self.output_dir),
            "method": self.method,
            "cutoff": self.cutoff,
            "consider_unweighted": self.consider_unweighted,
            "min_degree": self.min_degree,
            "n_largest": self.n_largest,
            "trans_fun": self.trans_fun,
            "family": self.family,
            "alpha": self.alpha,
            "n_lambda": self.n_lambda,
            "standardize": self.standardize,
            "nfolds": self.nfolds,
            "type_measure": self.type_measure,
            "seed": self.seed,
            "n_jobs": self.n_jobs,
        }


def _deep_merge(base: dict, override: dict) -> dict:
    """深度合并两个字典 (override 优先)."""
    if not isinstance(base, dict) or not isinstance(override, dict):
        return override
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict:
    """
    加载 YAML 文件.

    Args:
        path: YAML 文件路径.

    Returns:
        解析后的字典.

    Raises:
        FileNotFoundError: 文件不存在.
        yaml.YAMLError: YAML 语法错误.
    """
    if not path.exists():
        raise FileNotFoundError(
            f"配置文件不存在: {path}\n"
            f"  绝对路径: {path.resolve()}"
        )
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(
            f"YAML 解析错误: {path}\n  {e}\n"
            f"  提示: 检查缩进和特殊字符"
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"配置文件顶层必须是字典, 得到 {type(data).__name__}: {path}")
    return data


def load_config(
    base_path: str = "configs/base.yaml",
    override_path: Optional[str] = None,
) -> Config:
    """
    加载并合并配置.

    优先级: override > base

    Args:
        base_path: 基础配置文件路径.
        override_path: 覆盖配置文件路径 (可选).

    Returns:
        合并后的 Config 对象.
    """
    config = load_yaml(Path(base_path))

    if override_path:
        override_cfg = load_yaml(Path(override_path))
        config = _deep_merge(config, override_cfg)
        logger.debug("合并覆盖配置: %s", override_path)

    cfg = Config(raw=config)

    # 记录配置警告 (非致命)
    for w in cfg.validate():
        logger.warning("配置警告: %s", w)

    return cfg


def ensure_dir(p: Path) -> Path:
    """确保目录存在, 返回路径本身."""
    p.mkdir(parents=True, exist_ok=True)
    return p
