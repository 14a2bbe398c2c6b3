"""
输入数据整理

xdata 支持:
  - 2-D numpy 数组           (特征名为 X1..Xp)
  - pandas DataFrame         (列名即特征名, 行索引即样本)
  - {来源名: DataFrame} 映射 (多组学/多来源数据, 按样本索引内连接, 列名加前缀 "来源:")
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def _merge_sources(sources: Mapping) -> pd.DataFrame:
    """按样本索引内连接多个来源, 列名加来源前缀."""
    if not sources:
        raise ValueError("多来源 xdata 不能为空")
    frames = []
    for name, df in sources.items():
        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"来源 '{name}' 必须是 DataFrame, 得到 {type(df).__name__}")
        frames.append(df.add_prefix(f"{name}:"))
    merged = pd.concat(frames, axis=1, join="inner")
    dropped = max(len(df) for df in sources.values()) - len(merged)
    if dropped > 0:
        logger.warning("多来源合并: %d 个样本不在所有来源中, 已丢弃", dropped)
    logger.debug("多来源合并: %d 来源, %d 样本, %d 特征", len(frames), len(merged), merged.shape[1])
    return merged


def prepare_xdata(xdata) -> tuple[np.ndarray, list[str], pd.Index]:
    """
    将 xdata 整理为数值矩阵.

    Args:
        xdata: ndarray / DataFrame / {来源名: DataFrame}.

    Returns:
        (矩阵 n×p, 特征名列表, 样本索引)

    Raises:
        TypeError: 不支持的 xdata 类型.
        ValueError: 维度错误、非数值列或缺失值.
    """
    if isinstance(xdata, Mapping):
        xdata = _merge_sources(xdata)

    if isinstance(xdata, pd.DataFrame):
        non_numeric = [c for c in xdata.columns if not pd.api.types.is_numeric_dtype(xdata[c])]
        if non_numeric:
            raise ValueError(
                f"xdata 含非数值列: {non_numeric[:10]}\n"
                f"  提示: 先编码或删除这些列"
            )
        frame = xdata
    elif isinstance(xdata, np.ndarray):
        if xdata.ndim != 2:
            raise ValueError(f"xdata 必须是 2 维矩阵, 得到 {xdata.ndim} 维")
        frame = pd.DataFrame(xdata, columns=[f"X{j + 1}" for j in range(xdata.shape[1])])
    else:
        raise TypeError(
            f"xdata 类型不支持: {type(xdata).__name__}\n"
            f"  可选: numpy.ndarray, pandas.DataFrame, Mapping[str, DataFrame]"
        )

    dup = frame.columns[frame.columns.duplicated()].tolist()
    if dup:
        raise ValueError(f"xdata 特征名重复: {dup[:10]}")
    if frame.shape[1] < 2:
        raise ValueError(f"xdata 至少需要 2 个特征, 得到 {frame.shape[1]}")
    if frame.shape[0] < 2:
        raise ValueError(f"xdata 至少需要 2 个样本, 得到 {frame.shape[0]}")

    matrix = frame.to_numpy(dtype=float, copy=True)
    if not np.isfinite(matrix).all():
        raise ValueError("xdata 含 NaN 或 Inf, 请先插补或过滤")

    return matrix, [str(c) for c in frame.columns], frame.index


def prepare_ydata(ydata, n_samples: int, index: pd.Index | None = None) -> np.ndarray:
    """
    将 ydata 整理为 1 维数组并检查长度.

    ydata 为 Series 且其索引覆盖全部样本时按 index 对齐, 否则按位置.

    Raises:
        ValueError: 长度与样本数不一致, 或不是单列.
    """
    if isinstance(ydata, pd.DataFrame):
        if ydata.shape[1] != 1:
            raise ValueError(f"ydata 必须是单列, 得到 {ydata.shape[1]} 列")
        ydata = ydata.iloc[:, 0]
    if (
        isinstance(ydata, pd.Series)
        and index is not None
        and not ydata.index.equals(index)
        and index.isin(ydata.index).all()
    ):
        ydata = ydata.loc[index]
    y = np.asarray(ydata)
    if y.ndim == 2 and 1 in y.shape:
        y = y.ravel()
    if y.ndim != 1:
        raise ValueError(f"ydata 必须是向量, 得到形状 {y.shape}")
    if len(y) != n_samples:
        raise ValueError(f"ydata 长度 {len(y)} 与 xdata 样本数 {n_samples} 不一致")
    return y
