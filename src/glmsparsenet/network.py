"""
特征网络 NetworkX 层

由数据或调用方给定的网络规格得到特征度数, 支持:
  - 网络构建 (build_network): correlation / covariance / 邻接矩阵
  - 度数计算 (network_degrees): 加权度数或保留边条数
  - 图统计 (graph_stats)
  - GraphML 导出 (export_graphml)

节点为特征名, 边权为 |相关系数| / |协方差| / |邻接权重|, 对角线不参与度数.
"""
from __future__ import annotations

import logging
from pathlib import Path

import networkx as nx
import numpy as np
import pandas as pd

from .config import ensure_dir
from .options import NetworkOptions

logger = logging.getLogger(__name__)

NETWORK_TYPES = ("correlation", "covariance")


def _weight_matrix(matrix: np.ndarray, feature_names: list[str], network, options: NetworkOptions) -> pd.DataFrame:
    """网络规格 → p×p 绝对权重矩阵 (DataFrame, 行列均为特征名)."""
    p = len(feature_names)

    if isinstance(network, str):
        key = network.lower().strip()
        frame = pd.DataFrame(matrix, columns=feature_names)
        if key == "correlation":
            weights = frame.corr(method=options.method)
        elif key == "covariance":
            weights = frame.cov()
        else:
            raise ValueError(
                f"未知网络类型: '{network}'\n"
                f"  可选: {list(NETWORK_TYPES)}, p×p 邻接矩阵, 或长度为 p 的度数向量"
            )
        n_nan = int(weights.isna().to_numpy().sum())
        if n_nan:
            logger.warning("%s 网络含 %d 个 NaN 权重 (常数列?), 视为无边", key, n_nan)
        return weights.fillna(0.0).abs()

    if isinstance(network, pd.DataFrame):
        labelled = network.rename(index=str, columns=str)
        if set(feature_names) <= set(labelled.index) and set(feature_names) <= set(labelled.columns):
            labelled = labelled.loc[feature_names, feature_names]
        values = labelled.to_numpy(dtype=float)
    else:
        values = np.asarray(network, dtype=float)
    if values.shape != (p, p):
        raise ValueError(f"邻接矩阵形状必须为 ({p}, {p}), 得到 {values.shape}")
    if not np.isfinite(values).all():
        raise ValueError("邻接矩阵含 NaN 或 Inf")
    return pd.DataFrame(np.abs(values), index=feature_names, columns=feature_names)


def build_network(
    matrix: np.ndarray,
    feature_names: list[str],
    network,
    options: NetworkOptions,
) -> nx.Graph:
    """
    构建特征网络.

    Args:
        matrix: n×p 数据矩阵.
        feature_names: 特征名 (节点标签).
        network: "correlation" / "covariance" / p×p 邻接矩阵 (DataFrame 的行列标签覆盖特征名时按名对齐).
        options: 网络选项 (method, cutoff).

    Returns:
        nx.Graph, 所有特征都是节点 (孤立特征也保留), 边带 weight 属性.
    """
    weights = _weight_matrix(matrix, feature_names, network, options).to_numpy(dtype=float, copy=True)
    np.fill_diagonal(weights, 0.0)

    G = nx.Graph()
    G.add_nodes_from(feature_names)
    rows, cols = np.triu_indices(len(feature_names), k=1)
    w = weights[rows, cols]
    keep = (w > 0) & (w >= options.cutoff)
    G.add_weighted_edges_from(
        (feature_names[i], feature_names[j], float(v))
        for i, j, v in zip(rows[keep], cols[keep], w[keep])
    )

    logger.info("特征网络构建完成: %d 节点, %d 边 (cutoff=%.3g)",
                G.number_of_nodes(), G.number_of_edges(), options.cutoff)
    return G


def graph_degrees(G: nx.Graph, feature_names: list[str], consider_unweighted: bool = False) -> np.ndarray:
    """按 feature_names 顺序返回度数向量."""
    deg = dict(G.degree(weight=None if consider_unweighted else "weight"))
    return np.array([float(deg.get(name, 0.0)) for name in feature_names])


def network_degrees(
    matrix: np.ndarray,
    feature_names: list[str],
    network,
    options: NetworkOptions,
) -> tuple[np.ndarray, nx.Graph | None]:
    """
    由网络规格得到度数向量.

    长度为 p 的 1 维向量视为预先计算的度数, 直接返回 (无图);
    其余规格先构建网络再求度数.

    Returns:
        (度数向量, 网络图或 None)

    Raises:
        ValueError: 规格无法识别或形状不匹配.
    """
    p = len(feature_names)
    if not isinstance(network, (str, pd.DataFrame)):
        arr = np.asarray(network, dtype=float)
        if arr.ndim == 1:
            if arr.shape[0] != p:
                raise ValueError(f"度数向量长度必须为 {p}, 得到 {arr.shape[0]}")
            if isinstance(network, pd.Series) and set(feature_names) <= set(map(str, network.index)):
                arr = network.rename(index=str).loc[feature_names].to_numpy(dtype=float)
            logger.debug("使用给定度数向量 (%d 特征)", p)
            return arr, None
        if arr.ndim != 2:
            raise ValueError(f"network 必须是字符串、1 维度数向量或 2 维邻接矩阵, 得到 {arr.ndim} 维")

    G = build_network(matrix, feature_names, network, options)
    return graph_degrees(G, feature_names, options.consider_unweighted), G


def graph_stats(G: nx.Graph) -> dict:
    """
    图统计

    Returns:
        {"total_nodes": int, "total_edges": int, "density": float,
         "isolated": int, "mean_degree": float, "max_degree": float}
    """
    n = G.number_of_nodes()
    degrees = [d for _, d in G.degree(weight="weight")]
    return {
        "total_nodes": n,
        "total_edges": G.number_of_edges(),
        "density": nx.density(G) if n > 1 else 0.0,
        "isolated": nx.number_of_isolates(G),
        "mean_degree": float(np.mean(degrees)) if degrees else 0.0,
        "max_degree": float(np.max(degrees)) if degrees else 0.0,
    }


def export_graphml(G: nx.Graph, path: Path) -> Path:
    """
    导出为 GraphML (可用 Cytoscape / Gephi 可视化)

    Returns:
        输出文件路径
    """
    path = Path(path)
    ensure_dir(path.parent)
    nx.write_graphml(G, str(path))
    logger.info("GraphML 导出完成: %s (%d 节点, %d 边)",
                path, G.number_of_nodes(), G.number_of_edges())
    return path
