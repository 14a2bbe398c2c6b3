"""
通用工具函数: 含输入验证、NaN 保护和结构化日志

文件读写、并发执行等

    - concurrent_map: 保序并发执行, 任务失败时记录日志并向上抛出
    - read_table: CSV 读取, 含文件存在性校验
    - write_json: NaN/numpy 安全序列化
"""
from __future__ import annotations

import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, Any, TypeVar

import numpy as np
import pandas as pd
from tqdm import tqdm

from .config import ensure_dir

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def concurrent_map(
    fn: Callable[[T], R],
    items: Iterable[T],
    max_workers: int = 1,
    desc: str = "",
) -> list[R]:
    """
    对 items 并发执行 fn, 返回结果列表 (保持原始顺序).

    Args:
        fn: 对每个 item 执行的函数.
        items: 输入列表.
        max_workers: 并发线程数, ≤1 则顺序执行.
        desc: tqdm 进度条描述.

    Returns:
        与 items 同序的结果列表.

    Raises:
        任务抛出的第一个异常 (其余未完成任务被取消).
    """
    items = list(items)
    if not items:
        return []

    max_workers = max(1, int(max_workers))

    if max_workers <= 1:
        results = []
        for i, item in enumerate(tqdm(items, desc=desc, disable=not desc)):
            try:
                results.append(fn(item))
            except Exception:
                logger.error("%s: 任务 #%d 失败", desc or "concurrent_map", i)
                raise
        return results

    results: list[Any] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(fn, item): i for i, item in enumerate(items)}
        with tqdm(total=len(futures), desc=desc, disable=not desc) as pbar:
            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except Exception:
                    logger.error("%s: 并发任务 #%d 失败", desc or "concurrent_map", idx)
                    for f in futures:
                        f.cancel()
                    raise
                pbar.update(1)

    return results


def read_table(path: Path, **kwargs) -> pd.DataFrame:
    """
    读取CSV文件, 含文件存在性校验.

    Args:
        path: CSV 文件路径.
        **kwargs: 透传给 pd.read_csv.

    Returns:
        DataFrame.

    Raises:
        FileNotFoundError: 文件不存在.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"文件不存在: {path.resolve()}\n"
            f"  提示: 检查 --x / --y 参数"
        )
    df = pd.read_csv(path, low_memory=False, **kwargs)
    logger.debug("读取 CSV: %s (%d 行, %d 列)", path.name, len(df), len(df.columns))
    return df


def _sanitize_for_json(obj: Any) -> Any:
    """递归替换 NaN/Inf 为 None, numpy 标量和数组转为 Python 原生类型."""
    if isinstance(obj, np.ndarray):
        return _sanitize_for_json(obj.tolist())
    if isinstance(obj, np.generic):
        return _sanitize_for_json(obj.item())
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj
    if isinstance(obj, dict):
        return {k: _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_json(v) for v in obj]
    return obj


def write_json(path: Path, data: dict) -> None:
    """写入 JSON 文件, NaN 安全."""
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(
        json.dumps(_sanitize_for_json(data), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    logger.debug("写入 JSON: %s", path.name)
