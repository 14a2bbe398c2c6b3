"""
glmsparsenet 命令行接口: 含步骤计时和运行 manifest

用法:
  # 单次拟合 (Hub 启发式, 相关网络)
  glmsparsenet fit --x expr.csv --y outcome.csv --model hub --min-degree 0.2

  # 交叉验证
  glmsparsenet cv --x expr.csv --y outcome.csv --model orphan --family binomial --nfolds 5

  # 仅构建网络并导出
  glmsparsenet network --x expr.csv --export network.graphml

CSV 约定: 第一列为样本 ID (行索引); 网络文件为 p×p 邻接矩阵或单列度数表.
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

from . import __version__
from .config import Config, ensure_dir, load_config
from .contrib import FACADES
from .data import prepare_xdata
from .glm import cv_glm_sparse_net, glm_sparse_net
from .network import export_graphml, graph_stats
from .options import NetworkOptions
from .penalty import calc_penalty
from .utils import read_table, write_json

logger = logging.getLogger(__name__)

MODELS = ["identity", "orphan", "hub", "degree"]


def _setup_logging(verbose: bool = False) -> None:
    """配置全局日志."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _timed_step(name: str, fn, *args, **kwargs):
    """
    执行带计时的步骤.

    Returns:
        (result, timing_dict): 函数返回值和计时信息; 失败时 result 为 None.
    """
    logger.info("▶ %s ...", name)
    t0 = time.time()
    try:
        result = fn(*args, **kwargs)
        elapsed = time.time() - t0
        logger.info("✓ %s 完成 (%.1fs)", name, elapsed)
        return result, {"step": name, "elapsed_sec": round(elapsed, 2), "status": "ok"}
    except Exception as e:
        elapsed = time.time() - t0
        logger.error("✗ %s 失败 (%.1fs): %s", name, elapsed, e)
        return None, {"step": name, "elapsed_sec": round(elapsed, 2), "status": "error", "error": str(e)}


def _add_data_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--x", required=True, help="特征矩阵 CSV (行=样本, 列=特征)")
    p.add_argument("--network", default="correlation",
                   help="correlation / covariance / 邻接矩阵或度数表 CSV 路径")
    p.add_argument("--model", default=None, choices=MODELS, help="度数变换 (默认取配置 network.trans_fun)")
    p.add_argument("--config", help="基础配置 YAML")
    p.add_argument("--override", help="覆盖配置 YAML")
    p.add_argument("--min-degree", type=float, help="最小度数")
    p.add_argument("--cutoff", type=float, help="边权截断")
    p.add_argument("--output", help="输出目录 (默认取配置 paths.output_dir)")


def _add_fit_args(p: argparse.ArgumentParser) -> None:
    _add_data_args(p)
    p.add_argument("--y", required=True, help="响应 CSV (第一列为样本 ID)")
    p.add_argument("--y-column", help="响应列名 (默认第一列数据)")
    p.add_argument("--family", choices=["gaussian", "binomial"], help="分布族")
    p.add_argument("--alpha", type=float, help="弹性网混合参数 [0, 1]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glmsparsenet",
        description=f"glmsparsenet v{__version__} - 网络惩罚弹性网回归",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="显示调试日志")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_fit = subparsers.add_parser("fit", help="拟合弹性网路径")
    _add_fit_args(p_fit)
    p_fit.add_argument("--lambda", dest="lam", type=float, help="输出该 lambda 处的系数 (默认整条路径)")

    p_cv = subparsers.add_parser("cv", help="交叉验证")
    _add_fit_args(p_cv)
    p_cv.add_argument("--nfolds", type=int, help="折数")
    p_cv.add_argument("--measure", help="度量: default / mse / mae / deviance / class / auc")
    p_cv.add_argument("--seed", type=int, help="随机种子")
    p_cv.add_argument("--n-jobs", type=int, help="并行线程数")

    p_net = subparsers.add_parser("network", help="构建特征网络并输出度数/惩罚系数")
    _add_data_args(p_net)
    p_net.add_argument("--export", metavar="PATH", help="导出 GraphML 文件路径")

    return parser


def _load_cli_config(args) -> Config:
    """加载配置, 命令行参数优先."""
    if args.config:
        cfg = load_config(args.config, args.override)
    else:
        cfg = Config(raw={})

    raw = cfg.raw
    net = raw["network"] = raw.get("network") or {}
    fit = raw["fit"] = raw.get("fit") or {}
    cv = raw["cv"] = raw.get("cv") or {}
    if args.model is not None:
        net["trans_fun"] = args.model
    if args.min_degree is not None:
        net["min_degree"] = args.min_degree
    if args.cutoff is not None:
        net["cutoff"] = args.cutoff
    if args.output:
        raw["paths"] = {**(raw.get("paths") or {}), "output_dir": args.output}
    if getattr(args, "family", None):
        fit["family"] = args.family
    if getattr(args, "alpha", None) is not None:
        fit["alpha"] = args.alpha
    for arg, key in (("nfolds", "nfolds"), ("measure", "type_measure"), ("seed", "seed"), ("n_jobs", "n_jobs")):
        if getattr(args, arg, None) is not None:
            cv[key] = getattr(args, arg)

    cfg.validate_or_raise()
    return cfg


def _read_network(value: str):
    """网络参数: 已知类型名原样返回, 否则读取 CSV (单列视为度数表)."""
    if value.lower() in ("correlation", "covariance"):
        return value.lower()
    df = read_table(Path(value), index_col=0)
    if df.shape[1] == 1:
        return df.iloc[:, 0]
    return df


def _read_response(path: str, column: str | None):
    df = read_table(Path(path), index_col=0)
    if column:
        if column not in df.columns:
            raise ValueError(f"响应文件缺少列 '{column}', 可用列: {df.columns.tolist()}")
        return df[column]
    return df.iloc[:, 0]


def _fit_entry(model: str, cross_validate: bool):
    """按模型名选择入口: identity 直接调用主入口, 其余使用便捷函数."""
    if model == "identity":
        return cv_glm_sparse_net if cross_validate else glm_sparse_net
    single, cv = FACADES[model]
    return cv if cross_validate else single


def run_fit(args, cfg: Config) -> dict:
    """fit / cv 命令."""
    cross_validate = args.command == "cv"
    out_dir = ensure_dir(cfg.output_dir)
    step_timings = []

    def _load():
        return read_table(Path(args.x), index_col=0), _read_response(args.y, args.y_column), _read_network(args.network)

    loaded, t = _timed_step("[1/3] 读取数据", _load)
    step_timings.append(t)
    if loaded is None:
        return {"step_timings": step_timings, "status": "error"}
    xdata, ydata, network = loaded

    options = NetworkOptions.from_config(cfg)
    entry = _fit_entry(cfg.trans_fun, cross_validate)
    kwargs = cfg.fit_kwargs()
    if cross_validate:
        kwargs.update(cfg.cv_kwargs())

    result, t = _timed_step("[2/3] %s (%s)" % ("交叉验证" if cross_validate else "路径拟合", cfg.trans_fun),
                            entry, xdata, ydata, network, options, **kwargs)
    step_timings.append(t)
    if result is None:
        return {"step_timings": step_timings, "status": "error"}

    def _write():
        outputs = {}
        fit = result.fit if cross_validate else result
        penalty_csv = out_dir / "penalty_factors.csv"
        fit.penalty.to_frame().to_csv(penalty_csv, index=False)
        outputs["penalty_factors"] = penalty_csv

        coef_csv = out_dir / "coefficients.csv"
        if cross_validate:
            coef = result.coef("lambda_min").to_frame("lambda_min")
            coef["lambda_1se"] = result.coef("lambda_1se")
            coef.to_csv(coef_csv, index_label="feature")
            curve_csv = out_dir / "cv_curve.csv"
            result.to_frame().to_csv(curve_csv, index=False)
            outputs["cv_curve"] = curve_csv
        elif args.lam is not None:
            fit.coef(args.lam).to_frame("coef").to_csv(coef_csv, index_label="feature")
        else:
            fit.coef_frame().to_csv(coef_csv, index_label="feature")
        outputs["coefficients"] = coef_csv
        return outputs

    outputs, t = _timed_step("[3/3] 写出结果", _write)
    step_timings.append(t)

    return {
        "status": "ok" if outputs is not None else "error",
        "result_summary": result.summary(),
        "step_timings": step_timings,
        "outputs": {k: str(v) for k, v in (outputs or {}).items()},
    }


def run_network(args, cfg: Config) -> dict:
    """network 命令: 构建网络, 打印统计, 写出度数/惩罚系数表."""
    out_dir = ensure_dir(cfg.output_dir)
    xdata = read_table(Path(args.x), index_col=0)
    matrix, names, _ = prepare_xdata(xdata)
    options = NetworkOptions.from_config(cfg)
    pf = calc_penalty(matrix, names, _read_network(args.network), options)

    outputs = {}
    table = out_dir / "penalty_factors.csv"
    pf.to_frame().to_csv(table, index=False)
    outputs["penalty_factors"] = str(table)

    stats = {}
    if pf.graph is not None:
        stats = graph_stats(pf.graph)
        print(f"特征网络: {stats['total_nodes']} 节点, {stats['total_edges']} 边")
        print(f"  密度:     {stats['density']:.4f}")
        print(f"  孤立节点: {stats['isolated']}")
        print(f"  平均度数: {stats['mean_degree']:.4f}")
        if args.export:
            outputs["graphml"] = str(export_graphml(pf.graph, Path(args.export)))
    elif args.export:
        logger.warning("给定的是度数向量, 没有网络可导出")

    print(pf.to_frame().to_string(index=False))
    return {"status": "ok", "graph_stats": stats, "outputs": outputs}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(verbose=args.verbose)

    cfg = _load_cli_config(args)
    logger.info("配置加载完成: %s", cfg.summary())

    start = time.time()
    if args.command == "network":
        report = run_network(args, cfg)
    else:
        report = run_fit(args, cfg)

    manifest = {
        "glmsparsenet_version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": args.command,
        "elapsed_sec": round(time.time() - start, 2),
        "config_summary": cfg.summary(),
        **report,
    }
    manifest_path = cfg.output_dir / "run_manifest.json"
    write_json(manifest_path, manifest)
    logger.info("Manifest 写入: %s", manifest_path)
    return 0 if report.get("status") == "ok" else 1


if __name__ == "__main__":
    sys.exit(main())
