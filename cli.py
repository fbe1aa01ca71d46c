# cli.py
"""
[V5.0] 命令行界面 (Interface) 层
- 解析参数，加载用户配置，组装 RunContext 并交给 Orchestrator
- --llm 不限制 choices，支持动态注册的供应商
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

import config_manager
import git_utils
import utils
from config import GlobalConfig
from context import ProjectTarget, RunContext
from data_sources.local_git import LocalGitDataSource
from exceptions import DevReportError, InvalidInputError
from orchestrator import ReportOrchestrator
from prompt_builder import report_label

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """
    负责所有 argparse 的定义。
    """
    parser = argparse.ArgumentParser(
        prog="devreport",
        description="DevReport: 基于 Git 提交记录的工作报告生成器",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    # --- 特殊模式 ---
    parser.add_argument(
        "--configure",
        action="store_true",
        help="运行交互式项目配置向导。\n   (需要 -r 指定要配置的仓库路径)",
    )
    parser.add_argument(
        "--check", action="store_true", help="检查 Git 是否可用并输出版本"
    )

    # --- 目标 ---
    parser.add_argument(
        "-p",
        "--project",
        action="append",
        default=[],
        help="使用已配置的项目 (名称或 id) 生成报告。\n"
        "   可重复指定，生成多项目合并报告 (与 -r 互斥)",
    )
    parser.add_argument(
        "-r",
        "--repo-path",
        type=str,
        default=None,
        help="直接指定 Git 仓库根目录 (用于 --configure 或未配置的仓库)",
    )

    # --- 范围 ---
    parser.add_argument(
        "--type",
        dest="report_type",
        choices=utils.REPORT_TYPES,
        default="daily",
        help="报告类型，决定默认时间范围与字数 (默认: daily)",
    )
    parser.add_argument("--since", type=str, default=None, help="起始时间 (例如 '2024-01-01')")
    parser.add_argument("--until", type=str, default=None, help="结束时间 (例如 '2024-01-31 23:59:59')")
    parser.add_argument(
        "--cross-day",
        action="store_true",
        help="日报从昨天零点开始统计 (适合凌晨写日报)",
    )
    parser.add_argument(
        "-a",
        "--author",
        action="append",
        default=[],
        help="(覆盖) 只统计该提交人，可重复指定",
    )
    parser.add_argument(
        "--no-submodules", action="store_true", help="不统计子模块"
    )

    # --- AI 与输出 ---
    parser.add_argument(
        "--words", type=int, default=None, help="(覆盖) 报告字数 (默认: 配置中的对应类型字数)"
    )
    parser.add_argument(
        "--llm",
        type=str,
        default=None,
        help="(覆盖) 指定 LLM 供应商 (例如 'http', 'openai', 'mock')",
    )
    parser.add_argument("--log", action="store_true", help="打印完整提交日志 (含文件变更)")
    parser.add_argument(
        "--json", action="store_true", help="以 JSON 输出统计结果，不生成报告"
    )
    parser.add_argument("--no-ai", action="store_true", help="禁用 AI 报告")
    parser.add_argument(
        "--no-browser", action="store_true", help="不自动在浏览器中打开报告"
    )

    return parser


def resolve_targets(
    args: argparse.Namespace, app_config: config_manager.AppConfig
) -> List[ProjectTarget]:
    """把 -p / -r 转换为统计目标列表"""
    if args.project and args.repo_path:
        raise InvalidInputError("不能同时使用 -p (项目) 和 -r (路径)，请只选其一。")

    override_authors = tuple(args.author)
    targets: List[ProjectTarget] = []

    for key in args.project:
        project = config_manager.find_project(app_config, key)
        if project is None:
            raise InvalidInputError(
                f"项目 '{key}' 未在配置中找到，请先使用 --configure -r <路径> 添加。"
            )
        targets.append(
            ProjectTarget(
                name=project.name,
                repo_path=project.repo_path,
                authors=override_authors or tuple(project.authors),
                submodules=()
                if args.no_submodules
                else tuple(project.enabled_submodule_paths()),
            )
        )

    if args.repo_path:
        repo_path = os.path.abspath(args.repo_path)
        submodules = ()
        if not args.no_submodules:
            submodules = tuple(s.path for s in LocalGitDataSource(repo_path).get_submodules())
        targets.append(
            ProjectTarget(
                name=utils.get_folder_name(repo_path),
                repo_path=repo_path,
                authors=override_authors,
                submodules=submodules,
            )
        )

    if not targets:
        raise InvalidInputError("必须提供 -p (项目) 或 -r (仓库路径) 之一来生成报告。")
    return targets


def resolve_time_range(args: argparse.Namespace):
    """返回 (since, until, 描述)。显式给出 --since/--until 时不做预设计算"""
    if args.since or args.until:
        since, until = args.since or "", args.until or ""
    else:
        since, until = utils.get_time_range_by_type(args.report_type, args.cross_day)
    return since, until, f"{since or '不限'} ~ {until or '至今'}"


def build_context(
    args: argparse.Namespace, global_config: GlobalConfig
) -> RunContext:
    app_config = config_manager.load_config(global_config)
    targets = resolve_targets(args, app_config)
    since, until, time_range_desc = resolve_time_range(args)

    return RunContext(
        projects=targets,
        report_type=args.report_type,
        since=since,
        until=until,
        time_range_desc=time_range_desc,
        llm_id=(args.llm or global_config.DEFAULT_LLM).lower(),
        llm_settings=config_manager.resolve_llm_settings(app_config, global_config),
        word_count=args.words or app_config.reports.word_count(args.report_type),
        no_ai=args.no_ai,
        no_browser=args.no_browser,
        show_log=args.log,
        as_json=args.json,
        app_config=app_config,
        global_config=global_config,
    )


def run_cli(argv: Optional[List[str]] = None):
    """
    主入口点。
    """
    parser = setup_parser()
    args = parser.parse_args(argv)
    global_config = GlobalConfig()

    try:
        if args.check:
            print(git_utils.check_git_installed())
            return

        if args.configure:
            if not args.repo_path:
                raise InvalidInputError("--configure 需要 -r / --repo-path 指定目标仓库路径。")
            logger.info(f"⚙️ 启动交互式配置向导: {args.repo_path}")
            config_manager.run_interactive_config_wizard(global_config, args.repo_path)
            return

        run_context = build_context(args, global_config)

        logger.info("=" * 50)
        logger.info("🚀 DevReport 启动...")
        for target in run_context.projects:
            logger.info(f"   [项目]: {target.name} ({target.repo_path})")
        logger.info(f"   [报告类型]: {report_label(run_context.report_type)}")
        logger.info(f"   [时间范围]: {run_context.time_range_desc}")
        logger.info(f"   [LLM 供应商]: {'已禁用' if run_context.no_ai else run_context.llm_id}")
        logger.info("=" * 50)

        ReportOrchestrator(run_context).run()
        logger.info("✅ 运行完毕。")

    except DevReportError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)
