# aggregator.py
"""
[V5.0] 多仓库聚合
主仓库与子模块按顺序逐个处理 (不并发)：
- 主仓库失败：AbortPolicy，异常直接抛给调用方
- 子模块失败：SkipPolicy，记录诊断信息后跳过，贡献为零
"""
import logging
from collections import Counter
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from config import GlobalConfig
from data_sources.base import DataSource
from data_sources.local_git import LocalGitDataSource
from exceptions import DevReportError
from models import FileChangeSummary, GitCommit, GitStats, LogQuery
from validators import validate_query, validate_repo_path

logger = logging.getLogger(__name__)

T = TypeVar("T")
SourceFactory = Callable[[str], DataSource]


class AbortPolicy:
    """必需仓库：任何失败都终止整个请求"""

    def run(self, repo_path: str, step: str, action: Callable[[], T]) -> T:
        try:
            return action()
        except DevReportError as e:
            logger.error(f"❌ 主仓库{step}失败 ({repo_path}): {e}")
            raise


class SkipPolicy:
    """可选仓库：失败只记录诊断信息，返回默认值"""

    def __init__(self):
        self.diagnostics: List[str] = []

    def run(
        self, repo_path: str, step: str, action: Callable[[], T], default: T
    ) -> T:
        try:
            return action()
        except DevReportError as e:
            message = f"子模块{step}失败 ({repo_path}): {e}"
            logger.warning(f"⚠️ {message}")
            self.diagnostics.append(message)
            return default


def sort_newest_first(commits: Iterable[GitCommit]) -> List[GitCommit]:
    # %ai 输出是零填充的 ISO 格式，字典序即时间序
    return sorted(commits, key=lambda c: c.date, reverse=True)


def summarize_file_changes(
    commits: Iterable[GitCommit], limit: int = GlobalConfig.STATS_TOP_FILES
) -> List[FileChangeSummary]:
    """按修改次数降序统计文件，次数相同时保持首次出现的顺序"""
    counter: Counter = Counter()
    for commit in commits:
        for file in commit.files:
            counter[file.path] += 1
    return [
        FileChangeSummary(path=path, change_count=count)
        for path, count in counter.most_common(limit)
    ]


def get_git_log(
    path: str,
    since: str,
    until: str,
    authors: Sequence[str] = (),
    include_submodules: Sequence[str] = (),
    source_factory: SourceFactory = LocalGitDataSource,
) -> List[GitCommit]:
    """
    获取主仓库 + 子模块的完整提交日志 (每个仓库最多 1000 条，不含合并提交)，
    合并后按日期降序排列。
    """
    validate_query(path, since, until, authors)
    query = LogQuery(since, until, tuple(authors))
    limit = GlobalConfig.LOG_MAX_COUNT
    abort, skip = AbortPolicy(), SkipPolicy()

    all_commits: List[GitCommit] = list(
        abort.run(path, "日志获取", lambda: source_factory(path).get_commits(query, limit))
    )

    for sub_path in include_submodules:
        if skip.run(sub_path, "路径校验", lambda: validate_repo_path(sub_path), None) is None:
            continue
        all_commits.extend(
            skip.run(
                sub_path,
                "日志获取",
                lambda: source_factory(sub_path).get_commits(query, limit),
                [],
            )
        )

    logger.info(f"✅ 共获取 {len(all_commits)} 个提交 (子模块跳过 {len(skip.diagnostics)} 项)")
    return sort_newest_first(all_commits)


def get_git_stats(
    path: str,
    since: str,
    until: str,
    authors: Sequence[str] = (),
    include_submodules: Sequence[str] = (),
    source_factory: SourceFactory = LocalGitDataSource,
) -> GitStats:
    """
    获取统计信息。每个仓库两次 git 调用：
    1. 只输出哈希的计数查询 -> total_commits (不设上限)
    2. 带文件信息的抽样查询 (主仓库 50 条，子模块各 20 条) -> 其余字段
    """
    validate_query(path, since, until, authors)
    query = LogQuery(since, until, tuple(authors))
    abort, skip = AbortPolicy(), SkipPolicy()
    logger.info(f"📊 获取 Git 统计信息: {path} ({since} -> {until})")

    main_source = source_factory(path)
    total_commits = abort.run(path, "提交计数", lambda: main_source.count_commits(query))
    samples: List[GitCommit] = list(
        abort.run(
            path,
            "抽样获取",
            lambda: main_source.get_commits(query, GlobalConfig.STATS_SAMPLE_MAIN),
        )
    )

    for sub_path in include_submodules:
        if skip.run(sub_path, "路径校验", lambda: validate_repo_path(sub_path), None) is None:
            continue
        sub_source = source_factory(sub_path)
        total_commits += skip.run(
            sub_path, "提交计数", lambda: sub_source.count_commits(query), 0
        )
        samples.extend(
            skip.run(
                sub_path,
                "抽样获取",
                lambda: sub_source.get_commits(query, GlobalConfig.STATS_SAMPLE_SUBMODULE),
                [],
            )
        )

    # 先截断再排序：主仓库抽样优先占满名额
    samples = sort_newest_first(samples[: GlobalConfig.STATS_SAMPLE_TOTAL])
    return build_stats(total_commits, samples, since, until, skip.diagnostics)


def build_stats(
    total_commits: int,
    samples: List[GitCommit],
    since: str,
    until: str,
    diagnostics: Optional[List[str]] = None,
) -> GitStats:
    """从抽样提交推导作者、日期范围、文件变更排行"""
    dates = sorted(c.date for c in samples)
    date_range = (dates[0], dates[-1]) if dates else (since, until)

    return GitStats(
        total_commits=total_commits,
        # 基于抽样而非全部提交，属于有意的近似
        total_files_changed=sum(len(c.files) for c in samples),
        authors=sorted({c.author for c in samples}),
        date_range=date_range,
        sample_commits=samples,
        file_changes_summary=summarize_file_changes(samples),
        diagnostics=list(diagnostics or []),
    )


def merge_project_stats(stats_list: Sequence[GitStats], since: str, until: str) -> GitStats:
    """
    合并多个项目的统计结果 (多项目合并报告)。
    抽样提交合并后重新排序并保留最新的 50 条，日期范围使用请求的时间范围。
    """
    samples = sort_newest_first(
        commit for stats in stats_list for commit in stats.sample_commits
    )[: GlobalConfig.STATS_SAMPLE_TOTAL]

    authors = set()
    diagnostics: List[str] = []
    for stats in stats_list:
        authors.update(stats.authors)
        diagnostics.extend(stats.diagnostics)

    return GitStats(
        total_commits=sum(s.total_commits for s in stats_list),
        total_files_changed=sum(s.total_files_changed for s in stats_list),
        authors=sorted(authors),
        date_range=(since, until),
        sample_commits=samples,
        file_changes_summary=summarize_file_changes(samples),
        diagnostics=diagnostics,
    )
