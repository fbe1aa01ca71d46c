import logging
from typing import List

from .base import DataSource
from models import GitCommit, GitSubmodule, LogQuery
import git_utils

logger = logging.getLogger(__name__)


class LocalGitDataSource(DataSource):
    """
    [V5.0] 本地 Git 数据源实现。
    通过调用 git 命令行工具分析本地仓库，每次调用都会重新执行 git。
    """

    def get_commits(self, query: LogQuery, limit: int) -> List[GitCommit]:
        commits = git_utils.fetch_git_log(self.repo_path, query, limit)
        logger.info(f"✅ [DataSource] {self.repo_path}: 解析 {len(commits)} 个提交")
        return commits

    def count_commits(self, query: LogQuery) -> int:
        return git_utils.count_commits(self.repo_path, query)

    def get_submodules(self) -> List[GitSubmodule]:
        return git_utils.list_submodules(self.repo_path)
