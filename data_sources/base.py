from abc import ABC, abstractmethod
from typing import List

from models import GitCommit, GitSubmodule, LogQuery


class DataSource(ABC):
    """
    [V5.0] 单个仓库的数据源抽象基类
    聚合器只通过该接口访问仓库，主仓库与子模块使用同一实现。
    """

    def __init__(self, repo_path: str):
        self.repo_path = repo_path

    @abstractmethod
    def get_commits(self, query: LogQuery, limit: int) -> List[GitCommit]:
        """
        获取带文件变更信息的提交列表 (最新在前，最多 limit 条)。
        失败时抛出 DevReportError 的子类。
        """
        pass

    @abstractmethod
    def count_commits(self, query: LogQuery) -> int:
        """
        统计符合条件的提交总数 (不受抽样上限影响)。
        """
        pass

    @abstractmethod
    def get_submodules(self) -> List[GitSubmodule]:
        """
        列出子模块；仓库没有子模块时返回空列表。
        """
        pass
