import os
import tempfile
import unittest
from datetime import datetime, timedelta
from typing import Dict, List, Union

import aggregator
from data_sources.base import DataSource
from exceptions import InvalidInputError, ToolFailedError
from models import GitCommit, GitFile, LogQuery


def make_commits(prefix: str, count: int, start: datetime, files=("src/app.py",)):
    return [
        GitCommit(
            hash=f"{prefix}{i:03d}",
            author=f"{prefix}-author",
            email=f"{prefix}@example.com",
            date=(start + timedelta(hours=i)).strftime("%Y-%m-%d %H:%M:%S +0800"),
            message=f"{prefix} commit {i}",
            files=tuple(GitFile("M", path) for path in files),
        )
        for i in range(count)
    ]


class FakeDataSource(DataSource):
    """按路径返回预置提交；预置值为异常时模拟 git 失败"""

    def __init__(self, repo_path: str, repos: Dict[str, Union[List[GitCommit], Exception]], calls: list):
        super().__init__(repo_path)
        self.repos = repos
        self.calls = calls

    def _data(self) -> List[GitCommit]:
        data = self.repos[self.repo_path]
        if isinstance(data, Exception):
            raise data
        return data

    def get_commits(self, query: LogQuery, limit: int) -> List[GitCommit]:
        self.calls.append(("log", self.repo_path, query, limit))
        return self._data()[:limit]

    def count_commits(self, query: LogQuery) -> int:
        self.calls.append(("count", self.repo_path, query))
        return len(self._data())

    def get_submodules(self):
        return []


class TestAggregator(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.main = self._tmp.name
        self.sub_ok = os.path.join(self.main, "libs", "ok")
        self.sub_bad = os.path.join(self.main, "libs", "bad")
        self.sub_extra = os.path.join(self.main, "libs", "extra")
        for path in (self.sub_ok, self.sub_bad, self.sub_extra):
            os.makedirs(path)
        self.repos: Dict[str, Union[List[GitCommit], Exception]] = {}
        self.calls: list = []

    def tearDown(self):
        self._tmp.cleanup()

    def factory(self, path: str) -> DataSource:
        return FakeDataSource(path, self.repos, self.calls)

    def test_get_git_log_merges_and_sorts(self):
        self.repos[self.main] = make_commits("main", 3, datetime(2024, 1, 1))
        self.repos[self.sub_ok] = make_commits("sub", 2, datetime(2024, 1, 1, 1, 30))

        commits = aggregator.get_git_log(
            self.main, "2024-01-01", "", ["main-author"], [self.sub_ok], self.factory
        )

        self.assertEqual(len(commits), 5)
        dates = [c.date for c in commits]
        self.assertEqual(dates, sorted(dates, reverse=True))
        queries = {call[2] for call in self.calls}
        self.assertEqual(queries, {LogQuery("2024-01-01", "", ("main-author",))})
        self.assertTrue(all(call[3] == 1000 for call in self.calls))

    def test_main_failure_aborts(self):
        self.repos[self.main] = ToolFailedError("Git log 执行失败: fatal")
        self.repos[self.sub_ok] = make_commits("sub", 2, datetime(2024, 1, 1))
        with self.assertRaises(ToolFailedError):
            aggregator.get_git_log(self.main, "", "", [], [self.sub_ok], self.factory)
        with self.assertRaises(ToolFailedError):
            aggregator.get_git_stats(self.main, "", "", [], [self.sub_ok], self.factory)

    def test_invalid_input_runs_no_git(self):
        self.repos[self.main] = []
        with self.assertRaises(InvalidInputError):
            aggregator.get_git_log("relative/repo", "", "", [], [], self.factory)
        with self.assertRaises(InvalidInputError):
            aggregator.get_git_stats(self.main, "-bad", "", [], [], self.factory)
        self.assertEqual(self.calls, [])

    def test_failing_submodule_is_skipped(self):
        self.repos[self.main] = make_commits("main", 5, datetime(2024, 1, 1))
        self.repos[self.sub_bad] = ToolFailedError("获取 Git 统计失败: broken")
        self.repos[self.sub_ok] = make_commits("sub", 4, datetime(2024, 1, 2))

        stats = aggregator.get_git_stats(
            self.main, "", "", [], [self.sub_bad, self.sub_ok], self.factory
        )

        self.assertEqual(stats.total_commits, 9)
        self.assertEqual(len(stats.sample_commits), 9)
        self.assertFalse(any(c.hash.startswith("bad") for c in stats.sample_commits))
        self.assertTrue(stats.diagnostics)
        self.assertTrue(all(self.sub_bad in d for d in stats.diagnostics))

    def test_get_git_log_skips_failing_submodule(self):
        self.repos[self.main] = make_commits("main", 3, datetime(2024, 1, 1))
        self.repos[self.sub_bad] = ToolFailedError("Git log 执行失败: broken")
        self.repos[self.sub_ok] = make_commits("sub", 2, datetime(2024, 1, 2))

        commits = aggregator.get_git_log(
            self.main, "", "", [], [self.sub_bad, self.sub_ok], self.factory
        )

        self.assertEqual(
            sorted(c.hash for c in commits),
            ["main000", "main001", "main002", "sub000", "sub001"],
        )
        self.assertIn(("log", self.sub_bad), [call[:2] for call in self.calls])

    def test_missing_submodule_path_is_skipped(self):
        self.repos[self.main] = make_commits("main", 2, datetime(2024, 1, 1))
        missing = os.path.join(self.main, "not-checked-out")

        commits = aggregator.get_git_log(self.main, "", "", [], [missing], self.factory)

        self.assertEqual(len(commits), 2)
        self.assertNotIn(missing, [call[1] for call in self.calls])

    def test_sample_truncated_before_sort(self):
        """主仓库 50 + 子模块 20 + 10 = 80 条抽样，保留前 50 条 (主仓库)，再按日期降序"""
        self.repos[self.main] = make_commits("main", 60, datetime(2024, 1, 1))
        self.repos[self.sub_ok] = make_commits("sub", 20, datetime(2024, 6, 1))
        self.repos[self.sub_extra] = make_commits("extra", 10, datetime(2024, 7, 1))

        stats = aggregator.get_git_stats(
            self.main, "", "", [], [self.sub_ok, self.sub_extra], self.factory
        )

        self.assertEqual(stats.total_commits, 90)
        self.assertEqual(len(stats.sample_commits), 50)
        dates = [c.date for c in stats.sample_commits]
        self.assertEqual(dates, sorted(dates, reverse=True))
        self.assertTrue(all(c.hash.startswith("main") for c in stats.sample_commits))
        limits = {call[1]: call[3] for call in self.calls if call[0] == "log"}
        self.assertEqual(limits[self.main], 50)
        self.assertEqual(limits[self.sub_ok], 20)

    def test_stats_fields(self):
        commits = make_commits("main", 3, datetime(2024, 1, 1), files=("a.py", "b.py"))
        commits.append(
            GitCommit("zzz", "Zed", "z@x", "2024-01-05 00:00:00 +0800", "only a", (GitFile("M", "a.py"),))
        )
        self.repos[self.main] = commits

        stats = aggregator.get_git_stats(self.main, "", "", [], [], self.factory)

        self.assertEqual(stats.total_files_changed, 7)
        self.assertEqual(stats.authors, ["Zed", "main-author"])
        self.assertEqual(stats.date_range, ("2024-01-01 00:00:00 +0800", "2024-01-05 00:00:00 +0800"))
        self.assertEqual(stats.file_changes_summary[0].path, "a.py")
        self.assertEqual(stats.file_changes_summary[0].change_count, 4)
        self.assertEqual(stats.file_changes_summary[1].change_count, 3)

    def test_empty_stats_use_requested_range(self):
        self.repos[self.main] = []
        stats = aggregator.get_git_stats(
            self.main, "2024-01-01", "2024-01-31", [], [], self.factory
        )
        self.assertEqual(stats.total_commits, 0)
        self.assertEqual(stats.date_range, ("2024-01-01", "2024-01-31"))
        self.assertEqual(stats.file_changes_summary, [])
        self.assertEqual(stats.authors, [])

    def test_top_files_limited(self):
        files = tuple(f"f{i:02d}.py" for i in range(30))
        commits = make_commits("main", 1, datetime(2024, 1, 1), files=files)
        summary = aggregator.summarize_file_changes(commits)
        self.assertEqual(len(summary), 20)
        self.assertEqual(summary[0].path, "f00.py")

    def test_merge_project_stats(self):
        first = aggregator.build_stats(
            3, make_commits("a", 3, datetime(2024, 1, 1)), "", "", ["skip a"]
        )
        second = aggregator.build_stats(
            40, make_commits("b", 40, datetime(2024, 2, 1), files=("docs/x.md",)), "", ""
        )

        merged = aggregator.merge_project_stats([first, second], "2024-01-01", "2024-03-01")

        self.assertEqual(merged.total_commits, 43)
        self.assertEqual(merged.total_files_changed, 43)
        self.assertEqual(merged.authors, ["a-author", "b-author"])
        self.assertEqual(merged.date_range, ("2024-01-01", "2024-03-01"))
        self.assertEqual(len(merged.sample_commits), 43)
        self.assertEqual(merged.sample_commits[0].hash, "b039")
        self.assertEqual(merged.file_changes_summary[0].path, "docs/x.md")
        self.assertEqual(merged.diagnostics, ["skip a"])


if __name__ == "__main__":
    unittest.main()
