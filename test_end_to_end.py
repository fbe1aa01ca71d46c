import os
import shutil
import subprocess
import tempfile
import unittest

import aggregator
import git_utils


def git(repo, *args, env=None):
    subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=repo,
        env=env,
        check=True,
        capture_output=True,
    )


@unittest.skipUnless(shutil.which("git"), "git 未安装")
class TestRealRepository(unittest.TestCase):
    """在临时目录中创建真实仓库，验证完整的调用与解析链路"""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.repo = os.path.realpath(self._tmp.name)
        git(self.repo, "init", "-q")
        git(self.repo, "config", "user.name", "Alice")
        git(self.repo, "config", "user.email", "alice@example.com")

        self._commit("first.txt", "feat: first", "2023-06-01T10:00:00+08:00")
        self._commit("src/second.py", "fix: second", "2024-01-02T10:00:00+08:00", author="Bob <bob@example.com>")

    def tearDown(self):
        self._tmp.cleanup()

    def _commit(self, path, message, date, author=None):
        full_path = os.path.join(self.repo, path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(message)
        env = dict(os.environ, GIT_AUTHOR_DATE=date, GIT_COMMITTER_DATE=date)
        git(self.repo, "add", path, env=env)
        extra = ["--author", author] if author else []
        git(self.repo, "commit", "-q", "-m", message, *extra, env=env)

    def test_get_git_log(self):
        commits = aggregator.get_git_log(self.repo, "", "")

        self.assertEqual([c.message for c in commits], ["fix: second", "feat: first"])
        self.assertEqual(commits[0].author, "Bob")
        self.assertEqual(commits[0].files[0].path, "src/second.py")
        self.assertEqual(commits[0].files[0].status, "A")
        self.assertEqual(len(commits[0].hash), 40)

    def test_author_and_date_filters(self):
        self.assertEqual(len(aggregator.get_git_log(self.repo, "", "", ["Alice"])), 1)
        stats = aggregator.get_git_stats(self.repo, "2023-12-01", "")
        self.assertEqual(stats.total_commits, 1)
        self.assertEqual(stats.authors, ["Bob"])

    def test_stats(self):
        stats = aggregator.get_git_stats(self.repo, "", "")
        self.assertEqual(stats.total_commits, 2)
        self.assertEqual(stats.total_files_changed, 2)
        self.assertEqual(stats.authors, ["Alice", "Bob"])
        self.assertTrue(stats.date_range[0].startswith("2023-06-01"))

    def test_repository_helpers(self):
        self.assertTrue(git_utils.is_git_repository(self.repo))
        self.assertEqual(
            git_utils.get_git_authors(self.repo),
            ["Alice <alice@example.com>", "Bob <bob@example.com>"],
        )
        self.assertEqual(git_utils.list_submodules(self.repo), [])


if __name__ == "__main__":
    unittest.main()
