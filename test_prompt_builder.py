import unittest

from aggregator import build_stats
from models import GitCommit, GitFile
from prompt_builder import build_prompt, build_prompt_from_stats, summarize_modules


def commit(i, message, *paths):
    return GitCommit(
        hash=f"h{i:03d}",
        author="Alice",
        email="alice@example.com",
        date=f"2024-01-{i % 28 + 1:02d} 10:00:00 +0800",
        message=message,
        files=tuple(GitFile("M", p) for p in paths),
    )


class TestPromptBuilder(unittest.TestCase):

    def test_build_prompt_lists_commits(self):
        commits = [
            GitCommit("a1", "Alice", "a@x", "2024-01-02", "feat: 登录", (GitFile("A", "src/login.py"),)),
            GitCommit("b2", "Bob", "b@x", "2024-01-01", "chore", (GitFile("D", "old.txt"), GitFile("M", "x.py"))),
        ]
        prompt = build_prompt(commits, "daily", 100, "Demo")

        self.assertIn("生成一份日报（100 字左右）", prompt)
        self.assertIn("## 项目名称\nDemo", prompt)
        self.assertIn("1. [2024-01-02] Alice: feat: 登录\n  新增 src/login.py", prompt)
        self.assertIn("  删除 old.txt\n  修改 x.py", prompt)

    def test_modules_grouped_by_first_segment(self):
        stats = build_stats(
            3,
            [
                commit(1, "one", "src/a.py", "README.md"),
                commit(2, "two", "src/b.py"),
                commit(3, "three", "docs/guide.md"),
            ],
            "",
            "",
        )
        self.assertEqual(summarize_modules(stats), "src (2次提交), 其他 (1次提交), docs (1次提交)")

    def test_top_five_modules(self):
        samples = [commit(i, f"m{i}", f"mod{i}/file.py") for i in range(7)]
        modules = summarize_modules(build_stats(7, samples, "", ""))
        self.assertEqual(modules.count("次提交"), 5)
        self.assertNotIn("mod5", modules)

    def test_weekly_prompt_from_stats(self):
        samples = [commit(i, f"msg {i}", "src/app.py") for i in range(25)]
        stats = build_stats(120, samples, "", "")

        prompt = build_prompt_from_stats(stats, "weekly", 300, "Demo", "2024-01-07 ~ 2024-01-12")

        self.assertIn("生成周报", prompt)
        self.assertIn("项目：Demo", prompt)
        self.assertIn("时间：2024-01-07 ~ 2024-01-12", prompt)
        self.assertIn("提交数：120条", prompt)
        self.assertIn("本周核心成果", prompt)
        self.assertIn("- 总字数300字左右", prompt)
        self.assertIn("- msg 19", prompt)
        self.assertNotIn("- msg 20", prompt)
        self.assertTrue(prompt.endswith("注意：实际有120条提交，以上仅为抽样。"))

    def test_daily_and_other_formats(self):
        stats = build_stats(1, [commit(1, "fix", "a/b.py")], "", "")
        daily = build_prompt_from_stats(stats, "daily", 100, "Demo", "today")
        monthly = build_prompt_from_stats(stats, "monthly", 500, "Demo", "month")

        self.assertIn("今日工作总结", daily)
        self.assertIn("3-6条即可", daily)
        self.assertIn("生成月报", monthly)
        self.assertIn("按模块/项目分类列出", monthly)


if __name__ == "__main__":
    unittest.main()
