import os
import tempfile
import unittest

import report_builder
from aggregator import build_stats
from config import GlobalConfig
from models import GitCommit, GitFile, Report


class TestReportBuilder(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.global_config = GlobalConfig(config_dir=self._tmp.name)
        samples = [
            GitCommit("abc1234567", "Alice", "a@x", "2024-01-02 10:00:00 +0800",
                      "fix <script>alert(1)</script>", (GitFile("M", "src/app.py"),)),
        ]
        self.stats = build_stats(7, samples, "2024-01-01", "2024-01-31", ["子模块日志获取失败"])
        self.report = Report(
            id="r1",
            project_name="Demo/App",
            report_type="weekly",
            content="# 本周工作总结\n\n1. 完成登录",
            created_at="2024-01-05 18:00:00",
            since="2024-01-01",
            until="2024-01-31",
        )

    def tearDown(self):
        self._tmp.cleanup()

    def test_text_report(self):
        text = report_builder.generate_text_report(self.stats, "Demo", "本周")
        self.assertIn("提交数量: 7 (抽样 1)", text)
        self.assertIn("abc1234 - fix", text)
        self.assertIn("src/app.py", text)
        self.assertIn("子模块日志获取失败", text)

    def test_text_report_without_commits(self):
        empty = build_stats(0, [], "", "")
        self.assertIn("未找到提交记录", report_builder.generate_text_report(empty, "Demo", ""))

    def test_html_report(self):
        html = report_builder.generate_html_report(self.report, self.stats, self.global_config)
        self.assertIn("<h1>本周工作总结</h1>", html)
        self.assertIn("Demo/App 周报", html)
        self.assertIn("&lt;script&gt;", html)
        self.assertNotIn("<script>alert", html)

    def test_save_report(self):
        md_path, html_path = report_builder.save_report(self.report, self.stats, self.global_config)

        self.assertTrue(md_path.startswith(os.path.join(self.global_config.reports_dir, "Demo_App")))
        with open(md_path, "r", encoding="utf-8") as f:
            self.assertEqual(f.read(), self.report.content)
        self.assertTrue(os.path.exists(html_path))
        self.assertTrue(html_path.endswith(".html"))


if __name__ == "__main__":
    unittest.main()
