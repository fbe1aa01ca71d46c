# report_builder.py
"""
[V5.0] 报告生成器
- 纯文本统计报告 (终端输出 / --no-ai 回退)
- Jinja2 模板渲染 HTML，Markdown 转换 AI 报告正文
- 报告落盘: <配置目录>/reports/<项目>/
"""
import logging
import os
import re
from datetime import datetime
from typing import Tuple

import markdown
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import GlobalConfig
from exceptions import DevReportError
from models import GitStats, Report
from prompt_builder import report_label, summarize_modules
from utils import DATETIME_FORMAT

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists", "nl2br"]


def generate_text_report(stats: GitStats, project_name: str, time_range_desc: str) -> str:
    """
    生成纯文本格式的统计报告。
    注意：文件统计只基于抽样提交。
    """
    lines = [
        "=" * 80,
        f"                    Git工作汇总 - {project_name}",
        "=" * 80,
        f"生成时间: {datetime.now().strftime(DATETIME_FORMAT)}",
        f"时间范围: {time_range_desc}",
        f"提交数量: {stats.total_commits} (抽样 {len(stats.sample_commits)})",
        f"修改文件: {stats.total_files_changed}",
        f"提交人员: {', '.join(stats.authors) if stats.authors else '无'}",
        "",
    ]
    if not stats.sample_commits:
        lines.append("⚠️  未找到提交记录")
    else:
        modules = summarize_modules(stats)
        if modules:
            lines.append(f"主要模块: {modules}")
            lines.append("")
        lines.append("-" * 80)
        for commit in stats.sample_commits:
            lines.append(f"{commit.short_hash} - {commit.message} ({commit.author}, {commit.date})")
        lines.append("")
    if stats.file_changes_summary:
        lines.append("=" * 80)
        lines.append("                文件变更排行 (按抽样提交统计)")
        lines.append("=" * 80)
        lines.append(f" {'次数':<6} | 文件名")
        lines.append("-" * 80)
        for summary in stats.file_changes_summary:
            lines.append(f" {summary.change_count:<6} | {summary.path}")
    if stats.diagnostics:
        lines.append("")
        lines.append("⚠️  以下子模块被跳过:")
        lines.extend(f"   - {d}" for d in stats.diagnostics)
    lines.append("=" * 80)
    return "\n".join(lines)


def _templates_dir(global_config: GlobalConfig) -> str:
    return os.path.join(global_config.SCRIPT_BASE_PATH, global_config.TEMPLATES_DIR_NAME)


def _get_css_styles(global_config: GlobalConfig) -> str:
    """读取 CSS 文件内容"""
    css_path = os.path.join(_templates_dir(global_config), "styles.css")
    try:
        with open(css_path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        logger.error(f"❌ 加载 CSS 模板失败 ({css_path}): {e}")
        return "/* CSS 模板文件未找到 */"


def generate_html_report(report: Report, stats: GitStats, global_config: GlobalConfig) -> str:
    """使用 Jinja2 模板引擎生成 HTML 报告"""
    env = Environment(
        loader=FileSystemLoader(_templates_dir(global_config)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )

    content_html = ""
    if report.content:
        content_html = markdown.markdown(report.content, extensions=MARKDOWN_EXTENSIONS)

    template_context = {
        "title": f"{report.project_name} {report_label(report.report_type)}",
        "generation_time": report.created_at,
        "css_content": _get_css_styles(global_config),
        "content_html": content_html,
        "report": report,
        "stats": stats,
    }

    template_name = "report.html.j2"
    template = env.get_template(template_name)
    logger.info(f"🎨 正在渲染 Jinja2 模板: {template_name}")
    return template.render(**template_context)


def _safe_dir_name(name: str) -> str:
    cleaned = re.sub(r'[\\/:*?"<>|\s]+', "_", name).strip("._")
    return cleaned or "untitled"


def save_report(report: Report, stats: GitStats, global_config: GlobalConfig) -> Tuple[str, str]:
    """保存 Markdown 与 HTML 两份报告，返回 (md 路径, html 路径)"""
    target_dir = os.path.join(global_config.reports_dir, _safe_dir_name(report.project_name))
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base_name = f"{report.report_type}_{stamp}"
    md_path = os.path.join(target_dir, f"{base_name}.md")
    html_path = os.path.join(target_dir, f"{base_name}.html")

    html_content = generate_html_report(report, stats, global_config)
    try:
        os.makedirs(target_dir, exist_ok=True)
        with open(md_path, "w", encoding="utf-8") as f:
            f.write(report.content)
        with open(html_path, "w", encoding="utf-8") as f:
            f.write(html_content)
    except OSError as e:
        raise DevReportError(f"保存报告失败 ({target_dir}): {e}") from e

    logger.info(f"✅ 报告已保存: {md_path}")
    return md_path, html_path
