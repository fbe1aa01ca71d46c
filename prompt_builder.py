# prompt_builder.py
"""
[V5.0] 报告提示词构建
- build_prompt: 基于完整提交列表 (逐条列出文件变更)
- build_prompt_from_stats: 基于统计抽样 (按模块归纳，适合提交量大的周报/月报)
"""
from typing import Dict, List, Sequence

from models import GitCommit, GitStats

REPORT_TYPE_LABELS: Dict[str, str] = {
    "daily": "日报",
    "weekly": "周报",
    "monthly": "月报",
    "quarterly": "季报",
    "yearly": "年报",
}

FILE_STATUS_LABELS = {"A": "新增", "D": "删除"}

DAILY_FORMAT = """* 今日工作总结
1. 完成XXX功能开发
2. 修复XXX bug
3. 优化XXX性能"""

DAILY_REQUIREMENTS = """- 简洁直接，每条1句话
- 只列结果，不写过程
- 3-6条即可"""

WEEKLY_FORMAT = """* 本周工作总结

一、XX项目
1. 功能A：描述完成的内容和解决的问题
2. 功能B：说明实现效果和价值
3. Bug修复：修复了XX问题，提升了XX

二、YY项目
1. 完成XX模块开发
2. 优化XX性能

本周核心成果
完成了XX功能从0到1的搭建，覆盖XX；通过XX优化，提升了XX。"""

WEEKLY_REQUIREMENTS = """- 按项目分类组织
- 每个功能点简要说明：做了什么、解决了什么、有什么效果
- 如果只有一个项目，可以按功能模块分类
- 可以在最后加"本周核心成果"总结段（可选）"""

DEFAULT_FORMAT = """按模块/项目分类列出：

一、XX模块
1. 完成XX功能，实现XX效果
2. 优化XX，提升XX%

二、YY模块
1. 新增XX功能
2. 修复XX问题"""

DEFAULT_REQUIREMENTS = """- 按模块或功能分类
- 突出核心工作和成果
- 可以包含数据（完成XX个功能、修复XX个bug）"""


def report_label(report_type: str) -> str:
    return REPORT_TYPE_LABELS.get(report_type, report_type)


def build_prompt(
    commits: Sequence[GitCommit], report_type: str, word_count: int, project_name: str
) -> str:
    entries = []
    for i, commit in enumerate(commits, 1):
        files = "\n".join(
            f"  {FILE_STATUS_LABELS.get(f.status, '修改')} {f.path}" for f in commit.files
        )
        entries.append(f"{i}. [{commit.date}] {commit.author}: {commit.message}\n{files}")
    commit_summary = "\n\n".join(entries)
    label = report_label(report_type)

    return f"""你是一个专业的工作总结助手。请根据以下 Git 提交记录，生成一份{label}（{word_count} 字左右）。

## 项目名称
{project_name}

## Git 提交记录
{commit_summary}

## 要求
- 按模块/功能分类整理
- 突出核心工作内容和成果
- 使用 Markdown 格式输出
- 字数控制在 {word_count} 字左右
- 不要罗列每个 commit，而是进行归纳总结
- 如有 bug 修复，说明修复了什么问题
- 如有新功能，描述功能的价值和作用"""


def summarize_modules(stats: GitStats, limit: int = 5) -> str:
    """按文件路径第一段归纳模块，返回 '模块 (N次提交)' 列表"""
    module_groups: Dict[str, List[str]] = {}
    for commit in stats.sample_commits:
        for file in commit.files:
            parts = file.path.split("/")
            module = parts[0] if len(parts) > 1 else "其他"
            module_groups.setdefault(module, []).append(commit.message)
    return ", ".join(
        f"{module} ({len(messages)}次提交)"
        for module, messages in list(module_groups.items())[:limit]
    )


def build_prompt_from_stats(
    stats: GitStats,
    report_type: str,
    word_count: int,
    project_name: str,
    time_range_text: str,
) -> str:
    commit_list = "\n".join(f"- {c.message}" for c in stats.sample_commits[:20])

    if report_type == "daily":
        format_example, requirements = DAILY_FORMAT, DAILY_REQUIREMENTS
    elif report_type == "weekly":
        format_example, requirements = WEEKLY_FORMAT, WEEKLY_REQUIREMENTS
    else:
        format_example, requirements = DEFAULT_FORMAT, DEFAULT_REQUIREMENTS

    return f"""你是工作报告助手，请根据Git提交记录生成{report_label(report_type)}。

项目：{project_name}
时间：{time_range_text}
提交数：{stats.total_commits}条
主要模块：{summarize_modules(stats)}

提交记录（抽样）：
{commit_list}

参考格式：
{format_example}

要求：
{requirements}
- 总字数{word_count}字左右
- 合并相似提交，提炼关键信息
- 不要逐条翻译commit，要归纳总结
- 如果一个功能有多次提交，只写一条
- 强调结果、影响、价值，而非过程

注意：实际有{stats.total_commits}条提交，以上仅为抽样。"""
