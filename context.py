# context.py
"""
[V5.0] 运行时配置的数据模型
"""
from dataclasses import dataclass, field
from typing import List, Tuple

from config import GlobalConfig
from config_manager import AppConfig, LlmConfig


@dataclass
class ProjectTarget:
    """一次运行中要统计的单个仓库 (主仓库 + 已启用的子模块)"""

    name: str
    repo_path: str
    authors: Tuple[str, ...] = ()
    submodules: Tuple[str, ...] = ()


@dataclass
class RunContext:
    """
    封装一次运行所需的所有配置和状态。
    这是从 CLI 传递到 Orchestrator 的唯一对象。
    """

    # --- 统计目标 ---
    projects: List[ProjectTarget]

    # --- 范围参数 ---
    report_type: str
    since: str
    until: str
    time_range_desc: str

    # --- AI 与报告参数 ---
    llm_id: str
    llm_settings: LlmConfig
    word_count: int

    # --- 标志 ---
    no_ai: bool = False
    no_browser: bool = False
    show_log: bool = False
    as_json: bool = False

    # --- 配置 ---
    app_config: AppConfig = field(default_factory=AppConfig)
    global_config: GlobalConfig = field(default_factory=GlobalConfig)

    @property
    def project_name(self) -> str:
        return " + ".join(p.name for p in self.projects)
