# config_manager.py
"""
[V5.0] 配置管理器
- 负责读写用户配置文件 (<配置目录>/dev-report/config.json)
- 缺失字段逐项回退到默认值；旧版本配置在加载时自动迁移
- 包含一个交互式向导 (run_interactive_config_wizard) 用于添加项目
"""

import json
import logging
import os
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import git_utils
from config import GlobalConfig
from exceptions import ConfigError
from utils import get_folder_name

logger = logging.getLogger(__name__)

# 旧版本默认字数 -> 新推荐值
LEGACY_WORD_COUNTS = {
    "daily": (300, 100),
    "weekly": (800, 300),
    "monthly": (1500, 500),
    "quarterly": (3000, 800),
    "yearly": (5000, 1000),
}


@dataclass
class Position:
    x: float = -1.0
    y: float = -1.0


@dataclass
class FloatingBallConfig:
    size: int = 50
    opacity: int = 80
    position: Position = field(default_factory=Position)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FloatingBallConfig":
        position = data.get("position") or {}
        return cls(
            size=data.get("size", 50),
            opacity=data.get("opacity", 80),
            position=Position(x=position.get("x", -1.0), y=position.get("y", -1.0)),
        )


@dataclass
class ReportDefaults:
    """各类报告的默认字数"""

    daily: int = 100
    weekly: int = 300
    monthly: int = 500
    quarterly: int = 800
    yearly: int = 1000

    def word_count(self, report_type: str) -> int:
        return getattr(self, report_type, self.daily)


@dataclass
class LlmConfig:
    api_key: str = ""
    base_url: str = GlobalConfig.DEFAULT_LLM_BASE_URL
    model: str = GlobalConfig.DEFAULT_LLM_MODEL
    timeout: int = GlobalConfig.DEFAULT_LLM_TIMEOUT
    temperature: float = GlobalConfig.DEFAULT_LLM_TEMPERATURE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LlmConfig":
        defaults = cls()
        return cls(
            api_key=data.get("api_key", defaults.api_key),
            base_url=data.get("base_url", defaults.base_url),
            model=data.get("model", defaults.model),
            timeout=data.get("timeout", defaults.timeout),
            temperature=data.get("temperature", defaults.temperature),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key and self.base_url and self.model)


@dataclass
class SubmoduleConfig:
    path: str
    name: str
    enabled: bool = True


@dataclass
class ProjectConfig:
    id: str
    name: str
    repo_path: str
    authors: List[str] = field(default_factory=list)
    submodules: List[SubmoduleConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectConfig":
        return cls(
            id=data.get("id") or uuid.uuid4().hex,
            name=data.get("name", ""),
            repo_path=data.get("repo_path", ""),
            authors=list(data.get("authors") or []),
            submodules=[
                SubmoduleConfig(
                    path=s.get("path", ""),
                    name=s.get("name", ""),
                    enabled=s.get("enabled", True),
                )
                for s in data.get("submodules") or []
            ],
        )

    def enabled_submodule_paths(self) -> List[str]:
        return [s.path for s in self.submodules if s.enabled]


@dataclass
class AppConfig:
    """用户配置 (与桌面端 config.json 结构一致)"""

    floating_ball: FloatingBallConfig = field(default_factory=FloatingBallConfig)
    reports: ReportDefaults = field(default_factory=ReportDefaults)
    llm: LlmConfig = field(default_factory=LlmConfig)
    dark_mode: bool = True
    auto_show_ball: bool = True
    save_reports: bool = True
    projects: List[ProjectConfig] = field(default_factory=list)
    first_launch: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        defaults = cls()
        reports = data.get("reports") or {}
        return cls(
            floating_ball=FloatingBallConfig.from_dict(data.get("floating_ball") or {}),
            reports=ReportDefaults(
                **{
                    key: reports.get(key, getattr(defaults.reports, key))
                    for key in LEGACY_WORD_COUNTS
                }
            ),
            llm=LlmConfig.from_dict(data.get("llm") or {}),
            dark_mode=data.get("dark_mode", defaults.dark_mode),
            auto_show_ball=data.get("auto_show_ball", defaults.auto_show_ball),
            save_reports=data.get("save_reports", defaults.save_reports),
            projects=[ProjectConfig.from_dict(p) for p in data.get("projects") or []],
            first_launch=data.get("first_launch", defaults.first_launch),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def save_config(app_config: AppConfig, global_config: GlobalConfig) -> str:
    config_path = global_config.config_file_path
    try:
        os.makedirs(os.path.dirname(config_path), exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(app_config.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ConfigError(f"保存配置文件失败: {e}") from e
    return config_path


def _migrate_word_counts(app_config: AppConfig) -> bool:
    changed = False
    for key, (old, new) in LEGACY_WORD_COUNTS.items():
        if getattr(app_config.reports, key) == old:
            setattr(app_config.reports, key, new)
            changed = True
    return changed


def _migrate_legacy_llm(app_config: AppConfig, raw: Dict[str, Any]) -> bool:
    """旧版本把 LLM 配置放在每个项目下；全局配置为空时迁移第一个可用的"""
    if app_config.llm.api_key and app_config.llm.model:
        return False
    for project in raw.get("projects") or []:
        llm = project.get("llm") if isinstance(project, dict) else None
        if not isinstance(llm, dict):
            continue
        api_key, base_url, model = llm.get("api_key"), llm.get("base_url"), llm.get("model")
        if not (isinstance(api_key, str) and isinstance(base_url, str) and isinstance(model, str)):
            continue
        if not api_key or not model:
            continue
        app_config.llm.api_key = api_key
        app_config.llm.base_url = base_url
        app_config.llm.model = model
        if isinstance(llm.get("timeout"), int):
            app_config.llm.timeout = llm["timeout"]
        if isinstance(llm.get("temperature"), (int, float)):
            app_config.llm.temperature = float(llm["temperature"])
        logger.info(f"ℹ️ 已从项目 '{project.get('name', '')}' 迁移 LLM 配置到全局")
        return True
    return False


def load_config(global_config: GlobalConfig) -> AppConfig:
    """加载配置；文件不存在时写入并返回默认配置"""
    config_path = global_config.config_file_path
    if not os.path.exists(config_path):
        app_config = AppConfig()
        save_config(app_config, global_config)
        logger.info(f"✅ 已创建默认配置: {config_path}")
        return app_config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"读取配置文件失败: {e}") from e
    except ValueError as e:
        raise ConfigError(f"解析配置文件失败: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"解析配置文件失败: 顶层必须是对象 ({config_path})")

    app_config = AppConfig.from_dict(raw)

    need_save = False
    if _migrate_word_counts(app_config):
        logger.info("ℹ️ 检测到旧的字数配置，已自动更新为推荐值")
        need_save = True
    if _migrate_legacy_llm(app_config, raw):
        need_save = True
    if need_save:
        save_config(app_config, global_config)
    return app_config


def resolve_llm_settings(app_config: AppConfig, global_config: GlobalConfig) -> LlmConfig:
    """环境变量 (.env) 覆盖 config.json 中的 LLM 配置"""
    llm = app_config.llm
    return LlmConfig(
        api_key=global_config.LLM_API_KEY or llm.api_key,
        base_url=global_config.LLM_BASE_URL or llm.base_url,
        model=global_config.LLM_MODEL or llm.model,
        timeout=llm.timeout,
        temperature=llm.temperature,
    )


def find_project(app_config: AppConfig, key: str) -> Optional[ProjectConfig]:
    """按 id 或名称查找项目 (名称不区分大小写)"""
    for project in app_config.projects:
        if project.id == key:
            return project
    for project in app_config.projects:
        if project.name.lower() == key.lower():
            return project
    return None


def upsert_project(app_config: AppConfig, project: ProjectConfig) -> None:
    for i, existing in enumerate(app_config.projects):
        if existing.id == project.id:
            app_config.projects[i] = project
            return
    app_config.projects.append(project)


def _input_with_default(prompt: str, default: str) -> str:
    """辅助函数：获取带默认值的用户输入"""
    return input(f"{prompt} [{default}]: ") or default


def _input_bool(prompt: str, default: bool) -> bool:
    answer = _input_with_default(prompt, "Y" if default else "n").strip().lower()
    return answer in ("y", "yes", "是")


def run_interactive_config_wizard(global_config: GlobalConfig, repo_path: str) -> ProjectConfig:
    """
    运行交互式配置向导：
    校验仓库 -> 项目名称 -> 提交人过滤 -> 子模块开关 -> 保存
    """
    logger.info("--- 🚀 欢迎使用 DevReport 项目配置向导 ---")
    repo_path_abs = os.path.abspath(repo_path)
    if not git_utils.is_git_repository(repo_path_abs):
        raise ConfigError(f"路径 {repo_path_abs} 不是 Git 仓库")

    app_config = load_config(global_config)
    existing = next(
        (p for p in app_config.projects if p.repo_path == repo_path_abs), None
    )

    print("\n--- 1. 项目名称 ---")
    name = _input_with_default(
        "  项目名称", existing.name if existing else get_folder_name(repo_path_abs)
    )

    print("\n--- 2. 提交人过滤 ---")
    available_authors = git_utils.get_git_authors(repo_path_abs)
    for i, author in enumerate(available_authors, 1):
        print(f"  {i}. {author}")
    current = ", ".join(existing.authors) if existing else ""
    selection = _input_with_default(
        "  输入要统计的提交人序号 (逗号分隔，留空表示全部)", current
    )
    authors: List[str] = []
    for item in (s.strip() for s in selection.split(",")):
        if item.isdigit() and 1 <= int(item) <= len(available_authors):
            authors.append(available_authors[int(item) - 1])
        elif item:
            authors.append(item)

    print("\n--- 3. 子模块 ---")
    previous = {s.path: s.enabled for s in existing.submodules} if existing else {}
    submodules = []
    for sub in git_utils.list_submodules(repo_path_abs):
        enabled = _input_bool(
            f"  包含子模块 {sub.name}?", previous.get(sub.path, True)
        )
        submodules.append(SubmoduleConfig(path=sub.path, name=sub.name, enabled=enabled))
    if not submodules:
        print("  (未发现子模块)")

    project = ProjectConfig(
        id=existing.id if existing else uuid.uuid4().hex,
        name=name.strip() or os.path.basename(repo_path_abs) or "Untitled",
        repo_path=repo_path_abs,
        authors=authors,
        submodules=submodules,
    )
    upsert_project(app_config, project)
    app_config.first_launch = False
    config_path = save_config(app_config, global_config)
    logger.info(f"✅ 项目配置已保存至 {config_path}")

    print("\n--- ✅ 配置完成！ ---")
    print(f"  现在你可以使用 'devreport -p {project.name}' 来生成报告。")
    return project
