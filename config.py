# config.py
"""
[V5.0] 全局配置
- .env 加载与环境变量覆盖
- Git 调用形态、抽样上限等常量
- LLM 供应商的环境级默认值 (持久化的用户配置见 config_manager.py)
"""
import os
from dotenv import load_dotenv


# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
    print(f"✅ 已从脚本目录加载 .env: {env_path}")
else:
    load_dotenv()


def _default_config_root() -> str:
    """按平台约定返回用户配置根目录"""
    if os.name == "nt" and os.getenv("APPDATA"):
        return os.environ["APPDATA"]
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return xdg
    return os.path.join(os.path.expanduser("~"), ".config")


class GlobalConfig:
    """
    DevReport 的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    APP_DIR_NAME: str = "dev-report"
    CONFIG_FILE_NAME: str = "config.json"
    REPORTS_DIR_NAME: str = "reports"
    TEMPLATES_DIR_NAME: str = "templates"

    # --- Git 调用 ---
    GIT_BINARY: str = os.getenv("DEVREPORT_GIT_BINARY", "git")
    GIT_TIMEOUT: int = int(os.getenv("DEVREPORT_GIT_TIMEOUT", "120"))

    # 记录分隔符 (ASCII RS)，不会出现在 %H/%an/%ae/%ai/%s 中
    FIELD_SEPARATOR: str = "\x1e"
    GIT_LOG_PRETTY_FORMAT: str = "%H{sep}%an{sep}%ae{sep}%ai{sep}%s"

    # --- 数量上限 ---
    LOG_MAX_COUNT: int = 1000
    STATS_SAMPLE_MAIN: int = 50
    STATS_SAMPLE_SUBMODULE: int = 20
    STATS_SAMPLE_TOTAL: int = 50
    STATS_TOP_FILES: int = 20
    MAX_DATE_LENGTH: int = 30

    # =================================================================
    # --- LLM 配置 ---
    # =================================================================
    LLM_STREAM_CHANNEL: str = "llm-stream"
    DEFAULT_LLM: str = os.getenv("DEFAULT_LLM", "http").lower()

    # 环境变量优先于 config.json 中的 llm 配置
    LLM_API_KEY: str = os.getenv("DEVREPORT_LLM_API_KEY", "")
    LLM_BASE_URL: str = os.getenv("DEVREPORT_LLM_BASE_URL", "")
    LLM_MODEL: str = os.getenv("DEVREPORT_LLM_MODEL", "")

    DEFAULT_LLM_BASE_URL: str = "https://api.openai.com/v1"
    DEFAULT_LLM_MODEL: str = "gpt-3.5-turbo"
    DEFAULT_LLM_TIMEOUT: int = 30
    DEFAULT_LLM_TEMPERATURE: float = 0.7

    def __init__(self, config_dir: str | None = None):
        self.CONFIG_DIR = config_dir or os.getenv(
            "DEVREPORT_CONFIG_DIR",
            os.path.join(_default_config_root(), self.APP_DIR_NAME),
        )

    @property
    def config_file_path(self) -> str:
        return os.path.join(self.CONFIG_DIR, self.CONFIG_FILE_NAME)

    @property
    def reports_dir(self) -> str:
        return os.path.join(self.CONFIG_DIR, self.REPORTS_DIR_NAME)

    def is_provider_configured(self, provider: str, api_key: str = "") -> bool:
        """
        检查供应商是否具备运行条件。
        mock 不需要密钥；其余供应商需要 API Key (环境变量或 config.json)。
        """
        if provider == "mock":
            return True
        return bool(api_key or self.LLM_API_KEY)
