import logging
import os
import importlib
from typing import Optional

from config import GlobalConfig
from config_manager import LlmConfig
from context import RunContext
from llm.channel import StreamChannel
from llm.provider_abc import LLMProvider, PROVIDER_REGISTRY

logger = logging.getLogger(__name__)


# --- 动态加载器 ---
def load_providers_dynamically(script_base_path: str):
    """
    扫描 llm/ 目录下的所有 *_provider.py 文件并导入它们。
    这将触发 @register_provider 装饰器，将类注册到 PROVIDER_REGISTRY 中。
    """
    llm_dir = os.path.join(script_base_path, "llm")
    if not os.path.exists(llm_dir):
        logger.warning(f"⚠️ 未找到 llm 目录: {llm_dir}")
        return

    for filename in sorted(os.listdir(llm_dir)):
        if not filename.endswith("_provider.py"):
            continue
        # 构建模块名 (例如: llm.http_provider)
        module_name = f"llm.{filename[:-3]}"
        try:
            importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"❌ 动态加载模块 {module_name} 失败: {e}")


# --- 工厂函数 ---
def get_llm_provider(
    provider_id: str, settings: LlmConfig, global_config: GlobalConfig
) -> LLMProvider:
    """
    工厂函数：基于 Registry Pattern 实现，从 PROVIDER_REGISTRY 查找供应商。
    """
    logger.info(f"ℹ️ 正在初始化 LLM 供应商: {provider_id}")

    # 1. 动态加载所有可能的 providers
    load_providers_dynamically(global_config.SCRIPT_BASE_PATH)

    # 2. 检查配置
    if not global_config.is_provider_configured(provider_id, settings.api_key):
        logger.error(f"❌ 供应商 '{provider_id}' 未配置 API Key。")
        raise ValueError(
            f"供应商 '{provider_id}' 未配置。"
            f"请在 config.json 的 llm.api_key 或 .env 的 DEVREPORT_LLM_API_KEY 中设置。"
        )

    # 3. 从注册表中查找
    if provider_id not in PROVIDER_REGISTRY:
        logger.error(f"❌ 未知的 LLM 供应商: '{provider_id}'")
        logger.error(f"   可用供应商: {sorted(PROVIDER_REGISTRY.keys())}")
        raise ValueError(f"未知的 LLM 供应商: {provider_id}")

    # 4. 实例化
    provider_class = PROVIDER_REGISTRY[provider_id]
    return provider_class(settings, global_config)


class AIService:
    """
    封装对 LLM 的流式调用。
    - 由 RunContext 初始化
    - 每次 stream_report 使用一个新的通道，通道上恰好一个终止事件
    """

    def __init__(self, context: RunContext):
        self.context = context
        self.global_config = context.global_config
        self.provider: LLMProvider = get_llm_provider(
            context.llm_id, context.llm_settings, self.global_config
        )
        logger.info(
            f"✅ 🤖 AI 服务已成功初始化 (Provider: {self.provider.__class__.__name__})"
        )

    def new_channel(self) -> StreamChannel:
        return StreamChannel(self.global_config.LLM_STREAM_CHANNEL)

    def stream_report(self, prompt: str, channel: Optional[StreamChannel] = None) -> str:
        """
        同步执行一次流式请求，事件写入 channel；返回完整文本。
        失败时 channel 收到带错误的终止事件，并抛出 LLMStreamError。
        """
        channel = channel or self.new_channel()
        return self.provider.stream(prompt, channel)
