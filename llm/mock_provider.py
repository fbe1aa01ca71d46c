"""
[测试样例] 一个模拟的 LLM 供应商
不进行任何网络调用，按固定片段产出流式事件，用于离线运行与测试。
"""
import logging
from typing import Iterator

from config import GlobalConfig
from config_manager import LlmConfig
from llm.provider_abc import LLMProvider, register_provider
from models import StreamChunk

logger = logging.getLogger(__name__)


# 核心测试点：使用装饰器注册 ID 为 "mock"
@register_provider("mock")
class MockProvider(LLMProvider):
    """
    模拟的 Provider，仅返回固定的 Markdown 片段。
    """

    def __init__(self, settings: LlmConfig, global_config: GlobalConfig):
        super().__init__(settings, global_config)
        logger.info("✅ MockProvider 已初始化 (无需 API Key)")

    def iter_chunks(self, prompt: str) -> Iterator[StreamChunk]:
        pieces = [
            "# [Mock] 工作总结\n\n",
            "1. 这是 MockProvider 生成的测试内容\n",
            f"2. 提示词长度: {len(prompt)} 字符\n",
        ]
        for piece in pieces:
            yield StreamChunk(content=piece)
        yield StreamChunk(done=True)
