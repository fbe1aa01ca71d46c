"""
[V5.0] 基于 openai SDK 的流式实现。
与 http 供应商遵循相同的事件约定，区别在于由 SDK 负责 SSE 解析与重试。
"""
import logging
from typing import Iterator

from openai import APIConnectionError, APIError, APIStatusError, OpenAI

from config import GlobalConfig
from config_manager import LlmConfig
from exceptions import NetworkError, UpstreamError
from llm.provider_abc import LLMProvider, register_provider
from models import StreamChunk

logger = logging.getLogger(__name__)


@register_provider("openai")
class OpenAISDKProvider(LLMProvider):
    def __init__(self, settings: LlmConfig, global_config: GlobalConfig):
        super().__init__(settings, global_config)
        try:
            self.client = OpenAI(
                api_key=settings.api_key,
                base_url=settings.base_url,
                timeout=settings.timeout,
            )
        except Exception as e:
            logger.error(f"❌ OpenAI 客户端初始化失败: {e}")
            raise ValueError(f"OpenAI 客户端初始化失败: {e}")
        logger.info(f"✅ OpenAISDKProvider 初始化成功 (模型: {settings.model})")

    def iter_chunks(self, prompt: str) -> Iterator[StreamChunk]:
        try:
            stream = self.client.chat.completions.create(
                model=self.settings.model,
                messages=self.build_messages(prompt),
                temperature=self.settings.temperature,
                stream=True,
            )
            for event in stream:
                if not event.choices:
                    continue
                content = event.choices[0].delta.content
                if content:
                    yield StreamChunk(content=content)
        except APIStatusError as e:
            raise UpstreamError(f"LLM API 返回错误 ({e.status_code}): {e.message}") from e
        except APIConnectionError as e:
            raise NetworkError(f"LLM 请求失败: {e}") from e
        except APIError as e:
            raise UpstreamError(f"LLM API 错误: {e}") from e

        yield StreamChunk(done=True)
