"""
[V5.0] OpenAI 兼容接口的原始 HTTP 流式实现 (默认供应商)。
直接解析 text/event-stream，不依赖任何厂商 SDK，适用于所有兼容
/chat/completions 的服务 (OpenAI、DeepSeek、Ollama 等)。
"""
import logging
import time
from typing import Any, Dict, Iterator

import requests

from exceptions import NetworkError, UpstreamError
from llm.provider_abc import LLMProvider, register_provider
from llm.stream_relay import SSELineRelay
from models import StreamChunk

logger = logging.getLogger(__name__)


@register_provider("http")
class HttpStreamProvider(LLMProvider):
    """
    使用 requests 发起 stream=True 的 POST 请求，并把响应交给 SSELineRelay。
    """

    @property
    def endpoint(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}/chat/completions"

    def build_body(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.settings.model,
            "messages": self.build_messages(prompt),
            "temperature": self.settings.temperature,
            "stream": True,
        }

    def iter_chunks(self, prompt: str) -> Iterator[StreamChunk]:
        timeout = self.settings.timeout
        # 超时约束整个请求：期限在每次收到数据块时检查，无数据时由 socket 读超时兜底
        deadline = time.monotonic() + timeout
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

        logger.info(f"🌐 [HTTP] 请求 {self.endpoint} (模型: {self.settings.model})")
        try:
            response = requests.post(
                self.endpoint,
                headers=headers,
                json=self.build_body(prompt),
                stream=True,
                timeout=timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"LLM 请求失败: {e}") from e

        try:
            if not response.ok:
                raise UpstreamError(
                    f"LLM API 返回错误 ({response.status_code}): {response.text}"
                )

            relay = SSELineRelay()
            try:
                for data in response.iter_content(chunk_size=None):
                    if time.monotonic() > deadline:
                        raise NetworkError(f"LLM 请求超时 ({timeout}s)")
                    yield from relay.feed(data)
                    if relay.is_complete:
                        return
            except requests.exceptions.RequestException as e:
                raise NetworkError(f"读取流失败: {e}") from e

            final = relay.finish()
            if final is not None:
                logger.warning("⚠️ [HTTP] 上游流未发送 [DONE]，已补发终止事件")
                yield final
        finally:
            response.close()
