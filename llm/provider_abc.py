"""
[V5.0] 所有 LLM 供应商的抽象基类 (ABC)。
- 注册表机制：@register_provider 动态注册供应商
- stream(): 统一的流式转发流程，保证通道上恰好一个终止事件
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Type

from config import GlobalConfig
from config_manager import LlmConfig
from exceptions import LLMStreamError
from llm.channel import StreamChannel
from models import StreamChunk

logger = logging.getLogger(__name__)

# --- 注册表机制 START ---
# 全局注册表，存储 "provider_id" -> Provider Class 的映射
PROVIDER_REGISTRY: Dict[str, Type["LLMProvider"]] = {}


def register_provider(provider_id: str):
    """
    类装饰器：用于将具体的 Provider 实现类注册到全局注册表中。

    使用示例:
        @register_provider("http")
        class HttpStreamProvider(LLMProvider):
            ...
    """

    def decorator(cls):
        if provider_id in PROVIDER_REGISTRY:
            raise ValueError(
                f"Provider id '{provider_id}' 已经被注册过 ({PROVIDER_REGISTRY[provider_id].__name__})"
            )
        PROVIDER_REGISTRY[provider_id] = cls
        return cls

    return decorator


# --- 注册表机制 END ---


class LLMProvider(ABC):
    """
    LLM 供应商的抽象接口。
    """

    def __init__(self, settings: LlmConfig, global_config: GlobalConfig):
        self.settings = settings
        self.global_config = global_config

    @abstractmethod
    def iter_chunks(self, prompt: str) -> Iterator[StreamChunk]:
        """
        逐个产出流式事件。实现可以产出一个 done=True 的事件后结束；
        失败时抛出 LLMStreamError 的子类。
        """
        pass

    def build_messages(self, prompt: str) -> List[Dict[str, str]]:
        return [{"role": "user", "content": prompt}]

    def stream(self, prompt: str, channel: StreamChannel) -> str:
        """
        把事件转发到通道并返回完整文本。
        失败时先发出一个带错误信息的终止事件，再抛出同一个错误。
        """
        parts: List[str] = []
        chunks = self.iter_chunks(prompt)
        try:
            for chunk in chunks:
                channel.emit(chunk)
                if chunk.done:
                    return "".join(parts)
                parts.append(chunk.content)
        except LLMStreamError as e:
            logger.error(f"❌ [{self.__class__.__name__}] 流式请求失败: {e}")
            channel.emit(StreamChunk(done=True, error=str(e)))
            raise
        finally:
            # 提前返回时释放底层连接
            close = getattr(chunks, "close", None)
            if close is not None:
                close()

        channel.emit(StreamChunk(done=True))
        return "".join(parts)
