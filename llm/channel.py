import logging
import queue
from typing import Iterator, Optional

from models import StreamChunk

logger = logging.getLogger(__name__)


class StreamChannel:
    """
    [V5.0] 单请求、单消费者的事件通道。
    生产者 (LLM 供应商) 按接收顺序 emit，消费者迭代通道直到收到 done=True。
    每个请求最多一个终止事件，之后的 emit 会被丢弃。
    """

    def __init__(self, name: str):
        self.name = name
        self._queue: "queue.Queue[StreamChunk]" = queue.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, chunk: StreamChunk) -> bool:
        if self._closed:
            logger.warning(f"⚠️ [{self.name}] 通道已结束，丢弃事件: {chunk}")
            return False
        if chunk.done:
            self._closed = True
        self._queue.put(chunk)
        return True

    def get(self, timeout: Optional[float] = None) -> StreamChunk:
        return self._queue.get(timeout=timeout)

    def __iter__(self) -> Iterator[StreamChunk]:
        while True:
            chunk = self._queue.get()
            yield chunk
            if chunk.done:
                return
