"""
[V5.0] SSE (text/event-stream) 行解析状态机
状态: RECEIVING -> COMPLETE
- feed(): 追加收到的字节，取出所有完整行并转换为 StreamChunk
- 遇到 "data: [DONE]" 立即输出终止事件并进入 COMPLETE，缓冲区剩余内容丢弃
- finish(): 上游结束但没有 [DONE] 时补发一个终止事件
"""
import codecs
import json
import logging
from enum import Enum
from typing import List, Optional

from models import StreamChunk

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"


class RelayState(Enum):
    RECEIVING = "receiving"
    COMPLETE = "complete"


def extract_delta(payload: str) -> Optional[str]:
    """从 choices[0].delta.content 取出增量文本，取不到返回 None"""
    try:
        data = json.loads(payload)
        content = data["choices"][0]["delta"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


class SSELineRelay:
    def __init__(self):
        self.state = RelayState.RECEIVING
        self._buffer = ""
        # 多字节字符可能被拆到两个网络分片中
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def is_complete(self) -> bool:
        return self.state is RelayState.COMPLETE

    def feed(self, data: bytes) -> List[StreamChunk]:
        if self.is_complete:
            return []

        self._buffer += self._decoder.decode(data)
        chunks: List[StreamChunk] = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            chunk = self._handle_line(line.strip())
            if chunk is None:
                continue
            chunks.append(chunk)
            if chunk.done:
                self._complete()
                break
        return chunks

    def finish(self) -> Optional[StreamChunk]:
        """上游流结束；若尚未输出终止事件则补发一个"""
        if self.is_complete:
            return None
        self._complete()
        return StreamChunk(done=True)

    def _complete(self) -> None:
        self.state = RelayState.COMPLETE
        self._buffer = ""

    def _handle_line(self, line: str) -> Optional[StreamChunk]:
        if not line or not line.startswith(DATA_PREFIX):
            return None
        payload = line[len(DATA_PREFIX):]
        if payload == DONE_MARKER:
            return StreamChunk(done=True)
        delta = extract_delta(payload)
        if delta is None:
            return None
        return StreamChunk(content=delta)
