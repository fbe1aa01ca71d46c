# exceptions.py
"""
[V5.0] DevReport 统一异常体系
- 所有可预期的失败都继承自 DevReportError，CLI 层统一捕获并输出可读信息。
- 单行日志解析失败不属于异常：格式本身允许残缺数据，直接静默丢弃。
"""


class DevReportError(Exception):
    """DevReport 所有业务异常的基类"""

    pass


class InvalidInputError(DevReportError):
    """路径、日期或作者参数不合法 (在任何子进程启动之前抛出)"""

    pass


class ToolUnavailableError(DevReportError):
    """Git 可执行文件不存在或无法执行"""

    pass


class ToolFailedError(DevReportError):
    """必需的 Git 调用以非零状态退出或超时"""

    pass


class ConfigError(DevReportError):
    """配置文件无法读取、解析或写入"""

    pass


class LLMStreamError(DevReportError):
    """LLM 流式请求失败的基类"""

    pass


class NetworkError(LLMStreamError):
    """请求未能到达 LLM 服务 (连接失败、超时、读取流中断)"""

    pass


class UpstreamError(LLMStreamError):
    """LLM 服务返回了非成功的 HTTP 状态"""

    pass
