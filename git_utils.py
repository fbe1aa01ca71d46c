# git_utils.py
"""
[V5.0] Git 命令行封装
- run_git_command: 以参数列表 (非 shell) 调用 git，返回原始字节输出
- parse_git_log: 将 --name-status 输出解析为 GitCommit 序列
"""
import logging
import os
import subprocess
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence

from config import GlobalConfig
from exceptions import ToolFailedError, ToolUnavailableError
from models import GitCommit, GitFile, GitSubmodule, LogQuery
from validators import validate_repo_path

logger = logging.getLogger(__name__)

# git name-status 可能输出的状态字母，其余一律视为修改
KNOWN_FILE_STATUSES = frozenset("ACDMRTUXB")

# str.strip() 默认会把 \x1c-\x1f 当作空白，这里只去掉普通空白
_WHITESPACE = " \t\r\n\x0b\x0c"


class GitOutput(NamedTuple):
    success: bool
    stdout: bytes
    stderr: bytes

    @property
    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def error_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()


def run_git_command(
    args: Sequence[str],
    repo_path: Optional[str] = None,
    context: str = "执行Git命令",
    timeout: Optional[int] = None,
) -> GitOutput:
    """
    统一的Git命令执行函数。
    - 非零退出码作为普通结果返回，由调用方解释
    - 无法启动 git 时抛出 ToolUnavailableError
    - 工作目录不可访问时抛出 ToolFailedError
    """
    cmd = [GlobalConfig.GIT_BINARY, *args]
    logger.debug(f"在 {repo_path or os.getcwd()} 中执行命令: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=repo_path,
            capture_output=True,
            timeout=timeout or GlobalConfig.GIT_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"❌ {context}超时 ({repo_path})")
        raise ToolFailedError(f"{context}超时: {repo_path}")
    except OSError as e:
        # filename 指向出错的对象：git 可执行文件或 cwd
        if e.filename == GlobalConfig.GIT_BINARY:
            raise ToolUnavailableError(f"Git 未安装或无法执行: {e}") from e
        logger.error(f"❌ {context}失败，无法进入目录 ({repo_path}): {e}")
        raise ToolFailedError(f"{context}失败，无法进入目录 {repo_path}: {e}") from e

    return GitOutput(result.returncode == 0, result.stdout, result.stderr)


def check_git_installed() -> str:
    """返回 git 版本字符串，例如 'git version 2.43.0'"""
    output = run_git_command(["--version"], context="检测Git版本")
    if not output.success:
        raise ToolUnavailableError("Git 未安装，请先安装 Git")
    return output.text.strip()


def is_git_repository(repo_path: str) -> bool:
    """检查指定路径是否位于 Git 工作区内"""
    validate_repo_path(repo_path)
    output = run_git_command(
        ["rev-parse", "--is-inside-work-tree"], repo_path, "检查Git仓库"
    )
    return output.success


def get_git_authors(repo_path: str) -> List[str]:
    """列出仓库全部提交人 ('名字 <邮箱>')，去重并排序"""
    validate_repo_path(repo_path)
    output = run_git_command(
        ["log", "--format=%an <%ae>", "--all"], repo_path, "获取提交人"
    )
    if not output.success:
        raise ToolFailedError(f"获取提交人列表失败: {output.error_text}")
    return sorted({line.strip() for line in output.text.splitlines() if line.strip()})


def list_submodules(repo_path: str) -> List[GitSubmodule]:
    """
    列出子模块。git submodule status 失败时返回空列表：
    没有子模块配置并不是异常情况。
    """
    validate_repo_path(repo_path)
    output = run_git_command(["submodule", "status"], repo_path, "获取子模块")
    if not output.success:
        return []

    submodules = []
    for line in output.text.splitlines():
        if not line.strip():
            continue
        # 形如 " <sha> <path> (<describe>)"，首字符可能是 -/+/U
        parts = line.strip().split(" ", 2)
        if len(parts) < 2:
            continue
        sub_path = parts[1]
        submodules.append(
            GitSubmodule(
                name=sub_path.split("/")[-1],
                path=os.path.join(repo_path, sub_path),
            )
        )
    return submodules


def _range_args(query: LogQuery) -> List[str]:
    args = []
    if query.since:
        args.append(f"--since={query.since}")
    if query.until:
        args.append(f"--until={query.until}")
    return args


def _author_args(query: LogQuery) -> List[str]:
    return [f"--author={author}" for author in query.authors]


def build_log_args(query: LogQuery, max_count: int) -> List[str]:
    """带文件列表的日志查询参数"""
    return [
        "log",
        *_range_args(query),
        "--pretty=format:"
        + GlobalConfig.GIT_LOG_PRETTY_FORMAT.format(sep=GlobalConfig.FIELD_SEPARATOR),
        "--name-status",
        "--no-merges",  # 排除合并提交
        f"--max-count={max_count}",  # 防止大仓库卡死
        *_author_args(query),
    ]


def build_count_args(query: LogQuery) -> List[str]:
    """只输出哈希的计数查询参数 (不含文件信息，不设上限)"""
    return [
        "log",
        *_range_args(query),
        "--format=%H",
        "--no-merges",
        *_author_args(query),
    ]


def fetch_git_log(repo_path: str, query: LogQuery, max_count: int) -> List[GitCommit]:
    output = run_git_command(
        build_log_args(query, max_count), repo_path, "获取Git提交历史"
    )
    if not output.success:
        raise ToolFailedError(f"Git log 执行失败: {output.error_text}")
    logger.info(f"ℹ️ Git 日志输出大小: {len(output.stdout)} bytes ({repo_path})")
    return parse_git_log(output.text)


def count_commits(repo_path: str, query: LogQuery) -> int:
    output = run_git_command(build_count_args(query), repo_path, "统计提交数量")
    if not output.success:
        raise ToolFailedError(f"获取 Git 统计失败: {output.error_text}")
    return sum(1 for line in output.text.splitlines() if line.strip())


# --- 日志解析 ---


class LineKind(Enum):
    HEADER = "header"
    BAD_HEADER = "bad_header"
    FILE = "file"


def classify_line(line: str, separator: str = GlobalConfig.FIELD_SEPARATOR):
    """
    把一行输出标记为 (LineKind, payload)；空行与无效文件行返回 None。
    """
    line = line.strip(_WHITESPACE)
    if not line:
        return None

    if separator in line:
        parts = line.split(separator, 4)
        if len(parts) != 5:
            return LineKind.BAD_HEADER, None
        return LineKind.HEADER, parts

    parts = line.split("\t", 1)
    if len(parts) != 2:
        return None
    status = parts[0][:1]
    if status not in KNOWN_FILE_STATUSES:
        status = "M"
    return LineKind.FILE, GitFile(status=status, path=parts[1])


class _LogReducer:
    """
    日志行的有限状态归约器。
    状态只有“当前提交” (可能为空)；新的头部行会先把当前提交写入结果。
    """

    def __init__(self):
        self.commits: List[GitCommit] = []
        self._header: Optional[List[str]] = None
        self._files: List[GitFile] = []

    def feed(self, kind: LineKind, payload) -> None:
        if kind is LineKind.FILE:
            if self._header is not None:
                self._files.append(payload)
            return

        self._flush()
        if kind is LineKind.HEADER:
            self._header = payload

    def finish(self) -> List[GitCommit]:
        self._flush()
        return self.commits

    def _flush(self) -> None:
        if self._header is not None:
            hash_, author, email, date, message = self._header
            self.commits.append(
                GitCommit(
                    hash=hash_,
                    author=author,
                    email=email,
                    date=date,
                    message=message,
                    files=tuple(self._files),
                )
            )
        self._header = None
        self._files = []


def parse_git_log(
    raw: str, separator: str = GlobalConfig.FIELD_SEPARATOR
) -> List[GitCommit]:
    """解析 git log --name-status 输出，保持 git 的输出顺序"""
    reducer = _LogReducer()
    # 不能用 splitlines()：它会把 \x1e 也当作换行
    for line in raw.split("\n"):
        tagged = classify_line(line, separator)
        if tagged is not None:
            reducer.feed(*tagged)
    return reducer.finish()
