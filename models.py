# models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class GitFile:
    """单个提交中的文件变更 (name-status)"""

    status: str
    path: str
    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "path": self.path}


@dataclass(frozen=True)
class GitCommit:
    """Git提交数据模型"""

    hash: str
    author: str
    email: str
    date: str
    message: str
    files: Tuple[GitFile, ...] = ()

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "author": self.author,
            "email": self.email,
            "date": self.date,
            "message": self.message,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass(frozen=True)
class GitSubmodule:
    name: str
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "path": self.path}


@dataclass(frozen=True)
class LogQuery:
    """一次 git log 查询的过滤条件"""

    since: str = ""
    until: str = ""
    authors: Tuple[str, ...] = ()


@dataclass
class FileChangeSummary:
    path: str
    change_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "change_count": self.change_count}


@dataclass
class GitStats:
    """
    统计结果。
    注意：除 total_commits 外，其余字段都只基于抽样提交计算。
    """

    total_commits: int
    total_files_changed: int
    authors: List[str]
    date_range: Tuple[str, str]
    sample_commits: List[GitCommit]
    file_changes_summary: List[FileChangeSummary]
    diagnostics: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_commits": self.total_commits,
            "total_files_changed": self.total_files_changed,
            "authors": list(self.authors),
            "date_range": list(self.date_range),
            "sample_commits": [c.to_dict() for c in self.sample_commits],
            "file_changes_summary": [s.to_dict() for s in self.file_changes_summary],
            "diagnostics": list(self.diagnostics),
        }


@dataclass(frozen=True)
class StreamChunk:
    """LLM 流式输出的单个事件；每次请求有且仅有一个 done=True 的事件"""

    content: str = ""
    done: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "done": self.done, "error": self.error}


@dataclass
class Report:
    """生成后的报告"""

    id: str
    project_name: str
    report_type: str
    content: str
    created_at: str
    since: str
    until: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_name": self.project_name,
            "report_type": self.report_type,
            "content": self.content,
            "created_at": self.created_at,
            "time_range": {"since": self.since, "until": self.until},
        }
