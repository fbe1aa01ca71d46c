# validators.py
"""
[V5.0] 参数校验
所有校验都在启动 git 子进程之前执行，防止把以 '-' 开头的字符串
当作选项注入到 git 参数列表中。
"""
import os
from typing import Iterable

from config import GlobalConfig
from exceptions import InvalidInputError


def validate_repo_path(path: str) -> str:
    """路径必须是已存在目录的绝对路径；返回原路径便于链式调用"""
    if not path or not os.path.isabs(path):
        raise InvalidInputError(f"路径必须是绝对路径: {path}")
    if not os.path.isdir(path):
        raise InvalidInputError(f"路径不存在或不是目录: {path}")
    return path


def validate_date(text: str) -> str:
    if (
        len(text) > GlobalConfig.MAX_DATE_LENGTH
        or "\n" in text
        or text.startswith("-")
    ):
        raise InvalidInputError(f"无效的日期格式: {text!r}")
    return text


def validate_author(name: str) -> str:
    if name.startswith("-"):
        raise InvalidInputError(f"无效的作者名: {name}")
    return name


def validate_authors(names: Iterable[str]) -> None:
    for name in names:
        validate_author(name)


def validate_query(path: str, since: str, until: str, authors: Iterable[str]) -> None:
    """按 路径 -> 起始日期 -> 结束日期 -> 作者 的顺序校验一次查询"""
    validate_repo_path(path)
    validate_date(since)
    validate_date(until)
    validate_authors(authors)
