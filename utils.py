import logging
import os
import sys
from datetime import datetime, timedelta
from typing import Optional, Tuple

from exceptions import InvalidInputError

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

REPORT_TYPES = ("daily", "weekly", "monthly", "quarterly", "yearly")


# 将日志配置移到这里，作为一个可被调用的函数
def setup_logging(level: int = logging.INFO):
    """配置全局日志"""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def open_report_in_browser(filename: str):
    """在浏览器中打开报告"""
    logger = logging.getLogger(__name__)
    try:
        if os.name == "nt":  # Windows
            os.startfile(filename)
        elif os.name == "posix":  # macOS/Linux
            if sys.platform == "darwin":
                os.system(f'open "{filename}"')
            else:
                os.system(f'xdg-open "{filename}"')
        logger.info(f"🌐 已在浏览器中打开报告: {filename}")
    except OSError as e:
        logger.warning(f"无法自动打开报告，请手动打开: {filename}, 错误: {e}")


def get_folder_name(path: str) -> str:
    """路径的最后一段；取不到时原样返回"""
    name = os.path.basename(os.path.normpath(path))
    return name or path


# --- 时间范围 ---


def _start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _start_of(unit: str, now: datetime) -> datetime:
    today = _start_of_day(now)
    if unit == "week":
        # 周日为一周的第一天
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if unit == "month":
        return today.replace(day=1)
    if unit == "quarter":
        return today.replace(month=(today.month - 1) // 3 * 3 + 1, day=1)
    if unit == "year":
        return today.replace(month=1, day=1)
    return today


def _format_range(since: datetime, until: datetime) -> Tuple[str, str]:
    return since.strftime(DATETIME_FORMAT), until.strftime(DATETIME_FORMAT)


def _parse_datetime(text: str) -> datetime:
    try:
        return datetime.fromisoformat(text.strip())
    except ValueError:
        raise InvalidInputError(f"无效的日期格式: {text!r}")


def get_time_range_by_type(
    report_type: str, cross_day: bool = False, now: Optional[datetime] = None
) -> Tuple[str, str]:
    """
    按报告类型计算时间范围 (since, until)，until 为当前时间。
    cross_day 仅影响日报：从昨天零点开始统计 (适合凌晨写日报)。
    """
    now = now or datetime.now()
    if report_type == "daily":
        since = _start_of_day(now - timedelta(days=1)) if cross_day else _start_of_day(now)
    elif report_type == "weekly":
        since = _start_of("week", now)
    elif report_type == "monthly":
        since = _start_of("month", now)
    elif report_type == "quarterly":
        since = _start_of("quarter", now)
    elif report_type == "yearly":
        since = _start_of("year", now)
    else:
        since = _start_of_day(now)
    return _format_range(since, now)


def get_time_range(
    preset: str,
    cross_day: bool = False,
    custom_since: Optional[str] = None,
    custom_until: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, str]:
    """按预设 (today / yesterday / this_week / ... / custom) 计算时间范围"""
    now = now or datetime.now()
    until = now
    if preset == "today":
        since = _start_of_day(now - timedelta(days=1)) if cross_day else _start_of_day(now)
    elif preset == "yesterday":
        since = _start_of_day(now - timedelta(days=1))
        until = since.replace(hour=23, minute=59, second=59)
    elif preset == "this_week":
        since = _start_of("week", now)
    elif preset == "this_month":
        since = _start_of("month", now)
    elif preset == "this_quarter":
        since = _start_of("quarter", now)
    elif preset == "this_year":
        since = _start_of("year", now)
    elif preset == "custom":
        since = _parse_datetime(custom_since) if custom_since else _start_of_day(now)
        until = _parse_datetime(custom_until) if custom_until else now
    else:
        since = _start_of_day(now)
    return _format_range(since, until)
