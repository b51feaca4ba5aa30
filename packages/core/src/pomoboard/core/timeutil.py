"""时间工具 -- epoch 毫秒时间戳与本地日期边界"""

import time
from datetime import datetime, timedelta


def now_ms() -> int:
    """当前时间（epoch 毫秒）"""
    return int(time.time() * 1000)


def to_ms(moment: datetime) -> int:
    """datetime -> epoch 毫秒"""
    return int(moment.timestamp() * 1000)


def from_ms(timestamp: int) -> datetime:
    """epoch 毫秒 -> 本地时区 datetime"""
    return datetime.fromtimestamp(timestamp / 1000).astimezone()


def iso_date(timestamp: int) -> str:
    """epoch 毫秒 -> ISO 日历日期（YYYY-MM-DD，UTC）"""
    return time.strftime("%Y-%m-%d", time.gmtime(timestamp / 1000))


def start_of_day(moment: datetime) -> datetime:
    """当天 00:00:00.000（保留时区）"""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """本周周日 00:00（周日为一周的第一天）"""
    day = start_of_day(moment)
    # isoweekday: 周一=1 ... 周日=7
    return day - timedelta(days=day.isoweekday() % 7)


def start_of_month(moment: datetime) -> datetime:
    """本月第一天 00:00"""
    return start_of_day(moment).replace(day=1)


def start_of_next_month(moment: datetime) -> datetime:
    """下月第一天 00:00"""
    first = start_of_month(moment)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)
