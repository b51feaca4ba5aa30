"""Filter/Derivation Pipeline -- 纯函数筛选链与计数

筛选顺序固定：项目 -> 负责人 -> 仅已完成 -> 截止日期桶。
日期边界按本地时区计算，一周从周日 00:00 开始，到周六 23:59:59.999 结束。
所有函数不读取真实时钟，now 由调用方注入。
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from pomoboard.core.models import (
    DEFAULT_STATUSES,
    BoardColumn,
    DateBucket,
    Task,
    is_done,
)
from pomoboard.core.timeutil import (
    start_of_day,
    start_of_month,
    start_of_next_month,
    start_of_week,
    to_ms,
)

DUE_SOON_WINDOW = timedelta(days=2)


class BoardFilters(BaseModel):
    """看板筛选条件"""

    model_config = ConfigDict(frozen=True)

    project_id: str | None = Field(default=None, description="当前项目，None 表示全部")
    assignee: str | None = Field(default=None, description="当前负责人，None 表示全部")
    completed_only: bool = Field(default=False, description="只显示已完成")
    date_bucket: DateBucket = Field(default=DateBucket.ALL, description="截止日期桶")


class DateRanges(BaseModel):
    """某一时刻对应的日期桶边界（epoch 毫秒，区间均为左闭右开）"""

    model_config = ConfigDict(frozen=True)

    today_start: int
    tomorrow_start: int
    week_start: int
    next_week_start: int
    month_start: int
    next_month_start: int


class FilterResult(BaseModel):
    """筛选结果：日期筛选前后的两个集合"""

    model_config = ConfigDict(frozen=True)

    pre_date: list[Task] = Field(description="项目/负责人/已完成筛选后的任务")
    tasks: list[Task] = Field(description="再经日期桶筛选后的任务")


class BoardCounts(BaseModel):
    """筛选徽标与列头计数"""

    overdue: int = 0
    today: int = 0
    week: int = 0
    total: int = 0
    filtered: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)


def date_ranges(now: datetime) -> DateRanges:
    """计算 now 所在的日/周/月边界"""
    today = start_of_day(now)
    week = start_of_week(now)
    return DateRanges(
        today_start=to_ms(today),
        tomorrow_start=to_ms(today + timedelta(days=1)),
        week_start=to_ms(week),
        next_week_start=to_ms(week + timedelta(days=7)),
        month_start=to_ms(start_of_month(now)),
        next_month_start=to_ms(start_of_next_month(now)),
    )


def select_assignee(filters: BoardFilters, assignee: str | None) -> BoardFilters:
    """切换负责人；选中负责人时同时关闭“仅已完成”"""
    update: dict = {"assignee": assignee}
    if assignee is not None:
        update["completed_only"] = False
    return filters.model_copy(update=update)


def is_overdue(task: Task, now: datetime) -> bool:
    """截止日期早于今天 00:00 且未完成"""
    if task.due_date is None or is_done(task.status):
        return False
    return task.due_date < to_ms(start_of_day(now))


def is_due_soon(task: Task, now: datetime) -> bool:
    """截止日期在接下来两天内"""
    if task.due_date is None:
        return False
    return to_ms(now) <= task.due_date <= to_ms(now + DUE_SOON_WINDOW)


def in_bucket(task: Task, bucket: DateBucket, ranges: DateRanges) -> bool:
    """任务是否落在日期桶内；没有截止日期的任务只属于 all"""
    if bucket == DateBucket.ALL:
        return True
    due = task.due_date
    if due is None:
        return False
    if bucket == DateBucket.OVERDUE:
        return due < ranges.today_start and not is_done(task.status)
    if bucket == DateBucket.TODAY:
        return ranges.today_start <= due < ranges.tomorrow_start
    if bucket == DateBucket.WEEK:
        return ranges.week_start <= due < ranges.next_week_start
    if bucket == DateBucket.MONTH:
        return ranges.month_start <= due < ranges.next_month_start
    return True


def apply_filters(tasks: Iterable[Task], filters: BoardFilters, now: datetime) -> FilterResult:
    """按固定顺序执行筛选链

    Args:
        tasks: 全部活跃任务
        filters: 筛选条件
        now: 当前时刻（带时区）

    Returns:
        FilterResult
    """
    selected = list(tasks)
    if filters.project_id is not None:
        selected = [t for t in selected if t.project_id == filters.project_id]
    if filters.assignee is not None:
        selected = [t for t in selected if t.assignee == filters.assignee]
    if filters.completed_only:
        selected = [t for t in selected if is_done(t.status)]

    ranges = date_ranges(now)
    dated = [t for t in selected if in_bucket(t, filters.date_bucket, ranges)]
    return FilterResult(pre_date=selected, tasks=dated)


def _column_statuses(columns: Iterable[BoardColumn]) -> list[str]:
    statuses = [c.status for c in columns]
    return statuses or list(DEFAULT_STATUSES)


def derive_counts(
    result: FilterResult,
    columns: Iterable[BoardColumn],
    now: datetime,
) -> BoardCounts:
    """计算徽标计数

    overdue / today / week / total 基于日期筛选前的集合，
    filtered 与 by_status 基于日期筛选后的集合。
    """
    ranges = date_ranges(now)
    by_status = {status: 0 for status in _column_statuses(columns)}
    for task in result.tasks:
        if task.status in by_status:
            by_status[task.status] += 1
    return BoardCounts(
        overdue=sum(1 for t in result.pre_date if in_bucket(t, DateBucket.OVERDUE, ranges)),
        today=sum(1 for t in result.pre_date if in_bucket(t, DateBucket.TODAY, ranges)),
        week=sum(1 for t in result.pre_date if in_bucket(t, DateBucket.WEEK, ranges)),
        total=len(result.pre_date),
        filtered=len(result.tasks),
        by_status=by_status,
    )


def group_by_column(tasks: Iterable[Task], columns: Iterable[BoardColumn]) -> dict[str, list[Task]]:
    """按看板列分组，保持输入顺序；不属于任何列的任务被忽略"""
    groups: dict[str, list[Task]] = {status: [] for status in _column_statuses(columns)}
    for task in tasks:
        if task.status in groups:
            groups[task.status].append(task)
    return groups


def task_counts_by_project(tasks: Iterable[Task]) -> dict[str, int]:
    """每个项目的活跃任务数（不受筛选影响）"""
    counts: dict[str, int] = {}
    for task in tasks:
        counts[task.project_id] = counts.get(task.project_id, 0) + 1
    return counts
