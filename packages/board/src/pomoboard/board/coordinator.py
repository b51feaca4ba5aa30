"""Task Mutation Coordinator -- 乐观更新 + 回滚

每个变更操作遵循同一契约：
1. 快照受影响的集合（深拷贝）
2. 同步应用到本地状态
3. 发起持久层调用
4. 成功：清除错误；创建类操作用持久层 ID 替换本地占位 ID
5. 失败：整体恢复快照，设置该动作的用户可见错误

例外：项目重排失败时重新加载项目列表，而不是恢复快照；
番茄钟快照同步失败只记录日志，不回滚也不提示。
校验错误在任何持久层调用之前拦截。
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import structlog
from ulid import ULID

from pomoboard.core.config import LOCAL_ID_PREFIX, MAX_TASK_IMAGES, get_team_roster
from pomoboard.core.exceptions import (
    BoardValidationError,
    DefaultColumnError,
    ImageRejectedError,
    PomoboardError,
)
from pomoboard.core.models import (
    EDITABLE_TASK_FIELDS,
    BoardColumn,
    NewColumn,
    NewProject,
    NewTask,
    PomodoroSession,
    PomodoroStatus,
    Project,
    SessionType,
    Task,
    TaskComment,
    TaskStatus,
    is_done,
)
from pomoboard.core.store import PersistenceGateway, strip_undefined
from pomoboard.core.store.payload import (
    apply_pomodoro_session,
    merge_model,
    to_completed_record,
    to_deleted_record,
    to_restored_task,
)
from pomoboard.core.timeutil import now_ms

from . import filters as board_filters
from .config import PomodoroConfig, load_pomodoro_config
from .filters import BoardCounts, BoardFilters, FilterResult
from .images import EmbeddedImageEncoder, ImageStrategy, ImageUpload, ProgressCallback
from .messages import message_for
from .state import BoardState, Collection
from .timer import CompletionNotifier, PomodoroTimer, SleepFn, TimerRegistry

log = structlog.get_logger()

PersistFn = Callable[[], Awaitable[Any]]

# 评论只能通过 add_comment 追加
MODAL_TASK_FIELDS: frozenset[str] = EDITABLE_TASK_FIELDS - {"comments"}


async def _succeed(call: Awaitable[Any]) -> bool:
    """把返回 None 的持久层调用转换为 True，便于区分成功与失败"""
    await call
    return True


async def _succeed_with(call: Awaitable[Any]) -> tuple[bool, Any]:
    """返回 (True, 结果)，结果为 None 时也能与失败区分"""
    return True, await call


class BoardCoordinator:
    """看板状态协调器

    持有 BoardState 与 TimerRegistry；所有变更经由 with_optimistic_update。
    单事件循环内使用，不加锁；同一任务的并发变更以本地最后一次写入为准。
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        image_strategy: ImageStrategy | None = None,
        pomodoro_config: PomodoroConfig | None = None,
        roster: list[str] | None = None,
        locale: str | None = None,
        notifier: CompletionNotifier | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """
        Args:
            gateway: 持久层网关
            image_strategy: 图片策略，None 时使用内嵌压缩
            pomodoro_config: 番茄钟配置，None 时从环境变量加载
            roster: 团队成员名单，None 时读取配置
            locale: 错误信息语言，None 时读取配置
            notifier: 番茄钟完成副作用
            sleep: 可注入的 sleep（测试用）
            clock: 可注入的时钟，返回 epoch 毫秒
        """
        self.state = BoardState()
        self._gateway = gateway
        self._locale = locale
        self._images = image_strategy or EmbeddedImageEncoder(locale=locale)
        self._roster = roster if roster is not None else get_team_roster()
        self._clock = clock
        self.timers = TimerRegistry(
            pomodoro_config or load_pomodoro_config(),
            on_sync=self.sync_pomodoro_state,
            on_complete=self._on_session_complete,
            notifier=notifier,
            sleep=sleep,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # 通用机制
    # ------------------------------------------------------------------

    def _message(self, action: str, **params: object) -> str:
        return message_for(action, self._locale, **params)

    def _set_error(self, action: str, **params: object) -> None:
        self.state.error = self._message(action, **params)

    def _reject(self, error: BoardValidationError) -> None:
        """校验失败：设置错误，不调用持久层"""
        log.info("board_validation_failed", field=error.field, error=str(error))
        self.state.error = str(error)

    def _validation(self, key: str, field: str = "", **params: object) -> BoardValidationError:
        return BoardValidationError(self._message(key, **params), field=field)

    def _local_id(self) -> str:
        return f"{LOCAL_ID_PREFIX}{ULID()}"

    async def with_optimistic_update(
        self,
        collections: list[Collection],
        apply: Callable[[], None],
        persist: PersistFn,
        action: str,
        **message_params: object,
    ) -> Any | None:
        """乐观更新通用流程

        快照、应用、发起调用三步之间没有 await。

        Args:
            collections: 需要快照的集合
            apply: 同步修改本地状态
            persist: 返回持久层调用的工厂
            action: 失败时使用的信息键

        Returns:
            持久层调用结果；失败时返回 None
        """
        snapshot = self.state.snapshot(collections)
        apply()
        pending = persist()
        try:
            result = await pending
        except Exception as e:
            self.state.restore(snapshot)
            self._set_error(action, detail=str(e), **message_params)
            log.warning(
                "optimistic_update_rolled_back",
                action=action,
                collections=[str(c) for c in collections],
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        self.state.error = None
        return result

    def dismiss_error(self) -> None:
        self.state.error = None

    # ------------------------------------------------------------------
    # 校验
    # ------------------------------------------------------------------

    def _require_task(self, task_id: str) -> Task:
        task = self.state.find_task(task_id)
        if task is None:
            raise self._validation("task_missing", field="task_id")
        return task

    def _check_project(self, project_id: str) -> None:
        if not project_id:
            raise self._validation("project_required", field="project_id")
        if self.state.find_project(project_id) is None:
            raise self._validation("project_missing", field="project_id")

    def _check_status(self, status: str) -> None:
        if status not in self.state.column_statuses():
            raise self._validation("status_missing", field="status")

    def _check_member(self, name: str, field: str) -> None:
        if self._roster and name not in self._roster:
            raise self._validation("member_missing", field=field, name=name)

    def _check_task_fields(self, fields: dict[str, Any]) -> None:
        if "project_id" in fields:
            self._check_project(fields["project_id"])
        if "status" in fields:
            self._check_status(fields["status"])
        for field in ("assignee", "creator"):
            if field in fields:
                self._check_member(fields[field], field)
        if len(fields.get("images", [])) > MAX_TASK_IMAGES:
            raise ImageRejectedError(self._message("image_limit", limit=MAX_TASK_IMAGES))

    # ------------------------------------------------------------------
    # 加载
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """并发加载活跃任务、项目、看板列与已删除集合"""
        try:
            tasks, projects, columns, deleted = await asyncio.gather(
                self._gateway.load_tasks(),
                self._gateway.load_projects(),
                self._gateway.load_columns(),
                self._gateway.load_deleted_tasks(),
            )
        except Exception as e:
            self._set_error("load")
            log.error("board_load_failed", error=str(e))
            return False

        self.state.tasks = tasks
        self.state.projects = projects
        self.state.columns = columns
        self.state.deleted_tasks = deleted
        self.state.error = None

        live_ids = {t.task_id for t in tasks}
        for task_id in [tid for tid in self.timers.task_ids() if tid not in live_ids]:
            await self.timers.teardown(task_id, persist=False)
        for task in tasks:
            if task.pomodoro_status != PomodoroStatus.IDLE:
                await self.timers.attach(task)

        log.info(
            "board_loaded",
            tasks=len(tasks),
            projects=len(projects),
            columns=len(columns),
            deleted=len(deleted),
        )
        return True

    async def load_completed_tasks(self) -> bool:
        try:
            self.state.completed_tasks = await self._gateway.load_completed_tasks()
        except Exception as e:
            self._set_error("load_completed")
            log.error("completed_tasks_load_failed", error=str(e))
            return False
        return True

    async def load_deleted_tasks(self) -> bool:
        try:
            self.state.deleted_tasks = await self._gateway.load_deleted_tasks()
        except Exception as e:
            self._set_error("load_deleted")
            log.error("deleted_tasks_load_failed", error=str(e))
            return False
        return True

    # ------------------------------------------------------------------
    # 任务
    # ------------------------------------------------------------------

    async def create_task(self, new_task: NewTask) -> str | None:
        """创建任务：先插入本地占位，持久层返回 ID 后替换

        Returns:
            持久层分配的 ID；校验或持久化失败时返回 None
        """
        try:
            self._check_project(new_task.project_id)
            self._check_task_fields(new_task.model_dump(include={"status", "assignee", "creator", "images"}))
        except BoardValidationError as e:
            self._reject(e)
            return None

        placeholder = Task(
            task_id=self._local_id(),
            created_at=self._clock(),
            **new_task.model_dump(),
        )

        def apply() -> None:
            self.state.tasks = [placeholder, *self.state.tasks]

        task_id = await self.with_optimistic_update(
            [Collection.TASKS],
            apply,
            lambda: self._gateway.create_task(new_task),
            "create_task",
        )
        if task_id is None:
            return None
        self.state.rename_task(placeholder.task_id, task_id)
        log.info("task_created", task_id=task_id, project_id=new_task.project_id)
        return task_id

    async def duplicate_task(self, task_id: str) -> str | None:
        """以现有任务的可编辑字段创建副本（标题追加副本后缀）"""
        try:
            source = self._require_task(task_id)
        except BoardValidationError as e:
            self._reject(e)
            return None
        copy = source.to_new_task().model_copy(
            update={"title": source.title + self._message("copy_suffix")}
        )
        return await self.create_task(copy)

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> bool:
        """编辑任务字段（None 值字段被剔除）"""
        fields = strip_undefined(fields)
        try:
            task = self._require_task(task_id)
            unknown = set(fields) - MODAL_TASK_FIELDS
            if unknown:
                raise BoardValidationError(self._message("unknown"), field=",".join(sorted(unknown)))
            self._check_task_fields(fields)
            updated = merge_model(task, fields)
        except BoardValidationError as e:
            self._reject(e)
            return False
        except PomoboardError as e:
            self._reject(BoardValidationError(str(e)))
            return False

        ok = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(updated),
            lambda: _succeed(self._gateway.update_task(task_id, fields)),
            "update_task",
        )
        return ok is True

    async def change_status(self, task_id: str, status: str) -> bool:
        """拖拽 / 勾选改变状态

        非 DONE -> DONE 走完成流程：复制到已完成集合与更新状态是两个独立调用，
        状态更新失败回滚；仅复制失败时提示错误但不回退已持久化的状态。
        DONE -> 其他状态是普通状态更新。
        """
        try:
            task = self._require_task(task_id)
            self._check_status(status)
        except BoardValidationError as e:
            self._reject(e)
            return False

        updated = task.model_copy(update={"status": status})
        if is_done(status) and not is_done(task.status):
            return await self._complete(task, updated)

        ok = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(updated),
            lambda: _succeed(self._gateway.update_task(task_id, {"status": status})),
            "update_status",
        )
        return ok is True

    async def _complete_calls(self, task: Task, status: str) -> BaseException | None:
        """并发发起复制与状态更新；状态更新失败则抛出，复制失败作为结果返回"""
        copy_result, status_result = await asyncio.gather(
            self._gateway.copy_task_to_completed(task.task_id, task),
            self._gateway.update_task(task.task_id, {"status": status}),
            return_exceptions=True,
        )
        if isinstance(status_result, BaseException):
            raise status_result
        if isinstance(copy_result, BaseException):
            return copy_result
        return None

    async def _complete(self, task: Task, updated: Task) -> bool:
        outcome = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(updated),
            lambda: _succeed_with(self._complete_calls(task, updated.status)),
            "complete_task",
        )
        if outcome is None:
            return False

        copy_error = outcome[1]
        if copy_error is not None:
            self._set_error("complete_task")
            log.warning("completed_copy_failed", task_id=task.task_id, error=str(copy_error))
            return False

        record = to_completed_record(task, self._clock())
        self.state.completed_tasks = [
            record,
            *(t for t in self.state.completed_tasks if t.task_id != record.task_id),
        ]
        log.info("task_completed", task_id=task.task_id)
        return True

    async def soft_delete_task(self, task_id: str) -> bool:
        """移动到已删除集合，并卸载该任务的计时器"""
        try:
            task = self._require_task(task_id)
        except BoardValidationError as e:
            self._reject(e)
            return False

        record = to_deleted_record(task, self._clock())

        def apply() -> None:
            self.state.tasks = [t for t in self.state.tasks if t.task_id != task_id]
            self.state.deleted_tasks = [record, *self.state.deleted_tasks]

        ok = await self.with_optimistic_update(
            [Collection.TASKS, Collection.DELETED],
            apply,
            lambda: _succeed(self._gateway.move_task_to_deleted(task_id, task)),
            "delete_task",
        )
        if ok is not True:
            return False
        await self.timers.teardown(task_id, persist=False)
        return True

    async def _restore_from(
        self,
        holding: Collection,
        record: Task,
        status: str | None,
        restore_call: Callable[[str], Awaitable[str]],
        action: str,
    ) -> str | None:
        placeholder = to_restored_task(record, self._local_id(), self._clock(), status=status)

        def apply() -> None:
            remaining = [t for t in getattr(self.state, holding) if t.task_id != record.task_id]
            setattr(self.state, holding, remaining)
            self.state.tasks = [placeholder, *self.state.tasks]

        new_id = await self.with_optimistic_update(
            [Collection.TASKS, holding],
            apply,
            lambda: restore_call(record.task_id),
            action,
        )
        if new_id is None:
            return None
        self.state.rename_task(placeholder.task_id, new_id)
        log.info("task_restored", source=str(holding), record_id=record.task_id, new_task_id=new_id)
        return new_id

    async def restore_deleted_task(self, deleted_id: str) -> str | None:
        """从已删除集合恢复为新任务（新 ID，保留原状态）"""
        record = next((t for t in self.state.deleted_tasks if t.task_id == deleted_id), None)
        if record is None:
            self._reject(self._validation("task_missing", field="deleted_id"))
            return None
        return await self._restore_from(
            Collection.DELETED,
            record,
            None,
            self._gateway.restore_deleted_task,
            "restore_deleted",
        )

    async def restore_completed_task(self, task_id: str) -> str | None:
        """恢复已完成任务

        ID 在已完成集合中：恢复为新任务（状态重置为 TODO），返回新 ID；
        仅是活跃集合中的 DONE 任务：原地把状态改回 TODO，返回原 ID。
        """
        record = next((t for t in self.state.completed_tasks if t.task_id == task_id), None)
        if record is not None:
            return await self._restore_from(
                Collection.COMPLETED,
                record,
                TaskStatus.TODO.value,
                self._gateway.restore_completed_task,
                "restore_completed",
            )

        task = self.state.find_task(task_id)
        if task is None or not is_done(task.status):
            self._reject(self._validation("task_missing", field="task_id"))
            return None

        ok = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(task.model_copy(update={"status": TaskStatus.TODO.value})),
            lambda: _succeed(self._gateway.update_task(task_id, {"status": TaskStatus.TODO.value})),
            "restore_completed",
        )
        return task_id if ok else None

    async def permanently_delete_task(self, deleted_id: str) -> bool:
        """从已删除集合永久删除"""
        ok = await self.with_optimistic_update(
            [Collection.DELETED],
            lambda: setattr(
                self.state,
                Collection.DELETED,
                [t for t in self.state.deleted_tasks if t.task_id != deleted_id],
            ),
            lambda: _succeed(self._gateway.permanently_delete_task(deleted_id)),
            "permanent_delete",
        )
        return ok is True

    async def permanently_delete_completed_task(self, completed_id: str) -> bool:
        """从已完成集合永久删除"""
        ok = await self.with_optimistic_update(
            [Collection.COMPLETED],
            lambda: setattr(
                self.state,
                Collection.COMPLETED,
                [t for t in self.state.completed_tasks if t.task_id != completed_id],
            ),
            lambda: _succeed(self._gateway.permanently_delete_completed_task(completed_id)),
            "permanent_delete",
        )
        return ok is True

    def completed_view(self) -> list[Task]:
        """已完成视图：已完成集合 + 活跃集合中的 DONE 任务，每个任务 ID 只出现一次"""
        seen = {t.task_id for t in self.state.completed_tasks}
        in_place = [t for t in self.state.tasks if is_done(t.status) and t.task_id not in seen]
        return [*self.state.completed_tasks, *in_place]

    # ------------------------------------------------------------------
    # 评论与图片
    # ------------------------------------------------------------------

    async def add_comment(self, task_id: str, text: str, author: str) -> TaskComment | None:
        """追加评论（只追加，不提供编辑/删除）"""
        try:
            task = self._require_task(task_id)
            if not text.strip():
                raise self._validation("comment_empty", field="text")
            self._check_member(author, "author")
        except BoardValidationError as e:
            self._reject(e)
            return None

        comment = TaskComment(
            comment_id=str(ULID()),
            text=text.strip(),
            author=author,
            created_at=self._clock(),
        )
        comments = [*task.comments, comment]
        ok = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(task.model_copy(update={"comments": comments})),
            lambda: _succeed(self._gateway.update_task(task_id, {"comments": comments})),
            "save_comment",
        )
        return comment if ok else None

    def _check_image_room(self, task: Task) -> None:
        if len(task.images) >= MAX_TASK_IMAGES:
            raise ImageRejectedError(self._message("image_limit", limit=MAX_TASK_IMAGES))

    async def attach_image(
        self,
        task_id: str,
        upload: ImageUpload,
        on_progress: ProgressCallback | None = None,
    ) -> str | None:
        """附加图片：先检查数量上限，再校验、编码/上传，最后乐观更新 images

        Returns:
            图片引用；被拒绝或失败时返回 None
        """
        try:
            self._check_image_room(self._require_task(task_id))
            validation = self._images.validate(upload)
            if not validation.valid:
                raise ImageRejectedError(validation.error or self._message("image_type"))
            reference = await self._images.encode(task_id, upload, on_progress)
            # 编码期间任务可能已变化，重新读取
            task = self._require_task(task_id)
            self._check_image_room(task)
        except BoardValidationError as e:
            self._reject(e)
            return None
        except Exception as e:
            self._set_error("save_image")
            log.warning("image_encode_failed", task_id=task_id, error=str(e))
            return None

        images = [*task.images, reference]
        ok = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(task.model_copy(update={"images": images})),
            lambda: _succeed(self._gateway.update_task(task_id, {"images": images})),
            "save_image",
        )
        return reference if ok else None

    async def remove_image(self, task_id: str, index: int) -> bool:
        try:
            task = self._require_task(task_id)
        except BoardValidationError as e:
            self._reject(e)
            return False
        if not 0 <= index < len(task.images):
            return False

        images = [img for i, img in enumerate(task.images) if i != index]
        ok = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(task.model_copy(update={"images": images})),
            lambda: _succeed(self._gateway.update_task(task_id, {"images": images})),
            "save_image",
        )
        return ok is True

    # ------------------------------------------------------------------
    # 项目
    # ------------------------------------------------------------------

    async def create_project(self, new_project: NewProject) -> str | None:
        """创建项目并设为当前筛选项目"""
        if new_project.order is None:
            orders = [p.order for p in self.state.projects if p.order is not None]
            new_project = new_project.model_copy(
                update={"order": (max(orders) + 1) if orders else 0}
            )
        placeholder = Project(project_id=self._local_id(), **new_project.model_dump())

        def apply() -> None:
            self.state.projects = [*self.state.projects, placeholder]

        project_id = await self.with_optimistic_update(
            [Collection.PROJECTS],
            apply,
            lambda: self._gateway.create_project(new_project),
            "create_project",
        )
        if project_id is None:
            return None
        self.state.projects = [
            p.model_copy(update={"project_id": project_id})
            if p.project_id == placeholder.project_id
            else p
            for p in self.state.projects
        ]
        self.select_project(project_id)
        return project_id

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> bool:
        fields = strip_undefined(fields)
        project = self.state.find_project(project_id)
        try:
            if project is None:
                raise self._validation("project_missing", field="project_id")
            updated = merge_model(project, fields)
        except BoardValidationError as e:
            self._reject(e)
            return False
        except PomoboardError as e:
            self._reject(BoardValidationError(str(e)))
            return False

        ok = await self.with_optimistic_update(
            [Collection.PROJECTS],
            lambda: setattr(
                self.state,
                Collection.PROJECTS,
                [updated if p.project_id == project_id else p for p in self.state.projects],
            ),
            lambda: _succeed(self._gateway.update_project(project_id, fields)),
            "update_project",
        )
        return ok is True

    async def delete_project(self, project_id: str) -> bool:
        """删除项目；本地同时移除其活跃任务（持久层不级联）"""
        dropped = [t.task_id for t in self.state.tasks if t.project_id == project_id]

        def apply() -> None:
            self.state.projects = [p for p in self.state.projects if p.project_id != project_id]
            self.state.tasks = [t for t in self.state.tasks if t.project_id != project_id]

        ok = await self.with_optimistic_update(
            [Collection.PROJECTS, Collection.TASKS],
            apply,
            lambda: _succeed(self._gateway.delete_project(project_id)),
            "delete_project",
        )
        if ok is not True:
            return False
        for task_id in dropped:
            await self.timers.teardown(task_id)
        if self.state.filters.project_id == project_id:
            self.select_project(None)
        return True

    async def reorder_projects(self, projects: list[Project]) -> bool:
        """按给定顺序重排项目

        顺序值依次赋为 0..n-1，各项目并发独立持久化；
        任一失败时丢弃本地重排并重新加载项目列表。
        """
        reordered = [p.model_copy(update={"order": float(i)}) for i, p in enumerate(projects)]
        snapshot = self.state.snapshot([Collection.PROJECTS])
        self.state.projects = reordered

        results = await asyncio.gather(
            *(self._gateway.update_project_order(p.project_id, p.order) for p in reordered),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if not failures:
            self.state.error = None
            return True

        self._set_error("reorder_projects")
        log.warning("project_reorder_failed", failed=len(failures), error=str(failures[0]))
        try:
            self.state.projects = await self._gateway.load_projects()
        except Exception as e:
            log.error("project_reload_failed", error=str(e))
            self.state.restore(snapshot)
        return False

    # ------------------------------------------------------------------
    # 看板列
    # ------------------------------------------------------------------

    async def create_column(self, new_column: NewColumn) -> str | None:
        if new_column.status in {c.status for c in self.state.columns}:
            self._reject(self._validation("status_duplicate", field="status"))
            return None
        placeholder = BoardColumn(
            column_id=self._local_id(),
            created_at=self._clock(),
            **new_column.model_dump(),
        )

        def apply() -> None:
            self.state.columns = [*self.state.columns, placeholder]

        column_id = await self.with_optimistic_update(
            [Collection.COLUMNS],
            apply,
            lambda: self._gateway.create_column(new_column),
            "create_column",
        )
        if column_id is None:
            return None
        self.state.columns = [
            c.model_copy(update={"column_id": column_id})
            if c.column_id == placeholder.column_id
            else c
            for c in self.state.columns
        ]
        return column_id

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> bool:
        fields = strip_undefined(fields)
        column = self.state.find_column(column_id)
        try:
            if column is None:
                raise self._validation("column_missing", field="column_id")
            updated = merge_model(column, fields)
        except BoardValidationError as e:
            self._reject(e)
            return False
        except PomoboardError as e:
            self._reject(BoardValidationError(str(e)))
            return False

        ok = await self.with_optimistic_update(
            [Collection.COLUMNS],
            lambda: setattr(
                self.state,
                Collection.COLUMNS,
                [updated if c.column_id == column_id else c for c in self.state.columns],
            ),
            lambda: _succeed(self._gateway.update_column(column_id, fields)),
            "update_column",
        )
        return ok is True

    async def _reassign_and_delete(self, column: BoardColumn, task_ids: list[str]) -> bool:
        results = await asyncio.gather(
            *(
                self._gateway.update_task(task_id, {"status": TaskStatus.TODO.value})
                for task_id in task_ids
            ),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        await self._gateway.delete_column(column.column_id)
        return True

    async def delete_column(self, column_id: str) -> bool:
        """删除非默认列：先把该列任务改回 TODO（独立调用），全部成功后再删除列

        任一调用失败：任务与列整体回滚，列保留。
        """
        column = self.state.find_column(column_id)
        try:
            if column is None:
                raise self._validation("column_missing", field="column_id")
            if column.is_default:
                raise DefaultColumnError(column_id)
        except DefaultColumnError as e:
            self._reject(BoardValidationError(self._message("column_default"), field=e.field))
            return False
        except BoardValidationError as e:
            self._reject(e)
            return False

        task_ids = [t.task_id for t in self.state.tasks if t.status == column.status]

        def apply() -> None:
            self.state.tasks = [
                t.model_copy(update={"status": TaskStatus.TODO.value}) if t.task_id in task_ids else t
                for t in self.state.tasks
            ]
            self.state.columns = [c for c in self.state.columns if c.column_id != column_id]

        ok = await self.with_optimistic_update(
            [Collection.TASKS, Collection.COLUMNS],
            apply,
            lambda: self._reassign_and_delete(column, task_ids),
            "delete_column",
        )
        return ok is True

    # ------------------------------------------------------------------
    # 番茄钟
    # ------------------------------------------------------------------

    async def timer(self, task_id: str) -> PomodoroTimer | None:
        """挂载（或获取）任务计时器"""
        task = self.state.find_task(task_id)
        if task is None:
            return None
        return await self.timers.attach(task)

    async def _on_session_complete(self, task_id: str, session: PomodoroSession) -> None:
        await self.record_pomodoro_session(task_id, session)

    async def record_pomodoro_session(self, task_id: str, session: PomodoroSession) -> bool:
        """追加会话记录（回滚契约）"""
        task = self.state.find_task(task_id)
        if task is None:
            log.warning("pomodoro_session_orphaned", task_id=task_id)
            return False

        ok = await self.with_optimistic_update(
            [Collection.TASKS],
            lambda: self.state.replace_task(apply_pomodoro_session(task, session)),
            lambda: _succeed(self._gateway.update_task_pomodoro(task_id, session)),
            "save_pomodoro",
        )
        return ok is True

    async def sync_pomodoro_state(
        self,
        task_id: str,
        status: PomodoroStatus,
        current_time: int,
        phase: SessionType = SessionType.WORK,
    ) -> None:
        """同步计时器快照：本地立即更新；持久化失败只记录日志"""
        task = self.state.find_task(task_id)
        if task is not None:
            self.state.replace_task(
                task.model_copy(
                    update={
                        "pomodoro_status": status,
                        "current_pomodoro_time": current_time,
                        "pomodoro_phase": phase,
                    }
                )
            )
        try:
            await self._gateway.update_task_pomodoro_state(task_id, status, current_time, phase)
        except Exception as e:
            log.warning(
                "pomodoro_state_sync_failed",
                task_id=task_id,
                status=status,
                error=str(e),
            )

    async def close(self) -> None:
        """卸载全部计时器"""
        await self.timers.close_all()

    # ------------------------------------------------------------------
    # 筛选
    # ------------------------------------------------------------------

    def select_project(self, project_id: str | None) -> None:
        self.state.filters = self.state.filters.model_copy(update={"project_id": project_id})

    def select_assignee(self, assignee: str | None) -> None:
        """选择负责人（同时关闭“仅已完成”）"""
        self.state.filters = board_filters.select_assignee(self.state.filters, assignee)

    def set_filters(self, filters: BoardFilters) -> None:
        self.state.filters = filters

    def visible_tasks(self, now: datetime) -> FilterResult:
        return board_filters.apply_filters(self.state.tasks, self.state.filters, now)

    def counts(self, now: datetime) -> BoardCounts:
        return board_filters.derive_counts(self.visible_tasks(now), self.state.columns, now)

