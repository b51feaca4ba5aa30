"""Task Domain Model

任务是看板的核心实体。评论与番茄钟会话历史由任务独占且只追加；
project_id / status 是对项目与看板列的弱引用（按 ID 查找，不拥有）。
"""

from pydantic import BaseModel, ConfigDict, Field

from ..config import MAX_TASK_IMAGES
from .enums import PomodoroStatus, Priority, SessionType, TaskStatus, TaskType, TrackingPreset


class TaskComment(BaseModel):
    """任务评论（只追加，不提供编辑/删除）"""

    comment_id: str = Field(description="评论 ID")
    text: str = Field(description="评论内容")
    author: str = Field(description="作者（团队成员名）")
    created_at: int = Field(description="创建时间（epoch 毫秒）")


class PomodoroSession(BaseModel):
    """番茄钟会话记录 -- 创建后不可变"""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(description="会话 ID")
    task_id: str = Field(description="关联的 Task ID")
    start_time: int = Field(description="开始时间（epoch 毫秒）")
    end_time: int = Field(description="结束时间（epoch 毫秒）")
    duration: int = Field(ge=0, description="时长（毫秒）")
    completed: bool = Field(default=True, description="是否自然完成")
    type: SessionType = Field(default=SessionType.WORK, description="会话类型")
    date: str = Field(description="ISO 日历日期 YYYY-MM-DD")


class NewTask(BaseModel):
    """新建任务载荷 -- 不含 ID、创建时间与历史字段"""

    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    status: str = Field(default=TaskStatus.TODO.value, description="所在列的状态标识")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    assignee: str = Field(description="负责人")
    creator: str = Field(description="创建人")
    project_id: str = Field(default="", description="所属项目 ID（必填，创建时校验）")
    type: TaskType | None = Field(default=None, description="类型标签")
    tracking_preset: TrackingPreset | None = Field(default=None, description="计时预设")
    start_date: int | None = Field(default=None, description="开始日期（epoch 毫秒）")
    due_date: int | None = Field(default=None, description="截止日期（epoch 毫秒）")
    images: list[str] = Field(
        default_factory=list,
        max_length=MAX_TASK_IMAGES,
        description="图片引用（data URI 或 blob URL）",
    )


class Task(NewTask):
    """Task 数据模型

    删除是“移动”（复制到已删除集合后从活跃集合移除），
    完成是“复制”（复制到已完成集合，活跃集合中的原任务保留）。
    """

    task_id: str = Field(description="唯一标识，由持久层分配")
    created_at: int = Field(description="创建时间（epoch 毫秒）")
    completed_at: int | None = Field(default=None, description="进入已完成集合的时间")
    deleted_at: int | None = Field(default=None, description="进入已删除集合的时间")
    original_id: str | None = Field(default=None, description="来源任务 ID（仅存在于已删除/已完成集合）")
    comments: list[TaskComment] = Field(default_factory=list, description="评论（只追加）")

    # 番茄钟子状态
    pomodoro_sessions: list[PomodoroSession] = Field(
        default_factory=list,
        description="会话历史（只追加）",
    )
    total_pomodoros: int = Field(default=0, ge=0, description="完成的工作会话数（单调递增）")
    current_pomodoro_time: int | None = Field(
        default=None,
        ge=0,
        description="当前会话已计时毫秒数（count-up）",
    )
    pomodoro_status: PomodoroStatus = Field(
        default=PomodoroStatus.IDLE,
        description="番茄钟状态",
    )
    pomodoro_phase: SessionType = Field(
        default=SessionType.WORK,
        description="计时阶段（暂停时据此还原为工作或休息）",
    )

    def to_new_task(self) -> NewTask:
        """提取可编辑字段（用于复制任务 / 从历史集合恢复）"""
        return NewTask.model_validate(
            self.model_dump(include=set(NewTask.model_fields))
        )


# 可通过 update_task 修改的字段
EDITABLE_TASK_FIELDS: frozenset[str] = frozenset(NewTask.model_fields) | {
    "comments",
    "current_pomodoro_time",
    "pomodoro_status",
    "pomodoro_phase",
}
