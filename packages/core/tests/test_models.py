"""Domain Models 单元测试

测试内容：
1. 枚举值与预设时长
2. Pydantic 模型校验（图片上限、会话不可变）
3. 可编辑字段集合
"""

import pytest
from pomoboard.core.models import (
    DEFAULT_COLUMNS,
    DEFAULT_PROJECTS,
    EDITABLE_TASK_FIELDS,
    TEAM_MEMBERS,
    NewTask,
    PomodoroSession,
    PomodoroStatus,
    Priority,
    SessionType,
    Task,
    TaskStatus,
    TrackingPreset,
    is_done,
    preset_duration_ms,
)
from pydantic import ValidationError


class TestEnums:
    """枚举测试"""

    def test_task_status_values(self):
        """默认列状态标识"""
        assert TaskStatus.TODO == "TODO"
        assert TaskStatus.IN_PROGRESS == "IN_PROGRESS"
        assert TaskStatus.DONE == "DONE"

    def test_is_done_accepts_plain_string(self):
        """状态是开放字符串，DONE 判断直接比较标识"""
        assert is_done("DONE")
        assert not is_done("REVIEW")
        assert not is_done(TaskStatus.TODO)

    def test_pomodoro_status_values(self):
        assert PomodoroStatus.IDLE == "idle"
        assert PomodoroStatus.BREAK == "break"

    def test_preset_duration(self):
        """计时预设换算为毫秒"""
        assert preset_duration_ms(TrackingPreset.POMODORO_25) == 1_500_000
        assert preset_duration_ms("DEEP_50") == 3_000_000
        assert preset_duration_ms(TrackingPreset.STRATEGIC_90) == 5_400_000
        assert preset_duration_ms(None) is None


class TestTaskModel:
    """Task 模型测试"""

    def test_defaults(self, new_task):
        """新建任务默认值"""
        assert new_task.status == "TODO"
        assert new_task.priority == Priority.MEDIUM
        assert new_task.images == []

    def test_custom_status_allowed(self):
        """status 不限于默认三列"""
        task = NewTask(title="t", assignee="Jose", creator="Jose", status="REVIEW")
        assert task.status == "REVIEW"

    def test_image_limit(self):
        """最多 5 张图片"""
        with pytest.raises(ValidationError):
            NewTask(
                title="t",
                assignee="Jose",
                creator="Jose",
                images=[f"data:image/jpeg;base64,{i}" for i in range(6)],
            )

    def test_task_defaults(self, sample_task):
        """持久化任务的番茄钟子状态默认值"""
        assert sample_task.total_pomodoros == 0
        assert sample_task.pomodoro_sessions == []
        assert sample_task.pomodoro_status == PomodoroStatus.IDLE
        assert sample_task.current_pomodoro_time is None

    def test_to_new_task_drops_history(self, sample_task):
        """to_new_task 只保留可编辑字段"""
        new = sample_task.to_new_task()
        assert isinstance(new, NewTask)
        assert not isinstance(new, Task)
        assert new.title == sample_task.title
        assert "task_id" not in new.model_dump()

    def test_json_roundtrip(self, sample_task):
        """JSON 序列化后能还原"""
        restored = Task.model_validate_json(sample_task.model_dump_json())
        assert restored == sample_task


class TestPomodoroSession:
    """会话记录测试"""

    def test_frozen(self):
        """会话创建后不可变"""
        session = PomodoroSession(
            session_id="s1",
            task_id="t1",
            start_time=0,
            end_time=1000,
            duration=1000,
            date="1970-01-01",
        )
        assert session.completed is True
        assert session.type == SessionType.WORK
        with pytest.raises(ValidationError):
            session.duration = 5

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            PomodoroSession(
                session_id="s1",
                task_id="t1",
                start_time=0,
                end_time=0,
                duration=-1,
                date="1970-01-01",
            )


class TestDefaults:
    """默认数据测试"""

    def test_default_columns_are_protected(self):
        assert [c.status for c in DEFAULT_COLUMNS] == ["TODO", "IN_PROGRESS", "DONE"]
        assert all(c.is_default for c in DEFAULT_COLUMNS)

    def test_default_projects_ordered(self):
        assert [p.order for p in DEFAULT_PROJECTS] == [0, 1, 2]

    def test_team_roster(self):
        assert [m.name for m in TEAM_MEMBERS] == [
            "Dairo",
            "Stiven",
            "Mariana",
            "Jose",
            "Anderson",
            "Edgardo",
        ]

    def test_editable_fields(self):
        """历史字段不可通过 update_task 修改"""
        assert "title" in EDITABLE_TASK_FIELDS
        assert "comments" in EDITABLE_TASK_FIELDS
        assert "pomodoro_status" in EDITABLE_TASK_FIELDS
        assert "pomodoro_sessions" not in EDITABLE_TASK_FIELDS
        assert "total_pomodoros" not in EDITABLE_TASK_FIELDS
        assert "task_id" not in EDITABLE_TASK_FIELDS
