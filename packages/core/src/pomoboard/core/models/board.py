"""Project / BoardColumn Domain Models"""

from pydantic import BaseModel, Field

from .enums import TaskStatus


class NewProject(BaseModel):
    """新建项目载荷"""

    name: str = Field(description="项目名称")
    color: str = Field(default="bg-slate-500", description="颜色标签")
    order: float | None = Field(default=None, description="手动排序值")


class Project(NewProject):
    """项目 -- 任务通过 project_id 弱引用"""

    project_id: str = Field(description="唯一标识，由持久层分配")


class NewColumn(BaseModel):
    """新建看板列载荷"""

    name: str = Field(description="列名")
    color: str = Field(default="text-slate-400", description="颜色标签")
    icon: str | None = Field(default=None, description="图标名")
    order: int = Field(default=0, description="排序值")
    is_default: bool = Field(default=False, description="默认列不可删除")
    status: str = Field(description="状态标识（任务 status 与之匹配）")


class BoardColumn(NewColumn):
    """看板列"""

    column_id: str = Field(description="唯一标识，由持久层分配")
    created_at: int = Field(description="创建时间（epoch 毫秒）")


DEFAULT_COLUMNS: list[NewColumn] = [
    NewColumn(
        name="Tarea",
        color="text-blue-400",
        icon="Circle",
        order=0,
        is_default=True,
        status=TaskStatus.TODO.value,
    ),
    NewColumn(
        name="En curso",
        color="text-amber-400",
        icon="Clock",
        order=1,
        is_default=True,
        status=TaskStatus.IN_PROGRESS.value,
    ),
    NewColumn(
        name="Terminada",
        color="text-emerald-400",
        icon="CheckCircle2",
        order=2,
        is_default=True,
        status=TaskStatus.DONE.value,
    ),
]

DEFAULT_PROJECTS: list[NewProject] = [
    NewProject(name="Equilibrio Clinic", color="bg-indigo-500", order=0),
    NewProject(name="E-commerce V1", color="bg-rose-500", order=1),
    NewProject(name="Interno", color="bg-slate-500", order=2),
]

# 可通过 update_project / update_column 修改的字段
EDITABLE_PROJECT_FIELDS: frozenset[str] = frozenset({"name", "color", "order"})
EDITABLE_COLUMN_FIELDS: frozenset[str] = frozenset({"name", "color", "icon", "order", "status"})
