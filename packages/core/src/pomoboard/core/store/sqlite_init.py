"""SQLite 数据库初始化

PRAGMA 配置 + 五张表 DDL + 索引创建。
活跃任务、已完成集合、已删除集合三张表共用同一列结构。
使用 aiosqlite 异步操作。
"""

import aiosqlite

TASKS_TABLE = "tasks"
COMPLETED_TABLE = "completed_tasks"
DELETED_TABLE = "deleted_tasks"

# 任务表列结构（评论、会话历史、图片引用以 JSON 文本存储）
_TASK_COLUMNS_DDL = """
    task_id               TEXT PRIMARY KEY,
    created_at            INTEGER NOT NULL,
    title                 TEXT NOT NULL DEFAULT '',
    description           TEXT NOT NULL DEFAULT '',
    status                TEXT NOT NULL DEFAULT 'TODO',
    priority              TEXT NOT NULL DEFAULT 'MEDIUM',
    assignee              TEXT NOT NULL DEFAULT '',
    creator               TEXT NOT NULL DEFAULT '',
    project_id            TEXT NOT NULL DEFAULT '',
    type                  TEXT,
    tracking_preset       TEXT,
    start_date            INTEGER,
    due_date              INTEGER,
    images                TEXT NOT NULL DEFAULT '[]',
    completed_at          INTEGER,
    deleted_at            INTEGER,
    original_id           TEXT,
    comments              TEXT NOT NULL DEFAULT '[]',
    pomodoro_sessions     TEXT NOT NULL DEFAULT '[]',
    total_pomodoros       INTEGER NOT NULL DEFAULT 0,
    current_pomodoro_time INTEGER,
    pomodoro_status       TEXT NOT NULL DEFAULT 'idle',
    pomodoro_phase        TEXT NOT NULL DEFAULT 'work'
"""

_TASK_TABLES_DDL = [
    f"CREATE TABLE IF NOT EXISTS {table} ({_TASK_COLUMNS_DDL});"
    for table in (TASKS_TABLE, COMPLETED_TABLE, DELETED_TABLE)
]

_TASK_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks(assignee);",
    (
        "CREATE INDEX IF NOT EXISTS idx_completed_tasks_completed_at "
        "ON completed_tasks(completed_at DESC);"
    ),
    (
        "CREATE INDEX IF NOT EXISTS idx_deleted_tasks_deleted_at "
        "ON deleted_tasks(deleted_at DESC);"
    ),
]

# projects 表 DDL（order 是保留字，列名用 sort_order）
_PROJECTS_DDL = """
CREATE TABLE IF NOT EXISTS projects (
    project_id  TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    color       TEXT NOT NULL DEFAULT 'bg-slate-500',
    sort_order  REAL
);
"""

# columns 表 DDL
_COLUMNS_DDL = """
CREATE TABLE IF NOT EXISTS columns (
    column_id   TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    color       TEXT NOT NULL DEFAULT 'text-slate-400',
    icon        TEXT,
    sort_order  INTEGER NOT NULL DEFAULT 0,
    is_default  INTEGER NOT NULL DEFAULT 0,
    status      TEXT NOT NULL,
    created_at  INTEGER NOT NULL
);
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    for ddl in _TASK_TABLES_DDL:
        await conn.execute(ddl)
    await conn.execute(_PROJECTS_DDL)
    await conn.execute(_COLUMNS_DDL)

    # 创建索引
    for idx_sql in _TASK_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
