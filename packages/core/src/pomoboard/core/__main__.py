"""CLI 入口模块 -- python -m pomoboard.core <command>

支持的命令：
  init-db  创建数据库表并写入默认看板列与项目
  stats    统计活跃/已完成/已删除任务与项目、看板列数量
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m pomoboard.core <command>")
        print("命令:")
        print("  init-db  创建数据库表并写入默认数据")
        print("  stats    统计各集合记录数")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "stats":
        asyncio.run(print_stats())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, stats")
        sys.exit(1)


async def init_database() -> None:
    """执行建表与默认数据写入"""
    from .store import create_sqlite_gateway, seed_defaults

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    gateway, conn = await create_sqlite_gateway(db_path)
    try:
        columns, projects = await seed_defaults(gateway)
        print(f"初始化完成，新建 {columns} 个看板列、{projects} 个项目")
    finally:
        await conn.close()


async def print_stats() -> None:
    """输出各集合记录数"""
    from .store import create_sqlite_gateway

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    gateway, conn = await create_sqlite_gateway(db_path)
    try:
        tasks = await gateway.load_tasks()
        completed = await gateway.load_completed_tasks()
        deleted = await gateway.load_deleted_tasks()
        projects = await gateway.load_projects()
        columns = await gateway.load_columns()
        print(f"活跃任务: {len(tasks)}")
        print(f"已完成集合: {len(completed)}")
        print(f"已删除集合: {len(deleted)}")
        print(f"项目: {len(projects)}")
        print(f"看板列: {len(columns)}")
    finally:
        await conn.close()


if __name__ == "__main__":
    main()
