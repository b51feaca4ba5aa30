"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、图片目录、界面语言、团队成员名单、图片限制等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("POMOBOARD_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "POMOBOARD_DB_PATH",
        str(_get_base_dir() / "sqlite" / "pomoboard.db"),
    )


def get_images_dir() -> Path:
    """获取图片 blob 存储目录"""
    return Path(
        os.environ.get(
            "POMOBOARD_IMAGES_DIR",
            str(_get_base_dir() / "images"),
        )
    )


def get_locale() -> str:
    """获取用户可见错误信息的语言（默认西班牙语）"""
    return os.environ.get("POMOBOARD_LOCALE", "es")


def get_team_roster() -> list[str]:
    """获取团队成员名单

    POMOBOARD_TEAM 为逗号分隔的名字列表；未设置时使用默认名单。
    """
    raw = os.environ.get("POMOBOARD_TEAM", "")
    names = [name.strip() for name in raw.split(",") if name.strip()]
    if names:
        return names
    from .models.team import TEAM_MEMBERS

    return [member.name for member in TEAM_MEMBERS]


# 每个任务最多附加的图片数量
MAX_TASK_IMAGES: int = 5

# 原始图片大小上限（压缩前，字节）
IMAGE_MAX_ORIGINAL_BYTES: int = int(
    os.environ.get("POMOBOARD_IMAGE_MAX_ORIGINAL_BYTES", str(5 * 1024 * 1024))
)

# 压缩后内嵌图片大小上限（字节）
IMAGE_MAX_ENCODED_BYTES: int = int(
    os.environ.get("POMOBOARD_IMAGE_MAX_ENCODED_BYTES", str(1024 * 1024))
)

# 内嵌图片压缩参数
IMAGE_MAX_WIDTH: int = 800
IMAGE_MAX_HEIGHT: int = 600
IMAGE_JPEG_QUALITY: int = 70

# 本地占位 ID 前缀（乐观创建时使用，持久层返回真实 ID 后替换）
LOCAL_ID_PREFIX: str = "local-"
