"""图片子系统 -- 两种可互换策略

- EmbeddedImageEncoder: 本地缩放压缩为 JPEG，返回 data URI（压缩后仍超过上限则拒绝）
- BlobImageUploader: 写入 blob 目录，带进度回调，返回 file:// 引用

两者都满足 ImageStrategy 协议（validate + encode）。
"""

import asyncio
import base64
import hashlib
import io
import secrets
from collections.abc import Callable
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote

import structlog
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

from pomoboard.core.config import (
    IMAGE_JPEG_QUALITY,
    IMAGE_MAX_ENCODED_BYTES,
    IMAGE_MAX_HEIGHT,
    IMAGE_MAX_ORIGINAL_BYTES,
    IMAGE_MAX_WIDTH,
    get_images_dir,
)
from pomoboard.core.exceptions import ImageRejectedError
from pomoboard.core.timeutil import now_ms

from .messages import message_for

log = structlog.get_logger()

ProgressCallback = Callable[[float], None]


class ImageUpload(BaseModel):
    """待处理的图片文件"""

    filename: str = Field(description="原始文件名")
    content_type: str = Field(description="MIME 类型")
    data: bytes = Field(description="原始字节")

    @property
    def size(self) -> int:
        return len(self.data)


class ImageValidation(BaseModel):
    """校验结果"""

    valid: bool
    error: str | None = None


def validate_image(upload: ImageUpload, locale: str | None = None) -> ImageValidation:
    """校验图片类型与原始大小（5MB 以内）"""
    if not upload.content_type.startswith("image/"):
        return ImageValidation(valid=False, error=message_for("image_type", locale))
    if upload.size > IMAGE_MAX_ORIGINAL_BYTES:
        return ImageValidation(valid=False, error=message_for("image_size", locale))
    return ImageValidation(valid=True)


class ImageStrategy(Protocol):
    """图片处理策略接口"""

    def validate(self, upload: ImageUpload) -> ImageValidation:
        ...

    async def encode(
        self,
        task_id: str,
        upload: ImageUpload,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """处理图片并返回可存入 Task.images 的引用"""
        ...


class EmbeddedImageEncoder:
    """缩放压缩为内嵌 data URI"""

    def __init__(
        self,
        max_width: int = IMAGE_MAX_WIDTH,
        max_height: int = IMAGE_MAX_HEIGHT,
        quality: int = IMAGE_JPEG_QUALITY,
        max_encoded_bytes: int = IMAGE_MAX_ENCODED_BYTES,
        locale: str | None = None,
    ) -> None:
        self._max_size = (max_width, max_height)
        self._quality = quality
        self._max_encoded_bytes = max_encoded_bytes
        self._locale = locale

    def validate(self, upload: ImageUpload) -> ImageValidation:
        return validate_image(upload, self._locale)

    def _compress(self, data: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.thumbnail(self._max_size)
                if img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")
                buffer = io.BytesIO()
                img.save(buffer, format="JPEG", quality=self._quality)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageRejectedError(message_for("image_unreadable", self._locale)) from e
        return buffer.getvalue()

    async def encode(
        self,
        task_id: str,
        upload: ImageUpload,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """压缩图片并返回 data:image/jpeg;base64,... 引用

        Raises:
            ImageRejectedError: 无法解码，或压缩后仍超过上限
        """
        compressed = await asyncio.to_thread(self._compress, upload.data)
        log.info(
            "image_compressed",
            task_id=task_id,
            filename=upload.filename,
            original_bytes=upload.size,
            compressed_bytes=len(compressed),
        )
        if len(compressed) > self._max_encoded_bytes:
            raise ImageRejectedError(message_for("image_compressed_size", self._locale))
        if on_progress is not None:
            on_progress(100.0)
        return "data:image/jpeg;base64," + base64.b64encode(compressed).decode("ascii")


class BlobImageUploader:
    """写入本地 blob 目录（images_dir/tasks/<task_id>/）"""

    def __init__(
        self,
        images_dir: str | Path | None = None,
        chunk_size: int = 64 * 1024,
        locale: str | None = None,
    ) -> None:
        self._images_dir = Path(images_dir) if images_dir is not None else get_images_dir()
        self._chunk_size = chunk_size
        self._locale = locale

    def validate(self, upload: ImageUpload) -> ImageValidation:
        return validate_image(upload, self._locale)

    def _blob_path(self, task_id: str, filename: str) -> Path:
        safe_name = Path(filename).name.replace(" ", "_") or "image"
        blob_name = f"{now_ms()}_{secrets.token_hex(4)}_{safe_name}"
        return self._images_dir / "tasks" / task_id / blob_name

    async def encode(
        self,
        task_id: str,
        upload: ImageUpload,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """分块写入文件并返回 file:// 引用"""
        path = self._blob_path(task_id, upload.filename)
        path.parent.mkdir(parents=True, exist_ok=True)

        total = max(upload.size, 1)
        digest = hashlib.sha256()
        written = 0
        with path.open("wb") as fh:
            for offset in range(0, upload.size, self._chunk_size):
                chunk = upload.data[offset : offset + self._chunk_size]
                fh.write(chunk)
                digest.update(chunk)
                written += len(chunk)
                if on_progress is not None:
                    on_progress(written / total * 100)
        if on_progress is not None and upload.size == 0:
            on_progress(100.0)

        log.info(
            "image_uploaded",
            task_id=task_id,
            path=str(path),
            size=written,
            sha256=digest.hexdigest(),
        )
        return path.resolve().as_uri()

    async def delete(self, task_id: str, reference: str) -> bool:
        """删除 blob 文件；引用不属于该任务目录时返回 False"""
        task_dir = (self._images_dir / "tasks" / task_id).resolve()
        if not reference.startswith("file://"):
            return False
        name = unquote(reference.rsplit("/", 1)[-1])
        path = task_dir / name
        if not path.exists():
            return False
        path.unlink()
        log.info("image_deleted", task_id=task_id, path=str(path))
        return True
