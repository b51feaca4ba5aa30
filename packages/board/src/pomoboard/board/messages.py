"""用户可见错误信息 -- 按动作键索引的多语言目录

默认语言为西班牙语（es），另提供英语（en）。
未知语言回退到 es，未知动作键回退到通用信息。
"""

from pomoboard.core.config import get_locale

DEFAULT_LOCALE = "es"

_CATALOGS: dict[str, dict[str, str]] = {
    "es": {
        "load": "Error al cargar los datos del tablero.",
        "load_completed": "Error al cargar tareas completadas.",
        "load_deleted": "Error al cargar tareas eliminadas.",
        "create_task": "Error al crear la tarea: {detail}",
        "duplicate_task": "Error al duplicar la tarea.",
        "update_task": "Error al actualizar la tarea.",
        "update_status": "Error al actualizar el estado de la tarea.",
        "complete_task": "Error al completar la tarea.",
        "delete_task": "Error al eliminar la tarea.",
        "restore_completed": "Error al restaurar la tarea.",
        "restore_deleted": "Error al restaurar la tarea eliminada.",
        "permanent_delete": "Error al eliminar permanentemente la tarea.",
        "save_comment": "Error al guardar el comentario.",
        "save_image": "Error al guardar la imagen.",
        "save_pomodoro": "Error al guardar sesión de pomodoro.",
        "create_project": "Error al crear el proyecto.",
        "update_project": "Error al actualizar el proyecto.",
        "delete_project": "Error al eliminar el proyecto.",
        "reorder_projects": "Error al reordenar proyectos.",
        "create_column": "Error al crear la columna.",
        "update_column": "Error al actualizar la columna.",
        "delete_column": "Error al eliminar la columna.",
        # 校验错误
        "project_required": "Selecciona un proyecto antes de crear la tarea.",
        "project_missing": "El proyecto seleccionado no existe.",
        "status_missing": "La columna seleccionada no existe.",
        "member_missing": "{name} no pertenece al equipo.",
        "task_missing": "La tarea no existe.",
        "column_missing": "La columna no existe.",
        "column_default": "Las columnas por defecto no se pueden eliminar.",
        "status_duplicate": "Ya existe una columna con ese estado.",
        "comment_empty": "El comentario no puede estar vacío.",
        "copy_suffix": " (Copia)",
        "image_limit": "Máximo {limit} imágenes por tarea.",
        "image_type": "Solo se permiten archivos de imagen",
        "image_size": "La imagen no debe superar 5MB",
        "image_compressed_size": (
            "Imagen muy grande incluso después de comprimir. "
            "Intenta con una imagen más pequeña."
        ),
        "image_unreadable": "Error al cargar la imagen",
        "unknown": "Ocurrió un error inesperado.",
    },
    "en": {
        "load": "Failed to load board data.",
        "load_completed": "Failed to load completed tasks.",
        "load_deleted": "Failed to load deleted tasks.",
        "create_task": "Failed to create the task: {detail}",
        "duplicate_task": "Failed to duplicate the task.",
        "update_task": "Failed to update the task.",
        "update_status": "Failed to update the task status.",
        "complete_task": "Failed to complete the task.",
        "delete_task": "Failed to delete the task.",
        "restore_completed": "Failed to restore the task.",
        "restore_deleted": "Failed to restore the deleted task.",
        "permanent_delete": "Failed to permanently delete the task.",
        "save_comment": "Failed to save the comment.",
        "save_image": "Failed to save the image.",
        "save_pomodoro": "Failed to save the pomodoro session.",
        "create_project": "Failed to create the project.",
        "update_project": "Failed to update the project.",
        "delete_project": "Failed to delete the project.",
        "reorder_projects": "Failed to reorder projects.",
        "create_column": "Failed to create the column.",
        "update_column": "Failed to update the column.",
        "delete_column": "Failed to delete the column.",
        "project_required": "Select a project before creating the task.",
        "project_missing": "The selected project does not exist.",
        "status_missing": "The selected column does not exist.",
        "member_missing": "{name} is not a team member.",
        "task_missing": "The task does not exist.",
        "column_missing": "The column does not exist.",
        "column_default": "Default columns cannot be deleted.",
        "status_duplicate": "A column with that status already exists.",
        "comment_empty": "The comment cannot be empty.",
        "copy_suffix": " (Copy)",
        "image_limit": "At most {limit} images per task.",
        "image_type": "Only image files are allowed",
        "image_size": "The image must not exceed 5MB",
        "image_compressed_size": (
            "Image is still too large after compression. Try a smaller image."
        ),
        "image_unreadable": "Could not read the image",
        "unknown": "An unexpected error occurred.",
    },
}


def available_locales() -> list[str]:
    return sorted(_CATALOGS)


def message_for(action: str, locale: str | None = None, **params: object) -> str:
    """获取动作对应的用户可见信息

    Args:
        action: 动作键（如 "update_status"）
        locale: 语言，None 时读取 POMOBOARD_LOCALE
        **params: 模板参数

    Returns:
        格式化后的信息
    """
    catalog = _CATALOGS.get(locale or get_locale()) or _CATALOGS[DEFAULT_LOCALE]
    template = catalog.get(action, catalog["unknown"])
    return template.format(**params) if params else template
