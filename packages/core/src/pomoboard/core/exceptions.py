"""PomoBoard 异常体系

- GatewayError: 持久层调用失败（触发协调器回滚）
- BoardValidationError: 调用持久层之前的校验失败（阻止操作）
"""


class PomoboardError(Exception):
    """基础异常"""


class GatewayError(PomoboardError):
    """持久层调用失败"""

    def __init__(self, message: str, operation: str = "") -> None:
        """
        Args:
            message: 错误描述
            operation: 失败的网关操作名
        """
        super().__init__(message)
        self.operation = operation


class EntityNotFoundError(GatewayError):
    """目标实体不存在"""

    def __init__(self, collection: str, entity_id: str) -> None:
        super().__init__(
            f"{collection} 中不存在 ID 为 {entity_id} 的记录",
            operation=collection,
        )
        self.collection = collection
        self.entity_id = entity_id


class InvalidPayloadError(GatewayError):
    """载荷包含未定义（None）字段或未知字段"""

    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"载荷包含无效字段: {', '.join(sorted(fields))}")
        self.fields = fields


class BoardValidationError(PomoboardError):
    """校验失败 -- 在任何持久层调用之前抛出"""

    def __init__(self, message: str, field: str = "") -> None:
        super().__init__(message)
        self.field = field


class ImageRejectedError(BoardValidationError):
    """图片被拒绝（类型、大小或数量上限）"""

    def __init__(self, message: str) -> None:
        super().__init__(message, field="images")


class DefaultColumnError(BoardValidationError):
    """默认列不可删除"""

    def __init__(self, column_id: str) -> None:
        super().__init__(f"默认列不可删除: {column_id}", field="column_id")
        self.column_id = column_id
