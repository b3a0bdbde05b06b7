from typing import Any, Dict, Protocol


class IFieldRepository(Protocol):
    """
    自定义字段存储接口（字段插件的读写 API）
    """

    def get_fields(self, post_id: int) -> Dict[str, Any]:
        """
        获取帖子的全部自定义字段：
        - 返回 字段名 -> 值
        - 没有任何字段时返回空字典
        """
        ...

    def update_field(self, field_key: str, value: Any, post_id: int) -> bool:
        """写入单个字段（不存在则新建），返回是否成功"""
        ...
