# cms_gateway/storage/post/post_interface.py

from typing import Any, Dict, List, Optional, Protocol

from cms_gateway.schemas.post import PostOut


class IPostRepository(Protocol):
    """
    帖子存储接口协议（数据层抽象接口）
    业务层依赖本接口，而不是具体实现，方便后续替换为不同数据源
    """

    def query_posts(self, params: Dict[str, Any]) -> List[PostOut]:
        """
        按查询参数检索帖子：
        - 参数原样透传，存储自己决定支持哪些键
        - 返回有序列表（默认按创建时间倒序）
        - 返回的 PostOut.fields 为空，由业务层负责填充
        """
        ...

    def get_post_by_id(self, post_id: int) -> Optional[PostOut]:
        """根据 ID 获取帖子，不存在返回 None"""
        ...

    def insert_post(self, data: Dict[str, Any]) -> Optional[int]:
        """
        插入帖子（data 中带 ID 时更新已有帖子）
        - 成功返回帖子 ID
        - 失败返回 None
        """
        ...

    def delete_post(self, post_id: int, force: bool = False) -> bool:
        """
        删除帖子：
        - force=False：移入回收站（可恢复）
        - force=True：物理删除
        """
        ...

    def delete_attachment(self, attachment_id: int, force: bool = False) -> bool:
        """删除附件，硬删除时同时删除磁盘上的文件"""
        ...

    def get_attachment_url(self, attachment_id: int) -> Optional[str]:
        """附件对外访问的 URL，不是附件时返回 None"""
        ...
