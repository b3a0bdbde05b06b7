from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# 查看帖子
class PostOut(BaseModel):
    """
    对外返回的帖子：
    - 原生属性对本层透明，直接从存储读出
    - fields 是字段插件里该帖子的全部自定义字段，读取时由业务层填充
      没有任何字段时为空字典，永远不会缺失
    """
    id: int
    title: Optional[str] = ""
    content: Optional[str] = ""
    excerpt: Optional[str] = ""
    status: str
    post_type: str
    post_parent: int = 0
    mime_type: Optional[str] = ""
    guid: Optional[str] = ""
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class BatchPostsOut(BaseModel):
    """
    帖子列表：
    - count: 本次返回的条数
    - items: 按存储给出的顺序排列
    """
    count: int
    items: List[PostOut]


# 插入 / 更新帖子
class PostInsert(BaseModel):
    """
    插入帖子（HTTP 请求体）：
    - post: 帖子原生属性，给出 ID 时表示更新已有帖子
    - fields: 需要写入的自定义字段
    两者都是不做校验的键值对，原样交给存储
    """
    post: Dict[str, Any] = Field(default_factory=dict)
    fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")
