import os
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cms_gateway.models.post import Post, PostStatus, ATTACHMENT_TYPE
from cms_gateway.schemas.post import PostOut
from cms_gateway.storage.post.post_interface import IPostRepository
from cms_gateway.storage.post.query_builder import (
    as_int,
    build_filtered_query,
    apply_ordering,
    apply_window,
)
from cms_gateway.core.db import transaction

from cms_gateway.core.logx import logger

# insert_post 认识的原生属性，其它键一律忽略
POST_COLUMNS = (
    "title",
    "content",
    "excerpt",
    "status",
    "post_type",
    "post_parent",
    "mime_type",
    "guid",
    "attached_file",
)


class SQLAlchemyPostRepository(IPostRepository):
    """
    使用 SQLAlchemy 实现的帖子存储
    业务层依赖 IPostRepository 抽象接口
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- 查询 ----------

    def query_posts(self, params: Dict[str, Any]) -> List[PostOut]:
        query = build_filtered_query(self.db, params)
        query = apply_window(apply_ordering(query, params), params)
        return [PostOut.model_validate(p) for p in query.all()]

    def get_post_by_id(self, post_id: int) -> Optional[PostOut]:
        post = self.db.get(Post, post_id)
        if not post:
            return None
        return PostOut.model_validate(post)

    def get_attachment_url(self, attachment_id: int) -> Optional[str]:
        post = self.db.get(Post, attachment_id)
        if not post or post.post_type != ATTACHMENT_TYPE:
            return None
        return post.guid

    # ---------- 插入 / 更新 ----------

    def insert_post(self, data: Dict[str, Any]) -> Optional[int]:
        """
        插入或更新帖子：
        - data 带 ID 时更新该帖子，帖子不存在视为失败
        - 新建非附件帖子时，标题、正文、摘要不能同时为空
        - 失败统一返回 None
        """
        payload = {k: data[k] for k in POST_COLUMNS if data.get(k) is not None}
        if "post_parent" in payload:
            payload["post_parent"] = as_int(payload["post_parent"], 0)

        post_id = as_int(data.get("ID", data.get("id")))
        try:
            if post_id:
                post = self.db.get(Post, post_id)
                if not post:
                    logger.warning(f"Insert post failed, post id={post_id} does not exist")
                    return None
                with transaction(self.db):
                    for key, value in payload.items():
                        setattr(post, key, value)
                return post.id

            post_type = payload.get("post_type") or "post"
            if post_type != ATTACHMENT_TYPE and not any(
                payload.get(k) for k in ("title", "content", "excerpt")
            ):
                logger.warning("Insert post failed, title, content and excerpt are empty")
                return None

            post = Post(**payload)
            with transaction(self.db):
                self.db.add(post)

            # 刷新以获取自增 id
            self.db.refresh(post)
            return post.id
        except SQLAlchemyError as e:
            logger.error(f"Insert post failed: {e}")
            return None

    # ---------- 删除 ----------

    def delete_post(self, post_id: int, force: bool = False) -> bool:
        """
        删除帖子：
        - 软删除：状态改为 trash；已经在回收站里的帖子再软删除等于硬删除
        - 硬删除：删除记录和自定义字段，子附件的 post_parent 置 0
        - 附件走 delete_attachment，保证磁盘文件一起清理
        """
        post = self.db.get(Post, post_id)
        if not post:
            return False

        if post.post_type == ATTACHMENT_TYPE:
            return self.delete_attachment(post_id, force=force)

        if not force and post.status != PostStatus.TRASH:
            with transaction(self.db):
                post.status = PostStatus.TRASH
            return True

        with transaction(self.db):
            (
                self.db.query(Post)
                .filter(Post.post_parent == post_id)
                .update({Post.post_parent: 0}, synchronize_session=False)
            )
            self.db.delete(post)
        return True

    def delete_attachment(self, attachment_id: int, force: bool = False) -> bool:
        post = self.db.get(Post, attachment_id)
        if not post or post.post_type != ATTACHMENT_TYPE:
            return False

        if not force and post.status != PostStatus.TRASH:
            with transaction(self.db):
                post.status = PostStatus.TRASH
            return True

        # 先删文件，删不掉就保留记录并返回失败
        if post.attached_file and os.path.exists(post.attached_file):
            try:
                os.remove(post.attached_file)
            except OSError as e:
                logger.warning(f"Delete attachment file failed, id={attachment_id}: {e}")
                return False

        with transaction(self.db):
            self.db.delete(post)
        return True
