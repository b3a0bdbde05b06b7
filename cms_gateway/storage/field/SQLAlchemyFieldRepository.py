import json
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cms_gateway.models.post import Post
from cms_gateway.models.post_field import PostField
from cms_gateway.storage.field.field_interface import IFieldRepository
from cms_gateway.core.db import transaction

from cms_gateway.core.logx import logger


class SQLAlchemyFieldRepository(IFieldRepository):
    """
    使用 SQLAlchemy 实现的自定义字段存储（post_fields 表）
    """

    def __init__(self, db: Session):
        self.db = db

    def get_fields(self, post_id: int) -> Dict[str, Any]:
        rows = (
            self.db.query(PostField)
            .filter(PostField.post_id == post_id)
            .order_by(PostField.id.asc())
            .all()
        )
        return {row.field_key: row.value for row in rows}

    def update_field(self, field_key: str, value: Any, post_id: int) -> bool:
        """
        写入单个字段：
        - 帖子不存在 -> False
        - 值无法序列化为 JSON -> False
        - 字段已存在则覆盖，否则新建
        """
        if not self.db.get(Post, post_id):
            return False

        try:
            json.dumps(value)
        except (TypeError, ValueError):
            logger.warning(f"Field '{field_key}' on post {post_id} is not JSON serializable")
            return False

        row = (
            self.db.query(PostField)
            .filter(PostField.post_id == post_id, PostField.field_key == field_key)
            .first()
        )
        try:
            with transaction(self.db):
                if row:
                    row.value = value
                else:
                    self.db.add(PostField(post_id=post_id, field_key=field_key, value=value))
        except SQLAlchemyError as e:
            logger.error(f"Update field '{field_key}' on post {post_id} failed: {e}")
            return False
        return True
