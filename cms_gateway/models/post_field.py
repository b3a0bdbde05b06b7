from sqlalchemy import Column, Integer, String, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from cms_gateway.models.base import Base


class PostField(Base):
    """ 帖子自定义字段表（字段插件的存储），每个帖子的每个字段一行。

        CREATE TABLE IF NOT EXISTS post_fields (
            id INT AUTO_INCREMENT PRIMARY KEY,
            post_id INT NOT NULL,                          -- 所属帖子 (FK->posts.id)
            field_key VARCHAR(255) NOT NULL,               -- 字段名
            value JSON,                                    -- 字段值（任意 JSON）

            FOREIGN KEY (post_id) REFERENCES posts(id),
            UNIQUE (post_id, field_key)
        );
    """

    __tablename__ = "post_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    field_key = Column(String(255), nullable=False)
    value = Column(JSON, nullable=True)

    post = relationship("Post", back_populates="field_rows")

    __table_args__ = (
        UniqueConstraint("post_id", "field_key", name="unique_post_field"),
    )
