from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, Index
from sqlalchemy.orm import relationship

from cms_gateway.models.base import Base, now_cn


# 帖子状态（字符串取值，与内容平台保持一致）
class PostStatus:
    PUBLISH = "publish"   # 已发布
    DRAFT = "draft"       # 草稿
    PENDING = "pending"   # 待审
    PRIVATE = "private"   # 私有
    INHERIT = "inherit"   # 附件：继承父帖子的状态
    TRASH = "trash"       # 回收站（软删除）


# 帖子类型
ATTACHMENT_TYPE = "attachment"


class Post(Base):
    """ 帖子表，附件也是一种帖子（post_type = attachment，post_parent 指向所属帖子）。

        CREATE TABLE IF NOT EXISTS posts (
            id INT AUTO_INCREMENT PRIMARY KEY,            -- 主键（自增，由存储分配）
            title VARCHAR(255) DEFAULT '',                -- 标题
            content TEXT,                                 -- 正文
            excerpt TEXT,                                 -- 摘要
            status VARCHAR(20) DEFAULT 'draft',           -- 状态（publish/draft/pending/private/inherit/trash）
            post_type VARCHAR(20) DEFAULT 'post',         -- 类型（post/page/attachment/...）
            post_parent INT DEFAULT 0,                    -- 父帖子 ID，0 表示无
            mime_type VARCHAR(100) DEFAULT '',            -- 附件 MIME 类型
            guid VARCHAR(255) DEFAULT '',                 -- 附件对外访问 URL
            attached_file VARCHAR(500) NULL,              -- 附件在磁盘上的路径
            created_at TIMESTAMP,
            modified_at TIMESTAMP
        );

        CREATE INDEX idx_posts_type_status ON posts (post_type, status);
        CREATE INDEX idx_posts_parent ON posts (post_parent);
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), default="")
    content = Column(Text, default="")
    excerpt = Column(Text, default="")
    status = Column(String(20), default=PostStatus.DRAFT)
    post_type = Column(String(20), default="post")
    post_parent = Column(Integer, default=0)
    mime_type = Column(String(100), default="")
    guid = Column(String(255), default="")
    attached_file = Column(String(500), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), default=now_cn)
    modified_at = Column(TIMESTAMP(timezone=True), default=now_cn, onupdate=now_cn)

    # 自定义字段，硬删除帖子时一起删除
    field_rows = relationship("PostField", back_populates="post", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_posts_type_status", "post_type", "status"),
        Index("idx_posts_parent", "post_parent"),
    )


# 保证 relationship("PostField") 在映射配置时可被解析
from cms_gateway.models.post_field import PostField  # noqa: E402,F401
