from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from cms_gateway.core.config import (
    DATABASE_URL,
    SQL_ECHO,
    UPLOAD_DIR,
    UPLOAD_BASE_URL,
    ALLOWED_MIME_TYPES,
    MAX_UPLOAD_SIZE,
)
from cms_gateway.storage.post.SQLAlchemyPostRepository import SQLAlchemyPostRepository
from cms_gateway.storage.field.SQLAlchemyFieldRepository import SQLAlchemyFieldRepository
from cms_gateway.storage.search.SQLAlchemySearchEngine import SQLAlchemySearchEngine
from cms_gateway.storage.media.LocalMediaUploadHandler import LocalMediaUploadHandler

# SQLAlchemy 引擎
engine = create_engine(DATABASE_URL, echo=SQL_ECHO, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# 未来可以根据配置切换不同的实现
def get_post_repo(db: Session = Depends(get_db)) -> SQLAlchemyPostRepository:
    return SQLAlchemyPostRepository(db)
def get_field_repo(db: Session = Depends(get_db)) -> SQLAlchemyFieldRepository:
    return SQLAlchemyFieldRepository(db)
def get_search_engine(db: Session = Depends(get_db)) -> SQLAlchemySearchEngine:
    return SQLAlchemySearchEngine(db)
def get_upload_handler(post_repo: SQLAlchemyPostRepository = Depends(get_post_repo)) -> LocalMediaUploadHandler:
    return LocalMediaUploadHandler(
        post_repo=post_repo,
        upload_dir=UPLOAD_DIR,
        base_url=UPLOAD_BASE_URL,
        allowed_mime_types=ALLOWED_MIME_TYPES,
        max_size=MAX_UPLOAD_SIZE,
    )
