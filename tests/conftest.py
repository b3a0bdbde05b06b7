import os

# 测试统一用内存 SQLite，必须在导入 cms_gateway 之前设置
os.environ.setdefault("CMS_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cms_gateway.models.base import Base
from cms_gateway.models.post import Post  # noqa: F401
from cms_gateway.models.post_field import PostField  # noqa: F401
from cms_gateway.storage.post.SQLAlchemyPostRepository import SQLAlchemyPostRepository
from cms_gateway.storage.field.SQLAlchemyFieldRepository import SQLAlchemyFieldRepository
from cms_gateway.storage.search.SQLAlchemySearchEngine import SQLAlchemySearchEngine
from cms_gateway.storage.media.LocalMediaUploadHandler import LocalMediaUploadHandler
from cms_gateway.schemas.upload import UploadedFile


# ============================================================================
# Database fixtures
# ============================================================================

@pytest.fixture
def db():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def post_repo(db):
    return SQLAlchemyPostRepository(db)


@pytest.fixture
def field_repo(db):
    return SQLAlchemyFieldRepository(db)


@pytest.fixture
def search_engine(db):
    return SQLAlchemySearchEngine(db)


# ============================================================================
# Upload fixtures
# ============================================================================

@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def upload_handler(post_repo, upload_dir):
    return LocalMediaUploadHandler(
        post_repo=post_repo,
        upload_dir=str(upload_dir),
        base_url="http://cdn.test/uploads",
        allowed_mime_types=("image/png", "image/jpeg", "text/plain"),
        max_size=1024,
    )


@pytest.fixture
def make_tmp_file(tmp_path):
    """Write a temp file and return an UploadedFile pointing at it."""
    counter = {"n": 0}

    def _make(name: str, data: bytes = b"hello", type_: str = "text/plain") -> UploadedFile:
        counter["n"] += 1
        path = tmp_path / f"php{counter['n']}.tmp"
        path.write_bytes(data)
        return UploadedFile(name=name, type=type_, tmp_name=str(path), size=len(data))

    return _make


@pytest.fixture
def parent_post(post_repo):
    """A published post to attach things to."""
    return post_repo.insert_post({"title": "Parent", "status": "publish"})
