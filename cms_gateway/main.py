from contextlib import asynccontextmanager

from fastapi import FastAPI

from cms_gateway.models.base import Base
from cms_gateway.models import post, post_field  # noqa: F401  注册表结构
from cms_gateway.routers import posts, uploads
from cms_gateway.storage.database import engine
from cms_gateway.core.logx import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


app = FastAPI(title="CMS Post Gateway", lifespan=lifespan)

# 注册路由
app.include_router(posts.posts_router)
app.include_router(uploads.uploads_router)

# uvicorn main:app
# uvicorn main:app --reload
@app.get("/")
def root():
    return {"message": "Welcome to CMS Post Gateway"}
