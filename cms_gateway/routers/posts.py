from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from cms_gateway.schemas.post import PostOut, BatchPostsOut, PostInsert
from cms_gateway.core.biz_response import BizResponse
from cms_gateway.service import post_svc

from cms_gateway.storage.database import (
    get_post_repo,
    get_field_repo,
    get_search_engine,
)
from cms_gateway.storage.post.post_interface import IPostRepository
from cms_gateway.storage.field.field_interface import IFieldRepository
from cms_gateway.storage.search.search_interface import ISearchEngine

from cms_gateway.core.exceptions import PostNotFound
from cms_gateway.core.logx import logger

posts_router = APIRouter(prefix="/posts", tags=["posts"])


def query_params_of(request: Request) -> Dict[str, Any]:
    """
    query string -> 查询参数字典：
    - key[]=a&key[]=b 或重复的 key 会变成列表
    - 其它保持字符串，类型转换交给存储
    """
    params: Dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        is_list = key.endswith("[]")
        key = key[:-2] if is_list else key
        if key in params:
            if not isinstance(params[key], list):
                params[key] = [params[key]]
            params[key].append(value)
        else:
            params[key] = [value] if is_list else value
    return params


# --------------------------------- 查询帖子 ---------------------------------
@posts_router.get("/", response_model=BatchPostsOut)
def list_posts(
    request: Request,
    post_repo: IPostRepository = Depends(get_post_repo),
    field_repo: IFieldRepository = Depends(get_field_repo),
):
    """
    按 query string 查询帖子列表（默认 post_type=any）
    """
    try:
        posts = post_svc.get_posts(
            post_repo=post_repo,
            field_repo=field_repo,
            query_params=query_params_of(request),
            to_dict=True,
        )
        return BizResponse(data={"count": len(posts), "items": posts})
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


@posts_router.get("/search", response_model=BatchPostsOut)
def search_posts(
    request: Request,
    search_engine: ISearchEngine = Depends(get_search_engine),
    field_repo: IFieldRepository = Depends(get_field_repo),
):
    """
    全文检索帖子，关键字放在 s 参数里
    """
    try:
        posts = post_svc.get_posts_with_search(
            search_engine=search_engine,
            field_repo=field_repo,
            query_params=query_params_of(request),
            to_dict=True,
        )
        return BizResponse(data={"count": len(posts), "items": posts})
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


@posts_router.get("/first", response_model=PostOut)
def get_first_post(
    request: Request,
    post_repo: IPostRepository = Depends(get_post_repo),
    field_repo: IFieldRepository = Depends(get_field_repo),
):
    """
    取满足条件的第一篇帖子
    """
    try:
        post = post_svc.get_post(
            post_repo=post_repo,
            field_repo=field_repo,
            query_params=query_params_of(request),
            to_dict=True,
        )
        if not post:
            return BizResponse(data=None, msg="no post matched", status_code=404)
        return BizResponse(data=post)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


@posts_router.get("/{post_id}", response_model=PostOut)
def get_post(
    post_id: int,
    post_repo: IPostRepository = Depends(get_post_repo),
    field_repo: IFieldRepository = Depends(get_field_repo),
):
    try:
        post = post_svc.get_post_by_id(
            post_repo=post_repo,
            field_repo=field_repo,
            post_id=post_id,
            to_dict=True,
        )
        if not post:
            return BizResponse(data=None, msg=f"post {post_id} not found", status_code=404)
        return BizResponse(data=post)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


# --------------------------------- 插入 / 更新 ---------------------------------
@posts_router.post("/")
def insert_post(
    payload: PostInsert,
    post_repo: IPostRepository = Depends(get_post_repo),
    field_repo: IFieldRepository = Depends(get_field_repo),
):
    """
    插入帖子（post 中带 ID 时为更新），并写入自定义字段
    """
    try:
        post_id = post_svc.insert_post(
            post_repo=post_repo,
            field_repo=field_repo,
            post_fields=payload.post,
            custom_fields=payload.fields,
        )
        if not post_id:
            return BizResponse(data=None, msg="insert post failed", status_code=400)
        return BizResponse(data={"id": post_id})
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


@posts_router.put("/{post_id}/fields")
def update_fields(
    post_id: int,
    fields: Dict[str, Any],
    field_repo: IFieldRepository = Depends(get_field_repo),
):
    """
    批量写入自定义字段，返回写入失败的字段名
    """
    try:
        failed = post_svc.update_fields(field_repo=field_repo, post_id=post_id, fields=fields)
        return BizResponse(data={"failed": failed})
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


# --------------------------------- 删除 ---------------------------------
@posts_router.delete("/{post_id}")
def delete_post(
    post_id: int,
    soft_delete: bool = True,
    delete_attachments: bool = False,
    post_repo: IPostRepository = Depends(get_post_repo),
):
    """
    删除帖子：
    - soft_delete=true 移入回收站，false 物理删除
    - delete_attachments=true 先删除附件，附件删除失败则不删帖子
    """
    try:
        ok = post_svc.delete_post(
            post_repo=post_repo,
            post_id=post_id,
            soft_delete=soft_delete,
            delete_attachments_too=delete_attachments,
        )
        if not ok:
            return BizResponse(data=False, msg="delete post failed", status_code=500)
        return BizResponse(data=True)
    except PostNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


@posts_router.delete("/{post_id}/attachments")
def delete_attachments(
    post_id: int,
    soft_delete: bool = True,
    post_repo: IPostRepository = Depends(get_post_repo),
):
    try:
        ok = post_svc.delete_attachments(post_repo=post_repo, post_id=post_id, soft_delete=soft_delete)
        if not ok:
            return BizResponse(data=False, msg="some attachments could not be deleted", status_code=500)
        return BizResponse(data=True)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)
