from typing import Any, Dict, List, Optional

from cms_gateway.schemas.post import PostOut
from cms_gateway.models.post import ATTACHMENT_TYPE

from cms_gateway.storage.post.post_interface import IPostRepository
from cms_gateway.storage.field.field_interface import IFieldRepository
from cms_gateway.storage.search.search_interface import ISearchEngine

from cms_gateway.core.logx import logger
from cms_gateway.core.exceptions import PostNotFound

# 查询默认值，调用方给出的同名参数优先
QUERY_DEFAULTS = {
    "post_type": "any",
}


def _add_fields(field_repo: IFieldRepository, post: PostOut) -> PostOut:
    """给帖子挂上全部自定义字段，没有字段时为空字典"""
    post.fields = dict(field_repo.get_fields(post.id) or {})
    return post


def _dump(post: PostOut, to_dict: bool) -> Dict | PostOut:
    return post.model_dump() if to_dict else post


#---------------------------------------- 查 -----------------------------------------

def get_posts(post_repo: IPostRepository, field_repo: IFieldRepository, query_params: Dict[str, Any], to_dict: bool = True,) -> List[Dict] | List[PostOut]:
    """
    获取帖子列表（附带自定义字段）：
    - 默认 post_type = any
    - 排序、分页完全交给存储
    """
    posts = post_repo.query_posts({**QUERY_DEFAULTS, **query_params})
    return [_dump(_add_fields(field_repo, p), to_dict) for p in posts]


def get_posts_with_search(search_engine: ISearchEngine, field_repo: IFieldRepository, query_params: Dict[str, Any], to_dict: bool = True,) -> List[Dict] | List[PostOut]:
    """
    与 get_posts 相同，只是改由全文检索引擎执行查询
    """
    posts = search_engine.search({**QUERY_DEFAULTS, **query_params})
    return [_dump(_add_fields(field_repo, p), to_dict) for p in posts]


def get_post(post_repo: IPostRepository, field_repo: IFieldRepository, query_params: Dict[str, Any], to_dict: bool = True,) -> Optional[Dict | PostOut]:
    """
    只取一条：numberposts 强制为 1（覆盖调用方的值），找不到返回 None
    """
    posts = get_posts(post_repo, field_repo, {**query_params, "numberposts": 1}, to_dict=to_dict)
    if posts:
        return posts[0]
    return None


def get_post_by_id(post_repo: IPostRepository, field_repo: IFieldRepository, post_id: int, to_dict: bool = True,) -> Optional[Dict | PostOut]:
    post = post_repo.get_post_by_id(post_id)
    if not post:
        return None
    return _dump(_add_fields(field_repo, post), to_dict)


#------------------------------------- 增 / 改 ----------------------------------------

def update_fields(field_repo: IFieldRepository, post_id: int, fields: Dict[str, Any]) -> List[str]:
    """
    逐个写入自定义字段：
    - 按字典顺序依次写，某个字段失败不影响后面的字段，也不回滚
    - 返回写入失败的字段名列表（全部成功时为空）
    """
    failed = []
    for field_key, value in fields.items():
        if field_repo.update_field(field_key, value, post_id) is False:
            failed.append(field_key)

    if failed:
        logger.warning(f"Update fields on post {post_id} failed for keys={failed}")
    return failed


def insert_post(post_repo: IPostRepository, field_repo: IFieldRepository, post_fields: Dict[str, Any], custom_fields: Dict[str, Any]) -> Optional[int]:
    """
    插入（或带 ID 时更新）帖子，再写入自定义字段：
    - 成功返回帖子 ID
    - 插入失败返回 None
    - 字段写入失败不影响返回值
    """
    post_id = post_repo.insert_post(post_fields)
    if not post_id:
        logger.warning("Insert post failed")
        return None

    update_fields(field_repo, post_id, custom_fields)
    logger.info(f"Inserted post id={post_id} with fields={list(custom_fields)}")
    return post_id


#---------------------------------------- 删 -----------------------------------------

def delete_attachments(post_repo: IPostRepository, post_id: int, soft_delete: bool = True) -> bool:
    """
    删除帖子下的所有附件：
    - 每个附件都会尝试删除，中途失败不会停止
    - 全部成功（或没有附件）返回 True，任一失败返回 False
    """
    attachments = post_repo.query_posts({
        "post_type": ATTACHMENT_TYPE,
        "post_status": "any",
        "posts_per_page": -1,
        "post_parent": post_id,
    })

    success = True
    for attachment in attachments:
        deleted = post_repo.delete_attachment(attachment.id, force=not soft_delete)
        success = success and deleted is not False

    if success:
        logger.info(f"Deleted {len(attachments)} attachments of post id={post_id}, soft={soft_delete}")
    else:
        logger.warning(f"Delete attachments of post id={post_id} partially failed")
    return success


def delete_post(post_repo: IPostRepository, post_id: int, soft_delete: bool = True, delete_attachments_too: bool = False) -> bool:
    """
    删除帖子：
    - 帖子不存在 -> 抛 PostNotFound（与“删除失败”区分开）
    - delete_attachments_too 时先删附件，附件删除失败则直接返回 False，不删帖子
    - soft_delete=True 移入回收站，False 物理删除
    """
    if not post_repo.get_post_by_id(post_id):
        raise PostNotFound(post_id=post_id)

    if delete_attachments_too:
        if not delete_attachments(post_repo, post_id, soft_delete=soft_delete):
            logger.warning(f"Delete post id={post_id} aborted, attachments could not be deleted")
            return False

    ok = post_repo.delete_post(post_id, force=not soft_delete)
    if ok:
        logger.info(f"Deleted post id={post_id}, soft={soft_delete}")
    else:
        logger.warning(f"Delete post id={post_id} failed")
    return bool(ok)
