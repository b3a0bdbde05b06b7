"""
把透传进来的查询参数翻译成 SQLAlchemy 查询。

普通查询（SQLAlchemyPostRepository.query_posts）和全文检索
（SQLAlchemySearchEngine.search）共用这里的过滤规则，保证两边参数形状一致。
未识别的键直接忽略；来自 query string 的字符串会按需转成整数。
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from cms_gateway.models.post import Post, PostStatus, ATTACHMENT_TYPE

# 未指定数量时默认返回的条数
DEFAULT_NUMBERPOSTS = 5

ORDERBY_COLUMNS = {
    "date": Post.created_at,
    "modified": Post.modified_at,
    "title": Post.title,
    "ID": Post.id,
    "id": Post.id,
    "parent": Post.post_parent,
}


def as_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def as_id_list(value: Any) -> List[int]:
    """include / exclude 既可以是列表，也可以是逗号分隔的字符串"""
    if isinstance(value, str):
        value = value.split(",")
    ids = (as_int(v) for v in as_list(value))
    return [i for i in ids if i is not None]


def search_terms(params: Dict[str, Any]) -> List[str]:
    s = params.get("s")
    if not s:
        return []
    return str(s).split()


def build_filtered_query(db: Session, params: Dict[str, Any]) -> Query:
    """只处理过滤条件，不处理排序和分页"""
    query = db.query(Post)

    # post_type：any 表示不限类型
    types = as_list(params.get("post_type", "any"))
    if types and "any" not in types:
        query = query.filter(Post.post_type.in_(types))

    # post_status：未指定时附件默认 inherit，其它默认 publish；any 表示回收站以外的所有状态
    statuses = as_list(params.get("post_status"))
    if not statuses:
        statuses = [PostStatus.INHERIT] if types == [ATTACHMENT_TYPE] else [PostStatus.PUBLISH]
    if "any" in statuses:
        query = query.filter(Post.status != PostStatus.TRASH)
    else:
        query = query.filter(Post.status.in_(statuses))

    parent = as_int(params.get("post_parent"))
    if parent is not None:
        query = query.filter(Post.post_parent == parent)

    include = as_id_list(params.get("include") or params.get("post__in"))
    if include:
        query = query.filter(Post.id.in_(include))

    exclude = as_id_list(params.get("exclude") or params.get("post__not_in"))
    if exclude:
        query = query.filter(Post.id.notin_(exclude))

    # 关键字：每个词都要出现在标题或正文中
    for term in search_terms(params):
        pattern = f"%{term}%"
        query = query.filter(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))

    return query


def apply_ordering(query: Query, params: Dict[str, Any]) -> Query:
    """默认按创建时间倒序，相同时间按 id 同方向排序保证稳定"""
    column = ORDERBY_COLUMNS.get(str(params.get("orderby") or "date"), Post.created_at)
    ascending = str(params.get("order") or "DESC").upper() == "ASC"
    if ascending:
        return query.order_by(column.asc(), Post.id.asc())
    return query.order_by(column.desc(), Post.id.desc())


def resolve_window(params: Dict[str, Any]) -> Tuple[Optional[int], int]:
    """
    计算 (limit, offset)：
    - numberposts 优先于 posts_per_page，都没有时默认 5
    - 负数（通常是 -1）表示不限制条数，limit 返回 None
    - 没有 offset 时按 paged（从 1 开始）推算
    """
    if params.get("numberposts") is not None:
        limit = as_int(params.get("numberposts"))
    else:
        limit = as_int(params.get("posts_per_page"))
    if not limit:
        limit = DEFAULT_NUMBERPOSTS
    if limit < 0:
        limit = None

    offset = as_int(params.get("offset"))
    if offset is None:
        paged = as_int(params.get("paged"), 1)
        offset = (paged - 1) * limit if limit and paged > 1 else 0
    return limit, max(offset, 0)


def apply_window(query: Query, params: Dict[str, Any]) -> Query:
    limit, offset = resolve_window(params)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query
