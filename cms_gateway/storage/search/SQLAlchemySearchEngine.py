from typing import Any, Dict, List

from sqlalchemy.orm import Session

from cms_gateway.models.post import Post
from cms_gateway.schemas.post import PostOut
from cms_gateway.storage.search.search_interface import ISearchEngine
from cms_gateway.storage.post.query_builder import (
    build_filtered_query,
    apply_ordering,
    resolve_window,
    search_terms,
)

# 标题命中的权重高于正文
TITLE_WEIGHT = 5
CONTENT_WEIGHT = 1


class SQLAlchemySearchEngine(ISearchEngine):
    """
    基于数据库的简易全文检索：
    - 过滤条件与普通查询完全一致（见 query_builder）
    - 没有显式 orderby 时按相关度排序，再截取分页窗口
    - 相关度在 Python 里计算，所以会把所有通过过滤的帖子读进内存再排序、分页；
      候选集很大时开销与命中条数成正比
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _score(post: Post, terms: List[str]) -> int:
        title = (post.title or "").lower()
        content = (post.content or "").lower()
        score = 0
        for term in terms:
            term = term.lower()
            score += title.count(term) * TITLE_WEIGHT
            score += content.count(term) * CONTENT_WEIGHT
        return score

    def search(self, params: Dict[str, Any]) -> List[PostOut]:
        terms = search_terms(params)
        # 先按默认顺序取出全部候选，相关度相同时保持该顺序
        posts = apply_ordering(build_filtered_query(self.db, params), params).all()

        if terms and not params.get("orderby"):
            posts = sorted(posts, key=lambda p: self._score(p, terms), reverse=True)

        limit, offset = resolve_window(params)
        end = offset + limit if limit is not None else None
        return [PostOut.model_validate(p) for p in posts[offset:end]]
