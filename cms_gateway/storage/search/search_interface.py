from typing import Any, Dict, List, Protocol

from cms_gateway.schemas.post import PostOut


class ISearchEngine(Protocol):
    """
    全文检索引擎接口：
    - 参数形状与普通帖子查询一致，关键字放在 s 里
    - 返回有序列表，默认按相关度排序
    """

    def search(self, params: Dict[str, Any]) -> List[PostOut]:
        ...
