import logging
import sys

from cms_gateway.core.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"


def _build_logger(name: str = "cms_gateway") -> logging.Logger:
    """
    全局 logger：
    - 只挂一个 stdout handler，重复 import 不会重复添加
    - 级别由 CMS_LOG_LEVEL 控制
    """
    _logger = logging.getLogger(name)
    if not _logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _logger.addHandler(handler)
    _logger.setLevel(LOG_LEVEL.upper())
    return _logger


logger = _build_logger()
