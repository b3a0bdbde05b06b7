from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import declarative_base

Base = declarative_base()

# 东八区时区，created_at / modified_at 统一使用
CN_TZ = timezone(timedelta(hours=8))


def now_cn() -> datetime:
    """返回东八区的当前时间"""
    return datetime.now(CN_TZ)
