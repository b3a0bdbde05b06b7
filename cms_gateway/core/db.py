from contextlib import contextmanager

from sqlalchemy.orm import Session


@contextmanager
def transaction(db: Session):
    """
    简单的事务封装：
    - 代码块正常结束 -> commit
    - 代码块抛异常 -> rollback 后继续向上抛
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
