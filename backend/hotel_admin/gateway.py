"""
持久化网关 (Persistence Gateway)

按表（ORM 模型）提供 select / get / insert / update / delete。
每次写操作单独提交：单次调用强一致，跨表无原子性。
任何 SQLAlchemyError 都会回滚、记录日志并转换为 PersistenceError。
"""
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Type
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hotel_admin.exceptions import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """表级持久化网关"""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, model: Type, error: Exception) -> PersistenceError:
        self.db.rollback()
        table = getattr(model, "__tablename__", model.__name__)
        logger.error(f"Persistence {action} on {table} failed: {error}", exc_info=True)
        return PersistenceError(f"{action} {table} 失败: {error}")

    def select(
        self,
        model: Type,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Any]:
        """
        按条件查询

        Args:
            model: ORM 模型（表）
            filters: 列名 -> 值；值为 list/tuple/set 时表示 IN
            order_by: 排序列名
            descending: 是否倒序
            limit: 返回数量限制
        """
        try:
            query = self.db.query(model)
            for column_name, value in (filters or {}).items():
                column = getattr(model, column_name)
                if isinstance(value, (list, tuple, set, frozenset)):
                    query = query.filter(column.in_(list(value)))
                else:
                    query = query.filter(column == value)
            if order_by:
                column = getattr(model, order_by)
                query = query.order_by(column.desc() if descending else column.asc())
            if limit:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            raise self._fail("select", model, e) from e

    def get(self, model: Type, entity_id: int) -> Optional[Any]:
        """按主键获取，不存在时返回 None"""
        try:
            return self.db.get(model, entity_id)
        except SQLAlchemyError as e:
            raise self._fail("get", model, e) from e

    def insert(self, model: Type, values: Dict[str, Any]) -> Any:
        """插入一行并返回持久化后的对象"""
        try:
            entity = model(**values)
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
            return entity
        except SQLAlchemyError as e:
            raise self._fail("insert", model, e) from e

    def update(self, model: Type, entity_id: int, patch: Dict[str, Any]) -> Any:
        """按主键更新字段，不存在时抛出 NotFoundError"""
        try:
            entity = self.db.get(model, entity_id)
            if entity is None:
                raise NotFoundError(f"{model.__tablename__} {entity_id} 不存在")
            for key, value in patch.items():
                setattr(entity, key, value)
            if hasattr(entity, "updated_at"):
                entity.updated_at = datetime.now()
            self.db.commit()
            self.db.refresh(entity)
            return entity
        except SQLAlchemyError as e:
            raise self._fail("update", model, e) from e

    def delete(self, model: Type, entity_id: int) -> None:
        """按主键删除，不存在时抛出 NotFoundError"""
        try:
            entity = self.db.get(model, entity_id)
            if entity is None:
                raise NotFoundError(f"{model.__tablename__} {entity_id} 不存在")
            self.db.delete(entity)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete", model, e) from e
