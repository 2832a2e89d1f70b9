from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar, Union
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_
from academic_vault.models.base import Base
from academic_vault.core.exceptions import NotFoundError

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _conditions(self, filters: Optional[Dict[str, Any]]) -> list:
        filter_conditions = []
        for field, value in (filters or {}).items():
            if not hasattr(self.model, field):
                raise ValueError(f"Field '{field}' does not exist on model {self.model.__name__}")
            column = getattr(self.model, field)
            if value is None:
                filter_conditions.append(column.is_(None))
            elif isinstance(value, (list, tuple, set)):
                filter_conditions.append(column.in_(list(value)))
            else:
                filter_conditions.append(column == value)
        return filter_conditions

    async def get(self, db: AsyncSession, id: Any, *, raise_if_not_found: bool = True) -> Optional[ModelType]:
        """Get a single record by ID"""
        result = await db.execute(select(self.model).where(self.model.id == id))
        obj = result.scalar_one_or_none()

        if raise_if_not_found and obj is None:
            raise NotFoundError(f"{self.model.__name__}")

        return obj

    async def get_by_ids(self, db: AsyncSession, *, ids: Sequence[Any]) -> List[ModelType]:
        if not ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(list(ids))))
        return list(result.scalars().all())

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        order_desc: bool = True,
    ) -> List[ModelType]:
        """Get multiple records with filtering and ordering"""
        query = select(self.model)

        filter_conditions = self._conditions(filters)
        if filter_conditions:
            query = query.where(and_(*filter_conditions))

        # Apply ordering
        if order_by and hasattr(self.model, order_by):
            order_field = getattr(self.model, order_by)
            query = query.order_by(order_field.desc() if order_desc else order_field.asc())
        else:
            # Default ordering by created_at desc
            query = query.order_by(self.model.created_at.desc())

        result = await db.execute(query)
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, *, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> ModelType:
        """Create a new record"""
        # Use model_dump() to preserve Python types (date, datetime, etc.)
        obj_in_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_none=True)

        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def create_multi(
        self,
        db: AsyncSession,
        *,
        objs_in: List[Union[CreateSchemaType, Dict[str, Any]]]
    ) -> List[ModelType]:
        """Create multiple records in one transaction"""
        db_objs = []
        for obj_in in objs_in:
            obj_in_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_none=True)
            db_objs.append(self.model(**obj_in_data))

        db.add_all(db_objs)
        await db.commit()

        # Refresh all objects
        for db_obj in db_objs:
            await db.refresh(db_obj)

        return db_objs

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        """Update a record"""
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update_by_ids(self, db: AsyncSession, *, ids: Sequence[Any], values: Dict[str, Any]) -> List[ModelType]:
        """Apply the same values to every record in ids and return the updated rows"""
        if not ids:
            return []
        await db.execute(update(self.model).where(self.model.id.in_(list(ids))).values(**values))
        await db.commit()
        return await self.get_by_ids(db, ids=ids)

    async def remove_many(self, db: AsyncSession, *, ids: Sequence[Any]) -> int:
        """Hard delete records by ID"""
        if not ids:
            return 0
        result = await db.execute(delete(self.model).where(self.model.id.in_(list(ids))))
        await db.commit()
        return result.rowcount
