from __future__ import annotations
from typing import Generic, TypeVar, Type, Optional
from sqlalchemy.orm import Session

from civreg.errors import NotFoundError

T = TypeVar("T")

class BaseRepo(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    def create(self, db: Session, **kwargs) -> T:
        obj = self.model(**kwargs)
        db.add(obj)
        db.flush()  # assign PK
        return obj

    def get(self, db: Session, id: int, *, for_update: bool = False) -> Optional[T]:
        # Objects already in the session keep their pending changes.
        if for_update:
            return db.get(self.model, id, with_for_update=True)
        return db.get(self.model, id)

    def require(self, db: Session, id: int, *, for_update: bool = False, field: str = "id") -> T:
        """Like :meth:`get` but raises ``NotFoundError`` naming ``field``."""
        obj = self.get(db, id, for_update=for_update)
        if obj is None:
            raise NotFoundError(f"{self.model.__name__} {id} not found", field=field)
        return obj
