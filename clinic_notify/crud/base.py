"""Generic clinic-scoped CRUD base class for SQLAlchemy models."""

from __future__ import annotations

from typing import Any, Dict, Generic, Iterable, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clinic_notify.core.tenant import require_clinic_id
from clinic_notify.database import Base


ModelType = TypeVar("ModelType", bound=Base)


class ClinicScopedCRUD(Generic[ModelType]):
	"""Reusable CRUD helper for models owned by a clinic.

	Every method takes ``clinic_id`` and filters on it; there is no way to
	reach another clinic's rows through this class. Methods return database
	objects, not schemas. Writes take ``commit`` so callers can group several
	writes into a single transaction.
	"""

	def __init__(self, model: Type[ModelType]):
		if not hasattr(model, "clinic_id"):
			raise AttributeError(f"Model '{model.__name__}' has no 'clinic_id' column")
		self.model = model

	def _scoped(self, clinic_id: int):
		return select(self.model).where(self.model.clinic_id == require_clinic_id(clinic_id))

	# ----- Read -----
	def get(self, db: Session, *, clinic_id: int, id: Any) -> Optional[ModelType]:
		"""Get one record by primary key within the clinic."""
		stmt = self._scoped(clinic_id).where(self.model.id == id).limit(1)
		return db.scalars(stmt).first()

	def get_multi(self, db: Session, *, clinic_id: int, skip: int = 0, limit: int = 100) -> Iterable[ModelType]:
		"""Get the clinic's records with pagination."""
		stmt = self._scoped(clinic_id).offset(skip).limit(limit)
		return db.scalars(stmt).all()

	def count(self, db: Session, *, clinic_id: int) -> int:
		stmt = select(func.count(self.model.id)).where(self.model.clinic_id == require_clinic_id(clinic_id))
		return db.scalar(stmt) or 0

	# ----- Create -----
	def create(
		self,
		db: Session,
		*,
		clinic_id: int,
		obj_in: Union[BaseModel, Dict[str, Any]],
		commit: bool = True,
	) -> ModelType:
		"""Create a new record owned by ``clinic_id``."""
		obj_in_data: Dict[str, Any] = obj_in.model_dump(exclude_unset=True) if isinstance(obj_in, BaseModel) else dict(obj_in)
		obj_in_data["clinic_id"] = require_clinic_id(clinic_id)
		db_obj = self.model(**obj_in_data)  # type: ignore[arg-type]
		db.add(db_obj)
		self._flush_or_commit(db, db_obj, commit)
		return db_obj

	# ----- Update -----
	def update(
		self,
		db: Session,
		*,
		db_obj: ModelType,
		obj_in: Union[BaseModel, Dict[str, Any]],
		commit: bool = True,
	) -> ModelType:
		"""Update a record with fields from a Pydantic schema or dict.

		``id`` and ``clinic_id`` are never overwritten.
		"""
		update_data = obj_in.model_dump(exclude_unset=True) if isinstance(obj_in, BaseModel) else dict(obj_in)

		for field, value in update_data.items():
			if field in ("id", "clinic_id"):
				continue
			if hasattr(db_obj, field):
				setattr(db_obj, field, value)

		db.add(db_obj)
		self._flush_or_commit(db, db_obj, commit)
		return db_obj

	# ----- Delete -----
	def delete(self, db: Session, *, clinic_id: int, id: Any, commit: bool = True) -> Optional[ModelType]:
		"""Hard delete a record. Returns the deleted object (or None if not found)."""
		db_obj = self.get(db, clinic_id=clinic_id, id=id)
		if not db_obj:
			return None

		db.delete(db_obj)
		if commit:
			try:
				db.commit()
			except Exception:
				db.rollback()
				raise
		else:
			db.flush()
		return db_obj

	@staticmethod
	def _flush_or_commit(db: Session, db_obj: Any, commit: bool) -> None:
		if not commit:
			db.flush()
			return
		try:
			db.commit()
			db.refresh(db_obj)
		except Exception:
			db.rollback()
			raise
