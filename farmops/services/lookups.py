"""Shared primary-key lookup used by every service."""

from __future__ import annotations

import uuid
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

M = TypeVar("M")


async def require_row(db: AsyncSession, model: type[M], row_id: uuid.UUID, label: str) -> M:
	"""Fetch ``model`` by id or raise ``LookupError`` (mapped to 404)."""
	row = await db.execute(select(model).where(model.id == row_id))  # type: ignore[attr-defined]
	found = row.scalar_one_or_none()
	if found is None:
		raise LookupError(f"{label} {row_id} not found")
	return found


def label_for(model: Any) -> str:
	"""Human label for a mapped class: ``CropType`` -> ``Crop type``."""
	name = model.__name__
	words = [name[0]]
	for char in name[1:]:
		words.append(f" {char.lower()}" if char.isupper() else char)
	return "".join(words)
