"""Domain error taxonomy.

Every error carries a stable ``code``, a human-readable ``message``, the
HTTP status the route layer maps it to, and structured ``context`` fields
so clients can render a specific message without parsing text.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any


def _jsonable(value: Any) -> Any:
	if isinstance(value, (uuid.UUID, date)):
		return str(value)
	return value


class DomainError(Exception):
	"""Base class for expected, client-facing failures."""

	code: str = "domain_error"
	status_code: int = 422

	def __init__(self, message: str, **context: Any) -> None:
		super().__init__(message)
		self.message = message
		self.context = context

	def to_detail(self) -> dict[str, Any]:
		detail: dict[str, Any] = {"error": self.code, "message": self.message}
		for key, value in self.context.items():
			detail[key] = _jsonable(value)
		return detail


class InvalidTransitionError(DomainError):
	code = "invalid_transition"

	def __init__(self, from_status: str, to_status: str) -> None:
		super().__init__(
			f"Cannot transition from '{from_status}' to '{to_status}'",
			from_status=str(from_status),
			to_status=str(to_status),
		)
		self.from_status = from_status
		self.to_status = to_status


class OverlapError(DomainError):
	code = "cycle_overlap"

	def __init__(
		self,
		conflicting_cycle_id: uuid.UUID | None,
		conflicting_start: date | None = None,
		conflicting_end: date | None = None,
	) -> None:
		super().__init__(
			"Planned dates overlap another planned or active crop cycle on this land parcel",
			conflicting_cycle_id=conflicting_cycle_id,
			conflicting_start=conflicting_start,
			conflicting_end=conflicting_end,
		)
		self.conflicting_cycle_id = conflicting_cycle_id


class ActiveCycleExistsError(DomainError):
	code = "active_cycle_exists"

	def __init__(self, land_parcel_id: uuid.UUID, active_cycle_id: uuid.UUID | None = None) -> None:
		super().__init__(
			"Land parcel already has an active crop cycle",
			land_parcel_id=land_parcel_id,
			active_cycle_id=active_cycle_id,
		)
		self.land_parcel_id = land_parcel_id
		self.active_cycle_id = active_cycle_id


class NotEditableError(DomainError):
	code = "not_editable"

	def __init__(self, status: str, what: str = "crop cycle") -> None:
		super().__init__(f"Cannot modify a {status} {what}", status=str(status))
		self.status = status


class NotDeletableError(DomainError):
	code = "not_deletable"

	def __init__(self, status: str, what: str = "crop cycle") -> None:
		super().__init__(f"Cannot delete a {status} {what}", status=str(status))
		self.status = status


class PreviousStageIncompleteError(DomainError):
	code = "previous_stage_incomplete"

	def __init__(self, previous_stage_id: uuid.UUID, previous_status: str) -> None:
		super().__init__(
			"The previous stage must be completed or skipped first",
			previous_stage_id=previous_stage_id,
			previous_status=str(previous_status),
		)
		self.previous_stage_id = previous_stage_id


class CycleNotActiveError(DomainError):
	code = "cycle_not_active"

	def __init__(self, crop_cycle_id: uuid.UUID, status: str) -> None:
		super().__init__(
			"The crop cycle must be active to start a stage",
			crop_cycle_id=crop_cycle_id,
			status=str(status),
		)


class DuplicateStageOrderError(DomainError):
	code = "duplicate_sequence_order"

	def __init__(self, sequence_order: int) -> None:
		super().__init__(
			f"Sequence order {sequence_order} is already used by another stage",
			sequence_order=sequence_order,
		)


class ParcelHasActiveCycleError(DomainError):
	code = "parcel_has_active_cycle"

	def __init__(self, land_parcel_id: uuid.UUID) -> None:
		super().__init__(
			"Cannot deactivate a land parcel with an active crop cycle",
			land_parcel_id=land_parcel_id,
		)


class CycleCodeConflictError(DomainError):
	code = "cycle_code_conflict"
	status_code = 409

	def __init__(self, cycle_code: str) -> None:
		super().__init__(
			f"Cycle code {cycle_code} was taken by a concurrent request; retry",
			cycle_code=cycle_code,
		)


class ImmutableRecordError(DomainError):
	code = "immutable_record"
	status_code = 405

	def __init__(self, record: str = "activity log") -> None:
		super().__init__(f"{record.capitalize()} records are immutable", record=record)
