"""Date-interval and cycle-code helpers shared by the crop cycle service."""

from __future__ import annotations

from datetime import date


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
	"""Closed-interval intersection; a shared endpoint day counts as overlap."""
	return a_start <= b_end and a_end >= b_start


def cycle_code_prefix(parcel_code: str, year: int) -> str:
	return f"{parcel_code.upper()}-{year}"


def build_cycle_code(parcel_code: str, year: int, existing_count: int) -> str:
	"""``RF01-2025-03`` style code: parcel code, start year, 2-digit sequence."""
	return f"{cycle_code_prefix(parcel_code, year)}-{existing_count + 1:02d}"


def append_note(existing: str | None, note: str | None) -> str | None:
	"""Append ``note`` on a new line; blank notes leave the text untouched."""
	if not note:
		return existing
	if existing:
		return f"{existing}\n{note}"
	return note
