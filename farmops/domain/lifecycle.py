"""Generic status-transition helpers.

A transition table maps every status to the frozenset of statuses it may
move to.  The tables themselves are owned by the entity types in
``farmops.models.cycles``; the helpers here only read them.
:func:`plan_transition` returns the failure as a value instead of raising,
so a caller cannot mutate an entity without first looking at the outcome.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import TypeVar

from farmops.errors import InvalidTransitionError

S = TypeVar("S", bound=StrEnum)

TransitionTable = Mapping[S, frozenset[S]]


def can_transition(table: TransitionTable[S], current: S, target: S) -> bool:
	"""True iff ``target`` is an allowed destination from ``current``."""
	return target in table[current]


def plan_transition(table: TransitionTable[S], current: S, target: S) -> InvalidTransitionError | None:
	"""Return ``None`` when the move is legal, otherwise the error describing it."""
	if can_transition(table, current, target):
		return None
	return InvalidTransitionError(str(current), str(target))


def is_terminal(table: TransitionTable[S], status: S) -> bool:
	return not table[status]
