"""Typed results returned by store operations that can legitimately fail.

Callers branch on the result type instead of catching database exceptions
or inspecting error messages.
"""
from dataclasses import dataclass
from datetime import date
from typing import Generic, TypeVar
from uuid import UUID

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFoundError:
    entity: str
    id: UUID


@dataclass(frozen=True)
class DuplicateNameError:
    name: str


@dataclass(frozen=True)
class OtherCategoryLockedError:
    category_id: UUID


@dataclass(frozen=True)
class SystemCategoryError:
    category_id: UUID


@dataclass(frozen=True)
class InvalidReorderError:
    reason: str


@dataclass(frozen=True)
class DuplicateTransactionError:
    txn_date: date
    amount: int
    description: str
