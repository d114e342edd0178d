"""Column types and defaults shared by the coupon models."""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, String, TypeDecorator
from sqlalchemy.engine import Dialect


class UUIDType(TypeDecorator[uuid.UUID]):
    """UUID stored as its 36-character string form.

    Accepts `uuid.UUID` or string values on bind and always returns `uuid.UUID`.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(str(value)))

    def process_result_value(self, value: Any, dialect: Dialect) -> uuid.UUID | None:
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class ValueSet(TypeDecorator[list[str]]):
    """Set of enum values stored as a sorted JSON list.

    Used for order-type restrictions, where an empty list means "no
    restriction". NULL is read back as an empty list.
    """

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> list[str]:
        return sorted({_plain_value(item) for item in value or ()})

    def process_result_value(self, value: Any, dialect: Dialect) -> list[str]:
        return list(value or [])


def _plain_value(item: Enum | str) -> str:
    return item.value if isinstance(item, Enum) else str(item)


def plain_values(items: Iterable[Enum | str] | None) -> list[str]:
    """Sorted, de-duplicated string values of an iterable of enums or strings."""
    return sorted({_plain_value(item) for item in items or ()})


def generate_uuid() -> uuid.UUID:
    return uuid.uuid4()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)
