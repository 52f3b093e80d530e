"""Shared field validators for request schemas."""
from __future__ import annotations

import ipaddress
import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CAFETERIA_CODE_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def validate_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError(f"invalid email address: {value}")
    return value


def validate_ipv4(value: str | None) -> str | None:
    """Accept dotted-decimal IPv4 only; blank strings clear the value."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        ipaddress.IPv4Address(value)
    except ipaddress.AddressValueError as exc:
        raise ValueError("authorized_ip must be a valid IPv4 address") from exc
    return value


def validate_cafeteria_code(value: str) -> str:
    value = value.strip()
    if not CAFETERIA_CODE_PATTERN.match(value):
        raise ValueError("code may only contain letters, digits and underscores")
    return value


__all__ = [
    "CAFETERIA_CODE_PATTERN",
    "EMAIL_PATTERN",
    "validate_cafeteria_code",
    "validate_email",
    "validate_ipv4",
]
