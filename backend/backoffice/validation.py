from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# Largest money amount accepted: 9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999

STRING = "string"
INTEGER = "integer"


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class FieldRule:
    kind: str = STRING
    max_length: int | None = None
    nullable: bool = True


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: what clients are allowed to set (security boundary) and how to coerce it
    - required_on_create: fields required for POST
    """
    fields: dict[str, FieldRule]
    required_on_create: set[str] = field(default_factory=set)


CUSTOMER_POLICY = ModelValidationPolicy(
    fields={
        "name": FieldRule(STRING, max_length=200, nullable=False),
        "email": FieldRule(STRING, max_length=255),
        "phone": FieldRule(STRING, max_length=32),
        "address": FieldRule(STRING, max_length=500),
    },
    required_on_create={"name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "article_number": FieldRule(STRING, max_length=64, nullable=False),
        "name": FieldRule(STRING, max_length=200, nullable=False),
        "cost_cents": FieldRule(INTEGER, nullable=False),
        "quantity": FieldRule(INTEGER, nullable=False),
    },
    required_on_create={"article_number", "name", "cost_cents", "quantity"},
)


def _coerce_integer(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def validate_payload(*, payload: Any, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes incoming JSON against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        rule = policy.fields[k]

        if raw is None:
            if not rule.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        if rule.kind == INTEGER:
            val = _coerce_integer(k, raw)
            if abs(val) > MAX_AMOUNT_CENTS:
                raise ValidationError(f"{k} cannot exceed {MAX_AMOUNT_CENTS}")
        else:
            val = str(raw).strip()
            if not rule.nullable and val == "":
                raise ValidationError(f"{k} cannot be blank")
            if rule.max_length and len(val) > rule.max_length:
                raise ValidationError(f"{k} exceeds max length {rule.max_length}")

        patch[k] = val

    return patch
