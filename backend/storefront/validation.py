from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99
MAX_PRICE = Decimal("9999999.99")
MAX_CART_QUANTITY = 999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - aliases: JSON key -> column key (the wire format is camelCase)
    - decimal_fields: text columns that must hold a non-negative decimal
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=dict)
    decimal_fields: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_decimal_text(key: str, value: Any, places: int = 2) -> str:
    """Normalize a money-like value to fixed-point text ("19.9" -> "19.90")."""
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a decimal number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a decimal number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a decimal number")
    if amount < 0:
        raise ValidationError(f"{key} must be >= 0")
    quantum = Decimal(1).scaleb(-places)
    return str(amount.quantize(quantum))


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields, named by column key)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    normalized = {policy.aliases.get(k, k): v for k, v in payload.items()}

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in normalized)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in normalized.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in normalized.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        if k in policy.decimal_fields:
            val = coerce_decimal_text(k, raw)
        else:
            val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("price", "original_price"):
        if patch.get(key) is not None and Decimal(patch[key]) > MAX_PRICE:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE}")

    if "rating" in patch and patch["rating"] is not None:
        rating = Decimal(patch["rating"])
        if rating > 5:
            raise ValidationError("rating must be between 0 and 5")
        patch["rating"] = str(rating.quantize(Decimal("0.1")))

    if "discount" in patch and patch["discount"] is not None:
        if not 0 <= patch["discount"] <= 100:
            raise ValidationError("discount must be between 0 and 100")


def enforce_rules_cart_add(patch: dict) -> None:
    # Adding requires a positive quantity; zero/negative only make sense on PUT
    quantity = patch.setdefault("quantity", 1)
    if quantity < 1:
        raise ValidationError("quantity must be >= 1")
    if quantity > MAX_CART_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_CART_QUANTITY}")


def validate_cart_quantity(payload: Any) -> int:
    """Parse the body of a quantity update; zero and negatives are allowed."""
    if not isinstance(payload, dict) or "quantity" not in payload:
        raise ValidationError("Missing required fields: quantity")
    quantity = coerce_int("quantity", payload["quantity"])
    if quantity > MAX_CART_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_CART_QUANTITY}")
    return quantity
