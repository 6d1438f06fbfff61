"""Input validation for allocator configuration and batch records."""

from __future__ import annotations

from datetime import date


def validate_config(
    pool_size: object,
    horizon_days: object,
    rest_days: object,
    rates: object,
) -> list[str]:
    """Validate allocator settings. Returns list of error messages (empty = valid).

    Checks:
    - pool_size and horizon_days are positive integers
    - rest_days are weekday numbers 0-6 and leave at least one working day
    - every rate is a positive integer
    """
    errors: list[str] = []

    for label, value in (("pool_size", pool_size), ("horizon_days", horizon_days)):
        if not _is_int(value) or value < 1:
            errors.append(f"{label} must be a positive integer, got {value!r}")

    try:
        days = list(rest_days)
    except TypeError:
        errors.append(f"rest_days must be a sequence, got {rest_days!r}")
        days = []
    for day in days:
        if not _is_int(day) or day < 0 or day > 6:
            errors.append(f"Invalid rest day: {day!r} (must be 0-6)")
    if len(set(days)) >= 7:
        errors.append("rest_days leaves no working day in the week")

    if not isinstance(rates, dict):
        errors.append(f"rates must be a mapping, got {type(rates).__name__}")
        return errors
    for name, rate in rates.items():
        if not isinstance(name, str) or not name:
            errors.append(f"Invalid procedure name: {name!r}")
        if not _is_int(rate) or rate < 1:
            errors.append(
                f"Procedure {name!r}: rate must be a positive integer, got {rate!r}"
            )

    return errors


def validate_batch(data: dict) -> list[str]:
    """Validate a raw batch mapping. Returns list of error messages.

    Checks:
    - name and deadline are present, dates parse as ISO dates
    - priority is an integer
    - procedures is a list of {name, quantity} with quantity >= 0
    """
    errors: list[str] = []
    label = data.get("id") or data.get("name") or "<unnamed>"

    if not data.get("name"):
        errors.append(f"Batch {label}: missing 'name'")

    for key in ("deadline", "start_date"):
        if key not in data or data[key] is None:
            if key == "deadline":
                errors.append(f"Batch {label}: missing 'deadline'")
            continue
        try:
            date.fromisoformat(str(data[key])[:10])
        except ValueError:
            errors.append(f"Batch {label}: invalid {key} {data[key]!r}")

    if "priority" in data and not _is_int(data["priority"]):
        errors.append(f"Batch {label}: priority must be an integer")

    procedures = data.get("procedures")
    if not isinstance(procedures, list) or not procedures:
        errors.append(f"Batch {label}: 'procedures' must be a non-empty list")
        return errors

    for i, proc in enumerate(procedures):
        if not isinstance(proc, dict) or "name" not in proc:
            errors.append(f"Batch {label}, procedure {i}: expected {{name, quantity}}")
            continue
        quantity = proc.get("quantity")
        if not _is_int(quantity) or quantity < 0:
            errors.append(
                f"Batch {label}, procedure {proc['name']!r}: "
                f"quantity must be a non-negative integer, got {quantity!r}"
            )

    return errors


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
