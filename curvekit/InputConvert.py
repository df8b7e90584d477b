# === SECTION: InputConvert [id: InputConvert]===
from __future__ import annotations

from typing import Any, Type, TypeVar

from .expression import ExpressionParseError, contains_variable, parse

T = TypeVar("T", int, float)


def InputConvert(obj: Any, dest_type: Type[T] = float, truncate: bool = True) -> T:
    """
    Convert `obj` to `dest_type`.

    Supported destination types:
    - float (finite reals)
    - int

    Rules:
    - If `obj` is a number: cast via dest_type(obj).
    - If `obj` is a string:
        1) try float(s)
        2) else parse it as a constant formula ("2*pi", "-pi/2", "e^2")
           with the closed formula grammar and evaluate it. No Python code
           is ever evaluated.

    Truncation Rules (`truncate`):
    - When converting Float -> Int:
        - If `truncate=True`: Truncate decimal part (e.g., 3.9 -> 3).
        - If `truncate=False`: Require exact integer (e.g., 3.0 -> 3, 3.1 -> Error).

    Raises
    ------
    NotImplementedError
        If dest_type is unsupported.
    ValueError
        If conversion fails, the value is not finite, or violates truncation rules.
    """
    if dest_type not in (float, int):
        raise NotImplementedError(
            f"Unsupported destination type: {dest_type!r}. Only float and int are supported."
        )

    def _coerce_real(x: float) -> T:
        if x != x or x in (float("inf"), float("-inf")):
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}: value is not finite.")
        if dest_type is float:
            return float(x)  # type: ignore[return-value]
        if not float(x).is_integer() and not truncate:
            raise ValueError(
                f"Could not convert {obj!r} to int: value is not an exact integer."
            )
        return int(x)  # type: ignore[return-value]

    # Fast path: numeric types (exclude bool)
    if isinstance(obj, (int, float)) and not isinstance(obj, bool):
        return _coerce_real(float(obj))

    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError(f"Cannot convert empty string to {dest_type.__name__}.")

        try:
            return _coerce_real(float(s))
        except ValueError:
            pass

        try:
            model = parse(s)
        except ExpressionParseError as e:
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}: {e}") from e
        value = None if contains_variable(model.root) else model.evaluate(0.0)
        if value is None:
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}: not a constant.")
        return _coerce_real(value)

    # Fallback: objects implementing __float__ (numpy scalars, etc.)
    try:
        return _coerce_real(float(obj))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}.") from e

# === END OF SECTION: InputConvert [id: InputConvert]===
