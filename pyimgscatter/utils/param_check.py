"""Small integer validation helpers shared by the planner and the config layer."""

from __future__ import annotations

from numbers import Integral


def check_int(
    param: object,
    low: int | None = None,
    high: int | None = None,
    *,
    param_name: str = "parameter",
) -> int:
    """Validate that `param` is an integer within the inclusive range [low, high].

    Returns the value as a builtin ``int`` (numpy integers are accepted).
    ``bool`` is rejected even though it is an ``Integral``.
    """

    if not isinstance(param, Integral) or isinstance(param, bool):
        raise TypeError(f"{param_name} must be an integer, got {type(param).__name__}")

    value = int(param)
    if low is not None and high is not None and low > high:
        raise ValueError(f"Invalid bounds for {param_name}: low={low} > high={high}")
    if low is not None and value < low:
        raise ValueError(f"{param_name} must be >= {low}, got {value}")
    if high is not None and value > high:
        raise ValueError(f"{param_name} must be <= {high}, got {value}")
    return value
