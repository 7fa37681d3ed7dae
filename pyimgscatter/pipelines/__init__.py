from .scatter_gather import (
    MANAGER_RANK,
    RoundParams,
    RoundResult,
    resolve_target_size,
    run,
    run_round,
)

__all__ = [
    "MANAGER_RANK",
    "RoundParams",
    "RoundResult",
    "resolve_target_size",
    "run",
    "run_round",
]
