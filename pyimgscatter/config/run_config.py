from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping

from pyimgscatter.errors import ConfigError
from pyimgscatter.partition import DestinationPolicy, parse_destination_policy

BACKENDS = ("local", "mpi")
CODECS = ("pillow", "opencv")
UNKNOWN_FILTER_POLICIES = ("error", "identity")


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{name} must be a dict/object, got {type(value).__name__}")
    return value


def _int(value: Any, *, name: str, low: int | None = None, high: int | None = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be int, got {value!r}")
    try:
        out = int(value)
    except Exception as exc:  # noqa: BLE001 - validation boundary
        raise ConfigError(f"{name} must be int, got {value!r}") from exc
    if isinstance(value, float) and float(out) != value:
        raise ConfigError(f"{name} must be int, got {value!r}")
    if low is not None and out < low:
        raise ConfigError(f"{name} must be >= {low}, got {out}")
    if high is not None and out > high:
        raise ConfigError(f"{name} must be <= {high}, got {out}")
    return out


def _optional_str(value: Any, *, name: str) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        raise ConfigError(f"{name} must be a non-empty string or null")
    return text


def _choice(value: Any, *, name: str, choices: tuple[str, ...]) -> str:
    text = str(value).strip().lower()
    if text not in choices:
        raise ConfigError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return text


@dataclass(frozen=True)
class RunConfig:
    """Everything one scatter/gather round needs to know.

    ``target_width`` / ``target_height`` of 0 keep the source dimension.
    """

    input_path: str
    output_path: str | None = None
    filter: str = "identity"
    target_width: int = 0
    target_height: int = 0
    quality: int = 100
    workers: int = 1
    backend: str = "local"
    codec: str = "pillow"
    dest_policy: DestinationPolicy = DestinationPolicy.EXACT
    on_unknown_filter: str = "error"
    report_path: str | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> "RunConfig":
        data = dict(_require_mapping(raw, name="config"))

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Unknown config keys: {unknown}. Allowed keys: {', '.join(sorted(known))}"
            )

        input_path = _optional_str(data.get("input_path"), name="input_path")
        if input_path is None:
            raise ConfigError("input_path is required")

        try:
            dest_policy = parse_destination_policy(data.get("dest_policy", DestinationPolicy.EXACT))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        filter_name = data.get("filter", "identity")
        if not isinstance(filter_name, str):
            raise ConfigError(f"filter must be a string, got {type(filter_name).__name__}")

        return cls(
            input_path=input_path,
            output_path=_optional_str(data.get("output_path"), name="output_path"),
            filter=filter_name,
            target_width=_int(data.get("target_width", 0), name="target_width", low=0),
            target_height=_int(data.get("target_height", 0), name="target_height", low=0),
            quality=_int(data.get("quality", 100), name="quality", low=1, high=100),
            workers=_int(data.get("workers", 1), name="workers", low=1),
            backend=_choice(data.get("backend", "local"), name="backend", choices=BACKENDS),
            codec=_choice(data.get("codec", "pillow"), name="codec", choices=CODECS),
            dest_policy=dest_policy,
            on_unknown_filter=_choice(
                data.get("on_unknown_filter", "error"),
                name="on_unknown_filter",
                choices=UNKNOWN_FILTER_POLICIES,
            ),
            report_path=_optional_str(data.get("report_path"), name="report_path"),
        )

    def to_dict(self) -> dict[str, Any]:
        out = dataclasses.asdict(self)
        out["dest_policy"] = self.dest_policy.value
        return out


def build_run_config(
    base: Mapping[str, Any] | None = None,
    **overrides: Any,
) -> RunConfig:
    """Merge config-file values with explicit overrides (``None`` means "not given")."""

    merged: dict[str, Any] = dict(base or {})
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return RunConfig.from_dict(merged)
