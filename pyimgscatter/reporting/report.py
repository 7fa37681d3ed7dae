from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pyimgscatter.utils.jsonable import to_jsonable

REPORT_SCHEMA_VERSION = 1


def stamp_report_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Attach run-level metadata to report payloads without changing their shape."""

    stamped = dict(payload)
    stamped.setdefault("schema_version", int(REPORT_SCHEMA_VERSION))
    stamped.setdefault("timestamp_utc", datetime.now(timezone.utc).isoformat())
    try:
        from pyimgscatter import __version__ as pyimgscatter_version
    except Exception:
        pyimgscatter_version = None
    stamped.setdefault("pyimgscatter_version", pyimgscatter_version)
    return stamped


def build_round_report(result, config, *, environment: dict[str, Any] | None = None) -> dict[str, Any]:
    """Summarize a finished round (a `RoundResult`) for the JSON run report."""

    params = result.params
    payload: dict[str, Any] = {
        "input_path": config.input_path,
        "output_path": result.output_path,
        "backend": config.backend,
        "codec": config.codec,
        "filter": params.filter,
        "dest_policy": params.dest_policy,
        "worker_count": result.worker_count,
        "source": {
            "width": params.width,
            "height": params.height,
            "channels": params.channels,
            "megabytes": params.width * params.height * params.channels / 1024.0 / 1024.0,
        },
        "output": {
            "width": result.image.width,
            "height": result.image.height,
            "channels": result.image.channels,
        },
        "shortfall_rows": result.plan.shortfall_rows,
        "partition": result.plan.describe(),
        "elapsed_seconds": result.elapsed_seconds,
    }
    if environment is not None:
        payload["environment"] = environment
    return stamp_report_payload(payload)


def save_run_report(path: str | Path, results: dict) -> None:
    """Save a run result dict as JSON (converting numpy/enum/dataclass values)."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    payload = to_jsonable(results)
    out_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
