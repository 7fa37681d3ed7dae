from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any


def _ensure_repo_root_on_sys_path() -> None:
    # `python tools/<script>.py` puts `tools/` on sys.path, not the repo root.
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


def audit_public_api() -> list[str]:
    """Return a list of human-readable issues with the lazily exported public API."""

    _ensure_repo_root_on_sys_path()
    import pyimgscatter

    issues: list[str] = []
    names = list(getattr(pyimgscatter, "__all__", []))
    if len(set(names)) != len(names):
        issues.append("__all__ contains duplicate names")
    for name in names:
        try:
            getattr(pyimgscatter, name)
        except Exception as exc:  # noqa: BLE001 - tool boundary
            issues.append(f"{name}: {exc}")
    return issues


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="audit_public_api")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    args = parser.parse_args(argv)

    issues = audit_public_api()
    ok = not issues

    if bool(args.json):
        payload: dict[str, Any] = {"ok": bool(ok), "issues": list(issues)}
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        if ok:
            print("OK: pyimgscatter public API looks consistent.")
        else:
            print("ERROR: pyimgscatter public API issues detected:", file=sys.stderr)
            for issue in issues:
                print(f"- {issue}", file=sys.stderr)

    return 0 if ok else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
