from __future__ import annotations

import argparse
import logging
import sys

from pyimgscatter.config.io import load_config
from pyimgscatter.config.run_config import BACKENDS, CODECS, UNKNOWN_FILTER_POLICIES, build_run_config
from pyimgscatter.errors import GroupAborted
from pyimgscatter.filters import available_filters
from pyimgscatter.partition import DestinationPolicy
from pyimgscatter.pipelines.scatter_gather import run
from pyimgscatter.reporting.environment import collect_environment
from pyimgscatter.reporting.report import build_round_report, save_run_report

_LOG_FORMAT = "%(asctime)s %(processName)s %(levelname)s %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyimgscatter",
        description=(
            "Resize (rows, nearest-neighbor) and filter one image across a group of "
            "worker processes. Under MPI, launch with: mpiexec -n N pyimgscatter --backend mpi ..."
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional JSON/YAML run config; command-line flags override its values",
    )
    parser.add_argument("--input", default=None, help="Source image path")
    parser.add_argument(
        "--output",
        default=None,
        help="Output image path (format from the suffix). Omit to skip saving",
    )
    parser.add_argument(
        "--filter",
        default=None,
        help=f"Filter name: {', '.join(available_filters())}. Default: identity",
    )
    parser.add_argument("--width", type=int, default=None, help="Target width (0 keeps the source width)")
    parser.add_argument("--height", type=int, default=None, help="Target height (0 keeps the source height)")
    parser.add_argument("--quality", type=int, default=None, help="JPEG/WebP quality 1-100. Default: 100")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of processes for the local backend (the MPI launcher sets it otherwise)",
    )
    parser.add_argument("--backend", default=None, choices=list(BACKENDS))
    parser.add_argument("--codec", default=None, choices=list(CODECS))
    parser.add_argument(
        "--dest-policy",
        default=None,
        choices=[p.value for p in DestinationPolicy],
        help="How output rows are shared between ranks. Default: exact",
    )
    parser.add_argument(
        "--on-unknown-filter",
        default=None,
        choices=list(UNKNOWN_FILTER_POLICIES),
        help="'error' (default) aborts; 'identity' passes pixels through with a warning",
    )
    parser.add_argument("--save-report", default=None, help="Optional JSON run report path")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=_LOG_FORMAT)

    try:
        base = load_config(args.config) if args.config is not None else {}
        config = build_run_config(
            base,
            input_path=args.input,
            output_path=args.output,
            filter=args.filter,
            target_width=args.width,
            target_height=args.height,
            quality=args.quality,
            workers=args.workers,
            backend=args.backend,
            codec=args.codec,
            dest_policy=args.dest_policy,
            on_unknown_filter=args.on_unknown_filter,
            report_path=args.save_report,
        )

        result = run(config)
        if result is None:
            # Non-manager MPI rank.
            return 0

        if config.report_path is not None:
            report = build_round_report(result, config, environment=collect_environment())
            save_run_report(config.report_path, report)
        return 0
    except Exception as exc:  # noqa: BLE001 - CLI boundary
        print(f"error: {exc}", file=sys.stderr)
        if isinstance(exc, GroupAborted) and exc.__cause__ is not None:
            print(f"context: cause={type(exc.__cause__).__name__}", file=sys.stderr)
        input_path = getattr(args, "input", None)
        if input_path:
            print(f"context: input={input_path!r}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
