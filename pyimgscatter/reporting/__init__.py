from .environment import collect_environment
from .report import build_round_report, save_run_report, stamp_report_payload

__all__ = [
    "build_round_report",
    "collect_environment",
    "save_run_report",
    "stamp_report_payload",
]
