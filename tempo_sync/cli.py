from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .commands import detect as cmd_detect
from .commands import parse_names as cmd_parse_names
from .config import load_settings
from .importer import TempoImporter
from .scanner import AudioFileScanner
from .sources import FalsePositiveTolerance

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from exc
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Loop tempo detection and project sync")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    parse_parser = subparsers.add_parser(
        "parse", help="Show the tempo inferred from file names only"
    )
    parse_parser.add_argument("names", nargs="+", help="File names or paths (need not exist)")

    detect_parser = subparsers.add_parser(
        "detect", help="Resolve tempo from tags, file name and audio content"
    )
    detect_parser.add_argument("paths", nargs="+", type=Path, help="Files or directories")
    detect_parser.add_argument(
        "--project-tempo",
        type=_positive_float,
        default=None,
        help="Project tempo to compute the power-of-two stretch against",
    )
    detect_parser.add_argument(
        "--tolerance",
        choices=[t.value for t in FalsePositiveTolerance],
        default=None,
        help="How readily to accept tempos found by audio analysis",
    )
    detect_parser.add_argument(
        "--no-analysis",
        action="store_true",
        help="Only use tags and file names",
    )
    detect_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON to stdout",
    )
    return parser


def configure_logging(level_name: str) -> WarningBufferHandler:
    log_level = getattr(logging, level_name.upper(), logging.WARNING)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(warn_buffer)
    return warn_buffer


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    warn_buffer = configure_logging(args.log_level)
    exit_code = 0
    try:
        match args.command:
            case "parse":
                for line in cmd_parse_names.run(args.names):
                    print(line)
            case "detect":
                settings = load_settings(args.config)
                if args.no_analysis:
                    settings.analysis.enabled = False
                importer = TempoImporter.create(settings)
                scanner = AudioFileScanner(settings.library)
                tolerance = FalsePositiveTolerance(args.tolerance) if args.tolerance else None
                summary = cmd_detect.run(
                    importer,
                    scanner,
                    args.paths,
                    project_tempo=args.project_tempo,
                    tolerance=tolerance,
                )
                for line in cmd_detect.render(summary, json_output=args.json):
                    print(line)
                if not summary.ok:
                    exit_code = 1
            case _:
                parser.error("Unknown command")
    finally:
        if warn_buffer.records and not getattr(args, "json", False):
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
