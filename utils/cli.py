from __future__ import annotations

from argparse import ArgumentParser
from typing import List


def add_log_level_argument(parser: ArgumentParser) -> None:
    """Add a standard --log-level flag to an ArgumentParser."""
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )


def add_data_dir_argument(parser: ArgumentParser, default: str = "data") -> None:
    """Add a standard --data-dir flag to an ArgumentParser."""
    parser.add_argument(
        "--data-dir",
        default=default,
        help="Directory holding start_point.json, the store GeoJSON and optional config/",
    )


def create_argparse_epilog(examples: List[str]) -> str:
    """Create a consistent epilog for argparse help text."""
    return "\nExamples:\n" + "\n".join(f"  {example}" for example in examples)
