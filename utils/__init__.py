"""Utility package for shared helpers used by CLI scripts."""

from .cli import add_log_level_argument, add_data_dir_argument, create_argparse_epilog
from .paths import get_repo_root, resolve_data_dir

__all__ = [
    "add_log_level_argument",
    "add_data_dir_argument",
    "create_argparse_epilog",
    "get_repo_root",
    "resolve_data_dir",
]
