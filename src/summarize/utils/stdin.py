# src/summarize/utils/stdin.py
import sys
from pathlib import Path
from typing import BinaryIO, List, Optional


def read_paths_from_stdin(use_null_separator: bool, stream: Optional[BinaryIO] = None) -> List[Path]:
    """
    Reads extra root paths piped on stdin, e.g. from `find . -name '*.py' -print0`.
    Nothing is read when stdin is an interactive terminal.
    """
    if stream is None:
        if sys.stdin is None or sys.stdin.isatty():
            return []
        stream = sys.stdin.buffer

    content = stream.read().decode("utf-8", errors="replace")

    if use_null_separator:
        parts = content.split("\0")
    else:
        parts = content.split()

    return [Path(p) for p in parts if p]
