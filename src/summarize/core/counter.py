# src/summarize/core/counter.py
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from summarize.config import DEFAULT_MODEL
from summarize.core.scanner import Walker, read_document
from summarize.models import FilterConfig, Skipped, TokenizerModel, TokenReport
from summarize.utils.tokenizer import count_tokens

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class WorkerPool:
    """
    Handle on the threads used for token counting.
    Each engine gets its own, so two engines in one process never share a pool size.
    """

    def __init__(self, size: int = 0):
        if size < 0:
            raise ValueError(f"Worker pool size must be >= 0, got {size}")
        self.requested_size = size
        # 0 means one worker per available CPU
        self.size = size if size > 0 else (os.cpu_count() or 1)

    def partition(self, items: Sequence[T]) -> List[List[T]]:
        """Splits items round-robin into at most `size` non-empty slices."""
        slices = [list(items[i::self.size]) for i in range(min(self.size, len(items)))]
        return [s for s in slices if s]

    def map_slices(self, fn: Callable[[List[T]], R], items: Sequence[T]) -> List[R]:
        """Runs fn once per slice and returns only after every slice has finished."""
        slices = self.partition(items)
        if not slices:
            return []
        with ThreadPoolExecutor(max_workers=len(slices), thread_name_prefix="summarize-count") as executor:
            futures = [executor.submit(fn, s) for s in slices]
            return [future.result() for future in futures]


class _RunningTotal:
    """Token total shared by the workers, shown in the progress bar."""

    def __init__(self):
        self._lock = threading.Lock()
        self.value = 0

    def add(self, tokens: int) -> int:
        with self._lock:
            self.value += tokens
            return self.value


class ParallelTokenEngine:
    """
    Counts the tokens of every eligible file under a set of roots.

    Discovery walks the roots on the calling thread and materializes the full
    file list; counting then spreads that list over the worker pool. Each
    worker keeps its own results, and they are merged into the report only
    once all workers are done.
    """

    def __init__(
        self,
        pool: WorkerPool,
        model: TokenizerModel = DEFAULT_MODEL,
        config: Optional[FilterConfig] = None,
        count_fn: Optional[Callable[[str], int]] = None,
        show_progress: bool = True,
        console: Optional[Console] = None,
        announce: Optional[Callable[[str], None]] = None,
    ):
        self.pool = pool
        self.model = TokenizerModel(model)
        self.config = config if config is not None else FilterConfig()
        self.count_fn = count_fn if count_fn is not None else partial(count_tokens, model=self.model)
        self.show_progress = show_progress
        self.console = console if console is not None else Console(stderr=True)
        # Phase messages, e.g. `print` for the CLI; only logged when not given
        self.announce = announce if announce is not None else logger.info
        # Compiles the ignore patterns now, so a bad pattern fails before any work starts
        self.walker = Walker(self.config)

    def _progress(self, *columns) -> Progress:
        return Progress(*columns, console=self.console, disable=not self.show_progress)

    def discover(self, roots: Iterable[Path]) -> List[Path]:
        files: List[Path] = []
        seen = set()

        with self._progress(SpinnerColumn(), TextColumn("{task.description}")) as progress:
            task = progress.add_task("Scanning directories...", total=None)
            for entry in self.walker.walk(roots):
                if entry.path in seen:
                    continue
                seen.add(entry.path)
                files.append(entry.path)
                if len(files) % 100 == 0:
                    progress.update(task, description=f"Found {len(files)} files")
            progress.update(task, description=f"Found {len(files)} files to process")

        logger.debug("Discovered %d files", len(files))
        return files

    def _count_slice(
        self, paths: List[Path], progress: Progress, task: TaskID, running: _RunningTotal
    ) -> Dict[Path, int]:
        local: Dict[Path, int] = {}
        for path in paths:
            result = read_document(path)
            if isinstance(result, Skipped):
                logger.debug("Skipping %s (%s)", result.path, result.reason)
                # Still counts as processed, so the bar reaches the file total
                progress.advance(task)
                continue

            tokens = self.count_fn(result.content)
            local[path] = tokens
            total = running.add(tokens)
            progress.update(task, advance=1, status=f"{total:,} tokens")
        return local

    def count(self, files: Sequence[Path]) -> Dict[Path, int]:
        running = _RunningTotal()
        columns = (
            SpinnerColumn(),
            TimeElapsedColumn(),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("files {task.percentage:>3.0f}%"),
            TextColumn("{task.fields[status]}"),
        )
        with self._progress(*columns) as progress:
            task = progress.add_task("Counting tokens", total=len(files), status="")
            partials = self.pool.map_slices(
                lambda paths: self._count_slice(paths, progress, task, running), files
            )
            progress.update(task, status=f"Processed {len(files)} files")

        merged: Dict[Path, int] = {}
        for local in partials:
            merged.update(local)
        return merged

    def run(self, roots: Iterable[Path]) -> TokenReport:
        start = time.perf_counter()
        self.announce("Discovering files to process...")
        files = self.discover(roots)
        self.announce(f"Counting tokens in {len(files)} files...")
        file_tokens = self.count(files)
        duration_ms = int((time.perf_counter() - start) * 1000)
        return TokenReport.build(file_tokens, duration_ms=duration_ms)
