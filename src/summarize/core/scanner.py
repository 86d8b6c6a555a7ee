# src/summarize/core/scanner.py
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Set, Tuple

from summarize.core.ignore import GitignoreStack, PathFilter
from summarize.models import CandidateEntry, DocumentRecord, EntryKind, FilterConfig, ReadResult, Skipped

logger = logging.getLogger(__name__)


def _dir_identity(path: str) -> Optional[Tuple[int, int]]:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_dev, st.st_ino)


def _entry_kind(path: Path) -> EntryKind:
    return EntryKind.SYMLINK if path.is_symlink() else EntryKind.FILE


class Walker:
    """
    Resolves roots into the files eligible for processing.

    File roots are yielded as-is, without any filtering, so a user can always
    name a hidden or ignored file explicitly. Directory roots are walked
    recursively, following symlinks, with excluded directories pruned before
    they are entered.
    """

    def __init__(self, config: FilterConfig):
        self.config = config
        self.path_filter = PathFilter(config)

    def walk(self, roots: Iterable[Path]) -> Iterator[CandidateEntry]:
        for root in roots:
            root = Path(root)
            if root.is_file():
                yield CandidateEntry(path=root, kind=_entry_kind(root))
            elif root.is_dir():
                yield from self._walk_directory(root)
            else:
                logger.debug("Skipping %s: not a file or directory", root)

    def _on_walk_error(self, error: OSError) -> None:
        logger.debug("Skipping unreadable directory %s: %s", error.filename, error)

    def _walk_directory(self, root: Path) -> Iterator[CandidateEntry]:
        top = os.fspath(root)
        base_stack = GitignoreStack.for_root(root) if self.config.respect_gitignore else None
        # Rules inherited by each directory os.walk has yet to visit
        pending: Dict[str, Optional[GitignoreStack]] = {top: base_stack}
        visited: Set[Tuple[int, int]] = set()

        for dirpath, dirnames, filenames in os.walk(top, followlinks=True, onerror=self._on_walk_error):
            current = Path(dirpath)
            stack = pending.pop(dirpath, base_stack)

            # --- 1. Symlink cycle guard ---
            identity = _dir_identity(dirpath)
            if identity is None or identity in visited:
                logger.debug("Not descending into %s: already visited", dirpath)
                dirnames[:] = []
                continue
            visited.add(identity)

            if stack is not None:
                stack = stack.descend(current)

            # --- 2. Prune directories (in-place, so os.walk never enters them) ---
            kept = []
            for d in dirnames:
                dir_path = current / d
                if self.path_filter.excludes(dir_path, is_dir=True):
                    logger.debug("Pruning directory %s", dir_path)
                    continue
                if stack is not None and stack.ignores(dir_path, is_dir=True):
                    logger.debug("Pruning gitignored directory %s", dir_path)
                    continue
                kept.append(d)
                pending[os.path.join(dirpath, d)] = stack
            dirnames[:] = kept

            # --- 3. Files ---
            for f in filenames:
                file_path = current / f
                if self.path_filter.excludes(file_path, is_dir=False):
                    continue
                if stack is not None and stack.ignores(file_path, is_dir=False):
                    continue
                # Broken symlinks, sockets and FIFOs are not regular files
                if not file_path.is_file():
                    logger.debug("Skipping %s: not a regular file", file_path)
                    continue
                yield CandidateEntry(path=file_path, kind=_entry_kind(file_path))


def walk(roots: Iterable[Path], config: FilterConfig) -> Iterator[CandidateEntry]:
    return Walker(config).walk(roots)


def read_document(path: Path) -> ReadResult:
    """
    Reads a file as UTF-8 text, byte-exact.
    Never raises for per-file problems; those come back as a Skipped value.
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        return Skipped(path=path, reason=f"read error: {e.strerror or e}")

    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        return Skipped(path=path, reason="not valid UTF-8")

    return DocumentRecord(path=path, content=content)


def iter_documents(roots: Iterable[Path], config: FilterConfig) -> Iterator[DocumentRecord]:
    """
    Walks the roots and yields every eligible file that could be read.
    The filter is compiled on call, not on first iteration.
    """
    return _read_entries(walk(roots, config))


def _read_entries(entries: Iterator[CandidateEntry]) -> Iterator[DocumentRecord]:
    for entry in entries:
        result = read_document(entry.path)
        if isinstance(result, Skipped):
            logger.debug("Skipping %s (%s)", result.path, result.reason)
            continue
        yield result
