# src/summarize/core/ignore.py
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import pathspec

from summarize.config import GIT_INFO_EXCLUDE, GITIGNORE_FILENAME, VCS_DIRECTORIES, global_gitignore_path
from summarize.models import FilterConfig

logger = logging.getLogger(__name__)

_GLOB_SPECIALS = re.compile(r"([\[\]*?\\!#])")


class InvalidPatternError(ValueError):
    """Raised when an --ignore pattern cannot be compiled."""


def _check_brackets(pattern: str) -> None:
    """Rejects character classes that are opened but never closed, e.g. '[abc'."""
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            i += 2
            continue
        if char == "[":
            j = i + 1
            if j < len(pattern) and pattern[j] in "!^":
                j += 1
            # A ']' right after the opening bracket is a literal member of the class
            if j < len(pattern) and pattern[j] == "]":
                j += 1
            close = pattern.find("]", j)
            if close == -1:
                raise InvalidPatternError(f"Invalid ignore pattern '{pattern}': unclosed character class")
            i = close + 1
            continue
        i += 1


def _as_positive_glob(pattern: str) -> str:
    # A leading "!" or "#" is part of the name, never negation or a comment
    if pattern.startswith(("!", "#")):
        return "\\" + pattern
    return pattern


@lru_cache(maxsize=32)
def build_globset(patterns: Tuple[str, ...]) -> pathspec.PathSpec:
    """
    Compiles ignore patterns into a single PathSpec.
    Every pattern is an independent positive match, so their order never matters.
    Cached per pattern tuple, so repeated checks against the same patterns never rebuild it.
    """
    for pattern in patterns:
        _check_brackets(pattern)
    try:
        return pathspec.PathSpec.from_lines("gitwildmatch", [_as_positive_glob(p) for p in patterns])
    except (ValueError, TypeError) as e:
        raise InvalidPatternError(f"Invalid ignore pattern: {e}") from e


def should_ignore(
    path: Path,
    ignore_patterns: Sequence[str],
    ignore_files_only: bool,
    is_dir: Optional[bool] = None,
) -> bool:
    """
    True if the entry's bare name matches any ignore pattern.
    For directories (unless ignore_files_only) 'name/' is tested too, so 'node_modules/' only hits directories.
    """
    if not ignore_patterns:
        return False

    globset = build_globset(tuple(ignore_patterns))
    name = path.name

    if globset.match_file(name):
        return True

    if is_dir is None:
        is_dir = path.is_dir()

    if not ignore_files_only and is_dir:
        if globset.match_file(f"{name}/"):
            return True

    return False


def _extension(path: Path) -> str:
    return path.suffix[1:]


class PathFilter:
    """
    Decides whether a discovered entry is excluded.
    Every rule here is an independent exclusion, so the order of the checks is irrelevant.
    """

    def __init__(self, config: FilterConfig):
        self.config = config
        self.ignore_patterns = tuple(config.ignore_patterns)
        # Compile once up front: a malformed pattern must fail before any file is touched
        if self.ignore_patterns:
            build_globset(self.ignore_patterns)

    def is_vcs_dir(self, path: Path) -> bool:
        return self.config.exclude_vcs and path.name in VCS_DIRECTORIES

    def excludes(self, path: Path, is_dir: bool) -> bool:
        config = self.config

        if is_dir and self.is_vcs_dir(path):
            return True

        if not config.include_hidden and path.name.startswith("."):
            return True

        if self.ignore_patterns and (not is_dir or not config.ignore_files_only):
            if should_ignore(path, self.ignore_patterns, config.ignore_files_only, is_dir=is_dir):
                return True

        if not is_dir and config.extensions:
            if _extension(path) not in config.extensions:
                return True

        return False


def _read_ignore_lines(ignore_file: Path) -> List[str]:
    try:
        with open(ignore_file, "r", encoding="utf-8") as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Could not read ignore file %s: %s", ignore_file, e)
        return []


def _scope_pattern(line: str, rel_dir: str) -> Optional[str]:
    """
    Rewrites one line of a nested .gitignore so it can be matched against paths relative to the walk root.
    Patterns without an inner '/' match at any depth below their directory; the others are anchored to it.
    """
    if not line.strip() or line.startswith("#"):
        return None
    if not rel_dir:
        return line

    negate = line.startswith("!")
    body = line[1:] if negate else line

    if body.startswith("/"):
        body = body[1:]
        anchored = True
    else:
        anchored = "/" in body.rstrip().rstrip("/")

    prefix = _GLOB_SPECIALS.sub(r"\\\1", rel_dir)
    scoped = f"{prefix}/{body}" if anchored else f"{prefix}/**/{body}"
    return f"!{scoped}" if negate else scoped


class GitignoreStack:
    """
    The gitignore rules in effect for one directory of a walk.
    Rules are kept in precedence order (global excludes, .git/info/exclude, then
    .gitignore files from the root downwards) so the last matching rule wins.
    """

    def __init__(self, root: Path, lines: Tuple[str, ...] = ()):
        self.root = root
        self.lines = lines
        self.spec = pathspec.PathSpec.from_lines("gitwildmatch", lines) if lines else None

    @classmethod
    def for_root(cls, root: Path) -> "GitignoreStack":
        lines: List[str] = []
        global_file = global_gitignore_path()
        if global_file.is_file():
            lines.extend(_read_ignore_lines(global_file))
        info_exclude = root / GIT_INFO_EXCLUDE
        if info_exclude.is_file():
            lines.extend(_read_ignore_lines(info_exclude))
        scoped = tuple(_scoped_lines(lines, ""))
        try:
            return cls(root, scoped)
        except ValueError as e:
            logger.debug("Ignoring unparsable global excludes for %s: %s", root, e)
            return cls(root)

    def descend(self, directory: Path) -> "GitignoreStack":
        """Returns the stack for `directory`, adding its own .gitignore if it has one."""
        ignore_file = directory / GITIGNORE_FILENAME
        if not ignore_file.is_file():
            return self

        rel_dir = "" if directory == self.root else directory.relative_to(self.root).as_posix()
        scoped = _scoped_lines(_read_ignore_lines(ignore_file), rel_dir)
        if not scoped:
            return self
        try:
            return GitignoreStack(self.root, self.lines + tuple(scoped))
        except ValueError as e:
            # A broken .gitignore is not ours to reject; keep the rules we already have
            logger.debug("Ignoring unparsable %s: %s", ignore_file, e)
            return self

    def ignores(self, path: Path, is_dir: bool) -> bool:
        if self.spec is None:
            return False
        rel_path = path.relative_to(self.root).as_posix()
        if is_dir:
            rel_path += "/"
        return self.spec.match_file(rel_path)


def _scoped_lines(lines: Iterable[str], rel_dir: str) -> List[str]:
    scoped = (_scope_pattern(line, rel_dir) for line in lines)
    return [line for line in scoped if line is not None]
