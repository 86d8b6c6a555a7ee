# src/summarize/models.py
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple, Union


class OutputFormat(str, Enum):
    DEFAULT = "default"
    CXML = "cxml"
    MARKDOWN = "markdown"


class TokenizerModel(str, Enum):
    GEMINI_15_PRO = "gemini-1.5-pro"
    GEMINI_15_FLASH = "gemini-1.5-flash"
    GEMINI_20_FLASH = "gemini-2.0-flash"
    GEMINI_20_FLASH_LITE = "gemini-2.0-flash-lite"
    GEMINI_20_PRO = "gemini-2.0-pro"
    GEMINI_20_PRO_EXP = "gemini-2.0-pro-exp"
    GEMINI_20_PRO_EXP_0205 = "gemini-2.0-pro-exp-02-05"
    GEMINI_20_FLASH_THINKING_EXP = "gemini-2.0-flash-thinking-exp"
    GPT_35_TURBO = "gpt-3.5-turbo"
    GPT_4 = "gpt-4"
    GPT_4_TURBO = "gpt-4-turbo"
    CLAUDE_3_SONNET = "claude-3-sonnet"
    CLAUDE_3_OPUS = "claude-3-opus"


class EntryKind(str, Enum):
    FILE = "file"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class FilterConfig:
    """Immutable snapshot of every rule that decides which files are eligible."""
    extensions: FrozenSet[str] = frozenset()
    ignore_patterns: Tuple[str, ...] = ()
    ignore_files_only: bool = False
    include_hidden: bool = False
    respect_gitignore: bool = True
    exclude_vcs: bool = True


@dataclass(frozen=True)
class CandidateEntry:
    path: Path
    kind: EntryKind = EntryKind.FILE


@dataclass(frozen=True)
class DocumentRecord:
    """A file whose content was read and decoded successfully."""
    path: Path
    content: str


@dataclass(frozen=True)
class Skipped:
    """A file dropped from the output, with the reason it could not be read."""
    path: Path
    reason: str


ReadResult = Union[DocumentRecord, Skipped]


@dataclass(frozen=True)
class TokenReport:
    """
    Finished result of a counting run.
    Build it with TokenReport.build() so the total always matches the per-file counts.
    """
    file_tokens: Mapping[Path, int] = field(default_factory=lambda: MappingProxyType({}))
    total_tokens: int = 0
    duration_ms: int = 0

    def __post_init__(self):
        if self.total_tokens != sum(self.file_tokens.values()):
            raise ValueError(
                f"total_tokens ({self.total_tokens}) does not match the per-file sum "
                f"({sum(self.file_tokens.values())})"
            )

    @classmethod
    def build(cls, file_tokens: Mapping[Path, int], duration_ms: int = 0) -> "TokenReport":
        frozen = MappingProxyType(dict(file_tokens))
        return cls(file_tokens=frozen, total_tokens=sum(frozen.values()), duration_ms=duration_ms)

    @property
    def files_processed(self) -> int:
        return len(self.file_tokens)
