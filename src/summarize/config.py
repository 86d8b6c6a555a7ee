# src/summarize/config.py
import os
from pathlib import Path

from summarize.models import OutputFormat, TokenizerModel

# Directories pruned from every walk unless --include-vcs is given
VCS_DIRECTORIES = frozenset({".git", ".svn", ".hg"})

GITIGNORE_FILENAME = ".gitignore"
GIT_INFO_EXCLUDE = Path(".git") / "info" / "exclude"

DEFAULT_MODEL = TokenizerModel.GEMINI_15_FLASH
DEFAULT_FORMAT = OutputFormat.DEFAULT

# Output cost is estimated, not measured: assume a reply of 20% of the input size
OUTPUT_TOKEN_RATIO = 0.2

DEFAULT_SUMMARY_PROMPT = (
    "You are a senior software engineer reviewing a codebase. Generate a comprehensive "
    "overview.md file that explains the purpose, structure, and key components of this "
    "codebase. Focus on helping a new developer understand how the codebase is organized "
    "and how different parts work together."
)

DEFAULT_SUMMARY_OUTPUT = Path("overview.md")


def global_gitignore_path() -> Path:
    """Location of git's default global excludes file."""
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_home) if xdg_home else Path.home() / ".config"
    return base / "git" / "ignore"
