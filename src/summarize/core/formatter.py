# src/summarize/core/formatter.py
import os
import sys
from pathlib import Path
from typing import List, TextIO

from summarize.models import OutputFormat

# Maps file extensions to the language tag of a markdown fence
EXT_TO_LANG = {
    "py": "python",
    "c": "c",
    "cpp": "cpp",
    "h": "c",
    "hpp": "cpp",
    "java": "java",
    "js": "javascript",
    "ts": "typescript",
    "html": "html",
    "css": "css",
    "xml": "xml",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "sh": "bash",
    "rb": "ruby",
    "rs": "rust",
    "go": "go",
    "md": "markdown",
    "toml": "toml",
}


class AggregationWriter:
    """
    Append-only, line-oriented sink for the aggregated document.
    Also carries the document index used by the XML format, starting at 1.
    """

    def __init__(self, stream: TextIO, owns_stream: bool = False):
        self.stream = stream
        self.owns_stream = owns_stream
        self.document_index = 1

    @classmethod
    def to_stdout(cls) -> "AggregationWriter":
        return cls(sys.stdout)

    @classmethod
    def to_file(cls, path: Path) -> "AggregationWriter":
        return cls(open(path, "w", encoding="utf-8"), owns_stream=True)

    def write(self, line: str) -> None:
        self.stream.write(line)
        self.stream.write("\n")

    def close(self) -> None:
        if self.owns_stream:
            self.stream.close()
        else:
            self.stream.flush()

    def __enter__(self) -> "AggregationWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _split_lines(content: str) -> List[str]:
    lines = content.split("\n")
    # A trailing newline ends the last line, it does not start a new one
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def add_line_numbers(content: str) -> str:
    """Prefixes each line with its 1-based number, right-aligned to the width of the last number."""
    lines = _split_lines(content)
    padding = len(str(len(lines)))
    return "\n".join(f"{i:>{padding}}  {line}" for i, line in enumerate(lines, start=1))


def display_path(path: Path) -> str:
    """The path as text; bytes that are not valid UTF-8 become U+FFFD."""
    return os.fsencode(path).decode("utf-8", "replace")


def _body(content: str, line_numbers: bool) -> str:
    return add_line_numbers(content) if line_numbers else content


def fence_for(content: str) -> str:
    """Shortest run of at least three backticks that does not occur in the content."""
    backticks = "```"
    while backticks in content:
        backticks += "`"
    return backticks


def language_for(path: Path) -> str:
    return EXT_TO_LANG.get(path.suffix[1:], "")


def print_default(writer: AggregationWriter, path: Path, content: str, line_numbers: bool) -> None:
    writer.write(display_path(path))
    writer.write("---")
    writer.write(_body(content, line_numbers))
    writer.write("")
    writer.write("---")


def print_as_xml(writer: AggregationWriter, path: Path, content: str, line_numbers: bool) -> None:
    writer.write(f'<document index="{writer.document_index}">')
    writer.write(f"<source>{display_path(path)}</source>")
    writer.write("<document_content>")
    writer.write(_body(content, line_numbers))
    writer.write("</document_content>")
    writer.write("</document>")
    writer.document_index += 1


def print_as_markdown(writer: AggregationWriter, path: Path, content: str, line_numbers: bool) -> None:
    backticks = fence_for(content)
    writer.write(display_path(path))
    writer.write(f"{backticks}{language_for(path)}")
    writer.write(_body(content, line_numbers))
    writer.write(backticks)


_PRINTERS = {
    OutputFormat.DEFAULT: print_default,
    OutputFormat.CXML: print_as_xml,
    OutputFormat.MARKDOWN: print_as_markdown,
}


def format_and_write(
    writer: AggregationWriter,
    path: Path,
    content: str,
    fmt: OutputFormat = OutputFormat.DEFAULT,
    line_numbers: bool = False,
) -> None:
    _PRINTERS[OutputFormat(fmt)](writer, path, content, line_numbers)
