# src/summarize/core/aggregator.py
import io
import logging
from pathlib import Path
from typing import Iterable, Protocol

from summarize.config import DEFAULT_MODEL, DEFAULT_SUMMARY_PROMPT
from summarize.core.formatter import AggregationWriter, format_and_write
from summarize.core.scanner import iter_documents
from summarize.models import FilterConfig, OutputFormat, TokenizerModel

logger = logging.getLogger(__name__)


def aggregate(
    roots: Iterable[Path],
    config: FilterConfig,
    writer: AggregationWriter,
    fmt: OutputFormat = OutputFormat.DEFAULT,
    line_numbers: bool = False,
) -> int:
    """
    Writes every eligible, readable file under `roots` to `writer`.
    Returns the number of documents written.
    """
    fmt = OutputFormat(fmt)
    documents = iter_documents(roots, config)
    count = 0

    if fmt is OutputFormat.CXML:
        writer.write("<documents>")

    for record in documents:
        format_and_write(writer, record.path, record.content, fmt, line_numbers)
        count += 1

    if fmt is OutputFormat.CXML:
        writer.write("</documents>")

    logger.debug("Aggregated %d documents", count)
    return count


def collect_file_contents(
    roots: Iterable[Path],
    config: FilterConfig,
    fmt: OutputFormat = OutputFormat.DEFAULT,
    line_numbers: bool = False,
) -> str:
    """Same as aggregate(), but returns the document as a string."""
    buffer = io.StringIO()
    aggregate(roots, config, AggregationWriter(buffer), fmt, line_numbers)
    return buffer.getvalue()


class SummarizationBackend(Protocol):
    """Anything that turns an aggregated document and a prompt into a single text reply."""

    def summarize(self, document: str, prompt: str, model: TokenizerModel) -> str:
        ...


def summarize_corpus(
    roots: Iterable[Path],
    config: FilterConfig,
    backend: SummarizationBackend,
    prompt: str = DEFAULT_SUMMARY_PROMPT,
    model: TokenizerModel = DEFAULT_MODEL,
    fmt: OutputFormat = OutputFormat.DEFAULT,
    line_numbers: bool = False,
) -> str:
    """Aggregates the roots and hands the document to the summarization backend."""
    document = collect_file_contents(roots, config, fmt, line_numbers)
    logger.info("Summarizing %d characters with %s", len(document), TokenizerModel(model).value)
    return backend.summarize(document, prompt, TokenizerModel(model))
