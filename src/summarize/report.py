# src/summarize/report.py
from typing import Optional

from rich.console import Console
from rich.table import Table

from summarize.config import OUTPUT_TOKEN_RATIO
from summarize.core.formatter import display_path
from summarize.models import TokenizerModel, TokenReport
from summarize.utils.tokenizer import display_name, estimate_cost


def format_duration(duration_ms: int, total_tokens: int) -> str:
    seconds = duration_ms / 1000
    tokens_per_second = round(total_tokens / seconds) if seconds > 0 else 0

    if seconds < 60:
        return f"Time taken: {seconds:.2f} seconds ({tokens_per_second:,} tokens/sec)"

    minutes = seconds // 60
    remaining = seconds - minutes * 60
    return f"Time taken: {minutes:.0f} min {remaining:.2f} sec ({tokens_per_second:,} tokens/sec)"


def build_file_table(report: TokenReport) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("File", overflow="fold")
    table.add_column("Tokens", justify="right")

    for path, tokens in sorted(report.file_tokens.items(), key=lambda item: str(item[0])):
        table.add_row(display_path(path), f"{tokens:,}")

    table.add_section()
    table.add_row("TOTAL", f"{report.total_tokens:,}")
    return table


def display_token_report(
    report: TokenReport,
    model: TokenizerModel,
    verbose: bool = False,
    show_cost: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Prints a finished report: totals, timing and, on request, per-file counts and cost."""
    console = console or Console()

    def say(line: str = "") -> None:
        console.print(line, markup=False, highlight=False)

    if verbose:
        console.print(build_file_table(report))
    else:
        say(f"Total tokens: {report.total_tokens:,}")

    say(f"Files processed: {report.files_processed}")

    if report.duration_ms > 0:
        say(format_duration(report.duration_ms, report.total_tokens))

    if show_cost:
        cost = estimate_cost(model, report.total_tokens)
        say()
        say(f"Estimated cost ({display_name(model)}):")
        say(
            f"  Input: ${cost.input_cost:.4f} ({cost.input_tokens:,} tokens "
            f"@ ${cost.input_cost_per_1k:.4f}/1K tokens)"
        )
        say(
            f"  Output: ${cost.output_cost:.4f} (est. {cost.output_tokens:,} tokens "
            f"@ ${cost.output_cost_per_1k:.4f}/1K tokens)*"
        )
        say(f"  Total: ${cost.total_cost:.4f}")
        say()
        say(f"* Output tokens are estimated at {OUTPUT_TOKEN_RATIO:.0%} of input tokens")
