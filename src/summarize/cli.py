# src/summarize/cli.py
import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Module imports
from summarize.config import DEFAULT_FORMAT, DEFAULT_MODEL, DEFAULT_SUMMARY_OUTPUT, DEFAULT_SUMMARY_PROMPT
from summarize.core.aggregator import SummarizationBackend, aggregate, summarize_corpus
from summarize.core.counter import ParallelTokenEngine, WorkerPool
from summarize.core.formatter import AggregationWriter
from summarize.core.ignore import InvalidPatternError, build_globset
from summarize.logging_config import setup_logging
from summarize.models import FilterConfig, OutputFormat, TokenizerModel
from summarize.report import display_token_report
from summarize.utils.stdin import read_paths_from_stdin


def create_arg_parser():
    parser = argparse.ArgumentParser(
        prog="summarize",
        description="Concatenate a directory full of files into a single prompt for use with LLMs.",
    )
    parser.add_argument("paths", type=Path, nargs="*", help="Paths to files or directories to process")

    # Filtering
    parser.add_argument(
        "-e", "--extension", dest="extensions", action="append", default=[],
        help="Only include files with the specified extension (repeatable)",
    )
    parser.add_argument("--include-hidden", action="store_true", help="Include files and folders starting with .")
    parser.add_argument("--ignore-files-only", action="store_true", help="--ignore option only ignores files")
    parser.add_argument("--ignore-gitignore", action="store_true", help="Ignore .gitignore files and include all files")
    parser.add_argument(
        "--include-vcs", action="store_true", help="Include version control directories (.git, .svn, .hg)"
    )
    parser.add_argument(
        "--ignore", dest="ignore_patterns", action="append", default=[], metavar="PATTERN",
        help="Pattern of file or directory names to ignore (repeatable)",
    )

    # Output
    parser.add_argument("-o", "--output", type=Path, default=None, help="Output to a file instead of stdout")
    parser.add_argument(
        "-f", "--format", dest="output_format", choices=[f.value for f in OutputFormat],
        default=DEFAULT_FORMAT.value, help="Output format",
    )
    parser.add_argument("-c", "--cxml", action="store_true", help="Output in Claude XML format")
    parser.add_argument("-m", "--markdown", action="store_true", help="Output Markdown with fenced code blocks")
    parser.add_argument("-n", "--line-numbers", action="store_true", help="Add line numbers to the output")
    parser.add_argument(
        "-0", "--null", action="store_true", help="Use NUL character as separator when reading paths from stdin"
    )

    # Summarization
    parser.add_argument(
        "--no-summarize", action="store_true", help="Only concatenate files without generating a summary"
    )
    parser.add_argument(
        "--prompt", dest="custom_prompt", default=DEFAULT_SUMMARY_PROMPT,
        help="Custom prompt to use when generating a summary",
    )
    parser.add_argument(
        "--summary-output", type=Path, default=DEFAULT_SUMMARY_OUTPUT, help="Output file for the summary"
    )

    # Token counting
    parser.add_argument("-t", "--count-tokens", action="store_true", help="Count tokens instead of outputting content")
    parser.add_argument(
        "--model", choices=[m.value for m in TokenizerModel], default=DEFAULT_MODEL.value,
        help="Tokenization model to use for counting",
    )
    parser.add_argument("--verbose", action="store_true", help="Show per-file token counts")
    parser.add_argument("--show-cost", action="store_true", help="Show estimated API costs")
    parser.add_argument(
        "--threads", type=int, default=0,
        help="Number of threads to use for token counting (0 = use all available cores)",
    )
    parser.add_argument("--debug", action="store_true", help="Log skipped files and pruned directories to stderr")
    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.cxml and args.markdown:
        parser.error("--cxml and --markdown cannot be used together")
    if (args.cxml or args.markdown) and args.output_format != DEFAULT_FORMAT.value:
        parser.error("--cxml/--markdown cannot be combined with --format")
    if args.threads < 0:
        parser.error("--threads must be 0 or a positive number")
    if not args.count_tokens:
        for flag, value in (("--verbose", args.verbose), ("--show-cost", args.show_cost)):
            if value:
                parser.error(f"{flag} requires --count-tokens")


def resolve_output_format(args: argparse.Namespace) -> OutputFormat:
    if args.cxml:
        return OutputFormat.CXML
    if args.markdown:
        return OutputFormat.MARKDOWN
    return OutputFormat(args.output_format)


def build_filter_config(args: argparse.Namespace) -> FilterConfig:
    # Extensions are compared without the dot: accept both "py" and ".py"
    extensions = frozenset(ext.lstrip(".") for ext in args.extensions if ext.strip("."))
    # Fail on a malformed pattern now, before the output file is opened
    build_globset(tuple(args.ignore_patterns))
    return FilterConfig(
        extensions=extensions,
        ignore_patterns=tuple(args.ignore_patterns),
        ignore_files_only=args.ignore_files_only,
        include_hidden=args.include_hidden,
        respect_gitignore=not args.ignore_gitignore,
        exclude_vcs=not args.include_vcs,
    )


def collect_roots(args: argparse.Namespace) -> List[Path]:
    roots = list(args.paths) + read_paths_from_stdin(args.null)
    if not roots:
        roots.append(Path("."))
    return roots


def run_token_count(args: argparse.Namespace, roots: List[Path], config: FilterConfig) -> None:
    if args.threads > 0:
        print(f"Using {args.threads} threads for token counting")
    else:
        print("Using all available CPU cores for token counting")

    model = TokenizerModel(args.model)
    engine = ParallelTokenEngine(WorkerPool(args.threads), model=model, config=config, announce=print)
    report = engine.run(roots)
    display_token_report(report, model, verbose=args.verbose, show_cost=args.show_cost)


def write_output_file(args: argparse.Namespace, roots: List[Path], config: FilterConfig, fmt: OutputFormat) -> None:
    with AggregationWriter.to_file(args.output) as writer:
        aggregate(roots, config, writer, fmt, args.line_numbers)
    print(f"Concatenated content written to {args.output}")


def run_aggregation(args: argparse.Namespace, roots: List[Path], config: FilterConfig) -> None:
    fmt = resolve_output_format(args)

    if args.output:
        write_output_file(args, roots, config, fmt)
    else:
        with AggregationWriter.to_stdout() as writer:
            aggregate(roots, config, writer, fmt, args.line_numbers)


def run_summary(
    args: argparse.Namespace, roots: List[Path], config: FilterConfig, backend: SummarizationBackend
) -> None:
    fmt = resolve_output_format(args)
    model = TokenizerModel(args.model)

    if args.output:
        write_output_file(args, roots, config, fmt)

    print(f"Summarizing codebase with {model.value} model...")
    summary = summarize_corpus(roots, config, backend, args.custom_prompt, model, fmt, args.line_numbers)
    args.summary_output.write_text(summary, encoding="utf-8")
    print(f"Summary written to {args.summary_output}")


def main(argv: Optional[List[str]] = None, backend: Optional[SummarizationBackend] = None):
    """
    Entry point. Without a summarization `backend` (the console script never
    passes one) the aggregated document goes to stdout or --output.
    """
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args(argv)
        validate_args(parser, args)
        setup_logging(debug=args.debug)

        # 2. Inputs
        config = build_filter_config(args)
        roots = collect_roots(args)

        # 3. Run
        if args.count_tokens:
            run_token_count(args, roots, config)
        elif backend is not None and not args.no_summarize:
            run_summary(args, roots, config, backend)
        else:
            run_aggregation(args, roots, config)

    except InvalidPatternError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)

    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
