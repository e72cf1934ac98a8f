"""Entry point for the stack-focus command line tool.

This module provides the main entry point. It handles:
- Configuration loading and command-line overrides
- Logging setup
- Query parsing
- Running one aggregation pass over ``perf script`` output
- Rendering the requested report to stdout
"""

import argparse
import sys
from pathlib import Path

import structlog

from stack_focus._version import __version__

log = structlog.get_logger()

EXIT_OK = 0
EXIT_IO_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERNAL_ERROR = 3

# mode flag -> (report kind, aggregation scope)
MODES: dict[str, tuple[str, str]] = {
    "hist": ("hist", "matched"),
    "hist_callers": ("hist", "callers"),
    "hist_callees": ("hist", "callees"),
    "graph": ("graph", "matched"),
    "graph_callers": ("graph", "callers"),
    "graph_callees": ("graph", "callees"),
    "tree_callers": ("tree", "callers"),
    "tree_callees": ("tree", "callees"),
    "flat": ("flat", "matched"),
}


def setup_logging(
    debug: bool = False,
    log_format: str = "console",
    file_path: Path | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structured logging.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
        file_path: Path to log file (if file logging enabled)
        file_enabled: Whether to enable file logging
    """
    from stack_focus.utils.logging import LogFormat, LogLevel, configure_logging

    level = LogLevel.DEBUG if debug else LogLevel.WARNING
    fmt = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format

    configure_logging(
        level=level,
        log_format=fmt,
        file_path=file_path,
        file_enabled=file_enabled,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="stack-focus",
        description="Query sampled call stacks from `perf script` output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "query",
        help="Stack query, e.g. '{^main$}..{^malloc$}'",
    )

    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="File with `perf script` output (default: stdin)",
    )

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("--hist", action="store_true", help="Histogram of matched samples")
    modes.add_argument(
        "--hist-callers",
        action="store_true",
        help="Histogram of the matched span and its callers",
    )
    modes.add_argument(
        "--hist-callees",
        action="store_true",
        help="Histogram of the matched span and its callees",
    )
    modes.add_argument("--graph", action="store_true", help="DOT call graph of matched samples")
    modes.add_argument(
        "--graph-callers",
        action="store_true",
        help="DOT call graph of the matched span and its callers",
    )
    modes.add_argument(
        "--graph-callees",
        action="store_true",
        help="DOT call graph of the matched span and its callees",
    )
    modes.add_argument(
        "--tree-callers",
        action="store_true",
        help="Call tree from the matched span up through its callers",
    )
    modes.add_argument(
        "--tree-callees",
        action="store_true",
        help="Call tree from the matched span down through its callees",
    )
    modes.add_argument(
        "--flat",
        action="store_true",
        help="Matched samples grouped by innermost function",
    )

    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Number of functions kept in histograms and graphs (default: 22)",
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Tree levels printed before deeper calls are elided (default: all)",
    )

    parser.add_argument(
        "--min-percent",
        type=float,
        default=None,
        help="Hide tree nodes and roll up flat leaves below this percentage (default: 0)",
    )

    parser.add_argument(
        "--frequency",
        type=float,
        default=None,
        metavar="HZ",
        help="Sampling frequency; adds a seconds column to histograms",
    )

    parser.add_argument(
        "--rename",
        nargs=2,
        action="append",
        metavar=("REGEX", "REPLACEMENT"),
        default=[],
        help="Rewrite frame names matching REGEX (repeatable, first match wins)",
    )

    parser.add_argument(
        "--innermost-first",
        action="store_true",
        default=None,
        help=(
            "Match queries against perf's innermost-first frame order; "
            "reports still show callers before callees"
        ),
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker processes used for aggregation (default: 1)",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML configuration file",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default=None,
        help="Log output format (default: console, or the configured format)",
    )

    return parser.parse_args(argv)


def selected_mode(args: argparse.Namespace) -> tuple[str, str]:
    """Return ``(report kind, aggregation scope)`` for the parsed flags."""
    for flag, mode in MODES.items():
        if getattr(args, flag):
            return mode
    return ("summary", "all")


def run(args: argparse.Namespace) -> int:
    """Run one query over the input.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from stack_focus.adapters.perf_script import PerfScriptReader, open_input
    from stack_focus.adapters.render import (
        render_dot,
        render_flat,
        render_histogram,
        render_summary,
        render_tree,
    )
    from stack_focus.config.loader import default_config, load_config
    from stack_focus.core import (
        AggregationScope,
        Aggregator,
        NameRewriter,
        RegexCache,
        build_flat,
        build_histogram,
        build_report,
        build_tree,
        parse_pattern,
        summarize,
    )
    from stack_focus.utils.errors import (
        ConfigError,
        InternalInvariantViolation,
        PatternParseError,
    )
    from stack_focus.utils.logging import LogEventNames, bind_context, configure_logging
    from stack_focus.utils.metrics import get_metrics

    log.info(LogEventNames.RUN_STARTING, version=__version__, query=args.query)

    try:
        if args.config is not None:
            log.info(LogEventNames.CONFIG_LOADING, path=str(args.config))
            config = load_config(args.config)
            log.info(LogEventNames.CONFIG_LOADED)
        else:
            config = default_config()

        configure_logging(
            level="DEBUG" if args.debug else config.logging.level,
            log_format=args.format or config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

        threshold = args.threshold if args.threshold is not None else config.threshold
        if threshold < 1:
            raise ConfigError(f"--threshold must be a positive integer, got {threshold}")
        workers = args.workers if args.workers is not None else config.runtime.workers
        if workers < 1:
            raise ConfigError(f"--workers must be a positive integer, got {workers}")
        innermost_first = (
            args.innermost_first if args.innermost_first is not None else config.innermost_first
        )
        max_depth = args.max_depth if args.max_depth is not None else config.report.max_depth
        if max_depth is not None and max_depth < 1:
            raise ConfigError(f"--max-depth must be a positive integer, got {max_depth}")
        min_percent = (
            args.min_percent if args.min_percent is not None else config.report.min_percent
        )
        if not 0 <= min_percent <= 100:
            raise ConfigError(f"--min-percent must be between 0 and 100, got {min_percent}")
        frequency = args.frequency if args.frequency is not None else config.report.frequency
        if frequency is not None and frequency <= 0:
            raise ConfigError(f"--frequency must be positive, got {frequency}")

        cache = RegexCache()
        pattern = parse_pattern(args.query, cache)
        pairs = [rule.as_pair() for rule in config.rename] + [tuple(p) for p in args.rename]
        rewriter = NameRewriter.from_pairs(pairs, cache)

        kind, scope = selected_mode(args)
        bind_context(query=args.query, mode=kind)
        aggregator = Aggregator(
            pattern,
            rewriter,
            AggregationScope(scope),
            keep_stacks=kind in ("tree", "flat"),
            innermost_first=innermost_first,
        )
        reader = PerfScriptReader(innermost_first=innermost_first)

        with open_input(args.input) as stream:
            samples = reader.samples(stream)
            if workers > 1:
                counts = aggregator.run_parallel(
                    samples, workers=workers, chunk_size=config.runtime.chunk_size
                )
            else:
                counts = aggregator.run(samples)

        if kind == "summary":
            print(render_summary(summarize(counts), args.query))
        elif kind == "hist":
            print(render_histogram(build_histogram(counts, threshold), frequency))
        elif kind == "tree":
            tree = build_tree(counts, inverted=scope == "callers")
            print(render_tree(tree, max_depth, min_percent))
        elif kind == "flat":
            print(render_flat(build_flat(counts, min_percent)))
        else:
            print(render_dot(build_report(counts, threshold)))

        log.debug(LogEventNames.METRICS_SNAPSHOT, metrics=get_metrics().get_all_metrics())
        log.info(
            LogEventNames.RUN_COMPLETE,
            total=counts.total,
            matched=counts.matched,
            skipped_blocks=reader.skipped_blocks,
        )
        return EXIT_OK

    except PatternParseError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for line in e.caret_lines():
            print(line, file=sys.stderr)
        log.error(LogEventNames.PATTERN_PARSE_ERROR, error=str(e), offset=e.offset)
        return EXIT_CONFIG_ERROR
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        log.error(LogEventNames.CONFIG_INVALID, error=str(e))
        return EXIT_CONFIG_ERROR
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        log.error("file_not_found", error=str(e))
        return EXIT_IO_ERROR
    except InternalInvariantViolation as e:
        log.exception(LogEventNames.INVARIANT_VIOLATION, error=str(e))
        return EXIT_INTERNAL_ERROR
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        log.error(LogEventNames.RUN_ERROR, error=str(e))
        return EXIT_IO_ERROR


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(
        debug=args.debug,
        log_format=args.format or "console",
    )

    try:
        return run(args)
    except KeyboardInterrupt:
        log.info("interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
