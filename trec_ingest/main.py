"""CLI entry point and orchestrator."""

import argparse
import logging
import sys
import time

from dotenv import load_dotenv

from .config import FORMATS, load_config
from .discovery import discover_files
from .errors import ConfigError, DiscoveryError, IndexWriteError, SchedulerConsistencyError
from .index import SearchIndex
from .logger import setup_logger
from .parsers import get_parser
from .scheduler import IngestionScheduler

EXIT_ERROR = 1
EXIT_INCONSISTENT = 2


def _to_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trec-ingest", description="Build a full-text index from a TREC collection")
    parser.add_argument("-i", "--input_path", required=True,
                        help="the path to the raw documents")
    parser.add_argument("-o", "--output_path", required=True,
                        help="the path to the output index")
    parser.add_argument("-f", "--format", required=True, choices=FORMATS,
                        help="trectext (trec1,2,3,6,7,8 robust04), trecweb (wt2g, gov2), clueweb09, clueweb12")
    parser.add_argument("-r", "--remove-stopwords", type=_to_bool, default=None,
                        help="whether to remove stopwords, default [true]")
    parser.add_argument("-s", "--stemmer", default=None,
                        help="type of the stemmer: porter or none, default [porter]")
    parser.add_argument("-n", "--numThreads", type=int, default=None,
                        help="number of threads (in parallel) used to build the index")
    parser.add_argument("--queue-capacity", type=int, default=None,
                        help="max files submitted but not yet completed, default [4 * threads]")
    parser.add_argument("--docvectors", action="store_true",
                        help="store term vectors for each document")
    parser.add_argument("--no-positions", action="store_true",
                        help="build a count index without term positions")
    parser.add_argument("--exclude-dir", action="append", default=None,
                        help="directory name to skip while walking the input (repeatable)")
    parser.add_argument("--config", type=str, default="config.yaml",
                        help="Path to config file")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def apply_args(config, args):
    """CLI flags override config file and environment."""
    config.input_path = args.input_path
    config.output_path = args.output_path
    config.format = args.format
    if args.remove_stopwords is not None:
        config.analyzer.remove_stopwords = args.remove_stopwords
    if args.stemmer is not None:
        config.analyzer.stemmer = args.stemmer
    if args.numThreads is not None:
        config.pipeline.num_threads = args.numThreads
    if args.queue_capacity is not None:
        config.pipeline.queue_capacity = args.queue_capacity
    if args.docvectors:
        config.analyzer.store_term_vectors = True
    if args.no_positions:
        config.analyzer.positional = False
    if args.exclude_dir:
        config.excluded_dirs = args.exclude_dir
    return config


def run_index(config) -> int:
    """Discover, ingest and commit. Returns the number of indexed documents."""
    logger = logging.getLogger("trec_ingest")
    analyzer = config.analyzer

    files = discover_files(config.input_path, config.excluded_dirs)
    parser = get_parser(config.format, analyzer.store_term_vectors, analyzer.positional)
    index = SearchIndex(
        config.output_path,
        remove_stopwords=analyzer.remove_stopwords,
        stemmer=analyzer.stemmer,
        store_term_vectors=analyzer.store_term_vectors,
        positional=analyzer.positional,
    )

    logger.info(f"Index path: {config.output_path}")
    logger.info(f"Format: {config.format}")
    logger.info(f"Threads: {config.pipeline.num_threads}")

    scheduler = IngestionScheduler(
        parser, index,
        num_threads=config.pipeline.num_threads,
        capacity=config.pipeline.capacity,
    )
    summary = scheduler.run(files)

    if summary.files_failed:
        logger.warning(f"{summary.files_failed} of {summary.files_total} files failed")
    logger.info(f"{summary.documents_skipped} documents skipped")
    return summary.documents_indexed


def _format_duration(seconds: float) -> str:
    seconds = int(seconds)
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = apply_args(load_config(args.config), args)
        config.validate()
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_ERROR

    logger = setup_logger(config.log_dir, logging.DEBUG if args.verbose else logging.INFO)
    logger.info("Indexer: start")
    start = time.monotonic()

    try:
        num_indexed = run_index(config)
    except DiscoveryError as e:
        print(f"{e}, please check the path", file=sys.stderr)
        return EXIT_ERROR
    except (ValueError, IndexWriteError) as e:
        logger.error(f"Indexing aborted: {e}")
        return EXIT_ERROR
    except SchedulerConsistencyError as e:
        logger.critical(f"Scheduler consistency failure: {e}")
        print(f"FATAL: discovered {e.discovered} files but completed {e.completed}", file=sys.stderr)
        return EXIT_INCONSISTENT

    elapsed = time.monotonic() - start
    logger.info(f"Total {num_indexed} documents indexed in {_format_duration(elapsed)}")
    print(f"Total {num_indexed} documents indexed in {_format_duration(elapsed)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
