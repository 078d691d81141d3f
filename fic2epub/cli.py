"""Command-line entry point."""
import argparse

from .adapter_factory import build_default_registry
from .config import get_output_dir, load_fetch_config
from .fetcher import PageFetcher
from .logging import logger, set_debug_level
from .logging_config import DEBUG_LEVELS
from .pipeline import process_references


def build_parser(registry):
    schemes = ", ".join(
        f"{r.scheme}:{'/'.join(['<field>'] * r.arity)}"
        for r in registry.registrations() if r.scheme
    )
    parser = argparse.ArgumentParser(
        prog='fic2epub',
        description='Download serialized web novels into EPUB books.',
        epilog=f"Short references: {schemes}",
    )
    parser.add_argument('references', nargs='+', metavar='REF',
                        help='Fiction URL or short reference such as rrl:12345.')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Directory to write EPUB files to (default: current directory).')
    parser.add_argument('--max-attempts', type=int, default=None,
                        help='Give up on a page after this many attempts (0 retries forever).')
    parser.add_argument('--retry-delay', type=float, default=None,
                        help='Seconds to wait between attempts.')
    parser.add_argument('--timeout', type=float, default=None,
                        help='HTTP timeout in seconds.')
    parser.add_argument('--debug-level', choices=list(DEBUG_LEVELS), default=None,
                        help='Logging verbosity.')
    return parser


def main(argv=None):
    registry = build_default_registry()
    args = build_parser(registry).parse_args(argv)
    if args.debug_level:
        set_debug_level(args.debug_level)

    fetch_config = load_fetch_config()
    if args.max_attempts is not None:
        fetch_config['max_attempts'] = args.max_attempts
    if args.retry_delay is not None:
        fetch_config['retry_delay'] = args.retry_delay
    if args.timeout is not None:
        fetch_config['timeout'] = args.timeout
    output_dir = args.output_dir or get_output_dir()

    with PageFetcher.from_config(fetch_config) as fetcher:
        results = process_references(args.references, registry, fetcher, output_dir)

    failed = [result for result in results if not result.ok]
    for result in results:
        if result.ok:
            logger.info(f"✅ {result.reference} -> {result.path}")
        else:
            logger.info(f"❌ {result.reference}: {result.error}")
    return 1 if failed else 0
