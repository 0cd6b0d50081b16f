import asyncio
import logging
import sys
from argparse import ArgumentParser
from datetime import datetime, UTC
from typing import List, Optional

from .errors import LinkPageError
from .services.organizer import LinkPageOrganizer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_FAILURE = 2


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = ArgumentParser(
        description='Check, deduplicate and normalize a markdown links page.'
    )
    parser.add_argument(
        '-i', '--input',
        type=str,
        default='useful-links.md',
        help='Links page to read (default: useful-links.md)'
    )
    parser.add_argument(
        '-o', '--output',
        type=str,
        help='Write the normalized page to this file'
    )
    parser.add_argument(
        '-r', '--report',
        type=str,
        help='Write a markdown validation report to this file'
    )
    parser.add_argument(
        '-c', '--config',
        type=str,
        help='Path to YAML configuration file'
    )
    parser.add_argument(
        '--dedupe',
        action='store_true',
        help='Drop repeated URLs from the output page, keeping the first occurrence'
    )
    parser.add_argument(
        '--fetch-titles',
        action='store_true',
        help='Fetch page titles for links written without a label'
    )
    parser.add_argument(
        '--no-cache',
        action='store_true',
        help='Disable the title cache'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Treat warnings as failures'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write a detailed log to this file'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    return parser.parse_args(argv)


def setup_logging(debug: bool, log_file: Optional[str] = None) -> logging.Logger:
    """Setup logging to the console and, optionally, a file."""
    root_logger = logging.getLogger()

    # Remove any existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(logging.DEBUG)
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    return root_logger


async def run(args) -> int:
    logger.info(f"Starting linkpage at {datetime.now(UTC).strftime('%Y-%m-%d %H:%M:%S')} UTC")
    organizer = LinkPageOrganizer(args.config, use_cache=not args.no_cache)

    page = organizer.parse_page(args.input)
    report = organizer.validate(page)

    if args.report:
        organizer.write_report(page, report, args.report)

    if args.output:
        if args.dedupe:
            page = organizer.deduplicate(page)
        if args.fetch_titles or organizer.settings.get('fetch_titles'):
            logger.info("Fetching missing titles...")
            page = await organizer.fetch_missing_titles(page)
        organizer.write_page(page, args.output)

    passed = report.passed(strict=args.strict)
    logger.info(f"""Link Page Summary:
        Links: {len(page.links)}
        Categories: {len(page.categories)}
        Errors: {len(report.errors)}
        Warnings: {len(report.warnings)}
        Result: {'passed' if passed else 'failed'}
        """)
    return EXIT_OK if passed else EXIT_INVALID


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug, args.log_file)

    try:
        return asyncio.run(run(args))
    except (OSError, LinkPageError) as e:
        logger.error(f"An error occurred: {e}")
        if args.debug:
            logger.exception("Detailed error information:")
        return EXIT_FAILURE


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
