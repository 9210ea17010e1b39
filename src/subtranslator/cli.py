"""Command-line interface for subtranslator.

This module provides the CLI that translates a folder of subtitle files and
inspects single files.
"""

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

from . import __version__
from .config.settings import (
    DEFAULT_FILE_PATTERN,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_FOLDER,
    DEFAULT_SERVICE,
    DEFAULT_SRC_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    SUPPORTED_TRANSLATION_SERVICES,
    api_key_env_var,
)
from .core.entry import SubtitleError
from .core.subtitle import SubtitleProcessor
from .core.translation import SubtitleTranslator, TranslationError
from .core.workflow import FileResult, SubtitleWorkflow, WorkflowError, summarize_results
from .utils.common import setup_logging
from .utils.encoding import validate_encoding

if TYPE_CHECKING:
    from argparse import _SubParsersAction

logger = logging.getLogger(__name__)

_NEWLINE_NAMES = {"\n": "LF", "\r\n": "CRLF"}

# Google falls back to its web endpoint; Amazon to the default AWS credential chain
_KEYLESS_SERVICES = ("google", "amazon", "identity")


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="subtranslator",
        description="subtranslator - Batch subtitle translation tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Translate every .srt file of a folder from English to Spanish
  subtranslator translate ./subs --output-folder sub_output -s en -t es --service google

  # Check that files survive a round trip without calling any service
  subtranslator translate ./subs --dry-run

  # Show encoding, line endings and statistics of a file
  subtranslator inspect "srt example.srt"

Credentials are read from --api-key or from SUBTRANSLATOR_<SERVICE>_KEY
(or the older qsubtranslator_<service>_key),
which holds either value#<key> or file#<path to key file>.
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"subtranslator {__version__}",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--log-file",
        help="Log file path (in addition to console output)",
    )

    # Create subparsers for commands
    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        metavar="COMMAND",
    )

    _add_translate_parser(subparsers)
    _add_inspect_parser(subparsers)

    return parser


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _encoding_name(value: str) -> str:
    if not validate_encoding(value):
        raise argparse.ArgumentTypeError(f"unknown encoding: {value}")
    return value


def _add_translate_parser(subparsers: "_SubParsersAction[argparse.ArgumentParser]") -> None:
    """Add translation command parser."""
    translate_parser = subparsers.add_parser(
        "translate",
        help="Translate subtitle files between languages",
        description="Translate every subtitle file of a folder (or a single file)",
    )

    # Input/Output
    translate_parser.add_argument(
        "source",
        help="Folder with subtitle files, or a single subtitle file",
    )
    translate_parser.add_argument(
        "--output-folder",
        "-o",
        default=DEFAULT_OUTPUT_FOLDER,
        help=f"Folder for translated files (default: {DEFAULT_OUTPUT_FOLDER})",
    )

    # Language options
    translate_parser.add_argument(
        "--src-lang",
        "-s",
        default=DEFAULT_SRC_LANGUAGE,
        help=f"Source language code (default: {DEFAULT_SRC_LANGUAGE})",
    )
    translate_parser.add_argument(
        "--target-lang",
        "-t",
        default=DEFAULT_TARGET_LANGUAGE,
        help=f"Target language code (default: {DEFAULT_TARGET_LANGUAGE})",
    )

    # Translation options
    translate_parser.add_argument(
        "--service",
        choices=SUPPORTED_TRANSLATION_SERVICES,
        default=DEFAULT_SERVICE,
        help=f"Translation service to use (default: {DEFAULT_SERVICE})",
    )
    translate_parser.add_argument(
        "--api-key",
        help="API key for translation service",
    )
    translate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Write the files back untranslated instead of calling a service",
    )
    translate_parser.add_argument(
        "--workers",
        type=_positive_int,
        default=DEFAULT_MAX_WORKERS,
        help=f"Number of files translated at the same time (default: {DEFAULT_MAX_WORKERS})",
    )

    # File options
    translate_parser.add_argument(
        "--encoding",
        type=_encoding_name,
        help="Input file encoding (default: detect per file)",
    )
    translate_parser.add_argument(
        "--pattern",
        default=DEFAULT_FILE_PATTERN,
        help=f"File pattern inside the source folder (default: {DEFAULT_FILE_PATTERN})",
    )


def _add_inspect_parser(subparsers: "_SubParsersAction[argparse.ArgumentParser]") -> None:
    """Add inspect command parser."""
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show encoding, line endings and statistics of a subtitle file",
        description="Parse a subtitle file and report what was found",
    )
    inspect_parser.add_argument(
        "input",
        help="Subtitle file to inspect",
    )
    inspect_parser.add_argument(
        "--encoding",
        type=_encoding_name,
        help="Input file encoding (default: detect)",
    )


def _print_report(results: Dict[str, FileResult]) -> None:
    summary = summarize_results(results)
    print(
        f"\nTranslation completed: {summary['completed']}/{summary['total']} successful"
        + (f", {summary['failed']} failed" if summary["failed"] else "")
        + (f", {summary['cancelled']} cancelled" if summary["cancelled"] else "")
    )

    failures = [r for r in results.values() if r.get("status") == "failed"]
    if failures:
        print("\nFailed files:")
        for result in failures:
            print(f"  {result['input_path']}: {result.get('error_type')}: {result.get('error')}")


def handle_translate_command(args: argparse.Namespace) -> int:  # pylint: disable=too-many-return-statements
    """Handle the translate command."""
    try:
        service = "identity" if args.dry_run else args.service
        translator = SubtitleTranslator.from_service(service, args.api_key)
        if translator.api_key is None and service not in _KEYLESS_SERVICES:
            logger.error(
                "No API key for %s: use --api-key or set %s",
                service,
                api_key_env_var(service),
            )
            return 1

        workflow = SubtitleWorkflow(translator, max_workers=args.workers)

        def progress_callback(completed: int, total: int, path: str) -> None:
            print(f"[{completed}/{total}] {path}")

        source = Path(args.source)
        if source.is_file():
            results = workflow.batch_process(
                [source],
                args.output_folder,
                src_lang=args.src_lang,
                target_lang=args.target_lang,
                encoding=args.encoding,
                progress_callback=progress_callback,
            )
        else:
            results = workflow.translate_folder(
                source,
                args.output_folder,
                pattern=args.pattern,
                src_lang=args.src_lang,
                target_lang=args.target_lang,
                encoding=args.encoding,
                progress_callback=progress_callback,
            )

        if not results:
            logger.error("No files matching pattern '%s' found in %s", args.pattern, source)
            return 1

        _print_report(results)

        if workflow.cancelled:
            return 130
        return 0 if summarize_results(results)["failed"] == 0 else 1

    except (TranslationError, WorkflowError) as e:
        logger.error("Translation error: %s", e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("File system error: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Translation interrupted by user")
        return 130


def handle_inspect_command(args: argparse.Namespace) -> int:
    """Handle the inspect command."""
    processor = SubtitleProcessor()
    try:
        document = processor.parse_file(args.input, args.encoding)
    except SubtitleError as e:
        logger.error("Cannot read %s: %s", args.input, e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("File system error: %s", e)
        return 1

    stats = processor.get_statistics(document)
    issues = processor.validate_subtitles(document)

    print(f"File:        {args.input}")
    print(f"Encoding:    {document.encoding}{' (BOM)' if document.bom else ''}")
    print(f"Line ending: {_NEWLINE_NAMES.get(document.newline, repr(document.newline))}")
    for key, value in stats.items():
        print(f"{key.replace('_', ' ').capitalize() + ':':<20} {value}")

    if issues:
        print("\nIssues:")
        for issue in issues:
            print(f"  {issue}")

    return 0


def main(args: Optional[List[str]] = None) -> int:  # pylint: disable=too-many-return-statements
    """Main entry point for the CLI."""
    if args is None:
        args = sys.argv[1:]

    parsed_args = None
    try:
        parser = create_parser()
        parsed_args = parser.parse_args(args)

        # Setup logging
        log_level = logging.DEBUG if parsed_args.verbose else logging.INFO
        setup_logging(log_level, parsed_args.log_file)

        # Dispatch to command handlers
        if parsed_args.command == "translate":
            return handle_translate_command(parsed_args)
        if parsed_args.command == "inspect":
            return handle_inspect_command(parsed_args)

        parser.print_help()
        return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130
    except OSError as e:
        logger.error("System error: %s", e)
        return 1
    except Exception as e:  # pylint: disable=broad-except
        logger.error("Unexpected error: %s", e)
        # Print traceback in verbose mode if parsed_args is available
        if parsed_args and getattr(parsed_args, "verbose", False):
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
