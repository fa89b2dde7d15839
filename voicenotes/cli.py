"""Command line interface for summarizing recordings.

Examples:
  voicenotes summarize lecture.mp3
  voicenotes summarize meeting.m4a --provider anthropic --options summary,action_items
  voicenotes fields
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as OptionsError

from . import __version__
from .analysis.fields import FIELDS, Verbosity
from .config import Config, get_config
from .config.validation import PipelineOptions, SummaryOptions
from .pipeline.audio_pipeline import PipelineResult, VoiceNotesPipeline
from .providers.factory import (
    create_completion_provider,
    create_moderation_provider,
    create_transcription_provider,
    get_available_completion_providers,
)
from .ui.console import ConsoleManager
from .utils.errors import VoiceNotesError
from .utils.logging_factory import LoggingFactory

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNEXPECTED = 2


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="voicenotes",
        description="Transcribe a recording and turn it into a structured summary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Summary, main points and action items (default)
  voicenotes summarize lecture.mp3

  # Pick the fields and the completion provider
  voicenotes summarize meeting.m4a --provider anthropic --options summary,action_items,follow_up

  # Longer output, transcript in German, report written to a file
  voicenotes summarize talk.mp3 --verbosity High --language de --output talk.json

  # List the summary fields that can be requested
  voicenotes fields
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Emit machine-readable JSON events to stderr and the report to stdout",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    summarize_parser = subparsers.add_parser(
        "summarize",
        help="Transcribe and summarize a recording",
        description="Transcribe a recording and summarize it into the selected fields",
    )
    summarize_parser.add_argument("audio_file", help="Input audio file path")
    summarize_parser.add_argument(
        "--provider",
        choices=get_available_completion_providers(),
        help="Completion provider (default: COMPLETION_PROVIDER or openai)",
    )
    summarize_parser.add_argument(
        "--options",
        help="Comma-separated summary fields, by key or label (see 'voicenotes fields')",
    )
    summarize_parser.add_argument(
        "--verbosity",
        choices=[v.value for v in Verbosity],
        help="Length of the summary fields (default: Medium)",
    )
    summarize_parser.add_argument(
        "--temperature", type=int, help="Sampling temperature on a 0-10 scale (default: 2)"
    )
    summarize_parser.add_argument(
        "--chunk-size", type=int, help="Audio segment size in MB, 10-50 (default: 24)"
    )
    summarize_parser.add_argument(
        "--max-tokens", type=int, help="Transcript tokens per summary request"
    )
    summarize_parser.add_argument("--language", help="Transcript language (ISO-639-1 code)")
    summarize_parser.add_argument("--summary-language", help="Language of the summary")
    summarize_parser.add_argument("--title-language", help="Language of the title")
    summarize_parser.add_argument(
        "--no-moderation", action="store_true", help="Skip the moderation check"
    )
    summarize_parser.add_argument("--output", "-o", help="Write the JSON report to this file")

    subparsers.add_parser("fields", help="List the summary fields that can be requested")

    return parser


def build_pipeline_options(args: argparse.Namespace, config: Config) -> PipelineOptions:
    """Merge command line arguments over configuration defaults.

    Raises:
        pydantic.ValidationError: If a value is out of range or a field name is unknown
    """

    def pick(value, default):
        return default if value is None else value

    fields = args.options.split(",") if args.options else config.summary_options
    summary = SummaryOptions(
        fields=[f for f in (name.strip() for name in fields) if f],
        verbosity=pick(args.verbosity, config.verbosity),
        temperature=pick(args.temperature, config.temperature),
        summary_language=pick(args.summary_language, config.summary_language),
        title_language=pick(args.title_language, config.title_language),
    )
    return PipelineOptions(
        provider=pick(args.provider, config.completion_provider),
        chunk_size_mb=pick(args.chunk_size, config.chunk_size_mb),
        max_tokens_per_chunk=pick(args.max_tokens, config.max_tokens_per_chunk),
        period_search_radius=config.period_search_radius,
        transcript_language=pick(args.language, config.transcript_language),
        whisper_prompt=config.whisper_prompt,
        moderation=not (args.no_moderation or config.disable_moderation),
        fail_on_no_duration=config.fail_on_no_duration,
        summary=summary,
    )


def _write_report(result: PipelineResult, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Report written to {output}")


def summarize_command(args: argparse.Namespace, console_manager: ConsoleManager) -> int:
    """Handle the summarize subcommand.

    Args:
        args: Command line arguments
        console_manager: Console manager for rich or JSON output

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    config = get_config()
    try:
        options = build_pipeline_options(args, config)
        config.validate(options.provider)
        transcriber = create_transcription_provider(config)
        completer = create_completion_provider(options.provider, config)
        moderator = create_moderation_provider(config) if options.moderation else None
    except (OptionsError, ValueError) as e:
        console_manager.print_error(str(e))
        return EXIT_FAILURE

    pipeline = VoiceNotesPipeline(
        config, transcriber, completer, moderator, console_manager=console_manager
    )
    result = asyncio.run(pipeline.run(Path(args.audio_file), options))

    if args.output:
        _write_report(result, Path(args.output))
    console_manager.print_summary(result.to_dict())
    return EXIT_OK


def fields_command(console_manager: ConsoleManager) -> int:
    """Handle the fields subcommand."""
    if console_manager.json_output:
        print(json.dumps([{"key": f.key, "label": f.label} for f in FIELDS]))
    elif console_manager.console:
        for f in FIELDS:
            console_manager.console.print(f"[cyan]{f.key:<20}[/cyan] {f.label}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code: 0 on success, 1 for a known failure, 2 for an unexpected error
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config = get_config()
    LoggingFactory.initialize(log_dir=config.log_dir, level=config.log_level_value, console=False)
    verbose = args.verbose or config.verbose
    console_manager = ConsoleManager(verbose=verbose, json_output=args.json_output)
    console_manager.setup_logging(logging.getLogger("voicenotes"), level=config.log_level_value)

    try:
        if args.command == "summarize":
            return summarize_command(args, console_manager)
        if args.command == "fields":
            return fields_command(console_manager)
        parser.print_help()
        return EXIT_FAILURE
    except VoiceNotesError as e:
        logger.debug("Run failed", exc_info=True)
        console_manager.print_error(e.message, e.hint)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("Unexpected error")
        console_manager.print_error(f"Unexpected error: {e}")
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    sys.exit(main())
