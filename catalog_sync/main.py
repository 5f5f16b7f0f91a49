"""Main entry point for catalog-sync."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from catalog_sync import __version__
from catalog_sync.config import Settings, load_config
from catalog_sync.errors import CatalogSyncError, ConfigurationError, describe_error
from catalog_sync.reconciler import Reconciler, RunReport
from catalog_sync.storage import CatalogStore
from catalog_sync.translation import OpenAITranslator

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging."""
    level = logging.DEBUG if debug else logging.INFO

    # Clear any existing handlers to prevent duplication
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    # The OpenAI SDK logs every request at INFO through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.dev.ConsoleRenderer(colors=True)
                if debug
                else structlog.processors.JSONRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="catalog-sync",
        description="Synchronize translation catalogs with the source language catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Configuration comes from the environment (SOURCE_LANG, TARGET_LANGS,\n"
            "LOCALES_ROOT_PATH, OPENAI_SECRET_KEY, ...) or a .env file.\n"
            "Command line flags take precedence."
        ),
    )

    parser.add_argument("--version", action="version", version=f"catalog-sync {__version__}")
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug logging")
    parser.add_argument("--env-file", type=Path, help="Path to a .env file")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report missing and obsolete keys; exit 1 if any catalog is out of sync",
    )
    parser.add_argument("--source-lang", help="Source language tag (default: en)")
    parser.add_argument("--target-langs", help="Comma separated target language tags")
    parser.add_argument("--locales-root", type=Path, help="Directory containing the locales/ folder")

    return parser.parse_args(argv)


def build_reconciler(settings: Settings, check_only: bool = False) -> Reconciler:
    """Wire storage and translation for a run."""
    logger = structlog.get_logger()
    store = CatalogStore(settings.locales_dir, extension=settings.catalog_extension)

    translator = None
    if not check_only:
        if settings.openai_api_key:
            translator = OpenAITranslator.from_settings(settings)
        else:
            logger.warning("OPENAI_SECRET_KEY is not set, languages with missing keys will fail")

    return Reconciler(settings, store, translator=translator, check_only=check_only)


async def run_sync(settings: Settings, check_only: bool = False) -> RunReport:
    """Run one reconciliation over all target languages."""
    reconciler = build_reconciler(settings, check_only=check_only)
    try:
        return await reconciler.run()
    finally:
        if isinstance(reconciler.translator, OpenAITranslator):
            await reconciler.translator.aclose()


async def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)

    setup_logging(debug=bool(args.debug))
    logger = structlog.get_logger()

    try:
        config = load_config(
            env_file=args.env_file,
            source_lang=args.source_lang,
            target_langs=args.target_langs,
            locales_root_path=args.locales_root,
            debug=args.debug,
        )
    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e), config_key=e.context.get("config_key"))
        return EXIT_FAILURE

    if config.debug and not args.debug:
        setup_logging(debug=True)

    logger.info(
        "Starting catalog sync",
        version=__version__,
        source_lang=config.source_lang,
        target_langs=config.target_langs,
        locales_dir=str(config.locales_dir),
        check_only=args.check,
    )

    try:
        report = await run_sync(config, check_only=args.check)
    except CatalogSyncError as e:
        logger.error("Translation process failed", error=describe_error(e), context=e.context)
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("Unexpected error", error=str(e))
        return EXIT_FAILURE

    for result in report.failed:
        logger.error(
            "Language failed",
            language=result.language,
            status=result.status.value,
            error=describe_error(result.error) if result.error else None,
        )

    return EXIT_OK if report.ok else EXIT_FAILURE


def run() -> None:
    """Synchronous entry point for the console script."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    run()
