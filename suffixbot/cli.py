"""Command-line entry points: ``suffixbot validate-pr`` and ``suffixbot sync-dns``."""

import argparse
import asyncio
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv

from suffixbot.clients.github import AsyncGitHubClient
from suffixbot.clients.powerdns import AsyncPowerDNSAdminClient
from suffixbot.config import Config, env_flag
from suffixbot.context import load_context, parse_files
from suffixbot.dns_sync import DNSSyncEngine, write_result_file
from suffixbot.engine import ValidationEngine
from suffixbot.exceptions import ConfigurationError, DNSSyncError, SuffixBotError
from suffixbot.logging import configure_logging, get_logger, level_from_name
from suffixbot.report import ResultReporter
from suffixbot.reserved_words import ReservedWordsSource
from suffixbot.sld_registry import SLDRegistry
from suffixbot.types.dns import DNSSyncResult
from suffixbot.types.validation import ErrorCategory, ValidationResult

logger = get_logger("cli")

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="suffixbot",
        description="Validate whois pull requests and sync merged changes to PowerDNS-Admin",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="debug, info, warning or error (default: LOG_LEVEL or info)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=None,
        help="Repository checkout holding whois/ and the data files (default: GITHUB_WORKSPACE or cwd)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate-pr", help="Validate the pull request in the environment")
    validate.add_argument(
        "--no-comment",
        action="store_true",
        help="Do not post the report comment or set labels",
    )

    sync = subparsers.add_parser("sync-dns", help="Apply a merged whois change to PowerDNS-Admin")
    sync.add_argument("--domain", type=str, default=None, help="Manual mode: domain.sld (default: MANUAL_DOMAIN)")
    sync.add_argument(
        "--operation",
        type=str,
        default=None,
        help="Manual mode: auto, add, update or delete (default: MANUAL_OPERATION or auto)",
    )
    sync.add_argument(
        "--whois-file",
        type=str,
        default=None,
        help="Manual mode: whois JSON file, relative to the workspace (default: MANUAL_WHOIS_FILE)",
    )
    sync.add_argument(
        "--force",
        action="store_true",
        help="Manual mode: continue past record problems (default: FORCE_SYNC)",
    )
    return parser


def build_sources(config: Config) -> tuple[ReservedWordsSource, SLDRegistry]:
    reserved_words = ReservedWordsSource(
        config.reserved_words_path,
        cache_file=config.reserved_words_cache_path,
        ttl=config.cache_ttl,
        fallback_words=config.fallback_reserved_words,
    )
    sld_registry = SLDRegistry(
        config.sld_list_path,
        cache_file=config.sld_cache_path,
        ttl=config.cache_ttl,
    )
    return reserved_words, sld_registry


async def run_validate_pr(
    config: Config,
    environ: Mapping[str, str],
    post_comment: bool = True,
    github: AsyncGitHubClient | None = None,
) -> int:
    """
    Validate the pull request described by ``environ`` and report the result.

    Returns:
        EXIT_SUCCESS when the pull request is valid, EXIT_FAILURE otherwise
    """
    owns_client = False
    if github is None and config.github_token:
        github = AsyncGitHubClient(
            token=config.github_token,
            repository=config.repository,
            base_url=config.github_api_url,
            timeout=config.http_timeout,
        )
        owns_client = True

    reserved_words, sld_registry = build_sources(config)
    reporter = ResultReporter(config, github=github, sld_registry=sld_registry)

    try:
        try:
            context = await load_context(environ, github)
        except SuffixBotError as e:
            logger.error("Could not load pull request context: %s", e.message)
            result = ValidationResult()
            result.add_error(ErrorCategory.INTERNAL, f"Internal validation error: {e.message}")
            await reporter.report(
                result, environ.get("PR_NUMBER"), environ.get("PR_AUTHOR"), post=post_comment
            )
            return EXIT_FAILURE

        engine = ValidationEngine(config, reserved_words, sld_registry, github)
        result = await engine.validate(context)
        await reporter.report(result, context.number, context.author, post=post_comment)
    finally:
        if owns_client:
            await github.close()

    return EXIT_SUCCESS if result.is_valid else EXIT_FAILURE


async def run_sync_dns(
    config: Config,
    environ: Mapping[str, str],
    args: argparse.Namespace,
    dns_client: AsyncPowerDNSAdminClient | None = None,
) -> int:
    """
    Run a PR-merge or manual DNS sync and write ``dns-sync-result.json``.

    Manual mode is selected by ``--domain`` or MANUAL_DOMAIN.
    """
    domain = args.domain or environ.get("MANUAL_DOMAIN")
    trigger_type = "manual" if domain else "pr_merge"

    try:
        if dns_client is None:
            if not config.pda_api_url or not config.pda_api_key:
                raise ConfigurationError("PDA_API_URL and PDA_API_KEY environment variables are required")
            dns_client = AsyncPowerDNSAdminClient(
                config.pda_api_url, config.pda_api_key, timeout=config.http_timeout
            )

        async with dns_client:
            engine = DNSSyncEngine(dns_client, ttl=config.dns_record_ttl)
            if domain:
                whois_file = args.whois_file or environ.get("MANUAL_WHOIS_FILE")
                result = await engine.handle_manual_sync(
                    domain,
                    operation=args.operation or environ.get("MANUAL_OPERATION") or "auto",
                    whois_file=config.workspace / whois_file if whois_file else None,
                    force=args.force or env_flag(environ.get("FORCE_SYNC")),
                    triggered_by=environ.get("GITHUB_ACTOR") or "unknown",
                )
            else:
                title = environ.get("PR_TITLE")
                if not title:
                    raise DNSSyncError("PR_TITLE environment variable is required")
                raw_files = environ.get("PR_FILES")
                if not raw_files:
                    raise DNSSyncError("PR_FILES environment variable is required")
                result = await engine.handle_pr_merge(title, parse_files(raw_files), config.workspace)
    except SuffixBotError as e:
        logger.error("DNS sync failed: %s", e.message)
        result = DNSSyncResult(success=False, error=e.message, trigger_type=trigger_type)

    try:
        write_result_file(result, config.workspace / config.dns_sync_result_file)
    except OSError as e:
        logger.error("Failed to write result file: %s", e)
        return EXIT_FAILURE

    if result.success:
        logger.info("DNS sync completed successfully: %s", result.message)
        return EXIT_SUCCESS
    return EXIT_FAILURE


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
        environ: Environment mapping (defaults to os.environ after loading .env).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if environ is None:
        load_dotenv()
        environ = os.environ

    try:
        config = Config.from_env(environ)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE

    if args.workspace is not None:
        config.workspace = args.workspace
    configure_logging(level=level_from_name(args.log_level or config.log_level))

    try:
        if args.command == "validate-pr":
            return asyncio.run(run_validate_pr(config, environ, post_comment=not args.no_comment))
        return asyncio.run(run_sync_dns(config, environ, args))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
