"""Command line entry point for prlens."""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List

from content_cache import ContentCache, format_size
from diff import DiffError
from intent import AnalysisResult, CodexEngine, IntentAnalyzer, IntentError, IntentHunkSplitter, IntentRefiner
from pull_request import (
    GitHubPullRequestProvider, PullRequestDiffFetcher, PullRequestError, PullRequestProvider, validate_repo
)
from review import ReviewSession, ReviewSettings

from prlens import __version__, install_global_exception_handler, setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="prlens",
        description="Group pull request changes by intent for review",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list octo/widgets                   # Open pull requests
  %(prog)s analyze octo/widgets 42             # Group PR 42 by intent
  %(prog)s analyze octo/widgets 42 --split     # Split large hunks first
  %(prog)s analyze octo/widgets 42 --refine G2 # Refine one group
  %(prog)s cache size                          # Show cache usage
  %(prog)s config --model gpt-5                # Set the default model
        """
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('--settings', default=ReviewSettings.default_path(), help='Settings file path')
    parser.add_argument('--log-level', choices=['debug', 'info', 'warning', 'error'], default='debug',
                        help='Level written to the log file')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    list_parser = subparsers.add_parser('list', help='List pull requests')
    list_parser.add_argument('repo', help='Repository as owner/repo')
    list_parser.add_argument('--limit', type=int, default=30, help='Maximum number of pull requests')
    list_parser.add_argument('--state', choices=list(GitHubPullRequestProvider.VALID_STATES),
                             default='open', help='Pull request state')
    list_parser.add_argument('--search', help='Only show pull requests whose title or body contains this')

    analyze_parser = subparsers.add_parser('analyze', help='Group a pull request by intent')
    analyze_parser.add_argument('repo', help='Repository as owner/repo')
    analyze_parser.add_argument('number', type=int, help='Pull request number')
    analyze_parser.add_argument('--force', action='store_true', help='Bypass the cache')
    analyze_parser.add_argument('--model', help='Engine model, overriding the settings')
    analyze_parser.add_argument('--lang', help='Response language, overriding the settings')
    analyze_parser.add_argument('--split', action='store_true', help='Split large hunks before analysis')
    analyze_parser.add_argument('--refine', metavar='GROUP_ID', action='append', default=[],
                                help='Refine a group after analysis (may be repeated)')
    analyze_parser.add_argument('--json', action='store_true', help='Print the analysis as JSON')
    analyze_parser.add_argument('--show-log', action='store_true', help='Print the raw engine log')

    cache_parser = subparsers.add_parser('cache', help='Manage the cache')
    cache_parser.add_argument('action', choices=['size', 'clear'], help='Cache action')

    config_parser = subparsers.add_parser('config', help='Show or change settings')
    config_parser.add_argument('--model', help='Default engine model')
    config_parser.add_argument('--language', help='Default response language')
    config_parser.add_argument('--engine-command', help='Engine executable')
    config_parser.add_argument('--engine-timeout', type=float, help='Engine time limit in seconds, 0 for none')
    config_parser.add_argument('--cache-dir', help='Cache directory')
    config_parser.add_argument('--github-token', help='GitHub access token')
    config_parser.add_argument('--github-url', help='GitHub API URL')
    config_parser.add_argument('--split-threshold', type=int, help='Lines above which a hunk is split')

    return parser


def load_settings(path: str) -> ReviewSettings:
    """Load settings, falling back to defaults if there is no settings file."""
    if not os.path.exists(path):
        return ReviewSettings.create_default()

    return ReviewSettings.load(path)


def create_provider(settings: ReviewSettings) -> PullRequestProvider:
    """Create the pull request provider described by the settings."""
    return GitHubPullRequestProvider(settings.github_token or None, settings.github_url or None)


def create_session(
    settings: ReviewSettings,
    provider: PullRequestProvider,
    cache: ContentCache,
    model: str | None,
    lang: str | None
) -> ReviewSession:
    """Wire a review session together from the settings."""
    engine = CodexEngine(settings.engine_command, settings.engine_timeout)
    return ReviewSession(
        fetcher=PullRequestDiffFetcher(provider, cache),
        analyzer=IntentAnalyzer(engine, cache),
        refiner=IntentRefiner(engine, cache),
        splitter=IntentHunkSplitter(engine, cache, settings.split_threshold),
        model=model,
        lang=lang
    )


def format_analysis(analysis: AnalysisResult) -> str:
    """Render an analysis as reviewer-facing text."""
    lines = [analysis.overall_summary, ""]
    for group in analysis.groups:
        lines.append(f"[{group.id}] {group.title} ({group.category.value}, risk: {group.risk.value})")
        lines.append(f"    {group.rationale}")
        lines.append(f"    hunks: {', '.join(group.hunk_ids)}")
        for item in group.reviewer_checklist:
            lines.append(f"    - [ ] {item}")

        for test in group.suggested_tests:
            lines.append(f"    test: {test}")

        lines.append("")

    if analysis.unassigned_hunk_ids:
        lines.append(f"Unassigned: {', '.join(analysis.unassigned_hunk_ids)}")

    if analysis.non_substantive_hunk_ids:
        lines.append(f"Non-substantive: {', '.join(analysis.non_substantive_hunk_ids)}")

    for question in analysis.questions:
        lines.append(f"? {question}")

    return "\n".join(lines).rstrip() + "\n"


async def handle_list(args: argparse.Namespace, settings: ReviewSettings) -> int:
    """Handle the list command."""
    provider = create_provider(settings)
    pulls = await provider.list_pull_requests(args.repo, args.limit, args.state, args.search)
    for pull in pulls:
        branch = f" [{pull.head_ref}]" if pull.head_ref else ""
        author = pull.author or "-"
        print(f"#{pull.number}\t{pull.title}{branch}\t{author}\t{pull.updated_at[:10]}")

    return 0


async def handle_analyze(args: argparse.Namespace, settings: ReviewSettings) -> int:
    """Handle the analyze command."""
    validate_repo(args.repo)
    provider = create_provider(settings)
    cache = ContentCache(settings.expanded_cache_dir())
    session = create_session(
        settings,
        provider,
        cache,
        args.model if args.model is not None else settings.model or None,
        args.lang if args.lang is not None else settings.language or None
    )

    pull = await provider.get_pull_request(args.repo, args.number)
    steps = [lambda: session.select_pull_request(args.repo, pull)]
    if args.split:
        steps.append(lambda: session.split_large_hunks(args.force))

    steps.append(lambda: session.run_analysis(args.force))
    for group_id in args.refine:
        steps.append(lambda group_id=group_id: session.refine_group(group_id, args.force))

    for step in steps:
        await step()
        if session.error is not None:
            if args.show_log and session.engine_log:
                print(session.engine_log, file=sys.stderr)

            raise session.error

    if session.analysis is None:
        print("No analysis was produced.", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(session.analysis.to_dict(), indent=2, ensure_ascii=False))

    else:
        source = " (cached)" if session.from_cache else ""
        print(f"{pull.title} #{pull.number}: {len(session.hunks)} hunks{source}\n")
        print(format_analysis(session.analysis), end="")

    if args.show_log:
        print(session.engine_log, file=sys.stderr)

    return 0


def handle_cache(args: argparse.Namespace, settings: ReviewSettings) -> int:
    """Handle the cache command."""
    cache = ContentCache(settings.expanded_cache_dir())
    if args.action == 'clear':
        cache.clear()
        print("Cache cleared.")
        return 0

    print(format_size(cache.size_bytes()))
    return 0


def handle_config(args: argparse.Namespace, settings: ReviewSettings) -> int:
    """Handle the config command, saving the settings if any option was given."""
    changes = {
        "model": args.model,
        "language": args.language,
        "engine_command": args.engine_command,
        "cache_dir": args.cache_dir,
        "github_token": args.github_token,
        "github_url": args.github_url,
        "split_threshold": args.split_threshold
    }
    changed = False
    for name, value in changes.items():
        if value is not None:
            setattr(settings, name, value)
            changed = True

    if args.engine_timeout is not None:
        settings.engine_timeout = args.engine_timeout if args.engine_timeout > 0 else None
        changed = True

    if changed:
        settings.save(args.settings)
        print(f"Saved settings to {args.settings}")

    for name, value in vars(settings).items():
        if name == "github_token" and value:
            value = "********"

        print(f"{name}: {value}")

    return 0


def main(argv: List[str] | None = None) -> int:
    """Main function to run the command line."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(level=getattr(logging, args.log_level.upper()))
    install_global_exception_handler()
    logger = logging.getLogger("prlens")

    try:
        settings = load_settings(args.settings)

    except (OSError, ValueError) as e:
        print(f"Error: failed to load settings from {args.settings}: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == 'list':
            return asyncio.run(handle_list(args, settings))

        if args.command == 'analyze':
            return asyncio.run(handle_analyze(args, settings))

        if args.command == 'config':
            return handle_config(args, settings)

        return handle_cache(args, settings)

    except (IntentError, DiffError, PullRequestError, OSError) as e:
        logger.error("%s failed: %s", args.command, str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
