"""CLI interface for unlinked."""

import asyncio
import contextlib
import logging
import platform
import signal
import sys
from pathlib import Path
from typing import Optional
import click
from click.shell_completion import get_completion_class
import structlog
from tqdm import tqdm

from unlinked.checker import Checker
from unlinked.config import load_config
from unlinked.exceptions import CheckCancelled, CheckError, UnlinkedError
from unlinked.models import CheckConfig, CheckMode, CheckResult, LinkStatus, OutputFormat
from unlinked.writers import Writer
from unlinked import __version__

COMPLETE_VAR = "_UNLINKED_COMPLETE"


def configure_logging(verbose: bool = False) -> None:
    """Structured logs go to stderr so reports on stdout stay clean."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def common_options(func):
    """Options shared by the check and crawl commands."""
    options = [
        click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False),
                     help="Config file (default: $HOME/.config/unlinked/config.yaml)"),
        click.option("--output-format", "-f",
                     type=click.Choice([f.value for f in OutputFormat], case_sensitive=False),
                     help="Output format (default: plaintext)"),
        click.option("--output-file", "-o", type=click.Path(dir_okay=False),
                     help="Output file (default: stdout)"),
        click.option("--concurrency", "-c", type=click.IntRange(min=1),
                     help="Number of concurrent checks (default: 10)"),
        click.option("--timeout", "-t", type=click.IntRange(min=1),
                     help="Timeout in seconds for each request (default: 30)"),
        click.option("--follow-redirects/--no-follow-redirects", default=None,
                     help="Follow HTTP redirects (default: follow)"),
        click.option("--ignore", multiple=True,
                     help="Regular expression of URLs to skip (repeatable)"),
        click.option("--allowed-domain", multiple=True,
                     help="Only crawl these domains and their subdomains (repeatable)"),
        click.option("--user-agent", help="Custom User-Agent string"),
        click.option("--verbose", "-v", is_flag=True, help="Verbose output"),
        click.option("--no-progress", is_flag=True, help="Disable progress display"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_config(mode: CheckMode, config_file: Optional[str], **flags) -> CheckConfig:
    """Merge config file, environment and explicitly given CLI flags."""
    overrides = {
        "mode": mode,
        "output_format": flags.get("output_format"),
        "output_file": flags.get("output_file"),
        "concurrency": flags.get("concurrency"),
        "timeout": flags.get("timeout"),
        "max_depth": flags.get("max_depth"),
        "follow_redirects": flags.get("follow_redirects"),
        "user_agent": flags.get("user_agent"),
        "verbose": flags.get("verbose") or None,
        "ignore_patterns": list(flags["ignore"]) if flags.get("ignore") else None,
        "allowed_domains": list(flags["allowed_domain"]) if flags.get("allowed_domain") else None,
    }
    if flags.get("no_progress"):
        overrides["show_progress"] = False
    return load_config(config_file, overrides=overrides)


def collect_urls(args: tuple, read_stdin: bool) -> list[str]:
    """URLs from stdin (one per line, # comments skipped) followed by arguments."""
    urls = []
    if read_stdin:
        for line in click.get_text_stream("stdin"):
            line = line.strip()
            if line and not line.startswith("#"):
                urls.append(line)
    urls.extend(args)
    return urls


async def _run_checker(checker: Checker, urls: list[str]) -> CheckResult:
    """Run the checker, turning Ctrl+C into a graceful cancellation."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    handler_installed = False
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
        handler_installed = True

    try:
        return await checker.check_urls(urls, cancel_event)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def run_check(config: CheckConfig, urls: list[str]) -> None:
    """Shared logic for the check and crawl commands."""
    configure_logging(config.verbose)

    if not urls:
        raise click.UsageError("no URLs provided. Use --stdin or pass URLs as arguments")

    try:
        checker = Checker(config)
    except UnlinkedError as e:
        raise click.ClickException(str(e))

    pbar = None
    if config.show_progress:
        total = len(urls) if config.mode is CheckMode.SINGLE else None
        pbar = tqdm(total=total, desc="Checking links", unit="link", file=sys.stderr)

        def on_progress(url: str, status: LinkStatus) -> None:
            pbar.update(1)
            pbar.set_postfix_str(f"{status.value} {url}"[:60])

        checker.set_progress_callback(on_progress)

    failed_seeds = []
    try:
        result = asyncio.run(_run_checker(checker, urls))
    except CheckError as e:
        result = e.result
        failed_seeds = e.failures
    except CheckCancelled as e:
        raise click.ClickException(str(e))
    finally:
        if pbar is not None:
            pbar.close()

    for failure in failed_seeds:
        click.echo(f"Error: {failure}", err=True)

    output_path = Path(config.output_file) if config.output_file else None
    try:
        report = Writer.write(result, config.output_format, output_path)
    except OSError as e:
        raise click.ClickException(f"error writing output: {e}")

    if output_path is None:
        click.echo(report)
    else:
        click.echo(f"Checked {result.total_checked} links, report written to {output_path}", err=True)

    if result.has_failures or failed_seeds:
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def main():
    """
    unlinked - a dead link checker.

    Check individual URLs or crawl a website to find broken links.
    """
    pass


@main.command()
@click.argument("urls", nargs=-1)
@click.option("--stdin", "read_stdin", is_flag=True, help="Read URLs from stdin")
@common_options
def check(urls: tuple, read_stdin: bool, config_file: Optional[str], **flags):
    """
    Check specific URLs without crawling.

    Examples:

        unlinked check https://example.com

        unlinked check https://example.com https://python.org

        cat urls.txt | unlinked check --stdin

        unlinked check -f markdown -o report.md https://example.com
    """
    try:
        config = build_config(CheckMode.SINGLE, config_file, **flags)
    except UnlinkedError as e:
        raise click.ClickException(str(e))
    run_check(config, collect_urls(urls, read_stdin))


@main.command()
@click.argument("url")
@click.option("--max-depth", "-d", type=click.IntRange(min=0), help="Maximum crawl depth (default: 3)")
@common_options
def crawl(url: str, max_depth: Optional[int], config_file: Optional[str], **flags):
    """
    Crawl a website and check every discovered link.

    Examples:

        unlinked crawl https://example.com

        unlinked crawl https://example.com --max-depth 2

        unlinked crawl https://example.com -c 50 --ignore "\\.pdf$"

        unlinked crawl https://example.com -f html -o report.html
    """
    try:
        config = build_config(CheckMode.CRAWLER, config_file, max_depth=max_depth, **flags)
    except UnlinkedError as e:
        raise click.ClickException(str(e))
    run_check(config, [url])


@main.command()
@click.option("--short", "-s", is_flag=True, help="Print only the version number")
def version(short: bool):
    """Show version information."""
    if short:
        click.echo(__version__)
        return
    click.echo(f"Unlinked {__version__}")
    click.echo(f"  Python Version: {platform.python_version()}")
    click.echo(f"  Platform:       {sys.platform}/{platform.machine()}")


@main.command()
@click.argument("shell", type=click.Choice(["bash", "zsh", "fish"]))
@click.pass_context
def completion(ctx, shell: str):
    """
    Generate a shell completion script.

    Examples:

        source <(unlinked completion bash)

        unlinked completion fish > ~/.config/fish/completions/unlinked.fish
    """
    comp_cls = get_completion_class(shell)
    comp = comp_cls(ctx.find_root().command, {}, "unlinked", COMPLETE_VAR)
    click.echo(comp.source())


@main.command(name="list")
@click.option("--verbose", "-v", is_flag=True, help="Show usage for each command")
@click.pass_context
def list_commands(ctx, verbose: bool):
    """List all available commands."""
    group = ctx.find_root().command
    commands = sorted(group.commands.items())
    width = max(len(name) for name, _ in commands)

    click.echo("Unlinked - Available Commands")
    click.echo()
    for name, command in commands:
        if verbose:
            sub_ctx = click.Context(command, info_name=name, parent=ctx.find_root())
            usage = " ".join(command.collect_usage_pieces(sub_ctx))
            click.echo(f"  unlinked {name} {usage}")
            click.echo(f"    {command.get_short_help_str(limit=70)}")
            click.echo()
        else:
            click.echo(f"  {name.ljust(width)}  {command.get_short_help_str(limit=70)}")
    if not verbose:
        click.echo()
    click.echo("Run 'unlinked <command> --help' for more information on a command.")


if __name__ == "__main__":
    main()
