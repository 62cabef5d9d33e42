import sys
import logging
import threading
from typing import Any, Dict, Optional

import click
import colorama

from . import __title__, __version__
from .alerts import AlertLogger
from .cloner import ensure_git_available
from .config import AppConfig, ConfigManager, apply_overrides
from .context import AppContext, build_alert_logger, build_context
from .discovery import GistProducer, GitHubClient, RepositoryProducer
from .exceptions import ConfigError, NotificationError, ScanError, SetupError, SignatureError
from .pipeline import ScanPipeline, scan_local
from .workers import TargetQueue, WorkerPool

# Optionally reduce verbosity of noisy libraries
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("requests").setLevel(logging.WARNING)

colorama.just_fix_windows_console()


# --- Shared Options ---
def scan_options(f):
    """Options shared by every command that scans."""
    f = click.option('--csv-path', type=click.Path(dir_okay=False), help='Append findings to this CSV file')(f)
    f = click.option('--entropy-threshold', type=click.FloatRange(0, 8), help='Minimum line entropy to report (0 disables)')(f)
    f = click.option('--path-checks/--no-path-checks', default=None, help='Report files matched by path-based signatures')(f)
    f = click.option('--keep-signatures/--no-keep-signatures', default=None, help='Also run signatures on targets matching --search-query')(f)
    f = click.option('--search-query', help='Regular expression; only targets containing it are reported')(f)
    f = click.option('--color/--no-color', default=None, help='Force coloured output on/off')(f)
    f = click.option('--silent/--no-silent', default=None, help='Only print important matches')(f)
    f = click.option('--debug/--no-debug', default=None, help='Print debugging information')(f)
    f = click.option('-c', '--config', 'config_path', default=None, type=click.Path(dir_okay=False, resolve_path=True),
                     help='Config file path (default: $LEAKMON_CONFIG_PATH or leakmon_config.yaml)')(f)
    return f


def _scan_overrides(opts: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {
        'general': {
            'debug': opts.get('debug'),
            'silent': opts.get('silent'),
            'color': opts.get('color'),
            'csv_path': opts.get('csv_path'),
        },
        'scan': {
            'search_query': opts.get('search_query'),
            'keep_signatures': opts.get('keep_signatures'),
            'path_checks': opts.get('path_checks'),
            'entropy_threshold': opts.get('entropy_threshold'),
        },
    }


def _load_config(config_path: Optional[str], overrides: Dict[str, Dict[str, Any]]) -> AppConfig:
    """Load and override the configuration; a failure is a FATAL startup event."""
    try:
        config = ConfigManager(config_path).get_config_model()
        return apply_overrides(config, **overrides)
    except ConfigError as e:
        AlertLogger(stream=sys.stdout).fatal("Configuration error: %s", e)
        raise  # unreachable: fatal exits


def _startup(config: AppConfig) -> AppContext:
    log = build_alert_logger(config)
    try:
        context = build_context(config, log=log)
    except SignatureError as e:
        log.fatal("%s", e)
        raise
    context.log.attach(logging.getLogger('leakmon-cli'))
    return context


# --- Click CLI Definition ---
@click.group()
@click.version_option(version=__version__, prog_name='leakmon-cli')
def cli():
    """leakmon-cli: hunt for leaked secrets in local code and public GitHub activity."""
    pass


@cli.command()
@click.argument('path', type=click.Path(exists=True, file_okay=False, resolve_path=True))
@scan_options
def scan(path, config_path, **opts):
    """Scan a local directory once. Exits 1 if anything matched, 0 otherwise."""
    context = _startup(_load_config(config_path, _scan_overrides(opts)))
    context.log.info("Scanning local dir %s with %s v%s. Loaded %d signatures.",
                     path, __title__, __version__, len(context.signatures))
    try:
        status = scan_local(context, path)
    except ScanError as e:
        context.log.fatal("Scan of %s aborted: %s", path, e)
        raise
    sys.exit(status)


@cli.command()
@scan_options
@click.option('--threads', type=click.IntRange(1, 256), help='Workers per queue (default: CPU count)')
@click.option('--minimum-stars', type=click.IntRange(0), help='Only scan repositories with at least this many stars')
@click.option('--maximum-repository-size', type=click.IntRange(1), help='Maximum repository size to clone, in KB')
@click.option('--temp-directory', type=click.Path(file_okay=False), help='Root directory for clone workspaces')
@click.option('--process-gists/--no-process-gists', default=None, help='Also scan public gists')
def monitor(config_path, threads, minimum_stars, maximum_repository_size, temp_directory, process_gists, **opts):
    """Continuously discover and scan new public repositories (and gists)."""
    overrides = _scan_overrides(opts)
    overrides['general'].update({'threads': threads, 'temp_directory': temp_directory})
    overrides['github'] = {
        'minimum_stars': minimum_stars,
        'maximum_repository_size': maximum_repository_size,
        'process_gists': process_gists,
    }
    config = _load_config(config_path, overrides)
    context = _startup(config)
    log = context.log
    general, github = config.general, config.github

    try:
        ensure_git_available()
        if not github.tokens:
            raise SetupError("No GitHub tokens configured. Add at least one under github.tokens.")
        general.temp_directory.mkdir(parents=True, exist_ok=True)
    except (SetupError, OSError) as e:
        log.fatal("%s", e)

    log.info("%s v%s started. Loaded %d signatures. Using %d GitHub tokens and %d threads. Work dir: %s",
             __title__, __version__, len(context.signatures), len(github.tokens),
             general.threads, general.temp_directory)

    if config.scan.search_query and not config.scan.keep_signatures:
        log.important("Search Query '%s' given. Only returning matching results.", config.scan.search_query)

    client = GitHubClient(github)
    pipeline = ScanPipeline(context)

    repositories = TargetQueue(general.queue_size)
    WorkerPool('repositories', repositories, pipeline.process, general.threads, log).start()
    RepositoryProducer(client, repositories, github, log).start()

    if github.process_gists:
        gists = TargetQueue(general.queue_size)
        WorkerPool('gists', gists, pipeline.process, general.threads, log).start()
        GistProducer(client, gists, github, log).start()

    log.info("Press Ctrl+C to stop and exit.\n")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        log.info("🛑 Monitoring stopped by user")
        sys.exit(130)


@cli.command()
@click.option('--test', is_flag=True, help='Send a test message to the configured channels.')
@click.option('-c', '--config', 'config_path', default=None, type=click.Path(dir_okay=False, resolve_path=True),
              help='Config file path')
def notify(test, config_path):
    """Show or test the configured alert channels."""
    context = _startup(_load_config(config_path, {}))
    notifier = context.notifier

    if not test:
        click.echo("ℹ️ Use --test to send a test notification.")
        click.echo(f"  Webhook: {bool(notifier.webhook_url)}")
        click.echo(f"  Telegram: {notifier.telegram_enabled}")
        if context.config.notifications.telegram.proxy_address:
            click.echo(f"  Telegram proxy: {context.config.notifications.telegram.proxy_address}")
        return

    try:
        if notifier.send_test_notification():
            click.echo(click.style("✅ Test notification sequence completed successfully!", fg='green', bold=True))
        else:
            click.echo(click.style("❌ No notification channels configured.", fg='red', bold=True), err=True)
            sys.exit(1)
    except NotificationError as e:
        click.echo(click.style(f"❌ Test Notification Failed: {e}", fg='red', bold=True), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
