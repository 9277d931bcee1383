"""Click CLI entry points: ``zopen-audit`` and ``zopen-analytics``."""
from __future__ import annotations

import dataclasses
import json
import logging
import os
import sys
import uuid as uuidlib
from pathlib import Path

import click

from zopen_analytics import __version__
from zopen_analytics.audit import VulnerabilityCache, audit, list_active_packages
from zopen_analytics.config import ANALYTICS_LOG_NAME, Settings
from zopen_analytics.errors import ConfigCorruptError, FeedFetchError, ZopenError
from zopen_analytics.models import SEVERITY_RANK, Profile, Severity
from zopen_analytics.output.terminal import render_report
from zopen_analytics.telemetry import Analytics, AnalyticsStateStore

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

EXIT_FAIL_ON = 1
EXIT_FATAL = 2


def setup_logging(verbose: bool, debug: bool, log_dir: Path | None = None) -> None:
    """Console logging by verbosity; telemetry also goes to <log_dir>/analytics.log."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s")
    logging.getLogger("zopen_analytics").setLevel(level)

    if log_dir is None:
        return
    log_path = os.path.abspath(os.path.join(log_dir, ANALYTICS_LOG_NAME))
    telemetry_logger = logging.getLogger("zopen_analytics.telemetry")
    for handler in telemetry_logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == log_path:
            return
    try:
        os.makedirs(log_dir, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as e:
        logger.warning("Cannot open %s: %s", log_path, e)
        return
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(funcName)s: %(message)s"))
    telemetry_logger.addHandler(handler)


def _fatal(error: ZopenError, code: int = EXIT_FATAL) -> None:
    click.secho(f"Error: {error}", fg="red", err=True)
    sys.exit(code)


# ── zopen-audit ────────────────────────────────────────────────────


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="zopen-audit")
@click.option("-v", "--verbose", is_flag=True,
              help="Show CVE details and packages excluded from the audit")
@click.option("--debug", is_flag=True, help="Debug logging")
@click.option("--json", "json_output", is_flag=True,
              help="JSON to stdout instead of Rich")
@click.option("--fail-on", type=click.Choice(["low", "moderate", "high", "critical"],
                                             case_sensitive=False),
              default=None, help="Exit 1 if any vulnerability is at or above this severity")
@click.option("--feed-url", default=None, help="Vulnerability feed URL")
@click.option("--install-root", type=click.Path(file_okay=False), default=None,
              help="Directory of installed package symlinks (default: $ZOPEN_PKGINSTALL)")
@click.option("--cache-dir", type=click.Path(file_okay=False), default=None,
              help="Where the feed snapshot is cached")
def audit_cmd(verbose: bool, debug: bool, json_output: bool, fail_on: str | None,
              feed_url: str | None, install_root: str | None,
              cache_dir: str | None) -> None:
    """Audit installed zopen packages for known vulnerabilities."""
    settings = Settings.from_env()
    overrides = {}
    if feed_url:
        overrides["feed_url"] = feed_url
    if install_root:
        overrides["install_root"] = Path(install_root)
    if cache_dir:
        overrides["cache_dir"] = Path(cache_dir)
    settings = dataclasses.replace(settings, **overrides)
    setup_logging(verbose, debug, settings.log_dir)

    if settings.install_root is None:
        click.secho("Error: no install root. Source zopen-config or pass --install-root.",
                    fg="red", err=True)
        sys.exit(EXIT_FATAL)
    if not settings.install_root.is_dir():
        # An empty inventory here would read as a clean audit
        click.secho(f"Error: install root {settings.install_root} is not a directory. "
                    "Check $ZOPEN_PKGINSTALL or --install-root.", fg="red", err=True)
        sys.exit(EXIT_FATAL)

    cache = VulnerabilityCache(settings.cache_dir, settings.feed_url)
    try:
        snapshot = cache.load(cache.refresh())
    except FeedFetchError as e:
        _fatal(e)

    packages = list_active_packages(settings.install_root)
    report = audit(packages, snapshot)

    if json_output:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        render_report(report, verbose=verbose)

    if fail_on is not None:
        threshold = Severity.MEDIUM if fail_on.lower() == "moderate" else Severity(fail_on.upper())
        worst = report.max_severity()
        if worst is not None and SEVERITY_RANK[worst] >= SEVERITY_RANK[threshold]:
            sys.exit(EXIT_FAIL_ON)


# ── zopen-analytics ────────────────────────────────────────────────


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="zopen-analytics")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option("--debug", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """Record zopen usage statistics (called by install, remove and init)."""
    settings = Settings.from_env()
    setup_logging(verbose, debug, settings.log_dir)
    ctx.obj = settings


@cli.command("install")
@click.argument("name")
@click.argument("version")
@click.option("--upgrade", is_flag=True, help="The install replaced an older version")
@click.option("--runtime-dependency", is_flag=True,
              help="Installed as a runtime dependency of another package")
@click.pass_obj
def install_cmd(settings: Settings, name: str, version: str, upgrade: bool,
                runtime_dependency: bool) -> None:
    """Register a package install."""
    try:
        Analytics(settings).register_install(
            name, version, is_upgrade=upgrade,
            is_runtime_dependency_install=runtime_dependency,
        )
    except ConfigCorruptError as e:
        _fatal(e)


@cli.command("remove")
@click.argument("name")
@click.argument("version")
@click.pass_obj
def remove_cmd(settings: Settings, name: str, version: str) -> None:
    """Register a package removal."""
    try:
        Analytics(settings).register_remove(name, version)
    except ConfigCorruptError as e:
        _fatal(e)


@cli.command("profile")
@click.argument("uuid")
@click.option("--ibm", is_flag=True, help="Host is on the IBM network")
@click.option("--bot", is_flag=True, help="Profile belongs to automation")
@click.pass_obj
def profile_cmd(settings: Settings, uuid: str, ibm: bool, bot: bool) -> None:
    """Register a newly created file-system profile."""
    try:
        Analytics(settings).register_profile(Profile(uuid=uuid, is_bot=bot, is_ibm=ibm))
    except ConfigCorruptError as e:
        _fatal(e)


@cli.command("refresh")
@click.pass_obj
def refresh_cmd(settings: Settings) -> None:
    """Rebuild the analytics ledger, keeping the profile uuid if it is readable."""
    if settings.analytics_json is None:
        click.secho("Error: ZOPEN_ANALYTICS_JSON is not set.", fg="red", err=True)
        sys.exit(EXIT_FATAL)

    store = AnalyticsStateStore(settings.analytics_json)
    try:
        profile_id = store.read_profile_id()
        is_new = False
    except ConfigCorruptError:
        profile_id = str(uuidlib.uuid4())
        is_new = True

    store.initialize(profile_id)
    click.echo(f"Analytics ledger rebuilt: {settings.analytics_json}")

    if is_new:
        try:
            Analytics(settings).register_profile(Profile(uuid=profile_id))
        except ConfigCorruptError as e:
            _fatal(e)


@cli.command("show")
@click.pass_obj
def show_cmd(settings: Settings) -> None:
    """Show what the local analytics ledger holds."""
    if settings.analytics_json is None:
        click.secho("Error: ZOPEN_ANALYTICS_JSON is not set.", fg="red", err=True)
        sys.exit(EXIT_FATAL)
    try:
        ledger = AnalyticsStateStore(settings.analytics_json).read()
    except ConfigCorruptError as e:
        _fatal(e)

    click.echo(f"profile:  {ledger.profile}")
    click.echo(f"installs: {len(ledger.installs)}")
    click.echo(f"removes:  {len(ledger.removes)}")


def audit_main() -> None:
    """zopen-audit entry point."""
    audit_cmd()


def main() -> None:
    """zopen-analytics entry point."""
    cli()


if __name__ == "__main__":
    main()
