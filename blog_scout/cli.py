# === FILE: blog_scout/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point for BlogScout.

Commands:
  discover  Find the article URLs of a domain
  analyze   Discover articles, then run a worker over them
  config    Show the effective configuration

Common options:
  --config PATH       YAML/JSON config (built-in defaults when omitted)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

Example:
  blog-scout discover example.com --limit 20 --pretty
  blog-scout analyze example.com --worker mypkg.analysis:analyze --json out.json
"""
import asyncio
import importlib
import sys
from pathlib import Path

import click

from blog_scout import __version__
from blog_scout.config import ScoutConfig, load_config
from blog_scout.engine import start_scout
from blog_scout.errors import InvalidDomain
from blog_scout.logger import DEFAULT_FORMAT, init_logging
from blog_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def load_worker(spec: str):
    """Resolve ``package.module:callable`` into the callable."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter("expected 'module:callable'", param_hint="--worker")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_name}: {exc}", param_hint="--worker") from exc
    worker = getattr(module, attr, None)
    if not callable(worker):
        raise click.BadParameter(f"{spec} is not callable", param_hint="--worker")
    return worker


def _emit(report, json_output, pretty):
    if json_output:
        try:
            saved = render_json(report, json_output, pretty=pretty)
        except OSError as e:
            print_error(f"Could not save JSON report: {e}")
        click.echo(f"JSON report: {saved}")
    else:
        click.echo(report.json(pretty=pretty))


def _run(cfg, domain, worker, limit, timeout, on_progress=None):
    try:
        return asyncio.run(
            start_scout(cfg, domain, worker, limit=limit, timeout=timeout, on_progress=on_progress)
        )
    except InvalidDomain as e:
        print_error(str(e))
    except ValueError as e:
        print_error(f"Invalid argument: {e}")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="BlogScout, version %(version)s")
@click.option(
    "--config", "-c", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a YAML/JSON configuration file.",
)
@click.option(
    "--log-level", "log_level",
    default="WARNING", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Logging level",
)
@click.option(
    "--log-file", "log_file",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Log file (stderr only when omitted)",
)
@click.option(
    "--log-format", "log_format",
    default=DEFAULT_FORMAT,
    show_default=True,
    help="Logging format string",
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """BlogScout: find a site's articles and analyze them in batches."""
    init_logging(level=log_level, log_file=log_file, log_format=log_format)
    cfg = ScoutConfig()
    if config_path is not None:
        try:
            cfg = load_config(config_path)
        except Exception as e:
            print_error(f"Could not load configuration: {e}")
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command("discover", context_settings=CONTEXT_SETTINGS)
@click.argument("domain")
@click.option("--limit", "-l", type=click.IntRange(min=1), default=None, help="Max posts to return")
@click.option("--json", "-j", "json_output", default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help="Save the JSON report to a file")
@click.option("--pretty", is_flag=True, help="Indent JSON output")
@click.option("--timeout", "timeout", type=float, default=None, help="Overall time budget (seconds)")
@click.pass_context
def discover_cmd(ctx, domain, limit, json_output, pretty, timeout):
    """Discover the article URLs of DOMAIN."""
    cfg = ctx.obj["config"]
    report = _run(cfg, domain, None, limit, timeout)
    _emit(report, json_output, pretty)
    if report.discovery.error:
        click.secho(report.discovery.error, fg="yellow", err=True)


@cli.command("analyze", context_settings=CONTEXT_SETTINGS)
@click.argument("domain")
@click.option("--worker", "-w", "worker_spec", required=True,
              help="Analyzer as 'package.module:callable', called with each URL")
@click.option("--limit", "-l", type=click.IntRange(min=1), default=None, help="Max posts to analyze")
@click.option("--concurrency", type=click.IntRange(min=1), default=None, help="Items analyzed at once")
@click.option("--item-timeout", "item_timeout", type=float, default=None, help="Seconds per item")
@click.option("--deadline", "deadline", type=float, default=None,
              help="Time budget for discovery plus analysis (seconds)")
@click.option("--json", "-j", "json_output", default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help="Save the JSON report to a file")
@click.option("--pretty", is_flag=True, help="Indent JSON output")
@click.option("--quiet", "-q", is_flag=True, help="Do not print progress")
@click.pass_context
def analyze_cmd(ctx, domain, worker_spec, limit, concurrency, item_timeout, deadline, json_output, pretty, quiet):
    """Discover articles of DOMAIN and analyze each with WORKER."""
    cfg = ctx.obj["config"]
    worker = load_worker(worker_spec)

    overrides = {}
    if concurrency is not None:
        overrides["concurrency"] = concurrency
    if item_timeout is not None:
        overrides["item_timeout"] = item_timeout
    if overrides:
        cfg = cfg.model_copy(update={"batch": cfg.batch.model_copy(update=overrides)})

    def show_progress(snapshot):
        click.echo(
            f"[{snapshot.completed}/{snapshot.total}] {snapshot.percentage}% "
            f"~{snapshot.estimated_remaining_seconds}s left ({snapshot.current_item})",
            err=True,
        )

    report = _run(cfg, domain, worker, limit, deadline, None if quiet else show_progress)
    _emit(report, json_output, pretty)
    if report.discovery.error:
        click.secho(report.discovery.error, fg="yellow", err=True)


@cli.command("config", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj["config"]
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
