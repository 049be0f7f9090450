"""CLI entry point for aspnet-dev-agent."""

import functools
import json
from pathlib import Path

import click
import yaml
from loguru import logger

from aspnet_dev_agent import __version__
from aspnet_dev_agent.config import get_settings
from aspnet_dev_agent.errors import AgentError
from aspnet_dev_agent.httpfile.parser import parse_http_file
from aspnet_dev_agent.httpfile.writer import render_http_file
from aspnet_dev_agent.launch.browser import build_launch_url, open_browser
from aspnet_dev_agent.launch.probe import is_running
from aspnet_dev_agent.launch.process import ensure_running
from aspnet_dev_agent.launch.settings import resolve_profile
from aspnet_dev_agent.log import configure_logging
from aspnet_dev_agent.openapi.fetch import fetch_openapi, save_document
from aspnet_dev_agent.openapi.parser import filter_endpoints, load_document, parse_openapi
from aspnet_dev_agent.skills.loader import discover_skills, load_skill_content
from aspnet_dev_agent.skills.validator import validate_skill

PROJECT_DIR = click.argument(
    "project_dir", default=".", type=click.Path(exists=True, file_okay=False, resolve_path=True, path_type=Path)
)
PROFILE = click.option("--profile", default=None, help="Launch profile name from launchSettings.json.")


def reports_errors(f):
    """Turn library errors into a one-line CLI error."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except AgentError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def _resolve(project_dir: Path, profile: str | None) -> tuple[str, str | None, str | None]:
    """Return (base_url, launch_url, profile_name) for the project."""
    settings = get_settings()
    selected = resolve_profile(project_dir, profile)
    if selected is None:
        click.echo(f"No launch settings found; using default address {settings.default_url}", err=True)
        return settings.default_url, None, None
    base_url = selected.base_url(settings.prefer_scheme) or settings.default_url
    return base_url, selected.launch_url, selected.name


@click.group()
@click.version_option(__version__, prog_name="aspnet-agent")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR).")
@click.option("-v", "--verbose", is_flag=True, help="Shortcut for --log-level DEBUG.")
def main(log_level: str | None, verbose: bool):
    """aspnet-agent: C# skills for coding agents and the local Web API workflow."""
    level = "DEBUG" if verbose else (log_level or get_settings().log_level)
    configure_logging(level)


# -- skills ------------------------------------------------------------------


@main.group()
def skills():
    """List, show and check the bundled skill documents."""


@skills.command("list")
@click.option("--root", type=click.Path(exists=True, file_okay=False, path_type=Path), default=None, help="Skills directory (default: bundled skills).")
@reports_errors
def skills_list(root: Path | None):
    """List available skills."""
    for skill in discover_skills(root):
        click.echo(f"{skill.name}: {skill.description}")


@skills.command("show")
@click.argument("names", nargs=-1, required=True)
@click.option("--references", is_flag=True, help="Append the skills' reference files.")
@click.option("--root", type=click.Path(exists=True, file_okay=False, path_type=Path), default=None)
@reports_errors
def skills_show(names: tuple[str, ...], references: bool, root: Path | None):
    """Print one or more skills as a single document."""
    click.echo(load_skill_content(list(names), root=root, include_references=references))


@skills.command("check")
@click.argument("path", required=False, type=click.Path(exists=True, file_okay=False, path_type=Path))
@reports_errors
def skills_check(path: Path | None):
    """Check links, code fences and front matter of skills under PATH."""
    found = discover_skills(path)
    if not found:
        raise click.ClickException(f"No skills found under {path}")

    failed = 0
    for skill in found:
        errors = validate_skill(skill.path)
        if not errors:
            click.echo(f"  ok    {skill.name}")
            continue
        failed += 1
        click.echo(f"  FAIL  {skill.name}")
        for location, message in errors.items():
            click.echo(f"        {location}: {message}")

    if failed:
        raise click.ClickException(f"{failed} of {len(found)} skills have problems")
    click.echo(f"All {len(found)} skills passed.")


# -- service workflow --------------------------------------------------------


@main.command()
@PROJECT_DIR
@PROFILE
@click.option("--url", default=None, help="Probe this URL instead of reading launch settings.")
@reports_errors
def status(project_dir: Path, profile: str | None, url: str | None):
    """Check whether the service is listening."""
    settings = get_settings()
    base_url = url or _resolve(project_dir, profile)[0]
    if is_running(base_url, timeout=settings.probe_timeout):
        click.echo(f"Running at {base_url}")
    else:
        click.echo(f"Not running at {base_url}")
        raise click.exceptions.Exit(1)


@main.command()
@PROJECT_DIR
@PROFILE
@click.option("--no-start", is_flag=True, help="Only check; never start the service.")
@click.option("--open/--no-open", "open_", default=False, help="Open the launch URL in the browser.")
@click.option("--delay", type=float, default=None, help="Seconds to wait before re-checking.")
@reports_errors
def start(project_dir: Path, profile: str | None, no_start: bool, open_: bool, delay: float | None):
    """Start the service if it is not running, then optionally open it."""
    settings = get_settings()
    base_url, launch_url, profile_name = _resolve(project_dir, profile)

    click.echo(f"Checking {base_url}...")
    result = ensure_running(
        base_url,
        project_dir,
        profile_name=profile_name,
        start=not no_start,
        probe_timeout=settings.probe_timeout,
        startup_delay=settings.startup_delay if delay is None else delay,
        executable=settings.dotnet_executable,
    )

    if result.already_running:
        click.echo(f"Already running at {base_url}")
    elif not result.started:
        click.echo(f"Not running at {base_url}")
        raise click.exceptions.Exit(1)
    elif result.running:
        click.echo(f"Started (pid {result.pid}); running at {base_url}")
    else:
        click.echo(f"Started (pid {result.pid}) but {base_url} is not answering yet.")
        click.echo(f"Output: {result.log_path}")
        raise click.exceptions.Exit(1)

    if open_:
        target = build_launch_url(base_url, launch_url)
        click.echo(f"Opening {target}")
        open_browser(target)


@main.command("open")
@PROJECT_DIR
@PROFILE
@reports_errors
def open_cmd(project_dir: Path, profile: str | None):
    """Open the service's launch URL in the default browser."""
    base_url, launch_url, _ = _resolve(project_dir, profile)
    target = build_launch_url(base_url, launch_url)
    click.echo(f"Opening {target}")
    open_browser(target)


@main.command()
@PROJECT_DIR
@PROFILE
@click.option("--url", default=None, help="Base URL of the service (skips launch settings).")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Save the document to this file.")
@click.option("--summary", is_flag=True, help="Print one line per operation.")
@reports_errors
def openapi(project_dir: Path, profile: str | None, url: str | None, output: Path | None, summary: bool):
    """Download the OpenAPI document from the running service."""
    settings = get_settings()
    base_url = url or _resolve(project_dir, profile)[0]
    doc = fetch_openapi(base_url, paths=settings.openapi_paths, timeout=settings.fetch_timeout)
    click.echo(f"Fetched {doc.title or 'document'} (OpenAPI {doc.version}) from {doc.url}", err=output is None)

    if output is not None:
        save_document(doc, output)
        click.echo(f"Saved to {output}")
    if summary:
        for ep in parse_openapi(doc.document):
            click.echo(f"{ep.method:<7} {ep.path}  {ep.summary}".rstrip())
    elif output is None:
        click.echo(json.dumps(doc.document, indent=2, ensure_ascii=False))


# -- .http files -------------------------------------------------------------


@main.group()
def http():
    """Read and generate .http request files."""


@http.command("list")
@click.argument("http_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@reports_errors
def http_list(http_file: Path):
    """List the requests defined in a .http file."""
    parsed = parse_http_file(http_file.read_text(encoding="utf-8"))
    for req in parsed.requests:
        name = f"  ({req.name})" if req.name else ""
        click.echo(f"{req.line:>4}  {req.method:<7} {req.url}{name}")
    click.echo(f"{len(parsed.requests)} requests.")


@http.command("gen")
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output .http file.")
@click.option("--base-url", default=None, help="Value for the host variable (default: settings default URL).")
@click.option("--host-variable", default="host", show_default=True)
@click.option("--endpoint", "endpoint_filters", multiple=True, help="Only these endpoints, e.g. 'POST /todos' or '/todos/*'.")
@reports_errors
def http_gen(doc_path: Path, output: Path, base_url: str | None, host_variable: str, endpoint_filters: tuple[str, ...]):
    """Generate a .http file from an OpenAPI document."""
    try:
        document = load_document(doc_path)
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Cannot read {doc_path}: {e}") from e
    endpoints = filter_endpoints(parse_openapi(document), endpoint_filters)
    click.echo(f"Found {len(endpoints)} endpoints.")

    text = render_http_file(
        endpoints,
        base_url or get_settings().default_url,
        host_variable=host_variable,
        document=document,
    )
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    logger.debug(f"Wrote {len(text)} characters")
    click.echo(f"Requests saved to {output}")
