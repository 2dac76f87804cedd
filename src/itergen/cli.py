"""CLI entrypoints for itergen."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

import typer
from rich.console import Console

from itergen.config import Settings, load_settings
from itergen.errors import ConfigurationError, TransportError, TreeSyncError, UnexpectedContentError
from itergen.logging import configure_logging, get_logger, log_exception
from itergen.models.generation import GenerationSpec, MatchMode
from itergen.models.node import TreeKind
from itergen.orchestrator.runner import replay_run, run_assignment_stream, run_generation_stream
from itergen.orchestrator.state import AssignmentReport, GenerationReport, RunOutcome
from itergen.reporting import ConsoleReporter, print_assignment_summary, print_generation_summary
from itergen.tree.client import RemoteTreeClient

app = typer.Typer(add_completion=False, help="Generate and assign Azure DevOps iteration and area trees")
logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_FATAL = 5
EXIT_CONNECTIVITY = 3
EXIT_LIMIT = 4

_ORG = typer.Option(None, "--org", help="Organization name (overrides ITERGEN_ORGANIZATION)")
_PROJECT = typer.Option(None, "--project", help="Project name (overrides ITERGEN_PROJECT)")
_PAT = typer.Option(None, "--pat", help="Personal access token (prompted for when missing)")
_ADO_URL = typer.Option(None, "--ado-url", help="Service base URL (overrides ITERGEN_ADO_URL)")
_API_VERSION = typer.Option(None, "--api-version", help="REST api-version (overrides ITERGEN_API_VERSION)")
_ARTIFACTS_DIR = typer.Option(None, "--artifacts-dir", help="Artifacts directory (overrides ITERGEN_ARTIFACTS_DIR)")


def build_client(settings: Settings) -> RemoteTreeClient:
    """Create the remote client for one command."""

    return RemoteTreeClient.from_settings(settings)


def _settings_with(**overrides: Any) -> Settings:
    settings = load_settings()
    update = {k: v for k, v in overrides.items() if v is not None}
    if update:
        settings = settings.model_copy(update=update)
    configure_logging(settings.log_level)
    return settings


def _ensure_pat(settings: Settings) -> Settings:
    # prompt only once organization and project are known
    if (settings.pat or "").strip() or not settings.organization or not settings.project:
        return settings
    pat = typer.prompt("Personal access token", hide_input=True).strip()
    return settings.model_copy(update={"pat": pat})


def _guarded(console: Console, action: Callable[[], int]) -> int:
    """Run ``action`` and map failures onto exit codes."""

    reporter = ConsoleReporter(console)
    try:
        return action()
    except ConfigurationError as e:
        reporter.error(str(e))
        return EXIT_CONFIG
    except UnexpectedContentError as e:
        reporter.error(str(e))
        console.print("Check the personal access token and the organization URL.")
        return EXIT_CONNECTIVITY
    except TransportError as e:
        if e.status_code is None or e.status_code in (401, 403):
            reporter.error(str(e))
            return EXIT_CONNECTIVITY
        log_exception(logger, "Remote request failed", url=e.url, status_code=e.status_code)
        return EXIT_FATAL
    except typer.Abort:
        reporter.error("Aborted before a personal access token was entered.")
        return EXIT_CONFIG
    except TreeSyncError:
        log_exception(logger, "Run failed")
        return EXIT_FATAL
    except Exception:
        log_exception(logger, "Unhandled error")
        return EXIT_FATAL


def _probe(console: Console, client: RemoteTreeClient) -> bool:
    if client.check_connection():
        return True
    ConsoleReporter(console).error(
        "Could not reach the organization. Check the personal access token and the organization URL."
    )
    return False


@app.command()
def generate(
    org: str | None = _ORG,
    project: str | None = _PROJECT,
    team: str | None = typer.Option(None, "--team", help="Team to subscribe to the generated iterations"),
    depth: int = typer.Option(1, "--depth", min=1, help="Number of nested levels"),
    children: int = typer.Option(1, "--children", min=1, help="Nodes created under each parent"),
    basename: str = typer.Option("Sprint", "--basename", help="Name prefix of top-level nodes"),
    start: datetime | None = typer.Option(
        None,
        "--start",
        formats=["%Y-%m-%d"],
        help="Start date of the first iteration (default: today)",
        show_default=False,
    ),
    days: int = typer.Option(14, "--days", min=1, help="Length of each iteration in days"),
    kind: TreeKind = typer.Option(TreeKind.ITERATION, "--kind", help="Tree to generate"),
    match_mode: MatchMode | None = typer.Option(
        None,
        "--match-mode",
        help="Duplicate detection: exact path (default) or legacy name match",
    ),
    pat: str | None = _PAT,
    ado_url: str | None = _ADO_URL,
    api_version: str | None = _API_VERSION,
    artifacts_dir: Path | None = _ARTIFACTS_DIR,
) -> None:
    """Create (or reuse) a depth x fan-out tree of iterations or areas."""

    console = Console()
    settings = _settings_with(
        organization=org,
        project=project,
        team=team,
        pat=pat,
        ado_url=ado_url,
        api_version=api_version,
        artifacts_dir=artifacts_dir,
        match_mode=match_mode.value if match_mode is not None else None,
    )
    logger.info("CLI generate requested")

    def action() -> int:
        spec = GenerationSpec(
            depth=depth,
            children_per_level=children,
            base_name=basename,
            kind=kind,
            start_date=start.date() if start is not None else date.today(),
            days_per_iteration=days,
        )
        resolved = _ensure_pat(settings)
        resolved.require_connection()
        reporter = ConsoleReporter(console)
        report = GenerationReport()
        with build_client(resolved) as client:
            if not _probe(console, client):
                return EXIT_CONNECTIVITY
            for event in run_generation_stream(settings=resolved, spec=spec, client=client, report=report):
                reporter.handle(event)
        print_generation_summary(console, report)
        return EXIT_LIMIT if report.outcome is RunOutcome.STOPPED_AT_LIMIT else EXIT_OK

    raise typer.Exit(_guarded(console, action))


@app.command("assign-all-to-team")
def assign_all_to_team(
    org: str | None = _ORG,
    project: str | None = _PROJECT,
    team: str | None = typer.Option(None, "--team", help="Team to subscribe (overrides ITERGEN_TEAM)"),
    pat: str | None = _PAT,
    ado_url: str | None = _ADO_URL,
    api_version: str | None = _API_VERSION,
    artifacts_dir: Path | None = _ARTIFACTS_DIR,
) -> None:
    """Subscribe a team to every iteration of a project."""

    console = Console()
    settings = _settings_with(
        organization=org,
        project=project,
        team=team,
        pat=pat,
        ado_url=ado_url,
        api_version=api_version,
        artifacts_dir=artifacts_dir,
    )
    logger.info("CLI assign-all-to-team requested")

    def action() -> int:
        if not (settings.team or "").strip():
            raise ConfigurationError("A team is required for assign-all-to-team (--team or ITERGEN_TEAM).")
        resolved = _ensure_pat(settings)
        resolved.require_connection()
        reporter = ConsoleReporter(console)
        report = AssignmentReport()
        with build_client(resolved) as client:
            if not _probe(console, client):
                return EXIT_CONNECTIVITY
            for event in run_assignment_stream(settings=resolved, client=client, report=report):
                reporter.handle(event)
        print_assignment_summary(console, report)
        return EXIT_LIMIT if report.outcome is RunOutcome.STOPPED_AT_LIMIT else EXIT_OK

    raise typer.Exit(_guarded(console, action))


@app.command()
def check(
    org: str | None = _ORG,
    project: str | None = _PROJECT,
    pat: str | None = _PAT,
    ado_url: str | None = _ADO_URL,
    api_version: str | None = _API_VERSION,
) -> None:
    """Verify credentials, the organization URL and access to the project's trees."""

    console = Console()
    settings = _settings_with(organization=org, project=project, pat=pat, ado_url=ado_url, api_version=api_version)

    def action() -> int:
        resolved = _ensure_pat(settings)
        resolved.require_connection()
        with build_client(resolved) as client:
            if not _probe(console, client):
                return EXIT_CONNECTIVITY
            console.print("[green]Organization reachable[/green]")
            failed = [k.value for k in TreeKind if not client.check_project_tree(resolved.project, k)]
        if failed:
            ConsoleReporter(console).error(
                f"Project '{resolved.project}' trees not readable: {', '.join(failed)}"
            )
            return EXIT_CONNECTIVITY
        console.print(f"[green]Project '{resolved.project}' iteration and area trees readable[/green]")
        return EXIT_OK

    raise typer.Exit(_guarded(console, action))


@app.command()
def replay(
    run_id: str = typer.Argument(..., help="Run id printed at the start of a run"),
    artifacts_dir: Path | None = _ARTIFACTS_DIR,
) -> None:
    """Print the recorded events of a previous run."""

    console = Console()
    settings = _settings_with(artifacts_dir=artifacts_dir)

    events = list(replay_run(run_id=run_id, artifacts_dir=settings.artifacts_dir))
    if not events:
        ConsoleReporter(console).error(f"No recorded events for run {run_id} under {settings.artifacts_dir}")
        raise typer.Exit(EXIT_CONFIG)

    reporter = ConsoleReporter(console, verbose=True)
    for event in events:
        reporter.handle(event)
    typer.echo(f"{len(events)} events")


if __name__ == "__main__":
    app()
