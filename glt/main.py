"""GLT CLI commands."""

import logging
from typing import Annotated, NoReturn

import httpx
import tomlkit
import typer
from rich import print as rprint
from rich.table import Table

from glt.models import UNSPECIFIED_PROJECT, GitlabProject, is_unspecified
from glt.repositories.gitlab import GitlabRepository
from glt.settings import CONFIG_PATH, GltSettings, _list_profiles, active_profile, get_settings, save_profile

app = typer.Typer(help="gitlab-tasks: browse GitLab issues as tasks", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Profile name from ~/.config/glt/config.toml"),
]


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("glt").setLevel(level)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose (DEBUG) logging")] = False,
) -> None:
    setup_logging(verbose)


# ---------------------------------------------------------------------------
# Repository factory
# ---------------------------------------------------------------------------


def get_repository(profile: str | None = None) -> GitlabRepository:
    return GitlabRepository.from_settings(get_settings(profile=profile))


def _fail(message: str) -> NoReturn:
    rprint(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _project_label(project: GitlabProject | None) -> str:
    if is_unspecified(project):
        return UNSPECIFIED_PROJECT.name
    return project.name_with_namespace or project.name  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("list-projects")
def list_projects(
    profile: ProfileOpt = None,
    refresh: Annotated[bool, typer.Option("--refresh", help="Fail loudly if the server cannot be reached")] = False,
) -> None:
    """List projects visible to the token."""
    repository = get_repository(profile)
    if refresh:
        try:
            projects = repository.fetch_projects()
        except (httpx.HTTPError, RuntimeError) as exc:
            _fail(f"Could not fetch projects: {exc}")
    else:
        projects = repository.get_projects()

    table = Table(title=f"Projects on {repository.url}")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Path", style="dim")

    for project in projects:
        marker = " *" if repository.current_project and repository.current_project.id == project.id else ""
        table.add_row(str(project.id), f"{_project_label(project)}{marker}", project.path_with_namespace or "")

    rprint(table)


@app.command("get-project")
def get_project(
    project_id: Annotated[int, typer.Argument(help="Numeric project ID")],
    profile: ProfileOpt = None,
) -> None:
    """Show a single project."""
    repository = get_repository(profile)
    try:
        project = repository.fetch_project(project_id)
    except (httpx.HTTPError, RuntimeError) as exc:
        _fail(f"Could not fetch project {project_id}: {exc}")
    if project is None:
        _fail(f"Project {project_id} not found")

    table = Table(title=_project_label(project))
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("ID", str(project.id))
    table.add_row("Path", project.path_with_namespace or "—")
    table.add_row("URL", project.web_url or "—")
    table.add_row("Description", project.description or "_No description provided._")

    rprint(table)


@app.command("list-issues")
def list_issues(
    profile: ProfileOpt = None,
    offset: Annotated[int, typer.Option("--offset", min=0, help="Index of the first issue")] = 0,
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Issues per page")] = 20,
    closed: Annotated[bool, typer.Option("--closed/--open-only", help="Include closed issues")] = True,
) -> None:
    """List issues of the selected project, or of all projects."""
    repository = get_repository(profile)
    try:
        tasks = repository.get_issues(None, offset, limit, with_closed=closed)
    except (httpx.HTTPError, RuntimeError) as exc:
        _fail(f"Could not fetch issues: {exc}")

    table = Table(title=repository.presentable_name)
    table.add_column("ID", style="cyan")
    table.add_column("State")
    table.add_column("Summary")
    table.add_column("URL", style="dim")

    for task in tasks:
        state = f"[dim]{task.state}[/dim]" if task.is_closed else task.state
        table.add_row(task.presentable_id, state, task.summary, task.issue_url or "")

    rprint(table)


@app.command("get-issue")
def get_issue(
    issue_id: Annotated[str, typer.Argument(help="Global numeric issue ID")],
    profile: ProfileOpt = None,
) -> None:
    """Show full details for an issue."""
    repository = get_repository(profile)
    if repository.extract_id(issue_id) is None:
        _fail(f"'{issue_id}' is not a GitLab issue ID (digits only)")
    try:
        issue = repository.fetch_issue(int(issue_id))
    except (httpx.HTTPError, RuntimeError) as exc:
        _fail(f"Could not fetch issue {issue_id}: {exc}")
    if issue is None:
        _fail(f"Issue {issue_id} not found")

    table = Table(title=f"#{issue.iid}: {issue.title}")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("State", issue.state)
    table.add_row("Project", str(issue.project_id))
    table.add_row("Author", issue.author.username if issue.author else "—")
    table.add_row("Assignee", issue.assignee.username if issue.assignee else "Unassigned")
    table.add_row("Labels", ", ".join(issue.labels) if issue.labels else "none")
    table.add_row("URL", issue.web_url or "—")
    table.add_row("Description", issue.description or "_No description provided._")

    rprint(table)


@app.command("test-connection")
def test_connection(profile: ProfileOpt = None) -> None:
    """Check that the server answers the issues endpoint. Ctrl-C cancels."""
    repository = get_repository(profile)
    if not repository.is_configured():
        _fail("Repository is not configured: url and token are required")

    connection = repository.create_cancellable_connection()
    try:
        error = connection.call()
    except KeyboardInterrupt:
        connection.cancel()
        _fail("Connection test cancelled")
    if error is not None:
        _fail(f"Connection failed: {error}")
    rprint(f"[green]✓[/green] Connected to {repository.presentable_name}")


@app.command("set-project")
def set_project(
    project_id: Annotated[int, typer.Argument(help="Project ID, or -1 for all projects")],
    profile: ProfileOpt = None,
) -> None:
    """Select the project whose issues are listed, and save it to the profile."""
    repository = get_repository(profile)
    if project_id == UNSPECIFIED_PROJECT.id:
        repository.current_project = UNSPECIFIED_PROJECT
    else:
        selected = next((p for p in repository.get_projects() if p.id == project_id), None)
        if selected is None:
            _fail(f"Project {project_id} not found. Run 'glt list-projects' to see available projects.")
        repository.current_project = selected

    name = active_profile(profile) or "default"
    save_profile(name, repository.to_config())
    rprint(f'[green]✓[/green] Profile "{name}" now uses {repository.presentable_name}')


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/glt/config.toml."""
    doc = tomlkit.load(CONFIG_PATH.open()) if CONFIG_PATH.exists() else tomlkit.document()
    profiles = _list_profiles(doc)
    if profile not in profiles:
        _fail(f"Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks the token)."""
    try:
        settings = get_settings(profile=profile)
    except typer.Exit:
        return

    token = settings.token.get_secret_value() if settings.token else None
    if token is None:
        masked = "[dim](not set)[/dim]"
    elif len(token) <= 5:
        masked = "***"
    else:
        masked = f"...{token[-5:]}"

    table = Table(title="GLT Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("profile", active_profile(profile) or "[dim](env only)[/dim]")
    table.add_row("url", settings.url)
    table.add_row("token", masked)
    table.add_row("project_id", str(settings.project_id) if settings.project_id is not None else "[dim](all)[/dim]")
    table.add_row("timeout", str(settings.timeout))

    rprint(table)


@app.command("init")
def init_cmd() -> None:
    """Interactive first-time setup wizard."""
    rprint("[bold]GLT Setup Wizard[/bold]")
    rprint("")

    profile_name = typer.prompt("Profile name (e.g. work, personal)").strip()
    if not profile_name:
        _fail("Profile name cannot be empty.")

    url = typer.prompt("GitLab URL", default="https://gitlab.com").strip().rstrip("/")
    rprint(f"Create a personal access token at: {url}/profile/account")
    token = typer.prompt("Paste token", hide_input=True).strip()

    repository = GitlabRepository.from_settings(GltSettings(url=url, token=token))  # type: ignore[arg-type]
    if not repository.is_configured():
        _fail("URL and token are both required.")

    if typer.confirm("Test the connection now?", default=True):
        error = repository.create_cancellable_connection().call()
        if error is None:
            rprint("[green]✓[/green] Connected.")
        else:
            rprint(f"[yellow]Warning:[/yellow] Connection failed: {error}")

    set_as_default = typer.confirm(f"Set '{profile_name}' as default profile?", default=True)
    save_profile(profile_name, repository.to_config(), make_default=set_as_default)
    rprint(f"[green]✓[/green] Profile '{profile_name}' written to {CONFIG_PATH}")

    rprint("")
    config_show(profile=profile_name)

