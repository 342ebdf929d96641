"""
Command-line interface for monover.

Provides commands for resolving project versions, listing discovered
projects and inspecting branch classification.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from monover import __version__
from monover.utils.logging_config import setup_logging
from monover.utils.validation import validate_path


def _load_config(repo_root: Path, config_file: Optional[str]):
    """Build the effective configuration: file, then environment."""
    from monover.core.config import Config

    Config.reset()
    config_path = Path(config_file) if config_file else Config.discover_config_file(repo_root)
    if config_path is not None:
        Config.load_from_file(config_path)
    return Config.load_from_env(dotenv_path=repo_root / ".env")


def _repository_root(repo: str) -> Path:
    is_valid, error = validate_path(repo)
    if not is_valid:
        click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    from monover.vcs.git_handler import GitRepository

    root = GitRepository.discover_root(Path(repo))
    if root is None:
        click.echo(f"Error: Not a git repository: {repo}", err=True)
        sys.exit(1)
    return root


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output"
)
@click.option(
    "--log-file",
    type=click.Path(),
    help="Path to log file"
)
@click.pass_context
def cli(ctx, verbose, log_file):
    """
    monover

    Calculate semantic versions for the projects of a monorepo from
    git history alone.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    log_level = "DEBUG" if verbose else "WARNING"
    setup_logging(level=log_level, log_file=Path(log_file) if log_file else None)


@cli.command()
@click.option(
    "--repo", "-r",
    type=click.Path(),
    default=".",
    help="Path inside the git repository (default: current directory)"
)
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(),
    help="Configuration file (default: monover.yml in the repository root)"
)
@click.option(
    "--project", "-p",
    "projects",
    multiple=True,
    help="Project to resolve; repeat for several (default: all)"
)
@click.option(
    "--tag-prefix",
    help="Prefix of version tags (default: v)"
)
@click.option(
    "--branch",
    help="Branch name to use instead of the checked-out branch"
)
@click.option(
    "--debug",
    is_flag=True,
    help="Log change detection diagnostics"
)
@click.option(
    "--format", "-f",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format"
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Write the result to a file instead of stdout"
)
@click.pass_context
def version(ctx, repo, config_file, projects, tag_prefix, branch, debug, format, output):
    """
    Resolve project versions.

    Examples:

        monover version

        monover version -p api -p web --format json

        monover version --branch release/2.5.0
    """
    from monover.core.exceptions import MonoverError
    from monover.engine import MonorepoVersioner
    from monover.reporting.formatter import get_formatter

    root = _repository_root(repo)

    try:
        config = _load_config(root, config_file)
        if tag_prefix is not None:
            config.versioning.tag_prefix = tag_prefix
        if branch:
            config.branch_override = branch
        if debug:
            config.debug = True
            if not ctx.obj.get("verbose"):
                setup_logging(level="DEBUG")

        versioner = MonorepoVersioner.from_path(root, config)
        run = versioner.resolve_all(list(projects) if projects else None)

    except MonoverError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    formatter = get_formatter(format)
    if output:
        formatter.save(run, Path(output))
        click.echo(f"Versions saved to: {output}")
    else:
        click.echo(formatter.format(run), nl=False)

    if not run.succeeded:
        sys.exit(1)


@cli.command()
@click.option(
    "--repo", "-r",
    type=click.Path(),
    default=".",
    help="Path inside the git repository (default: current directory)"
)
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(),
    help="Configuration file"
)
def projects(repo, config_file):
    """List discovered projects and their dependencies."""
    from monover.core.exceptions import MonoverError
    from monover.graph.discovery import ProjectDiscovery

    root = _repository_root(repo)

    try:
        config = _load_config(root, config_file)
        graph = ProjectDiscovery(config).build_graph(root)
    except MonoverError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Projects ({graph.project_count}):")
    click.echo("-" * 40)
    for name in graph.topological_order():
        project = graph.get_project(name)
        click.echo(f"  {name}: {project.path or '.'}")
        for dependency in graph.direct_dependencies(name):
            click.echo(f"    -> {dependency}")

    for cycle in graph.find_cycles():
        click.echo(f"Warning: dependency cycle {' -> '.join(cycle)}", err=True)


@cli.command()
@click.argument("branch")
@click.option(
    "--repo", "-r",
    type=click.Path(),
    default=".",
    help="Repository whose configuration applies (default: current directory)"
)
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(),
    help="Configuration file"
)
@click.option(
    "--tag-prefix",
    help="Prefix allowed before a release version (default: configured prefix)"
)
def classify(branch, repo, config_file, tag_prefix):
    """
    Show how BRANCH is classified.

    Examples:

        monover classify release/2.5.0

        monover classify feature/login
    """
    from monover.core.exceptions import MonoverError
    from monover.vcs.git_handler import GitRepository
    from monover.versioning.branches import BranchType, classify_branch, extract_release_version

    root = None
    if validate_path(repo)[0]:
        root = GitRepository.discover_root(Path(repo))

    try:
        config = _load_config(root or Path(repo), config_file)
    except MonoverError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if tag_prefix is None:
        tag_prefix = config.versioning.tag_prefix

    branch_type = classify_branch(branch, config.branches)
    click.echo(f"Branch: {branch}")
    click.echo(f"Type: {branch_type.value}")

    if branch_type == BranchType.RELEASE:
        release = extract_release_version(branch, tag_prefix)
        click.echo(f"Release version: {release if release else 'none'}")


@cli.command()
@click.option(
    "--output", "-o",
    type=click.Path(),
    default="monover.yml",
    help="Output path for configuration file"
)
def init(output):
    """
    Initialize configuration file.

    Creates a default configuration file that can be customized.
    """
    from monover.core.config import Config

    Config.reset()
    Config.save_to_file(output)
    click.echo(f"Configuration saved to: {output}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
