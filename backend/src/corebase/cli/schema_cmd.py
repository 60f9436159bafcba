"""Schema CLI commands: validate definition files and list stored types."""

from pathlib import Path

import click

from corebase.persistence import DatabaseConfig
from corebase.schema.loader import DEFINITIONS_SUBDIR, DefinitionLoader
from corebase.schema.registry import definition_issues
from corebase.schema.store import ContentTypeStore
from corebase.schema.validator import (
    ValidationIssue,
    validate_definitions_dir,
    validate_yaml_file,
)


def _resolve_paths() -> tuple[Path, Path]:
    """Resolve base and definitions paths from cwd."""
    cwd = Path.cwd()
    if cwd.name == "backend":
        base_path = cwd.parent
    else:
        base_path = cwd
    return base_path, base_path / DEFINITIONS_SUBDIR


def _validate_single_file(target_path: Path) -> list[ValidationIssue]:
    issues = validate_yaml_file(target_path)
    if issues:
        return issues

    # Relation targets may live in sibling files
    siblings = DefinitionLoader(target_path.parent)
    siblings.load_all()
    content_type = siblings.get_by_file(target_path)
    if content_type is None:
        return []
    return [
        ValidationIssue(file=target_path, message=issue.message, path=issue.field or "")
        for issue in definition_issues(content_type, set(siblings.list_api_ids()))
    ]


@click.group()
def schema():
    """Content type definition commands."""
    pass


@schema.command()
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Validate a single YAML file instead of the whole definitions directory.",
)
def validate(target_path: Path | None):
    """Validate content type YAML files."""
    _, definitions_path = _resolve_paths()

    if target_path is not None:
        issues = _validate_single_file(target_path)
    else:
        if not definitions_path.exists():
            click.echo(f"Error: Definitions directory not found at {definitions_path}", err=True)
            raise SystemExit(1)
        issues = validate_definitions_dir(definitions_path)

    for issue in issues:
        click.echo(click.style(str(issue), fg="red"))

    if issues:
        click.echo(click.style(f"\n{len(issues)} error(s) found", fg="red", bold=True))
        raise SystemExit(1)

    if target_path is None:
        loader = DefinitionLoader(definitions_path)
        definitions = loader.load_all()
        click.echo(f"Loaded {len(definitions)} content type(s):")
        for content_type in sorted(definitions, key=lambda ct: ct.api_id):
            click.echo(f"  ✓ {content_type.api_id} ({len(content_type.fields)} fields)")

    click.echo(click.style("\nAll definitions are valid.", fg="green", bold=True))


@schema.command("list")
def list_cmd():
    """List the content types stored in the database."""
    base_path, _ = _resolve_paths()
    db_config = DatabaseConfig.from_env(base_path)

    if db_config.is_sqlite and db_config.sqlite_path != ":memory:":
        if not Path(db_config.sqlite_path).exists():
            click.echo(f"No database at {db_config.sqlite_path}")
            return

    store = ContentTypeStore(db_config.sqlalchemy_url)
    try:
        content_types = store.list()
    finally:
        store.dispose()

    if not content_types:
        click.echo("No content types defined.")
        return

    for content_type in content_types:
        click.echo(
            f"{content_type.api_id:<24} {content_type.display_name:<32} "
            f"{len(content_type.fields)} fields"
        )
