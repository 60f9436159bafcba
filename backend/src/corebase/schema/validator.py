"""
schema/validator.py: JSON Schema validation for content type YAML files.

Usage:
    from corebase.schema.validator import validate_definitions_dir

    issues = validate_definitions_dir(Path("metadata/content-types"))
    for issue in issues:
        print(issue)

Structural checks come from ``schemas/content_type.schema.json``. Checks the
schema cannot express (reserved field names, duplicate names, relation
targets across files) are run on top by the schema registry's
``definition_issues``.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from corebase.schema.registry import definition_issues
from corebase.schema.types import ContentType

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "content_type.schema.json"


@dataclass
class ValidationIssue:
    """A single validation finding for a definition YAML file."""

    file: Path
    message: str
    path: str = ""          # path within the document, e.g. "fields[0]/type"
    severity: str = "error"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


@lru_cache(maxsize=1)
def _load_schema() -> dict[str, Any]:
    with _SCHEMA_PATH.open() as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def validate_document(doc: Any, source: Path) -> list[ValidationIssue]:
    """Validate one parsed definition document against the JSON Schema."""
    validator = Draft202012Validator(_load_schema())
    return [
        ValidationIssue(file=source, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    ]


def validate_yaml_file(yaml_path: Path) -> list[ValidationIssue]:
    """Validate a single YAML file structurally.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    return validate_document(raw, yaml_path)


def validate_definitions_dir(
    definitions_dir: Path,
    known_api_ids: set[str] | None = None,
) -> list[ValidationIssue]:
    """
    Validate every ``*.yaml`` definition under *definitions_dir*.

    Files are first validated against the JSON Schema; files that pass are
    then checked for the registry invariants, with relation targets resolved
    against every apiId in the directory plus *known_api_ids*.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not definitions_dir.is_dir():
        return [
            ValidationIssue(
                file=definitions_dir,
                message=f"Definitions directory does not exist: {definitions_dir}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    parsed: list[tuple[Path, ContentType]] = []

    for yaml_file in sorted(definitions_dir.glob("*.yaml")):
        file_issues = validate_yaml_file(yaml_file)
        all_issues.extend(file_issues)
        if not file_issues:
            with yaml_file.open() as fh:
                parsed.append((yaml_file, ContentType.from_dict(yaml.safe_load(fh))))

    api_ids = {ct.api_id for _, ct in parsed} | (known_api_ids or set())
    seen: dict[str, Path] = {}
    for yaml_file, content_type in parsed:
        if content_type.api_id in seen:
            all_issues.append(ValidationIssue(
                file=yaml_file,
                message=f"apiId '{content_type.api_id}' is also defined in {seen[content_type.api_id].name}",
                path="apiId",
            ))
        seen.setdefault(content_type.api_id, yaml_file)

        for issue in definition_issues(content_type, api_ids):
            all_issues.append(ValidationIssue(
                file=yaml_file, message=issue.message, path=issue.field or ""
            ))

    return all_issues
