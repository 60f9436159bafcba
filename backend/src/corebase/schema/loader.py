"""Load content type definitions from YAML files.

Seed definitions live in ``<base>/metadata/content-types/*.yaml``, one
content type per file:

    apiId: article
    displayName: Article
    fields:
      - name: title
        type: text
        required: true
"""

import logging
from pathlib import Path

import yaml

from corebase.schema.types import ContentType
from corebase.schema.validator import validate_yaml_file

logger = logging.getLogger(__name__)

DEFINITIONS_SUBDIR = Path("metadata") / "content-types"


class DefinitionLoader:
    """Loads and structurally validates definition files from a directory."""

    def __init__(self, definitions_path: Path):
        self.definitions_path = definitions_path
        self.definitions: dict[str, ContentType] = {}
        self._files: dict[Path, str] = {}

    def load_all(self) -> list[ContentType]:
        """Load every valid ``*.yaml`` file. Invalid files are logged and skipped."""
        if not self.definitions_path.is_dir():
            logger.info("No definitions directory at %s", self.definitions_path)
            return []

        for yaml_file in sorted(self.definitions_path.glob("*.yaml")):
            issues = validate_yaml_file(yaml_file)
            if issues:
                for issue in issues:
                    logger.warning("Skipping definition: %s", issue)
                continue

            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            content_type = ContentType.from_dict(data)
            self.definitions[content_type.api_id] = content_type
            self._files[yaml_file.resolve()] = content_type.api_id

        return list(self.definitions.values())

    def get(self, api_id: str) -> ContentType | None:
        return self.definitions.get(api_id)

    def get_by_file(self, yaml_file: Path) -> ContentType | None:
        """The definition loaded from a given file, if it loaded."""
        api_id = self._files.get(yaml_file.resolve())
        return self.definitions.get(api_id) if api_id else None

    def list_api_ids(self) -> list[str]:
        return sorted(self.definitions.keys())
