"""Content type definitions."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class FieldDefinition:
    name: str
    type: str
    display_name: str
    required: bool = False
    unique: bool = False
    default_value: Any = None
    options: list[str] | None = None  # enum only
    relation_to: str | None = None  # relation only
    relation_many: bool = False  # relation only
    multiple: bool = False  # media only

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldDefinition":
        """Create FieldDefinition from a camelCase JSON/YAML dict."""
        name = data.get("name") or ""
        return cls(
            name=name,
            type=data.get("type") or "",
            display_name=data.get("displayName") or _to_display_name(name),
            required=bool(data.get("required", False)),
            unique=bool(data.get("unique", False)),
            default_value=data.get("defaultValue"),
            options=data.get("options"),
            relation_to=data.get("relationTo"),
            relation_many=bool(data.get("relationMany", False)),
            multiple=bool(data.get("multiple", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "displayName": self.display_name,
            "type": self.type,
            "required": self.required,
            "unique": self.unique,
        }
        if self.default_value is not None:
            result["defaultValue"] = self.default_value
        if self.type == "enum":
            result["options"] = list(self.options or [])
        if self.type == "relation":
            result["relationTo"] = self.relation_to
            result["relationMany"] = self.relation_many
        if self.type == "media":
            result["multiple"] = self.multiple
        return result


@dataclass
class ContentType:
    api_id: str
    display_name: str
    fields: list[FieldDefinition]
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentType":
        """Create ContentType from a camelCase JSON/YAML dict.

        Shape is not validated here; the schema registry enforces the
        definition invariants.
        """
        raw_fields = data.get("fields") or []
        return cls(
            api_id=data.get("apiId") or "",
            display_name=data.get("displayName") or "",
            description=data.get("description"),
            fields=[FieldDefinition.from_dict(f) for f in raw_fields],
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiId": self.api_id,
            "displayName": self.display_name,
            "description": self.description,
            "fields": [f.to_dict() for f in self.fields],
            "fieldCount": len(self.fields),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def get_field(self, name: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


def _to_display_name(name: str) -> str:
    """Convert camelCase to Title Case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append(" ")
        result.append(char)
    return "".join(result).replace("_", " ").title()
