"""Field definitions for the episode update API."""

import re
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import FieldValidationError, ValidationFailure


DIGITS_PATTERN = re.compile(r"^[0-9]+$")
ISO_TIMESTAMP_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}\.[0-9]{3}Z$")
NULL_LITERAL = "null"
BOOLEAN_LITERALS = ("true", "false")
MISSING_VALUE = "N/A"


class FieldKind(str, Enum):
    """How a CSV value is validated and encoded in the payload."""

    STRING = "string"
    INTEGER = "integer"
    NULLABLE_INTEGER = "nullableInteger"
    BOOLEAN = "boolean"
    ENUMERATED_STRING = "enumeratedString"
    ISO_TIMESTAMP = "isoTimestamp"


class FieldDefinition(BaseModel):
    """Pydantic model describing one updatable episode field."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="API field name, also used as the CSV column name")
    kind: FieldKind = Field(..., description="Value grammar and JSON encoding")
    label: str = Field(..., description="Human-readable name used in log output")
    allowed_values: tuple[str, ...] = Field(
        default=(),
        description="Accepted values for enumerated string fields"
    )
    empty_allowed: bool = Field(default=True, description="Whether an empty value passes validation")
    state_keys: tuple[str, ...] = Field(
        default=(),
        description="Keys probed in order when reading the field from episode data"
    )


class FieldSchema:
    """Immutable registry of the fields an update may touch."""

    def __init__(self, definitions: Iterable[FieldDefinition]):
        by_name: dict[str, FieldDefinition] = {}
        for definition in definitions:
            if definition.name in by_name:
                raise ValueError(f"Field '{definition.name}' defined twice")
            by_name[definition.name] = definition
        self._definitions: Mapping[str, FieldDefinition] = MappingProxyType(by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self):
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    @property
    def field_names(self) -> list[str]:
        return list(self._definitions)

    def is_known_field(self, name: str) -> bool:
        return name in self._definitions

    def get(self, name: str) -> FieldDefinition:
        """Return the definition for a field, raising UNKNOWN_FIELD if there is none."""
        definition = self._definitions.get(name)
        if definition is None:
            raise FieldValidationError(
                name, "", ValidationFailure.UNKNOWN_FIELD,
                f"Field '{name}' is not a valid episode field",
            )
        return definition

    def validate(self, name: str, raw_value: str) -> None:
        """
        Check a raw CSV value against the grammar of its field.

        Args:
            name: API field name
            raw_value: Value exactly as it appeared in the CSV

        Raises:
            FieldValidationError: with the reason the value was rejected
        """
        if name not in self._definitions:
            raise FieldValidationError(
                name, raw_value, ValidationFailure.UNKNOWN_FIELD,
                f"Field '{name}' is not a valid episode field",
            )
        definition = self._definitions[name]

        def reject(reason: ValidationFailure, message: str) -> FieldValidationError:
            return FieldValidationError(name, raw_value, reason, message)

        if not raw_value and not definition.empty_allowed:
            raise reject(ValidationFailure.EMPTY_VALUE, f"Field '{name}' cannot be empty")

        kind = definition.kind
        if kind == FieldKind.BOOLEAN:
            if raw_value not in BOOLEAN_LITERALS:
                raise reject(
                    ValidationFailure.INVALID_VALUE,
                    f"Field '{name}' must be 'true' or 'false', got '{raw_value}'",
                )
        elif kind == FieldKind.ENUMERATED_STRING:
            if raw_value not in definition.allowed_values:
                choices = ", ".join(f"'{v}'" for v in definition.allowed_values)
                raise reject(
                    ValidationFailure.INVALID_VALUE,
                    f"Field '{name}' must be one of {choices}, got '{raw_value}'",
                )
        elif kind == FieldKind.NULLABLE_INTEGER:
            if raw_value != NULL_LITERAL and not DIGITS_PATTERN.match(raw_value):
                raise reject(
                    ValidationFailure.INVALID_VALUE,
                    f"Field '{name}' must be a number or 'null', got '{raw_value}'",
                )
        elif kind == FieldKind.INTEGER:
            if not DIGITS_PATTERN.match(raw_value):
                raise reject(
                    ValidationFailure.INVALID_VALUE,
                    f"Field '{name}' must be a number, got '{raw_value}'",
                )
        elif kind == FieldKind.ISO_TIMESTAMP:
            if not ISO_TIMESTAMP_PATTERN.match(raw_value):
                raise reject(
                    ValidationFailure.INVALID_FORMAT,
                    f"Field '{name}' must be in YYYY-MM-DDTHH:MM:SS.000Z format, got '{raw_value}'",
                )

    def coerce(self, name: str, raw_value: str) -> Any:
        """Convert a validated CSV value into its JSON payload value."""
        kind = self.get(name).kind
        if kind == FieldKind.BOOLEAN:
            return raw_value == "true"
        if kind == FieldKind.NULLABLE_INTEGER and raw_value == NULL_LITERAL:
            return None
        if kind in (FieldKind.INTEGER, FieldKind.NULLABLE_INTEGER):
            return int(raw_value)
        return raw_value

    def current_value(self, name: str, episode_data: Mapping[str, Any]) -> Optional[Any]:
        """Read a field from episode data, trying each of its state keys in order."""
        for key in self.get(name).state_keys:
            value = episode_data.get(key)
            if value is not None:
                return value
        return None

    def format_value(self, name: str, episode_data: Mapping[str, Any], max_length: Optional[int] = None) -> str:
        """Render the current value of a field for display ("N/A" when missing)."""
        value = self.current_value(name, episode_data)
        if value is None:
            return MISSING_VALUE
        if isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = str(value)
        if max_length is not None and len(text) > max_length:
            return f"{text[:max_length]}..."
        return text


def build_default_schema() -> FieldSchema:
    """Build the registry of the nine fields the update endpoint accepts."""
    return FieldSchema([
        FieldDefinition(
            name="title",
            kind=FieldKind.STRING,
            label="Title",
            empty_allowed=False,
            state_keys=("title",),
        ),
        FieldDefinition(
            name="publishOn",
            kind=FieldKind.ISO_TIMESTAMP,
            label="Publish Date",
            state_keys=("publishOn",),
        ),
        FieldDefinition(
            name="description",
            kind=FieldKind.STRING,
            label="Description",
            empty_allowed=False,
            state_keys=("description",),
        ),
        FieldDefinition(
            name="seasonNumber",
            kind=FieldKind.NULLABLE_INTEGER,
            label="Season Number",
            state_keys=("podcastSeasonNumber", "seasonNumber"),
        ),
        FieldDefinition(
            name="episodeNumber",
            kind=FieldKind.INTEGER,
            label="Episode Number",
            state_keys=("podcastEpisodeNumber", "episodeNumber"),
        ),
        FieldDefinition(
            name="episodeType",
            kind=FieldKind.ENUMERATED_STRING,
            label="Episode Type",
            allowed_values=("full", "trailer", "bonus"),
            state_keys=("podcastEpisodeType", "episodeType"),
        ),
        FieldDefinition(
            name="isPublished",
            kind=FieldKind.BOOLEAN,
            label="Is Published",
            state_keys=("isPublished",),
        ),
        FieldDefinition(
            name="podcastEpisodeIsExplicit",
            kind=FieldKind.BOOLEAN,
            label="Is Explicit",
            state_keys=("podcastEpisodeIsExplicit",),
        ),
        FieldDefinition(
            name="isDraft",
            kind=FieldKind.BOOLEAN,
            label="Is Draft",
            state_keys=("isDraft",),
        ),
    ])
