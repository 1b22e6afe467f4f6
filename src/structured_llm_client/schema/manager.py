"""Schema management: loading JSON-schema descriptions and building response models."""

import json
from pathlib import Path
from typing import Any, Literal, Union

import requests
from pydantic import BaseModel, Field, create_model

from structured_llm_client.exceptions import SchemaLoadError, SchemaNotFoundError

_TYPE_MAPPING: dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "array": list,
    "object": dict,
    "null": type(None),
}

_CONSTRAINT_KEYWORDS = {
    "minimum": "ge",
    "maximum": "le",
    "exclusiveMinimum": "gt",
    "exclusiveMaximum": "lt",
    "minLength": "min_length",
    "maxLength": "max_length",
    "minItems": "min_length",
    "maxItems": "max_length",
    "pattern": "pattern",
}


def _camel_case(name: str) -> str:
    parts = name.replace("-", "_").split("_")
    return "".join(part[:1].upper() + part[1:] for part in parts)


class SchemaManager:
    """Manages JSON schema descriptions and turns them into response models.

    Supports loading schemas from:
    - Local files in configured directories
    - URLs with caching
    - Runtime registration

    Generated models carry the schema's constraints as Pydantic field
    constraints, so a schema description can stand in for a hand-written
    response model.
    """

    def __init__(self, schema_directories: list[str] | None = None) -> None:
        """Initialize SchemaManager.

        Args:
            schema_directories: Directories to search for schema files.
                               Defaults to ['schemas/'] if None.
        """
        self.schema_directories = schema_directories or ["schemas/"]
        self._schema_cache: dict[str, dict[str, Any]] = {}
        self._model_cache: dict[str, type[BaseModel]] = {}
        self._url_cache: dict[str, dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> dict[str, Any]:
        """Load a JSON schema by name.

        Args:
            schema_name: Name of the schema (without .json extension)

        Returns:
            JSON schema as dictionary

        Raises:
            SchemaNotFoundError: If schema cannot be found
            SchemaLoadError: If the schema file is not a valid schema
        """
        if schema_name in self._schema_cache:
            return self._schema_cache[schema_name]

        for directory in self.schema_directories:
            schema_path = Path(directory) / f"{schema_name}.json"
            if schema_path.exists():
                try:
                    with open(schema_path, encoding="utf-8") as f:
                        schema_dict = json.load(f)
                except (json.JSONDecodeError, FileNotFoundError) as e:
                    raise SchemaLoadError(
                        f"Invalid schema file {schema_path}: {e}"
                    ) from e

                self._validate_schema(schema_dict)
                self._schema_cache[schema_name] = schema_dict
                return schema_dict

        raise SchemaNotFoundError(
            f"Schema '{schema_name}' not found in directories: "
            f"{self.schema_directories}",
            schema_name=schema_name,
        )

    def load_schema_from_url(self, url: str, timeout: float = 30.0) -> dict[str, Any]:
        """Load a JSON schema from a URL.

        Args:
            url: URL to fetch schema from
            timeout: Request timeout in seconds

        Returns:
            JSON schema as dictionary

        Raises:
            SchemaLoadError: If URL fetch or schema validation fails
        """
        if url in self._url_cache:
            return self._url_cache[url]

        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            schema_dict = response.json()
        except requests.RequestException as e:
            raise SchemaLoadError(f"Failed to fetch schema from {url}: {e}") from e
        except json.JSONDecodeError as e:
            raise SchemaLoadError(f"Invalid JSON schema from {url}: {e}") from e

        self._validate_schema(schema_dict)
        self._url_cache[url] = schema_dict
        return schema_dict

    def register_schema(self, name: str, schema_dict: dict[str, Any]) -> None:
        """Register a schema at runtime.

        Args:
            name: Name to register schema under
            schema_dict: JSON schema as dictionary

        Raises:
            SchemaLoadError: If schema is invalid
        """
        self._validate_schema(schema_dict)
        self._schema_cache[name] = schema_dict
        self._model_cache.pop(name, None)

    def get_response_model(
        self, schema_input: str | dict[str, Any] | type[BaseModel]
    ) -> type[BaseModel]:
        """Get or generate a response model from a schema description.

        Args:
            schema_input: Schema name, schema dict, or existing Pydantic model

        Returns:
            Pydantic model class

        Raises:
            SchemaNotFoundError: If a schema name is unknown
            SchemaLoadError: If the schema is invalid, recursive or has
                unresolvable references
        """
        if isinstance(schema_input, type) and issubclass(schema_input, BaseModel):
            return schema_input

        if not isinstance(schema_input, (dict, str)):
            raise SchemaLoadError(
                f"Cannot build a response model from {schema_input!r}"
            )

        if isinstance(schema_input, dict):
            self._validate_schema(schema_input)
            return self._generate_model_from_schema(
                schema_input, schema_input.get("title", "DynamicModel")
            )

        schema_name = str(schema_input)
        if schema_name in self._model_cache:
            return self._model_cache[schema_name]

        schema_dict = self.load_schema(schema_name)
        model_class = self._generate_model_from_schema(
            schema_dict, schema_dict.get("title", _camel_case(schema_name))
        )
        self._model_cache[schema_name] = model_class
        return model_class

    def list_available_schemas(self) -> list[str]:
        """List all available schemas.

        Returns:
            List of schema names
        """
        schema_names = set()

        for directory in self.schema_directories:
            dir_path = Path(directory)
            if dir_path.exists():
                for schema_file in dir_path.glob("*.json"):
                    schema_names.add(schema_file.stem)

        schema_names.update(self._schema_cache.keys())

        return sorted(schema_names)

    def _validate_schema(self, schema_dict: Any) -> None:
        """Validate that a dictionary is a usable JSON schema.

        Raises:
            SchemaLoadError: If schema is invalid
        """
        if not isinstance(schema_dict, dict):
            raise SchemaLoadError("Schema must be a dictionary")

        if "type" not in schema_dict and "$ref" not in schema_dict:
            raise SchemaLoadError("Schema must have 'type' or '$ref' field")

    def _generate_model_from_schema(
        self,
        schema_dict: dict[str, Any],
        model_name: str,
        definitions: dict[str, Any] | None = None,
        built: dict[str, type[BaseModel] | None] | None = None,
    ) -> type[BaseModel]:
        """Generate a Pydantic model from a JSON schema.

        Args:
            schema_dict: JSON schema dictionary
            model_name: Name for the generated model
            definitions: Shared ``definitions``/``$defs`` for ``$ref`` lookups
            built: Models generated in this pass, keyed by name; None marks
                a definition still being generated

        Returns:
            Generated Pydantic model class
        """
        definitions = {
            **(definitions or {}),
            **schema_dict.get("definitions", {}),
            **schema_dict.get("$defs", {}),
        }
        built = {} if built is None else built

        if "$ref" in schema_dict:
            return self._resolve_ref(schema_dict["$ref"], definitions, built)

        if schema_dict.get("type") != "object":
            # Non-object schemas are wrapped in a single ``value`` field
            annotation = self._annotation_for(
                schema_dict, f"{model_name}Value", definitions, built
            )
            return create_model(model_name, value=(annotation, ...))

        properties = schema_dict.get("properties", {})
        required_fields = set(schema_dict.get("required", []))

        field_definitions: dict[str, Any] = {}
        for field_name, field_schema in properties.items():
            annotation = self._annotation_for(
                field_schema,
                f"{model_name}{_camel_case(field_name)}",
                definitions,
                built,
            )
            constraints = {
                target: field_schema[keyword]
                for keyword, target in _CONSTRAINT_KEYWORDS.items()
                if keyword in field_schema
            }
            description = field_schema.get("description")

            if field_name in required_fields:
                field_definitions[field_name] = (
                    annotation,
                    Field(..., description=description, **constraints),
                )
            else:
                field_definitions[field_name] = (
                    annotation | None,
                    Field(
                        default=field_schema.get("default"),
                        description=description,
                        **constraints,
                    ),
                )

        model = create_model(  # type: ignore[call-overload]
            model_name,
            __doc__=schema_dict.get("description"),
            **field_definitions,
        )
        built[model_name] = model
        return model

    def _resolve_ref(
        self,
        ref: str,
        definitions: dict[str, Any],
        built: dict[str, type[BaseModel] | None],
    ) -> type[BaseModel]:
        key = ref.rsplit("/", 1)[-1]
        if key in built:
            model = built[key]
            if model is None:
                raise SchemaLoadError(
                    f"Recursive schema reference '{ref}' is not supported"
                )
            return model
        if key not in definitions:
            raise SchemaLoadError(f"Unresolvable schema reference '{ref}'")

        built[key] = None
        model = self._generate_model_from_schema(
            definitions[key], key, definitions, built
        )
        built[key] = model
        return model

    def _annotation_for(
        self,
        field_schema: dict[str, Any],
        hint_name: str,
        definitions: dict[str, Any],
        built: dict[str, type[BaseModel] | None],
    ) -> Any:
        """Convert a JSON schema fragment to a Python type annotation.

        Args:
            field_schema: JSON schema field definition
            hint_name: Model name to use if the fragment is an inline object
            definitions: Shared definitions for ``$ref`` lookups
            built: Models already generated in this pass

        Returns:
            Python type annotation
        """
        if "$ref" in field_schema:
            return self._resolve_ref(field_schema["$ref"], definitions, built)

        if "enum" in field_schema:
            return Literal[tuple(field_schema["enum"])]  # type: ignore[valid-type]

        for combinator in ("anyOf", "oneOf"):
            if combinator in field_schema:
                options = [
                    self._annotation_for(option, f"{hint_name}{i}", definitions, built)
                    for i, option in enumerate(field_schema[combinator])
                ]
                return Union[tuple(options)]  # type: ignore[return-value]

        json_type = field_schema.get("type", "string")
        if isinstance(json_type, list):
            options = [
                self._annotation_for(
                    {**field_schema, "type": t}, hint_name, definitions, built
                )
                for t in json_type
            ]
            return Union[tuple(options)]  # type: ignore[return-value]

        if json_type == "object" and "properties" in field_schema:
            return self._generate_model_from_schema(
                field_schema,
                field_schema.get("title", hint_name),
                definitions,
                built,
            )

        if json_type == "array":
            items = field_schema.get("items")
            if isinstance(items, dict):
                item_type = self._annotation_for(
                    items, f"{hint_name}Item", definitions, built
                )
                return list[item_type]  # type: ignore[valid-type]
            return list[Any]

        return _TYPE_MAPPING.get(json_type, str)
