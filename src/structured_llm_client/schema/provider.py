"""Schema provider resolving response models into JSON-Schema descriptions."""

import json
from collections.abc import Iterator
from typing import Any, get_args

from pydantic import BaseModel

from structured_llm_client.exceptions import (
    SchemaNotFoundError,
    SchemaResolutionError,
)

REF_TEMPLATE = "#/definitions/{model}"


def schema_name(model: type[BaseModel]) -> str:
    """Return the stable name used as schema key and tool name."""
    return model.__name__


def _nested_models(annotation: Any) -> Iterator[type[BaseModel]]:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        yield annotation
        return
    for arg in get_args(annotation):
        yield from _nested_models(arg)


class SchemaProvider:
    """Registry of response models keyed by schema name.

    Built from a root response model, it registers the root and every model
    reachable through its field annotations (nested models, lists and
    optionals of them). Schemas are generated with references pointing into a
    ``definitions`` map, which is how the extraction tool ships them.
    """

    def __init__(self) -> None:
        self._models: dict[str, type[BaseModel]] = {}

    @classmethod
    def from_model(cls, model: type[BaseModel]) -> "SchemaProvider":
        """Create a provider holding ``model`` and its nested models."""
        provider = cls()
        provider.register(model)
        return provider

    def register(self, model: type[BaseModel]) -> None:
        """Register a model and, recursively, the models its fields reference.

        Raises:
            SchemaResolutionError: If ``model`` is not a Pydantic model, or a
                different model is already registered under the same name.
        """
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise SchemaResolutionError(
                f"Response model must be a Pydantic model class, got {model!r}"
            )

        name = schema_name(model)
        existing = self._models.get(name)
        if existing is model:
            return
        if existing is not None:
            raise SchemaResolutionError(
                f"Schema name '{name}' is used by both {existing.__module__}."
                f"{existing.__qualname__} and {model.__module__}.{model.__qualname__}",
                schema_name=name,
            )

        self._models[name] = model
        for field_info in model.model_fields.values():
            for nested in _nested_models(field_info.annotation):
                self.register(nested)

    def get_model(self, name: str) -> type[BaseModel]:
        """Return the model registered under ``name``.

        Raises:
            SchemaNotFoundError: If no model is registered under ``name``
        """
        try:
            return self._models[name]
        except KeyError:
            raise SchemaNotFoundError(
                f"Schema '{name}' not found. Known schemas: {sorted(self._models)}",
                schema_name=name,
            ) from None

    def resolve_schema(self, name: str) -> dict[str, Any]:
        """Resolve the JSON schema of one model, without embedded definitions.

        A self-referencing model is generated by pydantic as a bare ``$ref``;
        its definition is inlined so the root always describes the object.

        Args:
            name: Schema name of a registered model

        Returns:
            JSON schema whose references point at ``#/definitions/<Name>``

        Raises:
            SchemaNotFoundError: If no model is registered under ``name``
        """
        schema, _ = self._split(self.get_model(name))
        return schema

    def resolve_definitions(self, name: str) -> dict[str, Any]:
        """Resolve every schema reachable by reference from model ``name``.

        Includes nested models as well as enums they use. The model itself is
        listed only when something refers back to it.
        """
        _, definitions = self._split(self.get_model(name))
        return definitions

    def resolve_all_schemas(self) -> dict[str, dict[str, Any]]:
        """Resolve the schema of every registered model, keyed by name."""
        return {name: self.resolve_schema(name) for name in sorted(self._models)}

    @property
    def names(self) -> list[str]:
        """Registered schema names in sorted order."""
        return sorted(self._models)

    def _generate(self, model: type[BaseModel]) -> dict[str, Any]:
        try:
            return model.model_json_schema(ref_template=REF_TEMPLATE)
        except Exception as e:
            raise SchemaResolutionError(
                f"Could not generate schema for '{schema_name(model)}': {e}",
                schema_name=schema_name(model),
            ) from e

    def _split(
        self, model: type[BaseModel]
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Split a generated schema into its root and its definitions."""
        schema = self._generate(model)
        definitions: dict[str, Any] = schema.pop("$defs", {})

        ref = schema.get("$ref")
        if ref is None:
            return schema, definitions

        root_name = ref.rsplit("/", 1)[-1]
        if root_name not in definitions:
            raise SchemaResolutionError(
                f"Root reference '{ref}' of '{schema_name(model)}' "
                "has no definition",
                schema_name=schema_name(model),
            )
        root = {
            **definitions[root_name],
            **{key: value for key, value in schema.items() if key != "$ref"},
        }
        others = [value for key, value in definitions.items() if key != root_name]
        if not _refers_to(ref, [root, *others]):
            del definitions[root_name]
        return root, definitions


def _refers_to(ref: str, fragments: list[Any]) -> bool:
    needle = f'"$ref": {json.dumps(ref)}'
    return any(needle in json.dumps(fragment) for fragment in fragments)
