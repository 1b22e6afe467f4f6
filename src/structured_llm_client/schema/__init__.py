"""Schema resolution and validation for structured extraction.

This module provides:
- A schema provider resolving response models (and the models nested in
  them) into JSON-Schema descriptions keyed by name
- JSON schema loading from files, URLs and runtime registration, with
  response-model generation from those descriptions
- Parsing and batch validation of tool-call arguments
"""

from .manager import SchemaManager
from .provider import REF_TEMPLATE, SchemaProvider, schema_name
from .validators import ResponseValidator, Violation

__all__ = [
    # Provider
    "REF_TEMPLATE",
    "SchemaProvider",
    "schema_name",
    # Manager
    "SchemaManager",
    # Validators
    "ResponseValidator",
    "Violation",
]
