"""
Schema Translator

This module reflects a tool's pydantic ``args_model`` into the provider-neutral
FunctionDeclaration the generative model reads.

Translation table:
    str                          -> string
    int, float (bool excluded)   -> number
    bool                         -> boolean
    Enum subclass, Literal[...]  -> string with enum
    list[X], tuple[X, ...], set  -> array with items
    nested BaseModel             -> object with properties
    dict[...], Mapping[...]      -> object (opaque)
    anything else                -> string (logged as a warning)

Optional[X] and Annotated[X, ...] are unwrapped to X. A field is required
only when pydantic requires it and its annotation does not admit None.

Pattern: Reflection over a typed schema (no hand-written JSON Schema)
"""

import logging
import types
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from agent_tools.core.exceptions import SchemaTranslationError
from agent_tools.models.declarations import (
    FunctionDeclaration,
    FunctionParameters,
    PropertySchema,
)

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description"

_UNION_ORIGINS = {Union, types.UnionType}
_ARRAY_ORIGINS = {list, tuple, set, frozenset}


def _is_model_class(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


def _unwrap(annotation: Any) -> Any:
    """Strip Annotated and Optional wrappers."""
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation = get_args(annotation)[0]
            continue
        if origin in _UNION_ORIGINS:
            members = [arg for arg in get_args(annotation) if arg is not type(None)]
            if len(members) == 1:
                annotation = members[0]
                continue
        return annotation


class SchemaTranslator:
    """
    Translate pydantic argument models into function declarations.

    Stateless and deterministic: the same model always yields an equal
    declaration. Unsupported annotations degrade to ``string`` with a warning
    instead of failing registration.

    Example:
        >>> translator = SchemaTranslator()
        >>> declaration = translator.to_function_declaration(
        ...     "search_knowledge", "Search the knowledge base", SearchArgs
        ... )
        >>> declaration.parameters.required
        ['query']
    """

    def to_function_declaration(
        self,
        name: str,
        description: str,
        args_model: Any,
    ) -> FunctionDeclaration:
        """
        Build the declaration for one tool.

        Args:
            name: Tool name (becomes the declaration name).
            description: Tool description.
            args_model: Pydantic model class describing the arguments.

        Raises:
            SchemaTranslationError: If ``args_model`` is not a pydantic model class.
        """
        if not _is_model_class(args_model):
            raise SchemaTranslationError(
                f"Argument schema of tool '{name}' must be a pydantic model class, "
                f"got {args_model!r}",
                tool_name=name,
            )

        properties: dict[str, PropertySchema] = {}
        required: list[str] = []
        for field_name, field_info in args_model.model_fields.items():
            key = field_info.alias or field_name
            properties[key] = self.to_property_schema(
                field_info.annotation, field_info.description, context=f"{name}.{key}"
            )
            if self._is_required(field_info):
                required.append(key)

        return FunctionDeclaration(
            name=name,
            description=description,
            parameters=FunctionParameters(properties=properties, required=required),
        )

    def to_property_schema(
        self,
        annotation: Any,
        description: Optional[str] = None,
        context: str = "",
    ) -> PropertySchema:
        """
        Translate one annotation into a PropertySchema.

        Args:
            annotation: The field annotation.
            description: Field description ("No description" when missing).
            context: Dotted field path, used in warnings only.
        """
        description = description or NO_DESCRIPTION
        annotation = _unwrap(annotation)
        origin = get_origin(annotation)

        if annotation is bool:
            return PropertySchema(type="boolean", description=description)
        if annotation is str:
            return PropertySchema(type="string", description=description)
        if annotation in (int, float):
            return PropertySchema(type="number", description=description)

        if isinstance(annotation, type) and issubclass(annotation, Enum):
            return PropertySchema(
                type="string",
                description=description,
                enum=[str(member.value) for member in annotation],
            )
        if origin is Literal:
            return PropertySchema(
                type="string",
                description=description,
                enum=[str(value) for value in get_args(annotation)],
            )

        if annotation in _ARRAY_ORIGINS or origin in _ARRAY_ORIGINS:
            item_args = [arg for arg in get_args(annotation) if arg is not Ellipsis]
            item_annotation = item_args[0] if item_args else Any
            return PropertySchema(
                type="array",
                description=description,
                items=self.to_property_schema(item_annotation, context=f"{context}[]"),
            )

        if _is_model_class(annotation):
            return PropertySchema(
                type="object",
                description=description,
                properties={
                    (info.alias or field_name): self.to_property_schema(
                        info.annotation,
                        info.description,
                        context=f"{context}.{field_name}",
                    )
                    for field_name, info in annotation.model_fields.items()
                },
            )

        if annotation is dict or origin is dict or _is_mapping(annotation, origin):
            return PropertySchema(type="object", description=description)

        logger.warning(
            f"Unsupported argument type {annotation!r} for {context or 'field'}, "
            "declaring it as string"
        )
        return PropertySchema(type="string", description=description)

    @staticmethod
    def _is_required(field_info: FieldInfo) -> bool:
        """Required exactly when pydantic requires it (Optional[X] alone is not a default)."""
        return field_info.is_required()


def _is_mapping(annotation: Any, origin: Any) -> bool:
    candidate = origin if origin is not None else annotation
    return isinstance(candidate, type) and issubclass(candidate, Mapping)


_default_translator = SchemaTranslator()


def build_function_declaration(
    tool: Any, translator: Optional[SchemaTranslator] = None
) -> FunctionDeclaration:
    """
    Build the declaration for a Tool instance.

    Args:
        tool: Tool with ``name``, ``description`` and ``args_model``.
        translator: Translator to use (default: a shared stateless instance).
    """
    translator = translator or _default_translator
    return translator.to_function_declaration(
        tool.name, tool.description, getattr(tool, "args_model", None)
    )
