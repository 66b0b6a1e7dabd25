"""
Function Declaration Models

Model-facing descriptions of tools: the declaration the generative model reads
to decide when and how to call a tool, and the recursive property schema used
for each argument.

Pattern: Value objects (frozen Pydantic models)
Pattern: JSON-Schema-like parameters (Gemini function declarations)
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


PropertyType = Literal["string", "number", "boolean", "array", "object"]


class PropertySchema(BaseModel):
    """
    Structural description of one tool argument.

    Mirrors the shape of the tool's argument schema: arrays carry an ``items``
    schema and nested objects carry ``properties``. Record/map arguments are
    objects without ``properties``.

    Attributes:
        type: One of string, number, boolean, array, object.
        description: Human-readable description for the model.
        enum: Allowed values for enumerated strings.
        items: Element schema for arrays.
        properties: Field schemas for nested objects.
    """

    type: PropertyType
    description: str = "No description"
    enum: Optional[list[str]] = None
    items: Optional["PropertySchema"] = None
    properties: Optional[dict[str, "PropertySchema"]] = None

    model_config = {"frozen": True}

    def to_schema_dict(self) -> dict[str, Any]:
        """Dump as a plain JSON-Schema-like dict without unset keys."""
        return self.model_dump(exclude_none=True)


PropertySchema.model_rebuild()


class FunctionParameters(BaseModel):
    """Top-level parameter object of a function declaration."""

    type: Literal["object"] = "object"
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class FunctionDeclaration(BaseModel):
    """
    Provider-neutral declaration of a callable tool.

    Derived deterministically from a tool's argument schema; one declaration
    per registered tool. ``name`` always matches the owning tool's name.

    Example:
        >>> declaration = FunctionDeclaration(
        ...     name="search_knowledge",
        ...     description="Search the knowledge base",
        ...     parameters=FunctionParameters(
        ...         properties={"query": PropertySchema(type="string")},
        ...         required=["query"],
        ...     ),
        ... )
    """

    name: str = Field(..., description="Tool name")
    description: str = Field(..., description="What the tool does")
    parameters: FunctionParameters = Field(default_factory=FunctionParameters)

    model_config = {"frozen": True}

    def to_schema_dict(self) -> dict[str, Any]:
        """
        Dump as a plain dict suitable for a model API request.

        An empty ``required`` list is omitted, matching what function-calling
        APIs expect for tools without mandatory arguments.
        """
        parameters: dict[str, Any] = {
            "type": "object",
            "properties": {
                key: prop.to_schema_dict()
                for key, prop in self.parameters.properties.items()
            },
        }
        if self.parameters.required:
            parameters["required"] = list(self.parameters.required)
        return {
            "name": self.name,
            "description": self.description,
            "parameters": parameters,
        }
