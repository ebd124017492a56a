import inspect
import types
from typing import Any, Literal, Optional, Union, get_origin, Annotated, get_args
from pydantic import Field, BaseModel, ConfigDict
from pydantic.fields import FieldInfo
from ...exceptions import ToolValidationError

from ..models import ParameterSpec, ParameterType
from ...logger import get_logger

logger = get_logger(__name__)

_ARRAY_ORIGINS = (list, tuple, set, frozenset)


class FieldTuple(BaseModel):
    """Ensures, that the dynamic model field definition is correctly typed for Pydantic's create_model."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    annotation: Any
    field: FieldInfo


class ToolParameterFactory:
    """Capsules the extraction and validation of single function parameters for tools."""

    @classmethod
    def build_field_tuple(cls, param_name: str, param: inspect.Parameter, tool_name: str) -> FieldTuple:
        """Creates the tuple of (annotation, FieldInfo) for a single function parameter.

        Args:
            param_name: The name of the parameter.
            param: The inspect.Parameter object.
            tool_name: The name of the tool for error reporting.

        Returns:
            A FieldTuple containing the type annotation and Pydantic Field configuration.
        """

        annotation = param.annotation
        description = cls._extract_description(annotation=annotation, param_name=param_name, tool_name=tool_name)

        pydantic_default = param.default if param.default is not inspect.Parameter.empty else ...

        return FieldTuple(annotation=annotation, field=Field(default=pydantic_default, description=description))

    @classmethod
    def build_parameter_spec(cls, param_name: str, param: inspect.Parameter, tool_name: str) -> ParameterSpec:
        """Creates the prompt-facing ParameterSpec for a single function parameter.

        Args:
            param_name: The name of the parameter.
            param: The inspect.Parameter object.
            tool_name: The name of the tool for error reporting.

        Returns:
            A ParameterSpec with the declared type, item type and required flag.
        """
        description = cls._extract_description(annotation=param.annotation, param_name=param_name, tool_name=tool_name)
        base_type = cls._strip_annotated(param.annotation)
        param_type, items = cls.map_annotation(base_type)
        return ParameterSpec(
            name=param_name,
            type=param_type,
            description=description,
            required=param.default is inspect.Parameter.empty,
            items=items,
        )

    @classmethod
    def map_annotation(cls, annotation: Any) -> tuple[ParameterType, Optional[ParameterType]]:
        """Maps a Python annotation onto a declared parameter type and optional array item type."""
        annotation = cls._unwrap_optional(annotation)
        origin = get_origin(annotation)

        if annotation is bool:
            return "boolean", None
        if annotation in (int, float):
            return "number", None
        if annotation is str:
            return "string", None
        if origin is Literal:
            literals = get_args(annotation)
            return (cls.map_annotation(type(literals[0]))[0] if literals else "string"), None
        if annotation in _ARRAY_ORIGINS or origin in _ARRAY_ORIGINS:
            args = [a for a in get_args(annotation) if a is not Ellipsis]
            items = cls.map_annotation(args[0])[0] if args else None
            return "array", items
        if annotation is dict or origin is dict:
            return "object", None
        if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
            return "object", None
        return "string", None

    @staticmethod
    def _strip_annotated(annotation: Any) -> Any:
        if get_origin(annotation) is Annotated:
            return get_args(annotation)[0]
        return annotation

    @staticmethod
    def _unwrap_optional(annotation: Any) -> Any:
        if get_origin(annotation) in (Union, types.UnionType):
            non_none = [a for a in get_args(annotation) if a is not type(None)]
            if len(non_none) == 1:
                return non_none[0]
        return annotation

    @staticmethod
    def _extract_description(annotation: Any, param_name: str, tool_name: str) -> str:
        """Every Tools parameter needs 'Annotated[<class>, Field(description='...')] = ...' as its annotation.

        Args:
            annotation: The type annotation to inspect.
            param_name: The name of the parameter being checked.
            tool_name: The name of the tool for error reporting.

        Raises:
            ToolValidationError: If the parameter is missing a Pydantic Field description.
        """

        if get_origin(annotation) is Annotated:
            for metadata in get_args(annotation):
                if isinstance(metadata, FieldInfo) and metadata.description:
                    return metadata.description

        msg = (
            f"Parameter '{param_name}' in tool '{tool_name}' is missing a description.\n"
            f"Usage: {param_name}: Annotated[Type, Field(description='...')] = ..."
        )
        logger.error(msg)
        raise ToolValidationError(msg)
