from typing import Optional, Any, Callable, Type, List, Literal, Union, Dict
from pydantic import BaseModel, ConfigDict, Field

ParameterType = Literal["string", "number", "boolean", "array", "object"]

# Closed set of values a tool parameter can carry once the parser has coerced it.
ParameterValue = Union[str, int, float, bool, List[Any], Dict[str, Any]]


class ParameterSpec(BaseModel):
    """
    Describes a single input parameter of a tool.

    Attributes:
        name: Parameter name as it must appear in a tool-call block.
        type: Declared value type.
        description: Human readable description rendered into the prompt.
        required: Whether the parameter must be present for the tool to run.
        items: Item type for ``array`` parameters.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    type: ParameterType = "string"
    description: str = ""
    required: bool = False
    items: Optional[ParameterType] = None


class ToolDefinition(BaseModel):
    """
    Represents the definition of a tool that can be registered with the agent.

    Attributes:
        name: The unique name of the tool.
        description: A brief description of what the tool does.
        func: The callable implementing the tool's logic. It receives the parameter
              mapping as keyword arguments and may be sync or async.
        parameters: Ordered parameter specs rendered into the prompt.
        args_model: Optional Pydantic model used for validating and coercing arguments.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    func: Callable[..., Any]
    parameters: List[ParameterSpec] = Field(default_factory=list)
    args_model: Optional[Type[BaseModel]] = None

    @property
    def required_parameters(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]
