"""
Action contract shared by every tenant
The router only reads ``type``; the payload is owned by the dispatching tenant.
"""

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Action(BaseModel):
    """State-changing message dispatched to one or more tenant containers"""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str = Field(description="Action type, the only routing key")
    payload: Any = Field(default=None, description="Opaque tenant-owned payload")
    log_enabled: Optional[bool] = Field(
        default=None,
        description="Overrides debug mode for the action logger middleware"
    )

    @field_validator('type')
    @classmethod
    def validate_type(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('action type must be a non-empty string')
        return v


ActionLike = Union[Action, Mapping[str, Any]]


def to_action(action: ActionLike) -> Action:
    """Coerce a mapping such as ``{"type": "RESET"}`` into an Action"""
    if isinstance(action, Action):
        return action
    if isinstance(action, Mapping):
        return Action.model_validate(dict(action))
    raise TypeError(f"Unsupported action type: {type(action).__name__}")
