from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

DEFAULT_TEXT_MAX_LENGTH = 120


class IntentId(str, Enum):
    ASK_ABOUT_JOB = "ASK_ABOUT_JOB"
    CONFIRM_AVAILABILITY = "CONFIRM_AVAILABILITY"
    CONFIRM_TIME_DATE = "CONFIRM_TIME_DATE"
    CONFIRM_LOCATION = "CONFIRM_LOCATION"
    ASK_CLARIFICATION = "ASK_CLARIFICATION"
    CONFIRM_COMPLETION = "CONFIRM_COMPLETION"
    UNABLE_TO_PROCEED = "UNABLE_TO_PROCEED"
    RUNNING_LATE = "RUNNING_LATE"
    CONFIRM_ARRIVAL = "CONFIRM_ARRIVAL"


class IntentDirection(str, Enum):
    ANY = "ANY"
    YOUTH_TO_ADULT = "YOUTH_TO_ADULT"
    ADULT_TO_YOUTH = "ADULT_TO_YOUTH"


class UserRole(str, Enum):
    YOUTH = "YOUTH"
    EMPLOYER = "EMPLOYER"
    ADMIN = "ADMIN"


class _VariableBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    label: str
    required: bool = True
    placeholder: Optional[str] = None


class TextVariable(_VariableBase):
    type: Literal["text"] = "text"
    max_length: int = Field(default=DEFAULT_TEXT_MAX_LENGTH, alias="maxLength", gt=0)


class NumberVariable(_VariableBase):
    type: Literal["number"] = "number"
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    integer: bool = True
    max_length: Optional[int] = Field(default=None, alias="maxLength", gt=0)


class ChoiceVariable(_VariableBase):
    type: Literal["choice"] = "choice"
    options: Tuple[str, ...]
    max_length: Optional[int] = Field(default=None, alias="maxLength", gt=0)

    @model_validator(mode="after")
    def _check_options(self) -> "ChoiceVariable":
        if not self.options:
            raise ValueError(f"choice variable {self.name} needs at least one option")
        if len(set(self.options)) != len(self.options):
            raise ValueError(f"choice variable {self.name} has duplicate options")
        return self


IntentVariable = Annotated[Union[TextVariable, NumberVariable, ChoiceVariable], Field(discriminator="type")]


class MessageIntent(BaseModel):
    """Locked catalog entry; placeholders and declared variables must match one-to-one."""

    model_config = ConfigDict(frozen=True)

    intent: IntentId
    label: str
    description: str
    template: str
    variables: Tuple[IntentVariable, ...] = ()
    direction: IntentDirection = IntentDirection.ANY

    @model_validator(mode="after")
    def _check_placeholders(self) -> "MessageIntent":
        tokens = PLACEHOLDER_RE.findall(self.template)
        names = [v.name for v in self.variables]
        if len(set(names)) != len(names):
            raise ValueError(f"{self.intent.value}: duplicate variable names")
        if len(set(tokens)) != len(tokens):
            raise ValueError(f"{self.intent.value}: placeholder used more than once")
        undeclared = set(tokens) - set(names)
        unused = set(names) - set(tokens)
        if undeclared or unused:
            raise ValueError(
                f"{self.intent.value}: undeclared placeholders {sorted(undeclared)}, unused variables {sorted(unused)}"
            )
        return self

    def variable(self, name: str) -> Optional[IntentVariable]:
        for var in self.variables:
            if var.name == name:
                return var
        return None


class IntentView(BaseModel):
    """Form metadata for the presentation layer; the raw template is not exposed."""

    intent: IntentId
    label: str
    description: str
    direction: IntentDirection
    variables: List[IntentVariable]

    @classmethod
    def from_intent(cls, intent: MessageIntent) -> "IntentView":
        return cls(
            intent=intent.intent,
            label=intent.label,
            description=intent.description,
            direction=intent.direction,
            variables=list(intent.variables),
        )


class RenderedMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    intent: IntentId
    rendered_text: str
    variables: Dict[str, str] = Field(default_factory=dict)
    sender_id: Optional[str] = None
    job_id: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    is_legacy: bool = False


class MessageState(str, Enum):
    UNCLASSIFIED = "UNCLASSIFIED"
    LEGACY = "LEGACY"
    STRUCTURED = "STRUCTURED"


class MessageRecord(BaseModel):
    """A stored message as loaded by the persistence layer."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    intent: Optional[IntentId] = None
    rendered_text: str
    variables: Dict[str, str] = Field(default_factory=dict)
    sender_id: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    is_legacy: bool = False

    @classmethod
    def from_rendered(cls, message: RenderedMessage) -> "MessageRecord":
        return cls(
            id=message.id,
            intent=message.intent,
            rendered_text=message.rendered_text,
            variables=dict(message.variables),
            sender_id=message.sender_id,
            conversation_id=message.conversation_id,
            created_at=message.created_at,
        )


class RenderRequest(BaseModel):
    intent: str
    sender_role: UserRole
    variables: Dict[str, Any] = Field(default_factory=dict)
    job_id: Optional[str] = None
    conversation_id: Optional[str] = None
    sender_age_band: Optional[str] = None
    reply_to_id: Optional[str] = None
