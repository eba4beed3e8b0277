from pydantic import BaseModel, Field, field_serializer, field_validator
from typing import List, Optional
from datetime import datetime

from email_validator import EmailNotValidError, validate_email

from llamaio.utils.parsing import format_timestamp


class UserPayload(BaseModel):
    # Required-ness is checked by the router so the error reads like the API's own
    name: Optional[str] = None
    email: Optional[str] = None
    pendingTasks: Optional[List[str]] = None

    @field_validator("email")
    @classmethod
    def validate_email_syntax(cls, value: Optional[str]) -> Optional[str]:
        # Syntax only: no DNS lookups; dotless and .test domains allowed
        if not value:
            return value
        try:
            result = validate_email(
                value,
                check_deliverability=False,
                globally_deliverable=False,
                test_environment=True,
            )
        except EmailNotValidError as exc:
            raise ValueError(str(exc))
        return result.normalized


class UserOut(BaseModel):
    id: str = Field(serialization_alias="_id")
    name: str
    email: str
    pending_tasks: List[str] = Field(default_factory=list, serialization_alias="pendingTasks")
    date_created: datetime = Field(serialization_alias="dateCreated")

    model_config = {
        "from_attributes": True
    }

    @field_serializer("date_created")
    def serialize_date_created(self, value: datetime) -> str:
        return format_timestamp(value)
