# llamaio/schemas/task.py
from pydantic import BaseModel, Field, field_serializer
from typing import Any, Optional
from datetime import datetime

from llamaio.utils.parsing import format_timestamp


class TaskPayload(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    # epoch millis (number or numeric string) or a date string
    deadline: Any = None
    # bool or "true"/"false"
    completed: Any = None
    assignedUser: Optional[str] = None
    # accepted for compatibility, always recomputed from the assigned user
    assignedUserName: Optional[str] = None


class TaskOut(BaseModel):
    id: str = Field(serialization_alias="_id")
    name: str
    description: str = ""
    deadline: datetime
    completed: bool = False
    assigned_user: str = Field("", serialization_alias="assignedUser")
    assigned_user_name: str = Field("unassigned", serialization_alias="assignedUserName")
    date_created: datetime = Field(serialization_alias="dateCreated")

    model_config = {
        "from_attributes": True
    }

    @field_serializer("deadline", "date_created")
    def serialize_timestamps(self, value: datetime) -> str:
        return format_timestamp(value)
