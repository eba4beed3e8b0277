# llamaio/models/task.py
from sqlalchemy import Column, String, Text, DateTime, Boolean

from llamaio.database import Base
from llamaio.models import fields
from llamaio.models.fields import FieldSpec
from llamaio.utils.object_id import new_object_id
from llamaio.utils.parsing import utcnow

UNASSIGNED_NAME = "unassigned"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    deadline = Column(DateTime, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)

    # Plain strings rather than a foreign key: "" means unassigned
    assigned_user = Column(String(24), nullable=False, default="", index=True)
    assigned_user_name = Column(String, nullable=False, default=UNASSIGNED_NAME)

    date_created = Column(DateTime, nullable=False, default=utcnow)

    API_FIELDS = {
        "_id": FieldSpec("id", fields.ID),
        "name": FieldSpec("name", fields.STRING),
        "description": FieldSpec("description", fields.STRING),
        "deadline": FieldSpec("deadline", fields.TIMESTAMP),
        "completed": FieldSpec("completed", fields.BOOLEAN),
        "assignedUser": FieldSpec("assigned_user", fields.STRING),
        "assignedUserName": FieldSpec("assigned_user_name", fields.STRING),
        "dateCreated": FieldSpec("date_created", fields.TIMESTAMP),
    }

    @property
    def is_pending(self) -> bool:
        """Assigned to someone and not completed"""
        return bool(self.assigned_user) and not self.completed

    def unassign(self):
        self.assigned_user = ""
        self.assigned_user_name = UNASSIGNED_NAME
