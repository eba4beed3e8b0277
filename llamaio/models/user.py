# llamaio/models/user.py
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.ext.mutable import MutableList

from llamaio.database import Base
from llamaio.models import fields
from llamaio.models.fields import FieldSpec
from llamaio.utils.object_id import new_object_id
from llamaio.utils.parsing import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    pending_tasks = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    date_created = Column(DateTime, nullable=False, default=utcnow)

    # API field name -> column
    API_FIELDS = {
        "_id": FieldSpec("id", fields.ID),
        "name": FieldSpec("name", fields.STRING),
        "email": FieldSpec("email", fields.STRING),
        "pendingTasks": FieldSpec("pending_tasks", fields.LIST),
        "dateCreated": FieldSpec("date_created", fields.TIMESTAMP),
    }
