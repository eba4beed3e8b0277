from .user import User
from .task import Task, UNASSIGNED_NAME
