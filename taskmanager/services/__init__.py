from .auth import AuthService
from .tasks import TaskService

__all__ = ["AuthService", "TaskService"]
