from gantry.repositories.memory import (
    CollectingNotificationSink,
    Collaborators,
    InMemoryAlertRepository,
    InMemoryTaskRepository,
    build_collaborators,
)

__all__ = [
    "CollectingNotificationSink",
    "Collaborators",
    "InMemoryAlertRepository",
    "InMemoryTaskRepository",
    "build_collaborators",
]
