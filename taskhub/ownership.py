# taskhub/ownership.py

from __future__ import annotations

from enum import Enum

from sqlalchemy.orm import Session

from taskhub.errors import AccessDeniedError, NotFoundError
from taskhub.models.draft import Draft
from taskhub.models.group import Group
from taskhub.models.inbox_item import InboxItem
from taskhub.models.task import Task


class EntityKind(str, Enum):
    TASK = "task"
    GROUP = "group"
    DRAFT = "draft"
    INBOX_ITEM = "inbox_item"


OWNED_MODELS = {
    EntityKind.TASK: Task,
    EntityKind.GROUP: Group,
    EntityKind.DRAFT: Draft,
    EntityKind.INBOX_ITEM: InboxItem,
}

_LABELS = {
    EntityKind.TASK: "Task",
    EntityKind.GROUP: "Group",
    EntityKind.DRAFT: "Draft",
    EntityKind.INBOX_ITEM: "Inbox item",
}


def get_owned(db: Session, kind: EntityKind, entity_id: int, user_id: int):
    """
    Load a row of the given kind and make sure user_id owns it.

    Missing rows raise NotFoundError, rows of another user AccessDeniedError.
    Both read "<Label> not found" so the API never leaks existence.
    """
    model = OWNED_MODELS[kind]
    message = f"{_LABELS[kind]} not found"

    obj = db.get(model, entity_id)
    if obj is None:
        raise NotFoundError(message, kind=kind.value, id=entity_id)
    if obj.user_id != user_id:
        raise AccessDeniedError(message, kind=kind.value, id=entity_id)
    return obj
