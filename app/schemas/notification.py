# app/schemas/notification.py
from enum import Enum

from pydantic import BaseModel


class NotificationVariant(str, Enum):
    SUCCESS = "success"
    DESTRUCTIVE = "destructive"


class Notification(BaseModel):
    """
    Transient user-facing message shown by the client as a toast.
    """

    variant: NotificationVariant = NotificationVariant.SUCCESS
    title: str
    description: str


def success(title: str, description: str) -> Notification:
    return Notification(variant=NotificationVariant.SUCCESS, title=title, description=description)


def destructive(title: str, description: str) -> dict:
    """Error detail for an HTTPException: the message plus a destructive toast."""
    notification = Notification(variant=NotificationVariant.DESTRUCTIVE, title=title, description=description)
    return {"message": description, "notification": notification.model_dump(mode="json")}
