"""Pydantic schemas for the notification API."""

from datetime import datetime

from pydantic import BaseModel


class GenerateNotificationsRequest(BaseModel):
    """Optional body for a risk notification run.

    Attributes:
        reference_time: Time used to age deliverables; defaults to now.
    """

    reference_time: datetime | None = None


class GenerateNotificationsResponse(BaseModel):
    """Outcome of a risk notification run."""

    success: bool
    notifications_created: int
