# salon/intents.py
#
# What the scheduling core hands back to the state layer: mutation intents
# to apply, or a rejection explaining why nothing changed.

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel

from .core import new_id, utcnow
from .schemas import Appointment, AppNotification, Client, NotificationType

logger = logging.getLogger(__name__)


class RejectionKind(str, Enum):
    already_booked = "already_booked"
    already_registered = "already_registered"
    slot_occupied = "slot_occupied"
    reschedule_locked = "reschedule_locked"
    swap_pending = "swap_pending"
    outside_hours = "outside_hours"
    not_allowed = "not_allowed"
    invalid = "invalid"


class ValidationRejection(BaseModel):
    kind: RejectionKind
    message: str


class NotFoundRejection(BaseModel):
    entity: str
    entity_id: str

    @property
    def message(self) -> str:
        return f"{self.entity.capitalize()} not found"


Rejection = Union[ValidationRejection, NotFoundRejection]


# ---- mutation intents ----

class AddAppointment(BaseModel):
    kind: Literal["add_appointment"] = "add_appointment"
    appointment: Appointment


class UpdateAppointment(BaseModel):
    kind: Literal["update_appointment"] = "update_appointment"
    appointment_id: str
    changes: Dict[str, Any]


class UpdateClientNotifications(BaseModel):
    kind: Literal["update_client_notifications"] = "update_client_notifications"
    client_id: str
    notifications: List[AppNotification]


class PushAdminNotification(BaseModel):
    kind: Literal["push_admin_notification"] = "push_admin_notification"
    notification: AppNotification


class AddClient(BaseModel):
    kind: Literal["add_client"] = "add_client"
    client: Client


class UpdateClient(BaseModel):
    kind: Literal["update_client"] = "update_client"
    client_id: str
    changes: Dict[str, Any]


class UpdateConfig(BaseModel):
    # services, employees, business_hours, date_overrides, admin_notifications
    kind: Literal["update_config"] = "update_config"
    changes: Dict[str, Any]


Intent = Union[
    AddAppointment,
    UpdateAppointment,
    UpdateClientNotifications,
    PushAdminNotification,
    AddClient,
    UpdateClient,
    UpdateConfig,
]


@dataclass
class Outcome:
    action: str
    record: Any = None
    intents: List[Intent] = field(default_factory=list)
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @classmethod
    def accepted(cls, action: str, record: Any = None, *intents: Intent) -> "Outcome":
        return cls(action=action, record=record, intents=list(intents))

    @classmethod
    def rejected(cls, action: str, rejection: Rejection) -> "Outcome":
        logger.info("%s rejected: %s", action, rejection.message)
        return cls(action=action, rejection=rejection)


def reject(action: str, kind: RejectionKind, message: str) -> Outcome:
    return Outcome.rejected(action, ValidationRejection(kind=kind, message=message))


def missing(action: str, entity: str, entity_id: str) -> Outcome:
    return Outcome.rejected(action, NotFoundRejection(entity=entity, entity_id=entity_id))


def notification(
    message: str,
    type: NotificationType = NotificationType.info,
    now: Optional[datetime] = None,
    id_factory=new_id,
) -> AppNotification:
    return AppNotification(id=id_factory(), message=message, timestamp=now or utcnow(), read=False, type=type)


def notify_client(client: Client, note: AppNotification) -> UpdateClientNotifications:
    return UpdateClientNotifications(client_id=client.id, notifications=[*client.notifications, note])
