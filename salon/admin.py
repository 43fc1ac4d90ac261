# salon/admin.py
#
# Admin-side configuration edits: weekly hours, date overrides, services,
# employees and per-client overrides. All of them return UpdateConfig /
# UpdateClient intents for the state layer to apply.

from datetime import date
from typing import List, Optional

from .core import format_day, label_to_minutes, new_id
from .data import DEFAULT_OVERRIDE, NEW_SERVICE_DEFAULTS
from .intents import Outcome, RejectionKind, UpdateClient, UpdateConfig, missing, reject
from .schemas import AppState, DayConfig, Employee, Service


def _invalid_hours(config: DayConfig) -> bool:
    return config.is_open and label_to_minutes(config.start) >= label_to_minutes(config.end)


def set_business_hours(state: AppState, weekday: int, config: DayConfig) -> Outcome:
    action = "set_business_hours"
    if not (0 <= weekday <= 6):
        return reject(action, RejectionKind.invalid, "weekday must be an integer between 0 (Sunday) and 6")
    if _invalid_hours(config):
        return reject(action, RejectionKind.invalid, "start must be earlier than end")

    hours = {**state.business_hours, weekday: config}
    return Outcome.accepted(action, config, UpdateConfig(changes={"business_hours": hours}))


def set_date_override(state: AppState, day: date, config: Optional[DayConfig] = None) -> Outcome:
    """Without a config the date becomes a day off."""
    action = "set_date_override"
    if config is None:
        config = DayConfig.model_validate(DEFAULT_OVERRIDE)
    if _invalid_hours(config):
        return reject(action, RejectionKind.invalid, "start must be earlier than end")

    overrides = {**state.date_overrides, format_day(day): config}
    return Outcome.accepted(action, config, UpdateConfig(changes={"date_overrides": overrides}))


def clear_date_override(state: AppState, day: date) -> Outcome:
    action = "clear_date_override"
    key = format_day(day)
    if key not in state.date_overrides:
        return missing(action, "date override", key)

    overrides = {k: v for k, v in state.date_overrides.items() if k != key}
    return Outcome.accepted(action, None, UpdateConfig(changes={"date_overrides": overrides}))


def add_service(state: AppState, fields: dict, id_factory=new_id) -> Outcome:
    values = {**NEW_SERVICE_DEFAULTS, **{k: v for k, v in fields.items() if v is not None}}
    service = Service(id=id_factory(), **values)
    return Outcome.accepted("add_service", service, UpdateConfig(changes={"services": [*state.services, service]}))


def update_service(state: AppState, service_id: str, fields: dict) -> Outcome:
    # booked appointments keep their price_at_booking snapshot
    action = "update_service"
    current = state.service(service_id)
    if current is None:
        return missing(action, "service", service_id)

    updated = Service.model_validate({**current.model_dump(), **{k: v for k, v in fields.items() if v is not None}})
    services = [updated if s.id == service_id else s for s in state.services]
    return Outcome.accepted(action, updated, UpdateConfig(changes={"services": services}))


def delete_service(state: AppState, service_id: str) -> Outcome:
    action = "delete_service"
    if state.service(service_id) is None:
        return missing(action, "service", service_id)

    services = [s for s in state.services if s.id != service_id]
    return Outcome.accepted(action, None, UpdateConfig(changes={"services": services}))


def add_employee(state: AppState, name: str, services: Optional[List[str]] = None, id_factory=new_id) -> Outcome:
    # a new employee offers every current service unless told otherwise
    if services is None:
        services = [s.id for s in state.services]
    employee = Employee(id=id_factory(), name=name, services=services)
    return Outcome.accepted(
        "add_employee", employee, UpdateConfig(changes={"employees": [*state.employees, employee]})
    )


def update_employee(
    state: AppState,
    employee_id: str,
    name: Optional[str] = None,
    services: Optional[List[str]] = None,
) -> Outcome:
    action = "update_employee"
    current = state.employee(employee_id)
    if current is None:
        return missing(action, "employee", employee_id)

    updated = current.model_copy(
        update={
            "name": current.name if name is None else name,
            "services": current.services if services is None else list(services),
        }
    )
    employees = [updated if e.id == employee_id else e for e in state.employees]
    return Outcome.accepted(action, updated, UpdateConfig(changes={"employees": employees}))


def delete_employee(state: AppState, employee_id: str) -> Outcome:
    action = "delete_employee"
    if state.employee(employee_id) is None:
        return missing(action, "employee", employee_id)

    employees = [e for e in state.employees if e.id != employee_id]
    return Outcome.accepted(action, None, UpdateConfig(changes={"employees": employees}))


def set_reschedule_override(state: AppState, client_id: str, allowed: bool) -> Outcome:
    action = "set_reschedule_override"
    client = state.client(client_id)
    if client is None:
        return missing(action, "client", client_id)

    changes = {"can_reschedule_confirmed": allowed}
    return Outcome.accepted(action, client.model_copy(update=changes), UpdateClient(client_id=client_id, changes=changes))


def mark_admin_notification_read(state: AppState, notification_id: str) -> Outcome:
    action = "mark_admin_notification_read"
    if not any(n.id == notification_id for n in state.admin_notifications):
        return missing(action, "notification", notification_id)

    notifications = [
        n.model_copy(update={"read": True}) if n.id == notification_id else n for n in state.admin_notifications
    ]
    return Outcome.accepted(action, None, UpdateConfig(changes={"admin_notifications": notifications}))
