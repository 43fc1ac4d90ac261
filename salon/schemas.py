# salon/schemas.py

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .data import DEFAULT_BUSINESS_HOURS

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class Record(BaseModel):
    # records travel in the shared document as camelCase JSON
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


class NotificationType(str, Enum):
    info = "info"
    success = "success"
    alert = "alert"


class ServiceCategory(str, Enum):
    nail = "nail"
    laser = "laser"
    facial = "facial"


class UserRole(str, Enum):
    admin = "admin"
    client = "client"


# ---- shared document records ----

class DayConfig(Record):
    is_open: bool = False
    start: str = Field(default="09:00", pattern=HHMM)
    end: str = Field(default="17:00", pattern=HHMM)


class Service(Record):
    id: str
    name: str
    duration: int = Field(gt=0)  # minutes
    price: float = Field(ge=0)
    color: str = "#f472b6"
    category: ServiceCategory = ServiceCategory.nail


class Employee(Record):
    id: str
    name: str
    services: List[str] = Field(default_factory=list)


class AppNotification(Record):
    id: str
    message: str
    timestamp: datetime
    read: bool = False
    type: NotificationType = NotificationType.info


class ChangeProposal(Record):
    start_time: datetime
    end_time: datetime
    price_at_booking: float


class SwapRequest(Record):
    from_appointment_id: str
    requesting_client_id: str


class Appointment(Record):
    id: str
    client_id: str
    service_id: str
    employee_id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.pending
    confirmed_by_client: bool = False
    price_at_booking: float = 0
    notes: Optional[str] = None
    receipt_image: Optional[str] = None
    receipt_requested: Optional[bool] = None
    change_proposal: Optional[ChangeProposal] = None
    incoming_swap_request: Optional[SwapRequest] = None


class Client(Record):
    id: str
    name: str = ""
    phone: str
    password_hash: Optional[str] = None
    health_declaration_signed: bool = False
    notes: List[str] = Field(default_factory=list)
    notifications: List[AppNotification] = Field(default_factory=list)
    can_reschedule_confirmed: bool = False


def _default_hours() -> Dict[int, DayConfig]:
    return {day: DayConfig.model_validate(cfg) for day, cfg in DEFAULT_BUSINESS_HOURS.items()}


class AppState(Record):
    # products, waiting list and other fields this service does not own are kept as extras
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    services: List[Service] = Field(default_factory=list)
    employees: List[Employee] = Field(default_factory=list)
    appointments: List[Appointment] = Field(default_factory=list)
    clients: List[Client] = Field(default_factory=list)
    business_hours: Dict[int, DayConfig] = Field(default_factory=_default_hours)
    date_overrides: Dict[str, DayConfig] = Field(default_factory=dict)
    admin_notifications: List[AppNotification] = Field(default_factory=list)
    current_user: Optional[Client] = None

    def service(self, service_id: str) -> Optional[Service]:
        return next((s for s in self.services if s.id == service_id), None)

    def employee(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.employees if e.id == employee_id), None)

    def appointment(self, appointment_id: str) -> Optional[Appointment]:
        return next((a for a in self.appointments if a.id == appointment_id), None)

    def client(self, client_id: str) -> Optional[Client]:
        return next((c for c in self.clients if c.id == client_id), None)

    def client_by_phone(self, phone: str) -> Optional[Client]:
        phone = phone.strip()
        return next((c for c in self.clients if c.phone.strip() == phone), None)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---- HTTP schemas ----

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ClientCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=3)
    password: str = Field(min_length=3, max_length=72)
    health_declaration_signed: bool = False


class ClientPublic(BaseModel):
    id: str
    name: str
    phone: str
    can_reschedule_confirmed: bool = False


class MePublic(BaseModel):
    id: str
    role: UserRole
    name: str
    phone: Optional[str] = None


class BookingCreate(BaseModel):
    service_id: str
    employee_id: str
    date: date
    time: str = Field(pattern=HHMM)


class RescheduleCreate(BaseModel):
    date: date
    time: str = Field(pattern=HHMM)


class RescheduleResponse(BaseModel):
    action: str  # "rescheduled" or "swap_proposed"
    appointment: Appointment


class StatusUpdate(BaseModel):
    status: AppointmentStatus


class ChangeProposalCreate(BaseModel):
    start_time: datetime
    price_at_booking: Optional[float] = Field(default=None, ge=0)


class ReceiptUpload(BaseModel):
    receipt_image: str = Field(min_length=1)


class RescheduleOverride(BaseModel):
    allowed: bool


class ServiceCreate(BaseModel):
    name: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    color: Optional[str] = None
    category: Optional[ServiceCategory] = None


class EmployeeCreate(BaseModel):
    name: str = Field(min_length=1)
    services: Optional[List[str]] = None


class SlotPublic(BaseModel):
    time: str
    occupied: bool


class AvailabilityResponse(BaseModel):
    date: date
    employee_id: str
    slots: List[SlotPublic]


class DatesResponse(BaseModel):
    months: Dict[str, List[date]]
