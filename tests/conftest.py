import asyncio
import itertools
import os
from datetime import date

os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_PASSWORD", "admin-pass")
os.environ.setdefault("SYNC_ENABLED", "false")

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from salon.core import end_after, local_instant
from salon.schemas import Appointment, AppointmentStatus, Client
from salon.store import seed_state

# 2026-10-19 is a Monday
TODAY = date(2026, 10, 19)
NEXT_MONDAY = date(2026, 10, 26)
NEXT_TUESDAY = date(2026, 10, 27)
NEXT_FRIDAY = date(2026, 10, 23)


def make_appointment(
    id,
    client_id,
    service_id,
    employee_id,
    day,
    label,
    duration,
    status=AppointmentStatus.pending,
    **extra,
):
    start = local_instant(day, label)
    return Appointment(
        id=id,
        client_id=client_id,
        service_id=service_id,
        employee_id=employee_id,
        start_time=start,
        end_time=end_after(start, duration),
        status=status,
        price_at_booking=100,
        **extra,
    )


def running_on():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return "worker-thread"
    return "event-loop"


@pytest.fixture
def now():
    return local_instant(TODAY, "08:00")


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda: f"id{next(counter)}"


@pytest.fixture
def state():
    # services: 1=60min, 2=90min, 3=75min, 4=120min; e1 does all, e2 does 1 and 2
    return seed_state().model_copy(
        update={
            "clients": [
                Client(id="c1", name="Dana", phone="0501111111"),
                Client(id="c2", name="Noa", phone="0502222222"),
            ]
        }
    )


@pytest.fixture
def memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
