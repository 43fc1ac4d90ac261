# salon/data.py

SLOT_MINUTES = 30
BOOKING_HORIZON_DAYS = 90
ARRIVAL_WINDOW_HOURS = 48

# Stand-in employee offered when the roster is empty
SENTINEL_EMPLOYEE_ID = "default"
SENTINEL_EMPLOYEE_NAME = "General staff"

# Keyed by weekday, 0=Sunday ... 6=Saturday
DEFAULT_BUSINESS_HOURS = {
    0: {"isOpen": True, "start": "09:00", "end": "17:00"},
    1: {"isOpen": True, "start": "09:00", "end": "20:00"},
    2: {"isOpen": True, "start": "09:00", "end": "20:00"},
    3: {"isOpen": True, "start": "09:00", "end": "20:00"},
    4: {"isOpen": True, "start": "09:00", "end": "20:00"},
    5: {"isOpen": False, "start": "09:00", "end": "13:00"},
    6: {"isOpen": False, "start": "20:00", "end": "23:00"},
}

# Shape of a freshly added date override (a day off)
DEFAULT_OVERRIDE = {"isOpen": False, "start": "09:00", "end": "17:00"}

INITIAL_SERVICES = [
    {"id": "1", "name": "Gel manicure", "duration": 60, "price": 150, "color": "#fca5a5", "category": "nail"},
    {"id": "2", "name": "Medical pedicure", "duration": 90, "price": 200, "color": "#93c5fd", "category": "nail"},
    {"id": "3", "name": "Classic facial", "duration": 75, "price": 350, "color": "#d8b4fe", "category": "facial"},
    {"id": "4", "name": "Full body laser", "duration": 120, "price": 500, "color": "#86efac", "category": "laser"},
]

INITIAL_EMPLOYEES = [
    {"id": "e1", "name": "Orly", "services": ["1", "2", "3", "4"]},
    {"id": "e2", "name": "Roni", "services": ["1", "2"]},
]

NEW_SERVICE_DEFAULTS = {
    "name": "New service",
    "duration": 60,
    "price": 100,
    "color": "#f472b6",
    "category": "nail",
}
