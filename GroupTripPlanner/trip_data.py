"""
Trip Data Module

Static reference data for the Thailand 2026 trip and the small helpers that
place "now" on the trip timeline.

Features:
    - Member display colours
    - Trip window, flights and day-by-day itinerary
    - Weather locations, expense / place categories, document sections
    - Trip day, trip phase, countdown and next-flight lookups

Functions:
    get_trip_day: Trip day number (1-5) for a date, or None.
    get_itinerary_day: Itinerary entry for a trip day number.
    trip_phase: pre_trip, in_trip or post_trip.
    countdown: Time left until departure.
    next_flight: The next flight that has not departed yet.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional


BANGKOK_TZ = timezone(timedelta(hours=7))

MEMBER_COLORS = {
    "Mahendra": "#F5C842",
    "Namrata": "#00C9A7",
    "Ishmeet": "#FF7EB3",
    "Meghana": "#7C83FD",
    "Unmesh": "#FF9A3C",
    "Harish": "#4ECDC4",
    "Swaroop": "#C471ED",
}
DEFAULT_MEMBER_COLOR = "#9CA3AF"

TRIP = {
    # BLR dep 23:10 IST
    "departure": datetime(2026, 2, 27, 17, 40, tzinfo=timezone.utc),
    "start": datetime(2026, 2, 28, 0, 0, tzinfo=BANGKOK_TZ),
    "end": datetime(2026, 3, 4, 23, 59, 59, tzinfo=BANGKOK_TZ),
}

FLIGHTS = [
    {
        "leg": 1, "flight": "FD 138", "airline": "Thai AirAsia",
        "from": "BLR", "from_full": "Bengaluru T2",
        "to": "DMK", "to_full": "Don Mueang T1",
        "dep_local": "Feb 27, 23:10", "arr_local": "Feb 28, 04:25",
        "dep_utc": "2026-02-27T17:40:00+00:00",
        "pnr": "DBWNXZ", "baggage": "20 KG + 7 KG cabin", "insurance": "ACKO",
        "fr24": "https://www.flightradar24.com/data/flights/fd138",
        "note": "International. Arrive DMK T1, transfer to T2 for domestic.",
    },
    {
        "leg": 2, "flight": "SL 0754", "airline": "Thai Lion Air",
        "from": "DMK", "from_full": "Don Mueang T2",
        "to": "HKT", "to_full": "Phuket Domestic",
        "dep_local": "Feb 28, 10:20", "arr_local": "Feb 28, 11:40",
        "dep_utc": "2026-02-28T03:20:00+00:00",
        "pnr": "QKAEWX", "baggage": "15 KG checked",
        "fr24": "https://www.flightradar24.com/data/flights/sl754",
        "note": "6 hr layover at DMK. Clear immigration before heading to T2.",
    },
    {
        "leg": 3, "flight": "SL 0759", "airline": "Thai Lion Air",
        "from": "HKT", "from_full": "Phuket Domestic",
        "to": "DMK", "to_full": "Don Mueang T2",
        "dep_local": "Mar 3, 11:35", "arr_local": "Mar 3, 12:55",
        "dep_utc": "2026-03-03T04:35:00+00:00",
        "pnr": "QKAEWX", "baggage": "15 KG checked",
        "fr24": "https://www.flightradar24.com/data/flights/sl759",
        "note": "Phuket to Bangkok. Check in for Day 4.",
    },
    {
        "leg": 4, "flight": "FD 137", "airline": "Thai AirAsia",
        "from": "DMK", "from_full": "Don Mueang T1",
        "to": "BLR", "to_full": "Bengaluru T2",
        "dep_local": "Mar 4, 20:10", "arr_local": "Mar 4, 22:30",
        "dep_utc": "2026-03-04T13:10:00+00:00",
        "pnr": "DBWNXZ", "baggage": "20 KG + 7 KG cabin", "insurance": "ACKO",
        "fr24": "https://www.flightradar24.com/data/flights/fd137",
        "warn": "Depart from DMK (Don Mueang), NOT Suvarnabhumi. Leave hotel by 17:00.",
    },
]

ITINERARY_DAYS = [
    {
        "day": 1, "date": "2026-02-28", "title": "Arrival in Paradise",
        "location": "Phuket · Kamala",
        "activities": [
            {"time": "04:25", "label": "Land at DMK", "type": "transit"},
            {"time": "10:20", "label": "SL 0754 DMK → HKT", "type": "transit"},
            {"time": "12:00", "label": "Lunch at Lillo Island Restaurant & Bar", "note": "Kamala Beach", "type": "food", "cost": 800},
            {"time": "14:00", "label": "Check-in at Villa Aurora", "note": "Kamala, Phuket · Ref: RCRW2FJNPN", "type": "stay"},
            {"time": "17:30", "label": "Sunset at Café del Mar Beach Club", "note": "Kamala Beach", "type": "activity", "cost": 600},
            {"time": "20:00", "label": "Dinner at Marush Kamala", "note": "Mediterranean / Middle Eastern", "type": "food", "cost": 700},
            {"time": "22:00", "label": "Villa Aurora pool party", "type": "activity"},
        ],
        "per_person_cost": 9540,
    },
    {
        "day": 2, "date": "2026-03-01", "title": "Phi Phi Islands",
        "location": "Phi Phi · Andaman Sea",
        "activities": [
            {"time": "07:30", "label": "Breakfast at Lafayette French Bakery", "type": "food", "cost": 350},
            {"time": "09:00", "label": "Phi Phi Speedboat Tour", "note": "Maya Bay · Pileh Lagoon · Snorkeling", "type": "activity", "cost": 2800},
            {"time": "18:00", "label": "Return to villa", "type": "stay"},
            {"time": "20:00", "label": "Bangla Road & Illuzion Club", "note": "Patong nightlife", "type": "nightlife", "cost": 2500},
        ],
        "per_person_cost": 11244,
    },
    {
        "day": 3, "date": "2026-03-02", "title": "Jungle Adventures",
        "location": "Phuket · Patong",
        "activities": [
            {"time": "08:30", "label": "Breakfast at 936 Coffee", "note": "Kamala beachfront", "type": "food", "cost": 350},
            {"time": "10:00", "label": "Flying Hanuman Zipline", "note": "Jungle canopy", "type": "activity", "cost": 2500},
            {"time": "13:00", "label": "Lunch at Three Monkeys Restaurant", "note": "Treehouse dining", "type": "food", "cost": 600},
            {"time": "15:00", "label": "Villa pool time", "type": "activity"},
            {"time": "20:00", "label": "Farewell Dinner at SILK at Andara", "note": "Fine dining · Villa farewell party after", "type": "food", "cost": 2500},
        ],
        "per_person_cost": 14910,
    },
    {
        "day": 4, "date": "2026-03-03", "title": "Phuket → Bangkok",
        "location": "Bangkok",
        "activities": [
            {"time": "08:00", "label": "Farewell buffet at Pinto, InterContinental", "type": "food", "cost": 1200},
            {"time": "11:35", "label": "SL 0759 HKT → DMK", "type": "transit"},
            {"time": "13:00", "label": "Bangkok hotel check-in", "type": "stay"},
            {"time": "14:00", "label": "Grand Palace & Emerald Buddha", "note": "Closes 15:30, go early!", "type": "activity", "cost": 500},
            {"time": "19:00", "label": "Yaowarat Chinatown Night Market", "note": "Street food experience", "type": "food", "cost": 600},
        ],
        "per_person_cost": 6574,
    },
    {
        "day": 5, "date": "2026-03-04", "title": "Last Day in Bangkok",
        "location": "Bangkok",
        "activities": [
            {"time": "10:00", "label": "Traditional Thai Massage", "note": "Sukhumvit", "type": "activity", "cost": 600},
            {"time": "12:00", "label": "ICONSIAM Riverside Mall", "note": "Floating market inside", "type": "activity"},
            {"time": "14:00", "label": "Wat Arun, Temple of Dawn", "note": "Best view from across the river", "type": "activity", "cost": 100},
            {"time": "17:00", "label": "Octave Rooftop Bar", "note": "45th floor · 360° views", "type": "nightlife", "cost": 1500},
            {"time": "20:10", "label": "FD 137 DMK → BLR", "note": "Don Mueang T1 · Leave hotel by 17:00", "type": "transit"},
        ],
        "per_person_cost": 5667,
    },
]

LOCATIONS = {
    "bengaluru": {"lat": 12.97, "lon": 77.59, "name": "Bengaluru"},
    "phuket": {"lat": 7.89, "lon": 98.40, "name": "Phuket"},
    "bangkok": {"lat": 13.75, "lon": 100.52, "name": "Bangkok"},
}

EXPENSE_CATEGORIES = {
    "food": "Food & Drinks",
    "transport": "Transport",
    "accommodation": "Accommodation",
    "activities": "Activities & Tours",
    "shopping": "Shopping",
    "medical": "Medical",
    "misc": "Miscellaneous",
}

PLACE_CATEGORIES = ("Beach", "Temple", "Food", "Nightlife", "Shopping", "Activity", "Hotel")

DOCUMENT_SECTIONS = {
    "tdac": "Thailand Digital Arrival Card",
    "voa": "Visa on Arrival",
    "india": "India departure documents",
}

DOCUMENT_STATUSES = ("not_started", "in_progress", "completed")


def get_trip_day(today: date) -> Optional[int]:
    """Return the trip day number (1-5) for a calendar date, or None outside the trip."""
    iso = today.isoformat()
    for entry in ITINERARY_DAYS:
        if entry["date"] == iso:
            return entry["day"]
    return None


def get_itinerary_day(day: int) -> Optional[dict]:
    if 1 <= day <= len(ITINERARY_DAYS):
        return ITINERARY_DAYS[day - 1]
    return None


def trip_phase(now: datetime) -> str:
    """
    Place a moment on the trip timeline.

    Args:
        now: Timezone-aware datetime.

    Returns:
        str: "pre_trip" before departure, "post_trip" after the trip end,
            otherwise "in_trip".
    """
    if now < TRIP["departure"]:
        return "pre_trip"
    if now > TRIP["end"]:
        return "post_trip"
    return "in_trip"


def countdown(now: datetime) -> Optional[dict]:
    """Days/hours/minutes/seconds until departure, or None once departed."""
    remaining = TRIP["departure"] - now
    if remaining.total_seconds() <= 0:
        return None

    total = int(remaining.total_seconds())
    days, rest = divmod(total, 86_400)
    hours, rest = divmod(rest, 3_600)
    minutes, seconds = divmod(rest, 60)
    return {"days": days, "hours": hours, "minutes": minutes, "seconds": seconds}


def next_flight(now: datetime) -> Optional[dict]:
    for flight in FLIGHTS:
        if datetime.fromisoformat(flight["dep_utc"]) > now:
            return flight
    return None


def weather_location(today: date) -> dict:
    """Which location's weather matters on a given date."""
    iso = today.isoformat()
    if iso >= "2026-03-03":
        return LOCATIONS["bangkok"]
    if iso >= "2026-02-28":
        return LOCATIONS["phuket"]
    return LOCATIONS["bengaluru"]
