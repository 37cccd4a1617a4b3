import json
import re
from datetime import date, timedelta
from typing import Any, Dict, Optional

CHAT_SYSTEM_PROMPT = (
    "You are a travel planning assistant. Create a detailed trip itinerary based on the user's request. "
    "Include destination-specific activities spread over suggested dates. If the user hasn't specified the "
    "number of days, preferences or city, ask for that information. "
    "Format the response as a clear, day-by-day itinerary with activities for each day."
)

DEFAULT_TRIP_DAYS = 7


def extract_trip_days(conversation: str, default: int = DEFAULT_TRIP_DAYS) -> int:
    match = re.search(r"(\d+)\s*days?", conversation, re.IGNORECASE)
    if not match:
        return default
    days = int(match.group(1))
    return days if 0 < days <= 60 else default


def build_trip_json_prompt(conversation: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    days = extract_trip_days(conversation)
    end = today + timedelta(days=days - 1)
    day_list = "\n".join(
        f"Day {i + 1}: {(today + timedelta(days=i)).isoformat()}" for i in range(days)
    )
    template = {
        "trip": {
            "destination": "Sample Destination",
            "startDate": today.isoformat(),
            "endDate": end.isoformat(),
            "budget": 1000,
            "activities": [
                {
                    "date": today.isoformat(),
                    "title": "Sample Activity",
                    "notes": "Description of the activity",
                    "category": "Sightseeing",
                    "estimatedCost": 50,
                }
            ],
        }
    }
    return (
        "You create valid, parseable JSON describing a trip from a planning conversation.\n"
        "Use exactly this structure:\n"
        f"```json\n{json.dumps(template, indent=2)}\n```\n"
        f"All activity dates must fall between {today.isoformat()} and {end.isoformat()} inclusive, "
        "formatted YYYY-MM-DD. Use these dates:\n"
        f"{day_list}\n"
        "category is one of Adventure, Food, Sightseeing, Other. estimatedCost is a plain number. "
        "Return ONLY the JSON object."
    )


def extract_json_string(raw_text: str) -> str:
    # Remove markdown-style code block
    text = raw_text.strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def parse_trip_json(raw_text: str) -> Optional[Dict[str, Any]]:
    """Best-effort parse of the model's trip draft; None when it is not usable."""
    candidate = extract_json_string(raw_text)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        # Trailing commas are the most common defect
        try:
            parsed = json.loads(re.sub(r",\s*([}\]])", r"\1", candidate))
        except json.JSONDecodeError:
            return None

    if not isinstance(parsed, dict):
        return None
    trip = parsed.get("trip", parsed)
    if not isinstance(trip, dict):
        return None
    activities = trip.get("activities")
    if activities is not None and not isinstance(activities, list):
        trip["activities"] = []
    return trip
