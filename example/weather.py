from pydantic import BaseModel, Field

description = "Returns structured weather data for a location"


class input_schema(BaseModel):
    location: str = Field(description="City name")


async def execute(location: str) -> dict:
    # Canned data; "error" and "unknown" show the two failure shapes.
    if location.lower() == "error":
        raise RuntimeError("Failed to fetch weather data: API connection timeout")
    if location.lower() == "unknown":
        return {
            "isError": True,
            "error": f"Location '{location}' not found. Please provide a valid city name.",
        }
    return {
        "location": location,
        "temperature": 22.5,
        "conditions": "Partly cloudy",
        "humidity": 65,
        "wind": {"speed": 12, "direction": "NW"},
    }
