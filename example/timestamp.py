from datetime import datetime
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

description = "Returns the current date/time in the requested format and timezone"


class input_schema(BaseModel):
    format: Literal["iso", "unix", "human"] = Field(
        description="Output format: iso (ISO-8601), unix (epoch seconds) or human (readable)"
    )
    timezone: str = Field(default="UTC", description="IANA timezone, e.g. America/New_York")


async def execute(format: str, timezone: str = "UTC") -> str | dict:
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return {"isError": True, "error": f"Invalid timezone: '{timezone}'"}
    now = datetime.now(zone)
    if format == "unix":
        return str(int(now.timestamp()))
    if format == "human":
        return now.strftime("%A, %B %d, %Y %H:%M:%S %Z")
    return now.isoformat()
