from typing import Literal

from pydantic import BaseModel, Field

description = "Returns a list of items based on the requested type"

_LISTS = {
    "colors": [
        {"name": "Red", "hex": "#FF0000"},
        {"name": "Blue", "hex": "#0000FF"},
        {"name": "Green", "hex": "#00FF00"},
        {"name": "Yellow", "hex": "#FFFF00"},
        {"name": "Purple", "hex": "#800080"},
    ],
    "fruits": [
        {"name": "Apple", "calories": 95},
        {"name": "Banana", "calories": 105},
        {"name": "Orange", "calories": 62},
        {"name": "Grape", "calories": 62},
        {"name": "Mango", "calories": 135},
    ],
    "languages": [
        {"name": "Python", "year": 1991},
        {"name": "Go", "year": 2009},
        {"name": "Rust", "year": 2010},
        {"name": "TypeScript", "year": 2012},
        {"name": "Swift", "year": 2014},
    ],
}


class input_schema(BaseModel):
    type: Literal["colors", "fruits", "languages"] = Field(description="The type of list to return")
    limit: int = Field(default=5, ge=1, le=10, description="Maximum number of items to return")


async def execute(type: str, limit: int = 5) -> list[dict]:
    # Each element becomes its own content item.
    return _LISTS[type][:limit]
