from typing import Literal

from pydantic import BaseModel, Field

description = "Transforms text to different cases"

_TRANSFORMERS = {
    "upper": str.upper,
    "lower": str.lower,
    "title": lambda s: " ".join(w[:1].upper() + w[1:].lower() for w in s.split(" ")),
    "reverse": lambda s: s[::-1],
    "capitalize": str.capitalize,
}


class input_schema(BaseModel):
    text: str = Field(description="The text to transform")
    case: Literal["upper", "lower", "title", "reverse", "capitalize"] = Field(
        description="The transformation: upper, lower, title, reverse, or capitalize"
    )
    repeat: int = Field(default=1, ge=1, description="Number of times to apply the transformation")


def execute(text: str, case: str, repeat: int = 1) -> str:
    for _ in range(repeat):
        text = _TRANSFORMERS[case](text)
    return text
