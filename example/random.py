import secrets
import string
import uuid
from typing import Literal

from pydantic import BaseModel, Field

description = "Generates random values of different types"

_ALPHABET = string.ascii_letters + string.digits


class input_schema(BaseModel):
    type: Literal["number", "string", "uuid", "boolean"] = Field(
        description="The type of random value to generate"
    )
    min: int = Field(default=0, description="Minimum value for number type")
    max: int = Field(default=100, description="Maximum value for number type")
    length: int = Field(default=10, ge=1, le=100, description="Length of random string")


async def execute(type: str, min: int = 0, max: int = 100, length: int = 10) -> int | str | bool:
    if type == "number":
        return min + secrets.randbelow(max - min + 1)
    if type == "string":
        return "".join(secrets.choice(_ALPHABET) for _ in range(length))
    if type == "uuid":
        return str(uuid.uuid4())
    return secrets.randbelow(2) == 1
