from typing import Literal

from pydantic import BaseModel, Field

description = "Performs basic arithmetic operations"


class input_schema(BaseModel):
    operation: Literal["add", "subtract", "multiply", "divide"] = Field(
        description="The arithmetic operation to perform"
    )
    a: float = Field(description="First operand")
    b: float = Field(description="Second operand")


async def execute(operation: str, a: float, b: float) -> float | dict:
    if operation == "add":
        return a + b
    if operation == "subtract":
        return a - b
    if operation == "multiply":
        return a * b
    if b == 0:
        return {"isError": True, "error": "Division by zero"}
    return a / b
