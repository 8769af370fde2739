from pydantic import BaseModel, Field

description = "Says hello to a person by name"


class input_schema(BaseModel):
    name: str = Field(description="The person's name to greet")


async def execute(name: str) -> str:
    return f"Hello, {name}!"
