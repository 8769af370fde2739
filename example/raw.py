description = "Returns a raw value (string) without MCP formatting"

input_schema = {"type": "object", "properties": {}}


async def execute() -> str:
    return "this is a raw string result"
