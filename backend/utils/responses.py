import json

from fastapi import Request
from pydantic import BaseModel, ValidationError

from utils.errors import ApiError, validation_error


def ok(data) -> dict:
    return {"ok": True, "data": data}


async def read_json(request: Request, schema: type[BaseModel]):
    """
    Parse the request body into `schema`. Routes call this only after the
    caller has been authorized, so auth errors always win over body errors.
    An empty body reads as {}.
    """
    raw = await request.body()

    if raw.strip():
        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, ValueError):
            raise ApiError(400, "INVALID_JSON", "Invalid JSON body")
    else:
        payload = {}

    if not isinstance(payload, dict):
        raise validation_error("Request body must be a JSON object")

    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise validation_error(
            "Invalid request body",
            details=e.errors(include_url=False, include_context=False, include_input=False),
        )
