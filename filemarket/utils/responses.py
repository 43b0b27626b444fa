from typing import Any, Optional


def success(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"status": "success"}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error(message: str, **extra) -> dict:
    return {"status": "error", "message": message, **extra}
