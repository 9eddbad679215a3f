import json
from typing import Any

from fastapi.responses import JSONResponse

MAX_SAFE_INTEGER = 2**53 - 1


def encode_large_ints(value: Any) -> Any:
    """Inteiros fora da faixa segura de um double viram string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, dict):
        return {key: encode_large_ints(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_large_ints(item) for item in value]
    return value


class SafeJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return json.dumps(
            encode_large_ints(content),
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")
