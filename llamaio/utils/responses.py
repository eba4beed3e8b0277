# llamaio/utils/responses.py
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def send(status_code: int, message: str, data: Any = None) -> JSONResponse:
    """Every response is shaped {"message": ..., "data": ...}"""
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "data": jsonable_encoder({} if data is None else data)},
    )
