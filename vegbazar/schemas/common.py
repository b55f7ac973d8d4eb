# vegbazar/schemas/common.py
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, computed_field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope returned by every endpoint, success or error:

        {"statuscode": 200, "data": ..., "message": "...", "success": true}

    `success` is derived from the status code: anything below 400.
    """

    statuscode: int
    data: T | None = None
    message: str = "Success"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.statuscode < 400


def api_response(
    data: Any = None,
    message: str = "Success",
    statuscode: int = 200,
) -> dict[str, Any]:
    """Build an envelope dict; FastAPI validates it against `ApiResponse[...]`."""
    return {"statuscode": statuscode, "data": data, "message": message}


class Page(BaseModel, Generic[T]):
    """Offset-paginated list payload."""

    items: list[T]
    total: int
    skip: int
    limit: int
