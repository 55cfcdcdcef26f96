"""Error types raised by the item handlers and rendered by the HTTP layer."""

from __future__ import annotations

from typing import Any


class ItemsError(Exception):
    """Base error carrying the HTTP status and the public message."""

    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)

    def to_response(self, *, include_detail: bool = False) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if include_detail and self.detail:
            body["error"] = self.detail
        return body


class InvalidItemIdError(ItemsError):
    status_code = 400
    message = "Invalid ID"


class ItemNotFoundError(ItemsError):
    status_code = 404
    message = "Not found"


class StoreError(ItemsError):
    """The document store rejected a call or could not be reached."""

    status_code = 500
