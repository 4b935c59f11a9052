"""Uniform result envelope returned by every command."""

from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    success: bool
    status: int
    data: Any = None
    message: str | None = None

    @classmethod
    def ok(cls, data: Any = None, status: int = 200, message: str | None = None) -> "Envelope":
        return cls(success=True, status=status, data=data, message=message)

    @classmethod
    def fail(cls, status: int, message: str) -> "Envelope":
        return cls(success=False, status=status, message=message)

    def to_dict(self) -> dict:
        """JSON-ready dict; carries ``data`` or ``message`` only when set."""
        fields = {"success", "status"}
        if self.data is not None:
            fields.add("data")
        if self.message is not None:
            fields.add("message")
        return self.model_dump(mode="json", include=fields)
