"""Host prefix for generated paths."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class Host(BaseModel):
    """
    Address prepended, verbatim, to a generated path.

    Typically scheme plus authority, e.g. ``https://api.example.com:8443``.
    """

    model_config = ConfigDict(frozen=True)

    address: str

    def __init__(self, address: str, **data):
        super().__init__(address=address, **data)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("host address cannot be blank")
        return v
