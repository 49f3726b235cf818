from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class CreatorIndexEntry(BaseModel):
    """One row of the creator directory: ``service,user_id,name``.

    ``name_key`` is derived from ``name`` at construction and cannot be set
    independently, so it always agrees with the display name.
    """

    model_config = ConfigDict(frozen=True)

    service: str
    user_id: str
    name: str
    name_key: str = ""

    @model_validator(mode="before")
    @classmethod
    def derive_name_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and "name" in data:
            data = {**data, "name_key": str(data["name"]).lower().strip()}
        return data
