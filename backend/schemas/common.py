from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case attributes in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Success envelope shared by every route: {success, data?, message?}."""
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data.to_json() if isinstance(data, CamelModel) else data
    if message:
        body["message"] = message
    return body
