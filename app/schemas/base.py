"""Shared schema configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanged with the frontend in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def clean_optional_text(value: str | None) -> str | None:
    """Trim free text; blank becomes None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
