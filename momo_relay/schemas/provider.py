"""Provider schemas."""
from pydantic import ConfigDict, Field

from .base import CamelModel


class Provider(CamelModel):
    id: str
    code: str
    display_name: str
    country: str
    currency: str
    logo: str | None = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True, frozen=True)


class ProviderCreate(CamelModel):
    code: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    country: str = Field(min_length=1)
    currency: str = Field(min_length=1)
    logo: str | None = None
    is_active: bool = True

    model_config = ConfigDict(extra="forbid")
