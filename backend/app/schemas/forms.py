"""Service application forms: a tagged union keyed by ``service``.

Every variant declares its exact fields and forbids unknown ones, so a
client can never smuggle an ``amount`` (or anything else) into a draft.
"""
from __future__ import annotations
from typing import Annotated, ClassVar, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator

from app.config import settings
from app.models.service_request import ServiceType

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UploadedDocument(BaseModel):
    """Metadata of an uploaded supporting document (the bytes are not stored here)."""

    name: str = Field(min_length=1)
    content_type: str
    size: int = Field(ge=0)

    model_config = {"extra": "forbid"}

    @field_validator("content_type")
    @classmethod
    def _allowed_type(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in settings.allowed_upload_types:
            raise ValueError("Please upload an image (JPG, PNG) or PDF file")
        return value

    @field_validator("size")
    @classmethod
    def _max_size(cls, value: int) -> int:
        if value > settings.MAX_UPLOAD_BYTES:
            limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
            raise ValueError(f"Please upload a file smaller than {limit_mb}MB")
        return value


class _ServiceFormBase(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    state_code: str = Field(min_length=1, max_length=50)  # e.g. NY/22A/1234
    call_up_number: str = Field(min_length=1, max_length=50)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    reason: str = Field(min_length=1)

    # Name of the field holding the destination region, None for flat-fee services
    destination_field: ClassVar[Optional[str]] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @property
    def service_type(self) -> ServiceType:
        return ServiceType(self.service)

    @property
    def destination_region(self) -> Optional[str]:
        """The region the Pricing Resolver keys on."""
        return getattr(self, self.destination_field) if self.destination_field else None

    @property
    def contact_phone(self) -> Optional[str]:
        return getattr(self, "phone_number", None)


class DirectPostingForm(_ServiceFormBase):
    service: Literal["Direct Posting"]
    destination_field: ClassVar[Optional[str]] = "preferred_state"
    phone_number: str = Field(min_length=1, max_length=50)
    preferred_state: Optional[str] = None
    preferred_lga: str = Field(min_length=1, max_length=100)


class RelocationForm(_ServiceFormBase):
    service: Literal["Relocation"]
    destination_field: ClassVar[Optional[str]] = "desired_state"
    phone_number: Optional[str] = Field(default=None, max_length=50)
    current_state: str = Field(min_length=1, max_length=50)
    current_lga: str = Field(min_length=1, max_length=100)
    desired_state: Optional[str] = None
    desired_lga: str = Field(min_length=1, max_length=100)


class PPAChangeForm(_ServiceFormBase):
    service: Literal["PPA Change"]
    phone_number: Optional[str] = Field(default=None, max_length=50)
    current_ppa: str = Field(min_length=1, max_length=200)
    current_ppa_address: str = Field(min_length=1, max_length=500)
    desired_ppa: str = Field(min_length=1, max_length=200)
    desired_ppa_address: str = Field(min_length=1, max_length=500)
    letter_of_request: Optional[UploadedDocument] = None


ServiceForm = Annotated[
    Union[DirectPostingForm, RelocationForm, PPAChangeForm],
    Field(discriminator="service"),
]
