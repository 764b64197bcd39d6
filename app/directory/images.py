"""Profile image variants: external URL or inlined binary data."""

import base64
import binascii
import re
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.S)


class UrlImage(BaseModel):
    """Image referenced by an external URL."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    kind: Literal["url"] = "url"
    url: str = ""

    def to_field(self) -> Optional[str]:
        url = self.url.strip()
        return url or None


class InlineImage(BaseModel):
    """Image supplied as raw bytes, stored as a base64 data URL."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    kind: Literal["file"] = "file"
    data: bytes
    mime_type: str = "image/png"

    @field_validator("data", mode="before")
    @classmethod
    def decode_base64(cls, value: Any) -> Any:
        # JSON bodies carry the file contents base64 encoded
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError(f"Image data is not valid base64: {exc}") from exc
        return value

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        if not v.startswith("image/"):
            raise ValueError(f"Unsupported image type: {v}")
        return v

    @field_serializer("data")
    def encode_base64(self, data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")

    def to_field(self) -> Optional[str]:
        if not self.data:
            return None
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


ImageInput = Annotated[Union[UrlImage, InlineImage], Field(discriminator="kind")]


def parse_stored_image(value: Optional[str]) -> Union[UrlImage, InlineImage]:
    """
    Turn a stored ``image`` string back into its variant.

    Anything that is not a well-formed base64 image data URL is treated as a URL.
    """
    if not value:
        return UrlImage()
    match = _DATA_URL.match(value)
    if match is None or not match.group("mime").startswith("image/"):
        return UrlImage(url=value)
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        return UrlImage(url=value)
    return InlineImage(data=data, mime_type=match.group("mime"))
