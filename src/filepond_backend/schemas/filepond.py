from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FileSourceOptions(BaseModel):
    # "local" tells the client to fetch the file through the `load` endpoint.
    type: Literal["local", "limbo", "input"] = "local"


class FileSource(BaseModel):
    source: str = Field(min_length=1)
    options: FileSourceOptions = Field(default_factory=FileSourceOptions)


class FieldPayload(BaseModel):
    """What the client widget needs to render one attachment field.

    Keys keep the client's camelCase names when dumped with `by_alias=True`.
    """

    model_config = ConfigDict(populate_by_name=True)

    attribute: str
    disk: str
    multiple: bool = False
    disabled: bool = False
    value: list[FileSource] = Field(default_factory=list)
    thumbnails: list[str] = Field(default_factory=list)
    columns: int = Field(default=1, ge=1)
    full_width: bool = Field(default=False, alias="fullWidth")
    max_height: str = Field(default="auto", alias="maxHeight")
    limit: int | None = Field(default=None, ge=1)
    mime_types: list[str] = Field(default_factory=list, alias="mimesTypes")
    labels: dict[str, str] = Field(default_factory=dict)
