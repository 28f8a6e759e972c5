"""Base model and remote object listings."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field


class BaseModel(PydanticBaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return self.model_dump(exclude_none=True)

    def to_row(self, columns: list[str]) -> dict[str, Any]:
        """Convert model to row dict for table output."""
        data = self.to_dict()
        return {col: data.get(col, "") for col in columns}


class RemoteObject(BaseModel):
    """One object as returned by a bucket listing."""

    key: str = Field(..., alias="Key", description="Object key")
    size: int = Field(0, alias="Size", description="Size in bytes")
    last_modified: datetime | None = Field(None, alias="LastModified")
    etag: str | None = Field(None, alias="ETag")


class CommonPrefix(BaseModel):
    """A "directory" rolled up by a delimited listing."""

    prefix: str = Field(..., alias="Prefix")


class ObjectListing(BaseModel):
    """Result of a delimited listing: direct keys plus common prefixes."""

    prefix: str = Field("", alias="Prefix")
    contents: list[RemoteObject] = Field(default_factory=list, alias="Contents")
    common_prefixes: list[CommonPrefix] = Field(default_factory=list, alias="CommonPrefixes")

    @property
    def keys(self) -> list[str]:
        return [obj.key for obj in self.contents]

    @property
    def prefixes(self) -> list[str]:
        return [p.prefix for p in self.common_prefixes]
