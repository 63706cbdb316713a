"""
Depository Records — Pydantic models exchanged with the transport layer.

DocumentDto: Document payload (create/update input, get output).
ProjectInfo: Project listing entry.
BranchInfo: Branch listing entry.

Nothing here is persisted: the filesystem tree is the only source of truth,
and name/content_type are derived from the uri on read.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class DocumentDto(BaseModel):
    """
    A document addressed by its uri inside a branch.

    On create the uri identifies the new document. On update the uri is
    ignored; the addressing uri comes from the call itself.
    """

    model_config = ConfigDict(populate_by_name=True)

    uri: str = Field(default="", description="Relative path inside the branch")
    name: Optional[str] = Field(default=None, description="Final path segment of the uri")
    content_type: Optional[str] = Field(
        default=None, alias="contentType", description="MIME type derived from the uri"
    )
    content: bytes = Field(default=b"", description="Raw document bytes")

    @field_validator("content", mode="before")
    @classmethod
    def decode_transport_content(cls, v: Any, info: ValidationInfo) -> Any:
        """Base64 text is decoded only when validating a transport dict (see from_dict)."""
        if isinstance(v, str) and (info.context or {}).get("content_encoding") == "base64":
            try:
                return base64.b64decode(v, validate=True)
            except binascii.Error as e:
                raise ValueError(f"content is not valid base64: {e}") from e
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentDto":
        """Inverse of to_dict(): accepts the transport dict with base64 content."""
        return cls.model_validate(data, context={"content_encoding": "base64"})

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    def to_dict(self, encode_content: bool = True) -> Dict[str, Any]:
        """Transport-friendly dict; content base64-encoded unless told otherwise."""
        return {
            "name": self.name,
            "uri": self.uri,
            "contentType": self.content_type,
            "content": (
                base64.b64encode(self.content).decode("ascii")
                if encode_content else self.content
            ),
        }


class ProjectInfo(BaseModel):
    """A project directory and the branch directories inside it."""

    id: str
    branches: List[str] = Field(default_factory=list)


class BranchInfo(BaseModel):
    """A branch directory inside a project."""

    project_id: str
    name: str
