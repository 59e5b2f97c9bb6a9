from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class DocumentType(str, Enum):
    """Document categories accepted in the ``tipo`` form field."""
    DI = "DI"
    CI = "CI"
    CE = "CE"

    @classmethod
    def parse(cls, value: str | None) -> "DocumentType | None":
        if not value or not isinstance(value, str):
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return None


class StagedFile(BaseModel):
    original_name: str
    local_path: Path
    size_bytes: int


class RelayOutcome(BaseModel):
    success: bool
    status_code: int
    message: str = ""


class UploadResponse(BaseModel):
    """Body returned on a successful relay."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    file_name: str = Field(serialization_alias="fileName")
    file_type: DocumentType = Field(serialization_alias="fileType")
    uploaded_to_url: str = Field(serialization_alias="uploadedToUrl")
