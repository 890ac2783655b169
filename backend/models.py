from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TranscriptionResponse(BaseModel):
    """Successful transcription, in the shape the scribe UI consumes."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    transcript: str
    duration: float
    confidence: float = 1.0
    segmented: bool = False
    file_size: str = Field(alias="fileSize")
    segment_errors: Optional[List[str]] = Field(default=None, alias="segmentErrors")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None

    def to_json(self) -> dict:
        return self.model_dump(exclude_none=True)


class StatusResponse(BaseModel):
    """GET /api/transcribe payload. Never carries the key or its length."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    model: str
    provider: str
    supported_formats: List[str] = Field(alias="supportedFormats")
    max_file_size: str = Field(alias="maxFileSize")
    splitting_enabled: bool = Field(default=True, alias="splittingEnabled")
    max_recording_time: str = Field(alias="maxRecordingTime")
    has_groq_key: bool = Field(alias="hasGroqKey")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
