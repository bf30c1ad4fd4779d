"""Request and response schemas for the voice pipeline endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialise with the camelCase keys the browser client expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProcessTextRequest(BaseModel):
    text: Optional[str] = None


class DeleteAudioRequest(BaseModel):
    filename: Optional[str] = None


class UploadPipelineResponse(CamelModel):
    success: bool = True
    message: str
    file_name: str
    transcribed_text: str
    ai_response: str
    audio_file: Optional[str] = None
    audio_url: Optional[str] = None
    run_id: str


class UploadPipelineFailure(CamelModel):
    success: bool = False
    message: str
    file_name: Optional[str] = None
    stage: Optional[str] = None
    error_type: Optional[str] = None


class ProcessTextResponse(CamelModel):
    success: bool = True
    input_text: str
    ai_response: str
    audio_file: Optional[str] = None
    audio_url: Optional[str] = None
    run_id: str
    message: str = "Text processed and converted to speech successfully"


class ProcessTextFailure(CamelModel):
    success: bool = False
    error: str
    message: str
    stage: Optional[str] = None
    error_type: Optional[str] = None


class DeleteAudioResponse(CamelModel):
    success: bool
    message: str


class PipelineStageView(CamelModel):
    order: int
    name: str
    service: str
    summary: str


class PipelineStatusResponse(CamelModel):
    success: bool = True
    server: str = "Active"
    services: dict[str, str]
    pipeline: str
    stages: list[PipelineStageView]
    endpoints: dict[str, str]
