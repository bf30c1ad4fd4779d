"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse
from .pipeline import (
    DeleteAudioRequest,
    DeleteAudioResponse,
    PipelineStageView,
    PipelineStatusResponse,
    ProcessTextFailure,
    ProcessTextRequest,
    ProcessTextResponse,
    UploadPipelineFailure,
    UploadPipelineResponse,
)

__all__ = [
    "DeleteAudioRequest",
    "DeleteAudioResponse",
    "ErrorResponse",
    "PipelineStageView",
    "PipelineStatusResponse",
    "ProcessTextFailure",
    "ProcessTextRequest",
    "ProcessTextResponse",
    "UploadPipelineFailure",
    "UploadPipelineResponse",
]
