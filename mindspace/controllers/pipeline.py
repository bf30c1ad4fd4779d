"""Voice pipeline endpoints.

For the stage-by-stage map see `mindspace.pipelines.voice.flow.VoicePipeline`.
`POST /upload-to-s3` stores the recording in the input bucket, waits for it to
settle, then runs transcription, generation, and synthesis. `POST
/process-text` skips transcription. `POST /delete-audio` removes a played-back
local file.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, File, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mindspace.config.settings import settings
from mindspace.controllers.dependencies import LocalAudioDep, ObjectStoreDep, VoicePipelineDep
from mindspace.pipelines.voice import (
    UploadRejectedError,
    VoicePipeline,
    read_audio_bytes,
    resolve_content_type,
    upload_recording,
)
from mindspace.services import StorageError
from mindspace.views import (
    DeleteAudioRequest,
    DeleteAudioResponse,
    ErrorResponse,
    PipelineStageView,
    PipelineStatusResponse,
    ProcessTextFailure,
    ProcessTextRequest,
    ProcessTextResponse,
    UploadPipelineFailure,
    UploadPipelineResponse,
)

router = APIRouter(tags=["pipeline"])

logger = logging.getLogger(__name__)

_AUDIO_FILE_UPLOAD = File(None)


def _respond(model: BaseModel, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=model.model_dump(by_alias=True, exclude_none=True),
    )


@router.post("/upload-to-s3")
async def upload_to_s3(
    store: ObjectStoreDep,
    pipeline: VoicePipelineDep,
    audio: Optional[UploadFile] = _AUDIO_FILE_UPLOAD,
) -> JSONResponse:
    """Upload a recording and answer it with synthesized speech."""

    logger.info("Received upload request")
    if audio is None:
        logger.error("No audio file received")
        return _respond(
            ErrorResponse(message="No audio file received"),
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        content_type = resolve_content_type(audio)
        audio_bytes = await read_audio_bytes(audio)
    except UploadRejectedError as exc:
        return _respond(ErrorResponse(message=str(exc)), status.HTTP_400_BAD_REQUEST)

    logger.info(
        "File details: name=%s type=%s size=%d", audio.filename, content_type, len(audio_bytes)
    )

    try:
        locator = await upload_recording(
            store,
            settings.s3.input_bucket,
            audio_bytes,
            prefix=settings.pipeline.upload_prefix,
        )
    except StorageError as exc:
        logger.error("S3 upload error: %s", exc)
        return _respond(
            ErrorResponse(message=f"Upload failed: {exc}"),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    file_name = locator.key
    logger.info("S3 upload successful: %s", locator.uri)

    delay = settings.pipeline.upload_settle_seconds
    if delay > 0:
        logger.info("Waiting %.1f seconds before starting transcription", delay)
        await asyncio.sleep(delay)

    result = await pipeline.run(file_name)
    if not result.success:
        return _respond(
            UploadPipelineFailure(
                message=f"Upload successful but AI pipeline failed: {result.error}",
                file_name=file_name,
                stage=result.failed_stage.value if result.failed_stage else None,
                error_type=result.error_type,
            ),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return _respond(
        UploadPipelineResponse(
            message=f"Uploaded as {file_name} and processed successfully",
            file_name=file_name,
            transcribed_text=result.input_text or "",
            ai_response=result.generated_text or "",
            audio_file=result.audio_file,
            audio_url=result.audio_url,
            run_id=result.run_id,
        )
    )


@router.post("/process-text")
async def process_text(
    payload: ProcessTextRequest,
    pipeline: VoicePipelineDep,
) -> JSONResponse:
    """Generate a spoken reply for typed text (no transcription)."""

    text = (payload.text or "").strip()
    if not text:
        return _respond(
            ErrorResponse(message="Text input is required"),
            status.HTTP_400_BAD_REQUEST,
        )

    result = await pipeline.run_text(text)
    if not result.success:
        message = (
            "AI processing succeeded but speech synthesis failed"
            if result.generated_text
            else "AI processing failed"
        )
        return _respond(
            ProcessTextFailure(
                error=result.error or "Unknown error",
                message=message,
                stage=result.failed_stage.value if result.failed_stage else None,
                error_type=result.error_type,
            ),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return _respond(
        ProcessTextResponse(
            input_text=text,
            ai_response=result.generated_text or "",
            audio_file=result.audio_file,
            audio_url=result.audio_url,
            run_id=result.run_id,
        )
    )


@router.post("/delete-audio")
async def delete_audio(
    local_audio: LocalAudioDep,
    payload: Optional[DeleteAudioRequest] = None,
) -> JSONResponse:
    """Delete a synthesized audio file after playback."""

    filename = payload.filename if payload else None
    try:
        deleted = await run_in_threadpool(local_audio.delete, filename)
    except OSError as exc:
        logger.error("Error deleting audio file: %s", exc)
        return _respond(
            ErrorResponse(message="Failed to delete audio file", error=str(exc)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if not deleted:
        return _respond(DeleteAudioResponse(success=False, message="Audio file not found"))
    return _respond(DeleteAudioResponse(success=True, message="Audio file deleted successfully"))


@router.get("/pipeline-status")
async def pipeline_status() -> JSONResponse:
    """Static capability report."""

    stages = [
        PipelineStageView(
            order=stage.order,
            name=stage.name.value,
            service=stage.service,
            summary=stage.summary,
        )
        for stage in VoicePipeline.describe()
    ]
    return _respond(
        PipelineStatusResponse(
            services={
                "transcription": "Available (AWS Transcribe)",
                "ai": "Available (watsonx.ai Granite LLM)",
                "speech": "Available (AWS Polly)",
            },
            pipeline="Speech → Transcribe → AI → Speech",
            stages=stages,
            endpoints={
                "upload": "POST /upload-to-s3 (Complete pipeline)",
                "processText": "POST /process-text (AI + Speech only)",
                "deleteAudio": "POST /delete-audio",
                "status": "GET /pipeline-status",
            },
        )
    )
