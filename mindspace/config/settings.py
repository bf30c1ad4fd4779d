from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AwsConfig(BaseSettings):
    """Shared AWS credentials and region"""

    region: str = Field(default="ap-southeast-2", validation_alias="AWS_REGION")
    access_key_id: Optional[str] = Field(
        default=None,
        validation_alias="AWS_ACCESS_KEY_ID",
    )
    secret_access_key: SecretStr | None = Field(
        default=None,
        validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    session_token: SecretStr | None = Field(
        default=None,
        validation_alias="AWS_SESSION_TOKEN",
    )
    endpoint_url: Optional[str] = Field(
        default=None,
        validation_alias="AWS_ENDPOINT_URL",
        description="Override for S3/Transcribe/Polly endpoints (e.g. LocalStack).",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration"""

    input_bucket: str = "mint-in"
    output_bucket: str = "mint-out"
    transcript_bucket: Optional[str] = Field(
        default=None,
        description="Bucket receiving Transcribe output; defaults to the input bucket.",
    )

    @property
    def resolved_transcript_bucket(self) -> str:
        return self.transcript_bucket or self.input_bucket

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class TranscribeConfig(BaseSettings):
    """Amazon Transcribe batch job configuration."""

    language_code: str = "en-US"
    media_format: str = "mp3"
    data_access_role_arn: Optional[str] = Field(
        default=None,
        validation_alias="TRANSCRIBE_DATA_ACCESS_ROLE_ARN",
    )
    job_name_prefix: str = "MindspaceTranscription"
    poll_interval_seconds: float = Field(default=0.1, gt=0)
    max_poll_interval_seconds: float = Field(default=2.0, gt=0)
    poll_backoff: float = Field(default=1.5, ge=1.0)
    max_wait_seconds: float = Field(default=300.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIBE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class WatsonxConfig(BaseSettings):
    """IBM watsonx.ai text generation configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="WATSONX_AI_APIKEY",
    )
    url: Optional[str] = Field(default=None, validation_alias="WATSONX_AI_URL")
    iam_url: str = Field(
        default="https://iam.cloud.ibm.com/identity/token",
        validation_alias="WATSONX_AI_IAM_URL",
    )
    model_id: str = Field(
        default="ibm/granite-3-3-8b-instruct",
        validation_alias="WATSONX_AI_MODEL_ID",
    )
    project_id: Optional[str] = Field(
        default=None,
        validation_alias="WATSONX_AI_PROJECT_ID",
    )
    api_version: str = Field(
        default="2024-05-31",
        validation_alias="WATSONX_AI_VERSION",
    )
    max_new_tokens: int = Field(
        default=200,
        validation_alias="WATSONX_AI_MAX_NEW_TOKENS",
        ge=1,
        le=4096,
    )
    temperature: float = Field(
        default=0.7,
        validation_alias="WATSONX_AI_TEMPERATURE",
        ge=0.0,
        le=2.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="WATSONX_AI_TOP_P",
        ge=0.0,
        le=1.0,
    )
    timeout_seconds: float = Field(
        default=60.0,
        validation_alias="WATSONX_AI_TIMEOUT",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class PollyConfig(BaseSettings):
    """Amazon Polly configuration."""

    voice_id: str = "Joanna"
    output_format: Literal["mp3", "ogg_vorbis", "pcm"] = "mp3"
    engine: str = "standard"

    model_config = SettingsConfigDict(
        env_prefix="POLLY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PipelineConfig(BaseSettings):
    """Voice pipeline behaviour and local artifact layout."""

    public_dir: str = "public"
    audio_output_dir: str = "public/aud_op"
    current_audio_filename: str = "current_audio.mp3"
    audio_slot_mode: Literal["single", "per_run"] = Field(
        default="per_run",
        description=(
            "single: one shared current_audio file overwritten per run; "
            "per_run: one file per run id."
        ),
    )
    max_local_audio_files: int = Field(
        default=20,
        ge=1,
        description="Per-run mode keeps at most this many audio files, newest first.",
    )
    max_speech_chars: int = Field(default=2500, ge=1)
    upload_settle_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Delay between the S3 upload and the transcription job start.",
    )
    upload_prefix: str = "recording"
    synthesis_prefix: str = "polly-output"

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Mindspace Voice Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/voice_pipeline.log"
    transcript_log_file: str = "logs/transcripts.log"

    # AWS
    aws: AwsConfig = Field(default_factory=AwsConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Transcribe
    transcribe: TranscribeConfig = Field(default_factory=TranscribeConfig)

    # watsonx.ai
    watsonx: WatsonxConfig = Field(default_factory=WatsonxConfig)

    # Polly
    polly: PollyConfig = Field(default_factory=PollyConfig)

    # Pipeline
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
