"""Application configuration using Pydantic BaseSettings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """ffdrive configuration loaded from environment variables."""

    model_config = {"env_prefix": "FFDRIVE_", "env_file": ".env", "extra": "ignore"}

    # Executables
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Flags prepended to every transcoder run that is not a custom command
    global_flags: list[str] = ["-nostdin", "-y", "-loglevel", "info"]

    # Prober output wiring: structured JSON on stdout
    probe_flags: list[str] = [
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
    ]

    # Inputs starting with one of these skip the local existence check
    remote_prefixes: list[str] = ["http://", "https://", "rtmp://", "rtsp://"]

    # Supervision
    timeout_seconds: float | None = None
    kill_wait_seconds: float = 5.0


def get_settings() -> Settings:
    """Return a settings instance."""
    return Settings()
