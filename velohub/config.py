from pydantic import field_validator
from pydantic_settings import BaseSettings

STORAGE_BACKENDS = ("sqlite", "rest", "none")


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    resend_api_key: str | None = None
    resend_api_url: str = "https://api.resend.com/emails"
    email_sender: str = "Velohub <onboarding@resend.dev>"

    storage_backend: str = "sqlite"
    db_path: str = "velohub.db"
    supabase_url: str | None = None
    supabase_key: str | None = None

    @field_validator("storage_backend", mode="before")
    @classmethod
    def parse_storage_backend(cls, v):
        if isinstance(v, str):
            v = v.strip().lower() or "none"
        if v not in STORAGE_BACKENDS:
            raise ValueError(f"storage_backend must be one of {', '.join(STORAGE_BACKENDS)}")
        return v

    invite_host: str = "0.0.0.0"
    invite_port: int = 8000
    debug: bool = False


settings = Settings()
