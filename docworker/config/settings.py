from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docworker"
    db_username: str = "docworker"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_apply_schema: bool = False

    batch_poll_interval_seconds: int = 5
    batch_lease_seconds: int = 1800

    blob_endpoint_url: str = "http://localhost:9000"
    blob_access_key: str = ""
    blob_secret_key: str = ""
    blob_bucket: str = "documents"
    blob_region: str = "us-east-1"
    blob_download_ttl_seconds: int = 24 * 60 * 60
    blob_upload_ttl_seconds: int = 3600
    upload_max_file_size: int = 10 * 1024 * 1024

    pdf_engine: str = "pdfplumber"
    pdf_min_text_chars: int = 50
    local_ocr_enabled: bool = False
    ocr_languages: str = "eng+rus+heb+ara+deu+fra+spa+por+uzb+ukr"
    pdf_ocr_min_confidence: float = 90.0
    image_ocr_min_confidence: float = 80.0
    rasterizer_base_url: str = "http://localhost:8080"
    rasterizer_timeout_seconds: int = 120

    inference_provider: str = "openrouter"
    inference_api_key: str = ""
    inference_base_url: str = ""
    inference_model_general: str = "openai/gpt-4o"
    inference_model_vision: str = "openai/gpt-4o"
    inference_timeout_seconds: int = 120
    inference_temperature: float = 0.3
    inference_max_tokens: int = 4000

    prompt_registry: str = "langfuse"
    prompt_project_tag: str = "mis"
    prompt_label: str = "production"
    langfuse_base_url: str = "https://cloud.langfuse.com"
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    local_prompts_dir: str = ""
