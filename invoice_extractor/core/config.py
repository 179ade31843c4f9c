from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("invoice-extractor", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://localhost:5173", alias="CORS_ORIGINS")

    # LLM providers
    llm_provider: str = Field("openai", alias="LLM_PROVIDER")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o", alias="OPENAI_MODEL")
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.0-flash", alias="GEMINI_MODEL")
    llm_max_tokens: int = Field(4096, alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(0.1, alias="LLM_TEMPERATURE")
    extraction_timeout_seconds: float = Field(120.0, alias="EXTRACTION_TIMEOUT_SECONDS")

    # Uploads
    max_file_size_mb: int = Field(10, alias="MAX_FILE_SIZE_MB")
    upload_dir: str = Field("uploads", alias="UPLOAD_DIR")

    # Persistence
    database_path: str = Field("invoices.db", alias="DATABASE_PATH")

    # Listing
    max_page_size: int = Field(100, alias="MAX_PAGE_SIZE")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

settings = Settings()
