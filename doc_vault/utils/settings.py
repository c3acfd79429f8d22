from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.utils.config_loader import load_config


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./data/doc_vault.db"
    echo: bool = False


class StorageSettings(BaseModel):
    upload_dir: Path = Path("uploads")


class InsightSettings(BaseModel):
    """
    Insight generation config. The presence of `api_key` selects live mode;
    without it the generator answers with fixed mock content.
    """

    model_config = ConfigDict(protected_namespaces=())

    provider: str = "google"
    model_name: str = "gemini-1.5-flash"
    temperature: float = 0.2
    max_tokens: Optional[int] = 2048
    max_input_chars: int = Field(default=5000, gt=0)
    mock_delay_seconds: float = Field(default=1.5, ge=0)
    api_key: Optional[str] = Field(default=None, repr=False)

    @property
    def live(self) -> bool:
        return bool(self.api_key)


class PipelineSettings(BaseModel):
    job_timeout_seconds: Optional[float] = Field(default=300, gt=0)
    shutdown_grace_seconds: float = Field(default=10, ge=0)
    recover_on_startup: bool = True


class ApiSettings(BaseModel):
    title: str = "Document Vault"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 3001


class AppSettings(BaseModel):
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    insights: InsightSettings = Field(default_factory=InsightSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    @classmethod
    def load(cls, config_path: str | None = None) -> "AppSettings":
        """
        Build settings from the YAML config, then apply environment overrides
        (.env is honoured through python-dotenv).
        """
        load_dotenv()
        raw = load_config(config_path)
        settings = cls.model_validate(raw)

        if url := os.getenv("DATABASE_URL"):
            settings.database.url = url
        if upload_dir := os.getenv("UPLOAD_DIR"):
            settings.storage.upload_dir = Path(upload_dir)
        if delay := os.getenv("INSIGHTS_MOCK_DELAY"):
            settings.insights.mock_delay_seconds = float(delay)
        if timeout := os.getenv("JOB_TIMEOUT_SECONDS"):
            settings.pipeline.job_timeout_seconds = float(timeout) or None

        settings.insights.api_key = ApiKeyManager(settings.insights.provider).get()
        log.info(
            "Settings loaded | database=%s | upload_dir=%s | insights_mode=%s",
            settings.database.url,
            settings.storage.upload_dir,
            "live" if settings.insights.live else "mock",
        )
        return settings


class ApiKeyManager:
    KEY_BY_PROVIDER = {
        "google": "GOOGLE_API_KEY",
        "groq": "GROQ_API_KEY",
    }

    def __init__(self, provider: str):
        if provider not in self.KEY_BY_PROVIDER:
            raise ValueError(f"Unsupported provider {provider}")
        self.provider = provider
        self.env_name = self.KEY_BY_PROVIDER[provider]

    def get(self) -> Optional[str]:
        # A missing key is not an error: insights fall back to mock mode.
        if val := os.getenv(self.env_name):
            log.info(f"Loaded {self.env_name} from env")
            return val
        log.warning("No %s configured, insights will run in mock mode", self.env_name)
        return None
