import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class PathsConfig(BaseModel):
    base_dir: str = Field(default=".")
    log_dir: str = Field(default="logs")

class CompletionConfig(BaseModel):
    base_url: str = Field(default="https://api.perplexity.ai")
    model_name: str = Field(default="llama-3.1-sonar-large-128k-online")
    api_key: Optional[str] = Field(default_factory=lambda: os.getenv("PERPLEXITY_API_KEY"))
    max_requests: int = Field(default=20)
    window_ms: int = Field(default=60_000)
    timeout_seconds: float = Field(default=30.0)

class TranscriptionConfig(BaseModel):
    base_url: str = Field(default="https://api.assemblyai.com")
    api_key: Optional[str] = Field(default_factory=lambda: os.getenv("ASSEMBLYAI_API_KEY"))
    relay_url: Optional[str] = Field(default=None)
    language: str = Field(default="en")
    word_times_in_ms: bool = Field(default=True)
    max_attempts: int = Field(default=60)
    interval_ms: int = Field(default=5000)
    timeout_seconds: float = Field(default=30.0)

class AnalysisConfig(BaseModel):
    max_clips: int = Field(default=10)
    temperature: float = Field(default=0.3)
    max_tokens: int = Field(default=4000)

class AppConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    completion: CompletionConfig = Field(default_factory=CompletionConfig)
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

class ConfigManager:
    """
    Manages loading and validation of application configuration.
    """
    def __init__(self, config_path: str = "config/settings.yaml"):
        self.config_path = Path(config_path)
        self.config: AppConfig = self._load_config()

    def _load_config(self) -> AppConfig:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found at {self.config_path}")

        with open(self.config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        # An empty YAML section loads as None; treat it as "all defaults".
        sections = {key: value for key, value in raw_config.items() if value is not None}
        return AppConfig(**sections)

    @property
    def paths(self) -> PathsConfig:
        return self.config.paths

    @property
    def completion(self) -> CompletionConfig:
        return self.config.completion

    @property
    def transcription(self) -> TranscriptionConfig:
        return self.config.transcription

    @property
    def analysis(self) -> AnalysisConfig:
        return self.config.analysis
