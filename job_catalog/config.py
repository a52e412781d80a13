"""Configuration management for the Upwork job catalog"""
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv


class CatalogConfig(BaseModel):
    table: str = "scraped_jobs"
    order_column: str = "created_at"
    page_size: int = Field(default=100, ge=1)
    export_chunk_size: int = Field(default=1000, ge=1)


class ExportConfig(BaseModel):
    filename_prefix: str = "upwork-jobs-export"


class AIConfig(BaseModel):
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout_seconds: Optional[float] = None  # None waits for the upstream indefinitely
    system_prompt: str = (
        "You are an expert freelancer who writes compelling, personalized "
        "Upwork proposals that win projects."
    )
    prompt_template: str = "templates/proposal_prompt.j2"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str = "logs/job_catalog.log"
    max_size_mb: int = 10
    backup_count: int = 5


class AppConfig(BaseModel):
    catalog: CatalogConfig = CatalogConfig()
    export: ExportConfig = ExportConfig()
    ai: AIConfig = AIConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()


class Credentials(BaseSettings):
    """Environment-based credentials"""
    supabase_url: str = Field(default="", alias="SUPABASE_URL")
    supabase_key: str = Field(default="", alias="SUPABASE_KEY")
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_project_root() -> Path:
    """Get the project root directory"""
    return Path(__file__).parent.parent


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from YAML file"""
    if config_path is None:
        config_path = get_project_root() / "config" / "config.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        config_dict = yaml.safe_load(f) or {}

    return AppConfig(**config_dict)


def load_credentials() -> Credentials:
    """Load credentials from environment"""
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    return Credentials()


# Global instances
_config: Optional[AppConfig] = None
_credentials: Optional[Credentials] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_credentials() -> Credentials:
    """Get the global credentials instance"""
    global _credentials
    if _credentials is None:
        _credentials = load_credentials()
    return _credentials
