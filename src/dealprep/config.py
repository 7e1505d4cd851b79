"""Configuration and environment handling for the deal prep pipeline."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class LLMConfig:
    """LLM-specific configuration."""

    def __init__(self):
        self.provider: str = os.getenv("DEALPREP_LLM_PROVIDER", "anthropic")
        self.model: str = os.getenv("DEALPREP_LLM_MODEL", "claude-sonnet-4-20250514")
        self.temperature: float = float(os.getenv("DEALPREP_LLM_TEMPERATURE", "0.3"))
        self.max_tokens: int = int(os.getenv("DEALPREP_LLM_MAX_TOKENS", "4096"))
        self.timeout_s: int = int(os.getenv("DEALPREP_LLM_TIMEOUT_S", "120"))
        self.api_key: Optional[str] = os.getenv("ANTHROPIC_API_KEY")


class ScraperConfig:
    """Website scraper limits."""

    def __init__(self):
        self.max_pages: int = int(os.getenv("DEALPREP_SCRAPE_MAX_PAGES", "10"))
        self.timeout_s: float = float(os.getenv("DEALPREP_SCRAPE_TIMEOUT_S", "30"))
        self.max_retries: int = int(os.getenv("DEALPREP_SCRAPE_MAX_RETRIES", "2"))
        self.user_agent: str = os.getenv(
            "DEALPREP_SCRAPE_USER_AGENT", "DealPrep/1.0 (Research Bot)"
        )


class DeliveryConfig:
    """Credentials and targets for the delivery channels.

    A channel whose credentials are missing falls back to its null adapter.
    """

    def __init__(self):
        self.sendgrid_api_key: Optional[str] = os.getenv("SENDGRID_API_KEY")
        self.email_from: str = os.getenv("EMAIL_FROM", "noreply@example.com")
        self.email_from_name: str = os.getenv("EMAIL_FROM_NAME", "Deal Prep System")
        self.motion_api_key: Optional[str] = os.getenv("MOTION_API_KEY")
        self.motion_workspace_id: Optional[str] = os.getenv("MOTION_WORKSPACE_ID")
        self.motion_api_url: str = os.getenv("MOTION_API_URL", "https://api.usemotion.com/v1")
        self.timeout_s: float = float(os.getenv("DEALPREP_DELIVERY_TIMEOUT_S", "30"))

        crm_export_dir = os.getenv("DEALPREP_CRM_EXPORT_DIR")
        self.crm_export_dir: Optional[Path] = Path(crm_export_dir) if crm_export_dir else None


class Config:
    """Central configuration object."""

    def __init__(self):
        # Load .env file if it exists
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        self.project_root = Path(__file__).parent.parent.parent

        # Artifact store
        self.storage: str = os.getenv("DEALPREP_STORAGE", "file")
        self.runs_dir: Path = Path(os.getenv("DEALPREP_RUNS_DIR", "runs"))
        if not self.runs_dir.is_absolute():
            self.runs_dir = self.project_root / self.runs_dir

        # Logging
        self.log_level: str = os.getenv("DEALPREP_LOG_LEVEL", "INFO")

        # Brief validation
        self.skip_source_validation: bool = _env_flag("DEALPREP_SKIP_SOURCE_VALIDATION")
        self.not_found_marker: str = os.getenv("DEALPREP_NOT_FOUND_MARKER", "Not found")

        self.llm = LLMConfig()
        self.scraper = ScraperConfig()
        self.delivery = DeliveryConfig()

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        if self.storage == "file":
            self.runs_dir.mkdir(parents=True, exist_ok=True)


# Global config instance
config = Config()
