"""
Monitor Configuration

Reads configuration from environment variables with sensible defaults.
The generation interval, heartbeat cadence and poll floor are fixed
constants and deliberately not configurable.
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


# Minimum seconds between two generations for the same room
MIN_GENERATION_INTERVAL = 5 * 60

# Observer stream keepalive cadence (seconds)
HEARTBEAT_INTERVAL = 25.0

# Poll interval bounds (milliseconds)
MIN_POLL_INTERVAL_MS = 1000
DEFAULT_POLL_INTERVAL_MS = 10000


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


@dataclass
class MonitorConfig:
    """Configuration for the room monitor and its collaborators."""

    # MEMBERS web API
    members_token: Optional[str] = None
    members_base_url: str = "https://api.mem-bers.jp/web-api"
    default_room_id: int = 196320

    # OpenAI
    openai_api_key: Optional[str] = None
    model_override: Optional[str] = None     # OPENAI_MODEL wins over both defaults
    chat_model: str = "gpt-4o-mini"
    reasoning_model: str = "o4-mini"
    company_info_model: str = "gpt-4o-mini"

    # Reference material appended to the prompt
    reference_dir: Path = Path("public")
    reference_files: tuple[str, ...] = ("qa.csv", "tesc_talk_script.csv")

    # Google Drive / Sheets export
    sheets_template_file_id: str = ""
    destination_folder_id: Optional[str] = None
    results_sheet_id: Optional[str] = None
    google_credentials_json: Optional[str] = None
    grant_editor_permission: bool = True

    # Apps Script formatting pass
    gas_project_id: Optional[str] = None
    gas_function: str = "formatKeywords"
    gas_execution_disabled: bool = False
    formatting_delay_minutes: float = 1.0

    # Optional LLM company profile lookup during export
    company_info_enabled: bool = False

    @property
    def formatting_enabled(self) -> bool:
        """Formatting runs only when a script project is set and not disabled."""
        return bool(self.gas_project_id) and not self.gas_execution_disabled

    @property
    def export_configured(self) -> bool:
        return bool(self.sheets_template_file_id)

    @classmethod
    def from_env(cls) -> "MonitorConfig":
        """Load configuration from environment variables."""
        reference_files = os.environ.get("SCRIPT_REFERENCE_FILES", "qa.csv,tesc_talk_script.csv")

        return cls(
            # MEMBERS_token is the historical spelling, keep accepting it
            members_token=(
                os.environ.get("MEMBERS_token") or
                os.environ.get("MEMBERS_TOKEN")
            ),
            members_base_url=os.environ.get(
                "MEMBERS_BASE_URL",
                "https://api.mem-bers.jp/web-api",
            ),
            default_room_id=int(os.environ.get("MEMBERS_ROOM_ID", "196320")),

            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            model_override=os.environ.get("OPENAI_MODEL") or None,
            chat_model=os.environ.get("SCRIPT_CHAT_MODEL", "gpt-4o-mini"),
            reasoning_model=os.environ.get("SCRIPT_REASONING_MODEL", "o4-mini"),
            company_info_model=os.environ.get("COMPANY_INFO_MODEL", "gpt-4o-mini"),

            reference_dir=Path(os.environ.get("SCRIPT_REFERENCE_DIR", "public")),
            reference_files=tuple(p.strip() for p in reference_files.split(",") if p.strip()),

            sheets_template_file_id=os.environ.get("SHEETS_TEMPLATE_FILE_ID", ""),
            destination_folder_id=os.environ.get("GOOGLE_DRIVE_DESTINATION_FOLDER_ID") or None,
            results_sheet_id=os.environ.get("RESULT_SHEET_ID") or None,
            google_credentials_json=os.environ.get("GOOGLE_APPLICATION_CREDENTIALS_JSON") or None,
            grant_editor_permission=not _env_flag("DISABLE_EDITOR_PERMISSION"),

            gas_project_id=os.environ.get("GAS_PROJECT_ID") or None,
            gas_function=os.environ.get("GAS_FUNCTION", "formatKeywords"),
            gas_execution_disabled=_env_flag("DISABLE_GAS_EXECUTION"),
            formatting_delay_minutes=float(os.environ.get("GAS_DELAY_MINUTES", "1")),

            company_info_enabled=_env_flag("COMPANY_INFO_ENABLED"),
        )

    def get_provider(self, model: Optional[str] = None):
        """
        Create the OpenAI provider used for script generation.

        Args:
            model: Model identifier; defaults to the chat model
        """
        from .providers import OpenAIProvider

        if not self.openai_api_key:
            raise ValueError("OPENAI_API_KEY not set")
        return OpenAIProvider(
            api_key=self.openai_api_key,
            model=model or self.chat_model,
        )


# Singleton config instance
_config: Optional[MonitorConfig] = None


def get_config() -> MonitorConfig:
    """Get the global monitor config, loading from env if needed."""
    global _config
    if _config is None:
        _config = MonitorConfig.from_env()
    return _config


def reload_config() -> MonitorConfig:
    """Force reload config from environment."""
    global _config
    _config = MonitorConfig.from_env()
    return _config
