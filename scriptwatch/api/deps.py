"""
Shared collaborators for the API routes.

Each getter lazily builds one process-wide instance from MonitorConfig.
Tests swap them out through `app.dependency_overrides`.
"""

import logging
from typing import Optional

from scriptwatch.monitor.company import CompanyInfoExtractor
from scriptwatch.monitor.config import MonitorConfig, get_config
from scriptwatch.monitor.export import ExportPipeline
from scriptwatch.monitor.generator import ScriptGenerator
from scriptwatch.monitor.members import MembersClient
from scriptwatch.monitor.providers import OpenAIProvider
from scriptwatch.monitor.sheets import SheetsClient

logger = logging.getLogger(__name__)

# ==================== Singletons ====================

_members: Optional[MembersClient] = None
_provider: Optional[OpenAIProvider] = None
_generator: Optional[ScriptGenerator] = None
_sheets: Optional[SheetsClient] = None
_export_pipeline: Optional[ExportPipeline] = None


def get_monitor_config() -> MonitorConfig:
    return get_config()


def get_members_client() -> MembersClient:
    """Get or create the MEMBERS client."""
    global _members
    if _members is None:
        config = get_config()
        _members = MembersClient(token=config.members_token, base_url=config.members_base_url)
    return _members


def _get_provider() -> OpenAIProvider:
    global _provider
    if _provider is None:
        config = get_config()
        if not config.openai_api_key:
            logger.warning("OPENAI_API_KEY not set, generations will fail")
        _provider = OpenAIProvider(api_key=config.openai_api_key or "", model=config.chat_model)
    return _provider


def get_generator() -> ScriptGenerator:
    """Get or create the script generator."""
    global _generator
    if _generator is None:
        _generator = ScriptGenerator.from_config(get_config(), provider=_get_provider())
    return _generator


def get_sheets_client() -> SheetsClient:
    """Get or create the Google Sheets client (credentials resolve on first call)."""
    global _sheets
    if _sheets is None:
        _sheets = SheetsClient(credentials_json=get_config().google_credentials_json)
    return _sheets


def get_export_pipeline() -> ExportPipeline:
    """Get or create the export pipeline."""
    global _export_pipeline
    if _export_pipeline is None:
        config = get_config()
        company_info = None
        if config.company_info_enabled:
            company_info = CompanyInfoExtractor(_get_provider(), model=config.company_info_model)
        _export_pipeline = ExportPipeline.from_config(config, get_sheets_client(), company_info)
    return _export_pipeline


async def close_clients() -> None:
    """Close network clients (for shutdown)."""
    global _members, _provider, _generator, _export_pipeline
    if _members is not None:
        await _members.close()
        _members = None
    if _provider is not None:
        await _provider.close()
        _provider = None
    _generator = None
    _export_pipeline = None
