"""Prompt templates for script generation."""

from .templates import (
    SALES_SCRIPT_PROMPT,
    SYSTEM_INSTRUCTION,
    COMPANY_INFO_PROMPT,
    RECENT_MESSAGE_LIMIT,
    build_script_prompt,
    build_company_info_prompt,
    format_chat_excerpt,
    load_reference_section,
)

__all__ = [
    "SALES_SCRIPT_PROMPT",
    "SYSTEM_INSTRUCTION",
    "COMPANY_INFO_PROMPT",
    "RECENT_MESSAGE_LIMIT",
    "build_script_prompt",
    "build_company_info_prompt",
    "format_chat_excerpt",
    "load_reference_section",
]
