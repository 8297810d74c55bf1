"""
Company profile lookup.

Asks the chat model for a short company profile and parses the
`key: value` lines it returns. This step is enrichment only: any
failure yields the fallback profile instead of an error.
"""

import logging
from typing import Optional

from .models import CompanyInfo
from .providers.base import InferenceProvider
from .prompts.templates import build_company_info_prompt

logger = logging.getLogger(__name__)


FIELD_PREFIXES = {
    "事業内容:": "business_content",
    "代表者:": "representative",
    "従業員数:": "employee_count",
    "本社住所:": "head_office_address",
}

FALLBACK_INFO = CompanyInfo(business_content="取得できませんでした")


def parse_company_info(content: str) -> CompanyInfo:
    """Parse the model's `事業内容: ...` style lines; unknown fields stay 不明."""
    values: dict[str, str] = {}
    for line in content.splitlines():
        stripped = line.strip()
        for prefix, field_name in FIELD_PREFIXES.items():
            if stripped.startswith(prefix):
                values[field_name] = stripped[len(prefix):].strip()
                break
    return CompanyInfo(**values)


class CompanyInfoExtractor:
    """LLM-backed company profile lookup."""

    def __init__(self, provider: InferenceProvider, model: Optional[str] = None):
        self.provider = provider
        self.model = model

    async def lookup(self, company_name: str, company_url: str) -> CompanyInfo:
        """Profile for a company; returns FALLBACK_INFO on any failure."""
        prompt = build_company_info_prompt(company_name, company_url)
        logger.info(f"Company info lookup: {company_name} ({company_url})")
        try:
            result = await self.provider.complete(prompt, temperature=0.1, model=self.model)
        except Exception as e:
            logger.warning(f"Company info lookup failed for {company_name}: {e}")
            return FALLBACK_INFO

        info = parse_company_info(result.text)
        logger.debug(f"Company info parsed: {info}")
        return info
