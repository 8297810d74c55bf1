"""
Room Monitor Models

Pydantic models for MEMBERS chat messages and the results that flow
through the generation/export pipeline.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class GenerationMode(str, Enum):
    """Which completion API produced a script."""
    REASONING = "reasoning"   # Responses API with reasoning effort
    DIRECT = "direct"         # Plain chat completion


class MembersAccount(BaseModel):
    """Author of a MEMBERS message."""
    model_config = ConfigDict(frozen=True)

    account_id: int = 0
    name: str = ""


class Message(BaseModel):
    """
    A single chat message as returned by the MEMBERS web API.

    Immutable once fetched. `message_id` is monotonic per room; the
    monitor relies on that ordering to decide what is new.
    """
    model_config = ConfigDict(frozen=True)

    message_id: int
    account: MembersAccount = Field(default_factory=MembersAccount)
    type: int = 1
    body: str = ""
    send_time: int = 0       # epoch seconds
    update_time: int = 0

    @property
    def id(self) -> int:
        return self.message_id

    @property
    def author(self) -> str:
        return self.account.name

    @property
    def sent_at(self) -> datetime:
        """Send time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.send_time, tz=timezone.utc)

    def to_broadcast(self) -> dict:
        """Convert to dict for the observer stream."""
        return self.model_dump()


class GenerationResult(BaseModel):
    """Output of one successful script generation."""
    model_config = ConfigDict(frozen=True)

    content: str
    model_id: str
    mode: GenerationMode
    context_messages: list[Message] = Field(default_factory=list)
    trigger_message_id: Optional[int] = None


class ExportOutcome(BaseModel):
    """A spreadsheet created by the export pipeline."""
    model_config = ConfigDict(frozen=True)

    document_id: str
    document_url: str


class CompanyInfo(BaseModel):
    """Company profile filled in by the enrichment step."""
    business_content: str = "不明"     # 事業内容
    representative: str = "不明"       # 代表者 -> C2
    employee_count: str = "不明"       # 従業員数 -> C4
    head_office_address: str = "不明"  # 本社住所 -> F2


# === Utility Functions ===

def document_url(document_id: str) -> str:
    """Edit URL for a Google spreadsheet."""
    return f"https://docs.google.com/spreadsheets/d/{document_id}/edit"


def generate_session_id() -> str:
    """Generate a short monitoring session ID."""
    import uuid
    return str(uuid.uuid4())[:8]
