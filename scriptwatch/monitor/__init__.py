"""
Room Monitor Module - Live Sales-Script Assistant

Watches a MEMBERS chat room, generates a sales script when new messages
arrive (single flight, five-minute cooldown, replay queue) and optionally
exports each script into a templated Google spreadsheet.

Components:
- models: Pydantic types for messages and pipeline results
- members: MEMBERS web API client
- state: Per-room high-water mark, flags and replay queue
- room_monitor: One polling tick, new-message detection
- scheduler: Run-or-queue gate and generation/export pipeline
- generator: Prompt assembly and the LLM call
- extract: Chat field and script segment extraction
- export: Spreadsheet creation and cell population
- events: Ordered event stream for one observer
- session: Poll loop, heartbeat and session bookkeeping
"""

from .models import (
    Message,
    MembersAccount,
    GenerationMode,
    GenerationResult,
    ExportOutcome,
    CompanyInfo,
)
from .errors import ScriptwatchError, MembersAPIError, GenerationError, ExportError
from .config import MonitorConfig, get_config, reload_config, MIN_GENERATION_INTERVAL
from .state import RoomState, PendingGeneration
from .events import (
    EventType,
    Phase,
    MonitorEvent,
    EventBroadcaster,
    QueueEventSink,
    CollectingEventSink,
)
from .members import MembersClient
from .generator import ScriptGenerator, select_context
from .company import CompanyInfoExtractor
from .extract import extract_export_fields, split_script_by_sections
from .sheets import SheetsClient
from .export import ExportPipeline
from .scheduler import GenerationScheduler
from .room_monitor import RoomMonitor
from .session import MonitorSession, SessionParams, SessionManager, get_session_manager

__all__ = [
    # Models
    "Message",
    "MembersAccount",
    "GenerationMode",
    "GenerationResult",
    "ExportOutcome",
    "CompanyInfo",
    # Errors
    "ScriptwatchError",
    "MembersAPIError",
    "GenerationError",
    "ExportError",
    # Config
    "MonitorConfig",
    "get_config",
    "reload_config",
    "MIN_GENERATION_INTERVAL",
    # State and events
    "RoomState",
    "PendingGeneration",
    "EventType",
    "Phase",
    "MonitorEvent",
    "EventBroadcaster",
    "QueueEventSink",
    "CollectingEventSink",
    # Collaborators
    "MembersClient",
    "ScriptGenerator",
    "CompanyInfoExtractor",
    "SheetsClient",
    "ExportPipeline",
    # Core components
    "GenerationScheduler",
    "RoomMonitor",
    "MonitorSession",
    "SessionParams",
    "SessionManager",
    "get_session_manager",
    # Functions
    "select_context",
    "extract_export_fields",
    "split_script_by_sections",
]
