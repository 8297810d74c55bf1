"""
Per-room monitoring state.

One RoomState lives inside one monitoring session and is only touched
by that session's RoomMonitor / GenerationScheduler pair, all on the
same event loop. Nothing here is persisted.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PendingGeneration:
    """A generation deferred by the cooldown."""
    trigger_message_id: int
    eligible_at: float


@dataclass
class RoomState:
    """State for one monitored room."""
    room_id: int
    last_seen_message_id: int = 0
    is_generating: bool = False
    last_generation_completed_at: Optional[float] = None
    pending_queue: list[PendingGeneration] = field(default_factory=list)
    is_first_poll: bool = True

    @classmethod
    def resume_from(cls, room_id: int, last_seen_message_id: Optional[int]) -> "RoomState":
        """New state, optionally resuming from a known high-water mark."""
        if last_seen_message_id is None:
            return cls(room_id=room_id)
        return cls(
            room_id=room_id,
            last_seen_message_id=last_seen_message_id,
            is_first_poll=False,
        )

    def advance(self, message_id: int) -> None:
        """Move the high-water mark forward; lower ids are ignored."""
        if message_id > self.last_seen_message_id:
            self.last_seen_message_id = message_id

    # ==================== Pending Queue ====================

    def is_queued(self, message_id: int) -> bool:
        return any(p.trigger_message_id == message_id for p in self.pending_queue)

    def enqueue(self, message_id: int, eligible_at: float) -> bool:
        """
        Queue a deferred generation.

        Returns:
            False if the message was already queued
        """
        if self.is_queued(message_id):
            return False
        self.pending_queue.append(PendingGeneration(message_id, eligible_at))
        return True

    def due_entries(self, now: float) -> list[PendingGeneration]:
        """Entries due at `now`, in insertion order. The queue is not modified."""
        return [p for p in self.pending_queue if p.eligible_at <= now]

    def dequeue(self, message_id: int) -> None:
        self.pending_queue = [p for p in self.pending_queue if p.trigger_message_id != message_id]

    def to_dict(self) -> dict:
        return {
            "roomId": self.room_id,
            "lastSeenMessageId": self.last_seen_message_id,
            "isGenerating": self.is_generating,
            "lastGenerationCompletedAt": self.last_generation_completed_at,
            "pendingQueue": [
                {"triggerMessageId": p.trigger_message_id, "eligibleAt": p.eligible_at}
                for p in self.pending_queue
            ],
            "isFirstPoll": self.is_first_poll,
        }
