"""
Room Monitor

One polling tick against a MEMBERS room:

1. Fetch the full message snapshot
2. First poll: record the baseline (optionally generating once on connect)
   Later polls: request one generation per message above the high-water
   mark, in id order, advancing the mark right after each request
3. Drain the scheduler's replay queue

"New" means a higher id than anything seen before; a late message with a
lower id is never treated as new.
"""

import logging
from typing import Optional

from .events import EventBroadcaster, Phase
from .members import MembersClient
from .models import Message
from .scheduler import GenerationScheduler
from .state import RoomState

logger = logging.getLogger(__name__)


class RoomMonitor:
    """Detects unseen messages and hands them to the scheduler."""

    def __init__(
        self,
        state: RoomState,
        members: MembersClient,
        scheduler: GenerationScheduler,
        broadcaster: EventBroadcaster,
        generate_on_connect: bool = False,
    ):
        """
        Initialize monitor.

        Args:
            state: The room's state, shared with the scheduler
            members: Message source
            scheduler: Run-or-queue gate for generations
            broadcaster: Event output for this session
            generate_on_connect: Generate once from the first snapshot
        """
        self.state = state
        self.members = members
        self.scheduler = scheduler
        self.broadcaster = broadcaster
        self._connect_generation_pending = generate_on_connect
        self.tick_count = 0

    @property
    def room_id(self) -> int:
        return self.state.room_id

    async def _fetch(self) -> Optional[list[Message]]:
        try:
            return await self.members.get_room_messages(self.room_id, force=1)
        except Exception as e:
            logger.error(f"Room {self.room_id}: fetch failed: {e}")
            await self.broadcaster.error(str(e))
            return None

    async def poll(self) -> list[Message]:
        """
        Run one tick.

        Returns:
            Messages treated as new on this tick, ascending by id
        """
        self.tick_count += 1
        snapshot = await self._fetch()
        if snapshot is None:
            # State untouched, next tick retries from the same baseline
            return []

        state = self.state
        ordered = sorted(snapshot, key=lambda m: m.id)
        new_messages: list[Message] = []

        if ordered:
            await self.broadcaster.messages([m.to_broadcast() for m in ordered])

            if self._connect_generation_pending:
                self._connect_generation_pending = False
                logger.info(f"Room {self.room_id}: generating on connect from {len(ordered)} messages")
                await self.scheduler.request_generation(ordered)

            if state.is_first_poll:
                state.is_first_poll = False
                state.advance(ordered[-1].id)
                logger.info(f"Room {self.room_id}: baseline set at message {state.last_seen_message_id}")
            else:
                new_messages = [m for m in ordered if m.id > state.last_seen_message_id]
                for message in new_messages:
                    await self.scheduler.request_generation(ordered, message.id)
                    state.advance(message.id)

                if new_messages:
                    logger.info(
                        f"Room {self.room_id}: {len(new_messages)} new message(s), "
                        f"last seen {state.last_seen_message_id}"
                    )
                    await self.broadcaster.status(Phase.POLL_OK)

        await self.broadcaster.debug(
            f"tick {self.tick_count}: {len(ordered)} messages, {len(new_messages)} new, "
            f"lastSeen={state.last_seen_message_id}, queued={len(state.pending_queue)}"
        )

        await self.scheduler.drain_queue(ordered)
        return new_messages
