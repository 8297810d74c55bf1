"""
Generation Scheduler

Decides whether a requested generation runs now, waits in the replay
queue, or is dropped, and runs the generation + export pipeline.

Per room it enforces:
- single flight: at most one pipeline in progress (`is_generating`)
- cooldown: MIN_GENERATION_INTERVAL between completed generations;
  triggers arriving during the cooldown are queued once and replayed by
  drain_queue() when they become eligible

The pipeline runs in its own task so polling and heartbeats carry on
while the LLM and spreadsheet calls are in flight.
"""

import asyncio
import logging
import time
from typing import Callable, Optional, Sequence

from .config import MIN_GENERATION_INTERVAL
from .events import EventBroadcaster, Phase
from .export import ExportPipeline
from .generator import ScriptGenerator
from .models import GenerationResult, Message
from .state import RoomState

logger = logging.getLogger(__name__)


class GenerationScheduler:
    """Run-or-queue gate and pipeline runner for one room."""

    def __init__(
        self,
        state: RoomState,
        generator: ScriptGenerator,
        broadcaster: EventBroadcaster,
        export_pipeline: Optional[ExportPipeline] = None,
        export_on_generate: bool = False,
        use_reasoning: bool = False,
        min_interval: float = MIN_GENERATION_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize scheduler.

        Args:
            state: The room's state, shared with its RoomMonitor
            generator: Generation client
            broadcaster: Event output for this session
            export_pipeline: Export client, used when export_on_generate is set
            export_on_generate: Export after every successful generation
            use_reasoning: Generate in reasoning mode
            min_interval: Seconds between completed generations
            clock: Returns the current time in seconds (injectable for tests)
        """
        self.state = state
        self.generator = generator
        self.broadcaster = broadcaster
        self.export_pipeline = export_pipeline
        self.export_on_generate = export_on_generate
        self.use_reasoning = use_reasoning
        self.min_interval = min_interval
        self.clock = clock

        self.last_result: Optional[GenerationResult] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        """Number of pipeline tasks not yet finished."""
        return sum(1 for t in self._tasks if not t.done())

    def cooldown_remaining(self) -> float:
        """Seconds until the room may generate again (0 when eligible)."""
        completed_at = self.state.last_generation_completed_at
        if completed_at is None:
            return 0.0
        return max(0.0, completed_at + self.min_interval - self.clock())

    # ==================== Requests ====================

    async def request_generation(
        self,
        context: Sequence[Message],
        trigger_message_id: Optional[int] = None,
    ) -> Optional[asyncio.Task]:
        """
        Run a generation now, queue it for later, or drop it.

        Args:
            context: Full room snapshot
            trigger_message_id: Message that caused the request, if any

        Returns:
            The pipeline task when one was started, else None
        """
        state = self.state

        if state.is_generating:
            logger.info(f"Room {state.room_id}: generation in progress, dropping request (trigger={trigger_message_id})")
            return None

        remaining = self.cooldown_remaining()
        if remaining > 0:
            if trigger_message_id is not None:
                eligible_at = state.last_generation_completed_at + self.min_interval
                if state.enqueue(trigger_message_id, eligible_at):
                    logger.info(
                        f"Room {state.room_id}: cooldown {remaining:.0f}s left, "
                        f"queued message {trigger_message_id}"
                    )
                    await self.broadcaster.debug(
                        f"cooldown: message {trigger_message_id} queued, eligible in {remaining:.0f}s"
                    )
            else:
                logger.info(f"Room {state.room_id}: cooldown {remaining:.0f}s left, skipping untriggered request")
            return None

        # Set before the task exists so no other request can slip in
        state.is_generating = True
        task = asyncio.create_task(self._run_pipeline(list(context), trigger_message_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain_queue(self, context: Sequence[Message]) -> None:
        """
        Replay queued requests whose cooldown has elapsed.

        Each due entry is attempted at most once per call, in insertion
        order. An entry leaves the queue only when it is handed back to
        request_generation; one that hits a fresh cooldown re-queues itself.
        While a generation is in flight the remaining entries stay queued
        for a later drain.
        """
        state = self.state
        for entry in state.due_entries(self.clock()):
            if state.is_generating:
                logger.info(
                    f"Room {state.room_id}: generation in progress, "
                    f"{len(state.pending_queue)} queued request(s) kept for the next drain"
                )
                break
            state.dequeue(entry.trigger_message_id)
            logger.info(f"Room {state.room_id}: replaying queued message {entry.trigger_message_id}")
            await self.request_generation(context, entry.trigger_message_id)

    async def wait_idle(self) -> None:
        """Wait for every pipeline task started so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ==================== Pipeline ====================

    async def _run_pipeline(self, context: list[Message], trigger_message_id: Optional[int]) -> None:
        """Generation then export; owns `is_generating` until it returns."""
        produced_output = False
        try:
            await self.broadcaster.status(Phase.GENERATION_START, triggerMessageId=trigger_message_id)

            try:
                result = await self.generator.generate(
                    context,
                    trigger_message_id=trigger_message_id,
                    use_reasoning=self.use_reasoning,
                )
            except Exception as e:
                logger.error(f"Room {self.state.room_id}: generation failed: {e}")
                await self.broadcaster.error(f"Generation failed: {e}")
                return

            if not result.content.strip():
                logger.warning(f"Room {self.state.room_id}: generation returned empty content")
                await self.broadcaster.error("Generation returned empty content")
                return

            produced_output = True
            self.last_result = result
            await self.broadcaster.status(
                Phase.GENERATION_DONE,
                content=result.content,
                model=result.model_id,
                mode=result.mode.value,
                triggerMessageId=trigger_message_id,
            )

            if self.export_on_generate and self.export_pipeline and self.export_pipeline.is_configured:
                await self._run_export(result)

        finally:
            if produced_output:
                self.state.last_generation_completed_at = self.clock()
            self.state.is_generating = False

    async def _run_export(self, result: GenerationResult) -> None:
        await self.broadcaster.status(Phase.EXPORT_START)
        try:
            outcome = await self.export_pipeline.export(
                result.content,
                result.context_messages,
                trigger_message_id=result.trigger_message_id,
                on_warning=self.broadcaster.debug,
            )
        except Exception as e:
            logger.error(f"Room {self.state.room_id}: export failed: {e}")
            await self.broadcaster.error(f"Export failed: {e}")
            return

        await self.broadcaster.status(
            Phase.EXPORT_DONE,
            documentId=outcome.document_id,
            documentUrl=outcome.document_url,
        )
