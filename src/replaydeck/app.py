"""Main application that wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from typing import TYPE_CHECKING

from replaydeck.api import APIServer, create_app
from replaydeck.commands.orchestrator import CommandOrchestrator
from replaydeck.hub import BroadcastHub
from replaydeck.models.transitions import TransitionCycle
from replaydeck.pool.manager import SlotPool
from replaydeck.runtime.ingestion import IngestionSerializer, RegexFilenameMatcher
from replaydeck.runtime.lane import SerialLane
from replaydeck.sources.input_folder import InputFolderSource
from replaydeck.tools.assembler import FfmpegAssembler
from replaydeck.tools.editor import SubprocessEditorLauncher, load_editor_settings

if TYPE_CHECKING:
    from replaydeck.interfaces import EditorLauncher, InputSource, VideoAssembler
    from replaydeck.models.config import Config

logger = logging.getLogger(__name__)


class Application:
    """Main application that orchestrates all components.

    Handles component creation, lifecycle, and graceful shutdown.
    """

    def __init__(
        self,
        config: Config,
        *,
        editor: EditorLauncher | None = None,
        assembler: VideoAssembler | None = None,
        source: InputSource | None = None,
        serve_api: bool = True,
    ) -> None:
        """Create all components from a resolved config.

        Args:
            config: Validated configuration
            editor: Editor launcher override (defaults to the configured program)
            assembler: Assembler override (defaults to ffmpeg)
            source: Input source override (defaults to the input folder watcher)
            serve_api: Start the uvicorn server in `start()`
        """
        self._config = config

        self._lane = SerialLane("pool")
        self._pool = SlotPool(config.queue.dir, config.queue.slots)
        self._orchestrator = CommandOrchestrator(
            self._pool,
            self._lane,
            editor=editor or self._create_editor(config),
            assembler=assembler or self._create_assembler(config),
            transitions=TransitionCycle(config.export.transition),
            output_path=config.output.path,
        )
        self._hub = BroadcastHub(self._orchestrator.snapshot)
        self._pool.set_change_listener(self._hub.notify)
        self._orchestrator.set_change_listener(self._hub.notify)

        self._ingestion = IngestionSerializer(
            self._pool,
            self._lane,
            RegexFilenameMatcher(config.input.pattern),
            output_path=config.output.path,
        )
        self._source = source or InputFolderSource(config.input)
        self._source.register_callback(self._ingestion.on_new_file)

        self._api_server: APIServer | None = None
        if serve_api:
            self._api_server = APIServer(
                create_app(self),
                host=config.server.host,
                port=config.server.port,
            )

        self._start_time: float | None = None
        self._shutdown_event = asyncio.Event()
        self._shutdown_started = False

    async def run(self) -> None:
        """Run until a shutdown signal arrives."""
        await self.start()
        self._setup_signal_handlers()
        logger.info("Application started. Waiting for replays...")

        await self._shutdown_event.wait()
        await self.shutdown()

    async def start(self) -> None:
        """Start every component; failures leave already-started parts stopped."""
        logger.info(
            "Starting ReplayDeck: input=%s queue=%s slots=%d output=%s",
            self._config.input.dir,
            self._config.queue.dir,
            self._config.queue.slots,
            self._config.output.path,
        )
        loop = asyncio.get_running_loop()
        self._hub.set_event_loop(loop)
        self._ingestion.set_event_loop(loop)

        # Bring the in-memory view in line with whatever is already on disk.
        await asyncio.to_thread(self._pool.refresh_state)

        await self._lane.start()
        await self._ingestion.start()
        try:
            await self._source.start()
            if self._api_server is not None:
                await self._api_server.start()
        except Exception:
            await self.shutdown()
            raise

        self._start_time = time.time()

    def request_shutdown(self) -> None:
        self._shutdown_started = True
        self._shutdown_event.set()

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        if self._shutdown_started:
            logger.warning("Shutdown already in progress, ignoring signal")
            return

        logger.info("Received signal %s, initiating shutdown...", sig.name)
        self.request_shutdown()

    async def shutdown(self) -> None:
        """Graceful shutdown of all components."""
        logger.info("Shutting down application...")

        # Stop API server first so no new commands arrive.
        if self._api_server is not None:
            await self._api_server.stop()

        await self._source.shutdown()
        await self._ingestion.shutdown()
        await self._lane.shutdown()
        await self._hub.shutdown()

        logger.info("Application shutdown complete")

    @staticmethod
    def _create_editor(config: Config) -> EditorLauncher:
        settings_json = load_editor_settings(config.editor.settings_file)
        return SubprocessEditorLauncher(config.editor.program, settings_json)

    @staticmethod
    def _create_assembler(config: Config) -> VideoAssembler:
        return FfmpegAssembler(
            ffmpeg_bin=config.export.ffmpeg_bin,
            ffprobe_bin=config.export.ffprobe_bin,
            audio_fade_s=config.export.audio_fade_s,
            overlay_image=config.export.overlay_image,
            overlay_font=config.export.overlay_font,
        )

    @property
    def config(self) -> Config:
        return self._config

    @property
    def pool(self) -> SlotPool:
        return self._pool

    @property
    def lane(self) -> SerialLane:
        return self._lane

    @property
    def orchestrator(self) -> CommandOrchestrator:
        return self._orchestrator

    @property
    def hub(self) -> BroadcastHub:
        return self._hub

    @property
    def ingestion(self) -> IngestionSerializer:
        return self._ingestion

    @property
    def source(self) -> InputSource:
        return self._source

    @property
    def uptime_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return time.time() - self._start_time
