"""
Console frontend for the fortune teller.

Renders the dialogue with rich, plays speech through ffplay and routes
stdin: while the fortune teller is speaking (or the intro is on screen)
any line skips, otherwise the line is submitted as the player's answer.
Type ``quit`` or send EOF to leave.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys

from prometheus_client import start_http_server
from rich.console import Console
from rich.panel import Panel

from audio.music import BackgroundMusic
from audio.player import FFplayPlayer
from audio.playback import SpeechPlayback
from chat_core.models.base import BaseChatClient
from chat_core.models.http_chat import HTTPChatClient
from config import SessionConfig, load_session_config
from exceptions import ConfigError
from logging_config import setup_logging
from sessions.conversation import ConversationStateMachine
from tts_elevenlabs import ElevenLabsSpeechClient

logger = logging.getLogger(__name__)

QUIT_WORDS = ("quit", "exit")


class ConsoleView:
    """DialogueView that prints to a rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.input_visible = False
        self.input_interactable = False
        self.talking = False

    def show_text(self, text: str) -> None:
        if text:
            self.console.print(Panel(text, title="Madame Zelda", border_style="magenta"))

    def set_input_visible(self, visible: bool) -> None:
        self.input_visible = visible

    def set_input_interactable(self, interactable: bool) -> None:
        if interactable and not self.input_interactable and self.input_visible:
            self.console.print("[dim]> Your answer (quit to leave):[/dim]")
        self.input_interactable = interactable

    def set_talking(self, talking: bool) -> None:
        if talking and not self.talking:
            self.console.print("[italic dim](she speaks... press Enter to skip)[/italic dim]")
        self.talking = talking


def build_session(config: SessionConfig, view: ConsoleView, chat_client: BaseChatClient) -> ConversationStateMachine:
    speech_client = ElevenLabsSpeechClient(
        api_key=config.elevenlabs_api_key,
        voice_id=config.elevenlabs_voice_id,
        model_id=config.elevenlabs_model_id,
        stability=config.elevenlabs_stability,
        similarity_boost=config.elevenlabs_similarity_boost,
    )
    playback = SpeechPlayback(
        view,
        FFplayPlayer(),
        speech_client=speech_client,
        tick_seconds=config.tick_seconds,
        start_delay=config.start_delay,
    )
    return ConversationStateMachine(config, chat_client, playback, view)


async def run_console(config: SessionConfig, console: Console) -> None:
    """Start the music, run the startup sequence, then route stdin until quit or EOF."""
    view = ConsoleView(console)
    loop = asyncio.get_running_loop()
    music = BackgroundMusic()

    async with HTTPChatClient(config.llm_endpoint, config.llm_model, api_key=config.llm_api_key or None) as chat_client:
        machine = build_session(config, view, chat_client)
        await music.configure(config)
        turn = asyncio.create_task(machine.run_startup_sequence())

        try:
            while True:
                line = await loop.run_in_executor(None, sys.stdin.readline)
                if not line:
                    break

                text = line.strip()
                if text.lower() in QUIT_WORDS:
                    break

                if machine.is_busy:
                    machine.playback.skip_signal.trigger()
                    continue
                if not text:
                    continue

                if turn.done():
                    turn.result()
                turn = asyncio.create_task(machine.submit_input(text))
        finally:
            await music.stop()
            if not turn.done():
                turn.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await turn


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Talk to the fortune teller.")
    parser.add_argument("--config", type=str, default=None, help="Session config JSON (default: config/session.json)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines on stderr")
    parser.add_argument("--log-level", type=str, default=None, help="Log level name, e.g. DEBUG")
    parser.add_argument("--metrics-port", type=int, default=None, help="Expose Prometheus metrics on this port")
    return parser.parse_args()


def main() -> None:
    """Entry point for the ``fortune-teller`` script."""
    args = parse_arguments()
    setup_logging(use_json=True if args.json_logs else None, log_level=args.log_level)
    console = Console()

    try:
        config = load_session_config(args.config)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if args.metrics_port:
        start_http_server(args.metrics_port)
        logger.info("Serving metrics on port %d", args.metrics_port)

    try:
        asyncio.run(run_console(config, console))
    except KeyboardInterrupt:
        logger.info("Interrupted, leaving the fortune teller")


if __name__ == "__main__":
    main()
