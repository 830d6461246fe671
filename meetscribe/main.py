"""Command line entry point: run one transcription session in the terminal."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import MeetScribeConfig
from .services.events import subscribe_status_logger
from .services.session_controller import SessionController
from .ui.status_view import print_status

logger = logging.getLogger(__name__)

FILE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'


class Server:
    """Runs a SessionController for a fixed duration or until interrupted."""

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        self.config = MeetScribeConfig(config_path)
        self.console = Console()
        # --log-level wins over logging.level
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'), self.console)
        self.controller: Optional[SessionController] = None

    def init(self):
        logger.info("Initializing services...")
        subscribe_status_logger()
        self.controller = SessionController(self.config)

    def run(self, duration: Optional[int], input_device: Optional[str] = None,
            chunk_seconds: Optional[float] = None, output_file: Optional[str] = None) -> bool:
        """Transcribe until `duration` seconds pass (forever when None).

        Returns:
            False if the session could not be started
        """
        result = self.controller.start_transcription(
            input_device=input_device,
            chunk_seconds=chunk_seconds,
            output_file=output_file,
        )
        if not result["success"]:
            self.console.print(f"[bold red]❌ Could not start transcription:[/] {result['error']}")
            return False

        self.console.print(f"[green]Transcribing to[/] {result['output_file']} [dim](Ctrl+C to stop)[/]")
        deadline = time.monotonic() + duration if duration else None
        try:
            while deadline is None or time.monotonic() < deadline:
                time.sleep(1)
        finally:
            self.cleanup()
        return True

    def cleanup(self):
        if self.controller is None or self.controller.session is None:
            return
        session = self.controller.session
        self.controller.shutdown()
        print_status(session.get_status(), self.console)


def setup_logging(config: MeetScribeConfig, level: str = "INFO", console: Optional[Console] = None) -> None:
    """Send everything to the log file, and warnings to the terminal if enabled."""
    log_file = Path(config.get('logging.file_path', 'logs/meetscribe.log'))
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.addHandler(file_handler)

    if config.get('logging.console_output', True):
        console_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
        console_handler.setLevel(logging.WARNING)
        root_logger.addHandler(console_handler)

    logger.info(f"MeetScribe {__version__} starting, logging to {log_file} at {level}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meetscribe",
        description="MeetScribe - cost-aware meeting transcription",
        epilog="Transcription pauses itself after prolonged silence or 30 minutes without interaction.",
    )
    parser.add_argument("--config", help="YAML configuration file (default: built-in settings)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: logging.level from config)")
    parser.add_argument("--duration", type=int,
                        help="Stop after this many seconds (default: run until Ctrl+C)")

    session = parser.add_argument_group("session overrides")
    session.add_argument("--input-device", help="Substring of the audio input device name")
    session.add_argument("--chunk-seconds", type=float, help="Seconds of audio per transcription chunk")
    session.add_argument("--output-file", help="Transcript filename (default: unique timestamped file)")

    parser.add_argument("--version", action="version", version=f"MeetScribe v{__version__}")
    return parser


def main() -> None:
    """Main entry point for MeetScribe."""
    args = build_parser().parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init()
        started = server.run(args.duration, args.input_device, args.chunk_seconds, args.output_file)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        return
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)

    if not started:
        sys.exit(1)


if __name__ == "__main__":
    main()
