"""Main application entry point for ScribeFlow."""

import sys
import asyncio
import argparse
import logging
from functools import partial
from pathlib import Path
from typing import Optional

from scribeflow.exceptions import ScribeFlowError
from scribeflow.models.media import MediaFile
from scribeflow.models.workflow import WorkflowPhase, WorkflowState
from scribeflow.services.state_publisher import WorkflowStatePublisher
from scribeflow.services.workflow_controller import WorkflowController
from scribeflow.storage.gcs_backend import GCSBlobStore
from scribeflow.storage.upload_session import timestamped_key
from scribeflow.transcription.assemblyai_backend import AssemblyAIProvider, DEFAULT_BASE_URL
from scribeflow.ui.console_presenter import ConsolePresenter

from .config import ScribeFlowConfig, WorkflowSettings

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


class ScribeFlowApp:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = ScribeFlowConfig(config_path)
        # Set up logging (command line overrides config)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)

    def init(self):
        logger.info("Initializing services...")

        self.settings = WorkflowSettings.from_config(self.config)

        self.blob_store = GCSBlobStore(
            bucket_name=self.config.get_storage_bucket(),
            credentials_path=self.config.get_storage_credentials_path(),
            chunk_size=int(self.config.get('storage.chunk_size_mb', 8) * 1024 * 1024),
            public_urls=self.config.get('storage.public_urls', False),
            signed_url_ttl_seconds=self.config.get('storage.signed_url_ttl_seconds', 7 * 24 * 3600),
        )
        if not self.blob_store.initialize():
            raise RuntimeError("Blob store failed to initialize")

        self.provider = AssemblyAIProvider(
            api_key=self.config.get_assemblyai_api_key(),
            base_url=self.config.get('assemblyai.base_url', DEFAULT_BASE_URL),
            request_timeout_seconds=self.config.get('assemblyai.request_timeout_seconds', 30.0),
        )

        self.presenter = ConsolePresenter(self.settings.state_topic)
        self.controller = WorkflowController(
            settings=self.settings,
            blob_store=self.blob_store,
            provider=self.provider,
            publisher=WorkflowStatePublisher(self.settings.state_topic),
            destination_key_fn=partial(timestamped_key, prefix=self.config.get('storage.key_prefix', 'uploads')),
        )
        logger.info(
            f"Workflow settings: max {self.settings.max_file_size_bytes} bytes, "
            f"poll every {self.settings.poll_interval_seconds}s, "
            f"timeout {self.settings.transcription_timeout_seconds}s"
        )

    async def run(self, file_path: str) -> WorkflowState:
        media = MediaFile.from_path(file_path)
        self.presenter.show_selected(media)
        try:
            return await self.controller.run(media)
        finally:
            await self.controller.shutdown()

    def cleanup(self):
        self.presenter.close()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/scribeflow.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("ScribeFlow starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for ScribeFlow application."""
    parser = argparse.ArgumentParser(
        description="ScribeFlow - upload a video and transcribe it",
    )

    parser.add_argument(
        "file",
        type=str,
        help="Video file to upload and transcribe"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for scribeflow.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ScribeFlow v{__version__}"
    )

    args = parser.parse_args()

    try:
        app = ScribeFlowApp(args.config, args.log_level)
        app.init()
    except (ScribeFlowError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        state = asyncio.run(app.run(args.file))
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(130)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.error(f"Application error: {e}")
        sys.exit(1)
    finally:
        app.cleanup()

    sys.exit(0 if state.phase is WorkflowPhase.DONE else 1)


if __name__ == "__main__":
    main()
