"""Terminal presenter that renders workflow state changes."""

import logging
from typing import Optional
from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskID
from rich.text import Text

from ..models.media import MediaFile
from ..models.workflow import WorkflowPhase, WorkflowState

logger = logging.getLogger(__name__)


class ConsolePresenter:
    """Subscribes to the workflow state topic and draws it with rich."""

    def __init__(self, topic: str = "workflow.state", console: Optional[Console] = None):
        """Initialize console presenter.

        Args:
            topic: Pub/sub topic carrying WorkflowState snapshots
            console: Console to draw on; a new one by default
        """
        self.topic = topic
        self.console = console or Console()
        self.last_state: Optional[WorkflowState] = None
        self._progress: Optional[Progress] = None
        self._upload_task: Optional[TaskID] = None

        pub.subscribe(self.on_state, topic)
        logger.info(f"ConsolePresenter subscribed to {topic}")

    def show_selected(self, media: MediaFile) -> None:
        self.console.print(Text.assemble(
            ("Selected: ", "bold"), media.name, f" - {media.size_mb:.2f} MB"
        ))

    def on_state(self, state: WorkflowState) -> None:
        previous = self.last_state
        self.last_state = state
        phase_changed = previous is None or previous.phase is not state.phase or previous.run_id != state.run_id

        if state.phase is WorkflowPhase.UPLOADING:
            self._draw_upload(state.progress_percent)
            return

        self._stop_progress()
        if not phase_changed:
            return

        if state.phase is WorkflowPhase.UPLOADED and state.source_url:
            self.console.print(Text.assemble(("File URL: ", "bold"), (state.source_url, "underline")))
        elif state.phase is WorkflowPhase.TRANSCRIBING:
            self.console.print(Text("Transcribing video...", style="yellow italic"))
        elif state.phase is WorkflowPhase.DONE:
            self.console.print(Panel(state.result_text or "", title="Transcript", border_style="magenta"))
        elif state.phase is WorkflowPhase.FAILED:
            self.console.print(Text(state.error_message or "Unexpected error", style="bold red"))

    def _draw_upload(self, percent: int) -> None:
        if self._progress is None:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold]Uploading video..."),
                BarColumn(),
                TextColumn("{task.percentage:>3.0f}%"),
                console=self.console,
            )
            self._progress.start()
            self._upload_task = self._progress.add_task("upload", total=100)
        self._progress.update(self._upload_task, completed=percent)

    def _stop_progress(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._upload_task = None

    def close(self) -> None:
        self._stop_progress()
        pub.unsubscribe(self.on_state, self.topic)
