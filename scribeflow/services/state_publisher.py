"""Workflow state publisher for pub/sub notification of the presentation layer."""

import logging
from dataclasses import replace
from pubsub import pub

from ..models.workflow import WorkflowState

logger = logging.getLogger(__name__)


class WorkflowStatePublisher:
    """Publishes WorkflowState snapshots using pubsub.pub."""

    def __init__(self, topic: str = "workflow.state"):
        """Initialize workflow state publisher.

        Args:
            topic: Pub/sub topic name for state changes
        """
        self.topic = topic
        logger.info(f"WorkflowStatePublisher initialized with topic: {topic}")

    def publish_state(self, state: WorkflowState) -> None:
        """Publish a copy of ``state`` so listeners never see later mutations.

        Args:
            state: Current WorkflowState
        """
        pub.sendMessage(self.topic, state=replace(state))
        logger.debug(f"Published state for run {state.run_id}: {state.phase.value} {state.progress_percent}%")

