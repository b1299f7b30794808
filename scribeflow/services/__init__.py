"""Services layer for ScribeFlow application logic."""

from .file_validator import FileConstraints, FileValidator, validate
from .state_publisher import WorkflowStatePublisher
from .workflow_controller import WorkflowController

__all__ = [
    "FileConstraints",
    "FileValidator",
    "validate",
    "WorkflowStatePublisher",
    "WorkflowController",
]
