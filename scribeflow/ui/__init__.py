"""Terminal user interface for ScribeFlow."""

from .console_presenter import ConsolePresenter

__all__ = ['ConsolePresenter']
