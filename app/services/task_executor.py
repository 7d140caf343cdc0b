"""
Executors for work scheduled outside the request path.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from fastapi import BackgroundTasks


class TaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class InlineTaskExecutor:
    """
    Runs tasks immediately; used by scripts and tests.
    """

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        task(*args, **kwargs)
