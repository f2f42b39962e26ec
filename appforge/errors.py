"""Shared error types for the agent system."""

from __future__ import annotations


class AppForgeError(Exception):
    """Base class for errors raised inside the orchestration core."""


class BackendError(AppForgeError):
    """The text-generation backend failed to return a completion."""


class BackendTimeout(BackendError):
    """The backend call did not finish before the configured deadline."""

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"text-generation backend timed out after {timeout_s:g}s")
        self.timeout_s = timeout_s


class StepLimitExceeded(AppForgeError):
    """A worker was asked to think more times than its step budget allows."""

    def __init__(self, worker: str, max_steps: int) -> None:
        super().__init__(f"{worker} exceeded its step limit of {max_steps}")
        self.worker = worker
        self.max_steps = max_steps


class PlanError(AppForgeError):
    """A plan or subtask entry does not have the structure the scheduler needs."""


__all__ = [
    "AppForgeError",
    "BackendError",
    "BackendTimeout",
    "PlanError",
    "StepLimitExceeded",
]
