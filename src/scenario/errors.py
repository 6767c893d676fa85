"""Exceptions raised while building or compiling a scenario."""

from __future__ import annotations


class ScenarioError(Exception):
    default_detail: str = "Scenario error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ConfigError(ScenarioError):
    default_detail = "Invalid scenario configuration."


class ValidationError(ScenarioError):
    default_detail = "Invalid scenario step."


class ScenarioCompiledError(ScenarioError):
    default_detail = "Scenario has already been compiled."


class ScenarioIOError(ScenarioError, OSError):
    default_detail = "Failed to write scenario artifacts."
