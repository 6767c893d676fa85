"""Build scenarios from YAML manifests.

A manifest names the scenario, its endpoints and an ordered list of steps::

    name: Basic Call
    source: 192.0.2.10:5060
    destination: 192.0.2.20:5060
    steps:
      - invite
      - receive_answer
      - ack_answer
      - sleep 2
      - send_digits: "123#"
      - receive_progress: {optional: false}
      - send_bye
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml

from config.settings import Settings
from scenario.builder import Scenario
from scenario.errors import ConfigError, ValidationError

LOGGER = logging.getLogger(__name__)

ACTIONS: dict[str, Callable[..., None]] = {
    "invite": Scenario.invite,
    "receive": Scenario.receive,
    "receive_trying": Scenario.receive_trying,
    "receive_100": Scenario.receive_trying,
    "receive_ringing": Scenario.receive_ringing,
    "receive_180": Scenario.receive_ringing,
    "receive_progress": Scenario.receive_progress,
    "receive_183": Scenario.receive_progress,
    "receive_answer": Scenario.receive_answer,
    "receive_200": Scenario.receive_answer,
    "ack_answer": Scenario.ack_answer,
    "start_media": Scenario.start_media,
    "sleep": Scenario.sleep,
    "send_digits": Scenario.send_digits,
    "send_bye": Scenario.send_bye,
    "receive_bye": Scenario.receive_bye,
    "ack_bye": Scenario.ack_bye,
}

_FLOAT_ARGUMENTS = {"sleep"}


def _parse_step(step: Any, index: int) -> tuple[str, list[Any], dict[str, Any]]:
    if isinstance(step, str):
        action, _, arg = step.strip().partition(" ")
        arg = arg.strip()
        if not arg:
            return action, [], {}
        if action in _FLOAT_ARGUMENTS:
            try:
                return action, [float(arg)], {}
            except ValueError:
                raise ValidationError(f"Step {index} ({action}): expected a number, got {arg!r}") from None
        return action, [arg], {}

    if isinstance(step, Mapping) and len(step) == 1:
        action, value = next(iter(step.items()))
        if value is None:
            return str(action), [], {}
        if isinstance(value, Mapping):
            return str(action), [], dict(value)
        if isinstance(value, list):
            return str(action), list(value), {}
        return str(action), [value], {}

    raise ValidationError(f"Step {index} must be an action name or a single-key mapping, got {step!r}")


def _require_digit_string(args: list[Any], kwargs: dict[str, Any], index: int) -> None:
    # YAML 1.1 reads unquoted 0123 as octal and 12:34 as base 60.
    digits = args[0] if args else kwargs.get("digits", "")
    if not isinstance(digits, str):
        raise ValidationError(f"Step {index} (send_digits): quote the digit string, got {digits!r}")


def apply_steps(scenario: Scenario, steps: list[Any]) -> None:
    for index, step in enumerate(steps, start=1):
        action, args, kwargs = _parse_step(step, index)
        handler = ACTIONS.get(action)
        if handler is None:
            raise ValidationError(f"Step {index}: unknown action {action!r}")
        if action == "send_digits":
            _require_digit_string(args, kwargs, index)
        try:
            handler(scenario, *args, **kwargs)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Step {index} ({action}): {exc}") from exc


def build_scenario(data: Mapping[str, Any], *, settings: Settings | None = None) -> Scenario:
    for key in ("name", "source", "destination"):
        if not data.get(key):
            raise ConfigError(f"Manifest is missing required key {key!r}")

    steps = data.get("steps") or []
    if not isinstance(steps, list):
        raise ConfigError("Manifest 'steps' must be a list")

    scenario = Scenario(
        str(data["name"]),
        str(data["source"]),
        str(data["destination"]),
        data.get("from_user"),
        settings=settings,
    )
    apply_steps(scenario, steps)
    LOGGER.debug("Built scenario %r with %d steps", scenario.name, len(scenario.steps))
    return scenario


def load_manifest(path: str | Path, *, settings: Settings | None = None) -> Scenario:
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read manifest {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in manifest {path}: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise ConfigError(f"Manifest {path} must contain a mapping")

    return build_scenario(raw, settings=settings)
