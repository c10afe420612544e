"""
Scheduler Parameters - FSRS configuration

SchedulerParameters is an immutable, fully specified configuration value
built once at process start and passed explicitly into every scheduling
call. Malformed or partial configuration is rejected here, at the
boundary, so the engine never has to second-guess its parameters.

Quick start:
    from vocab_core.fsrs.parameters import DEFAULT_PARAMETERS, load_parameters

    params = load_parameters()  # .env / environment overrides on top of defaults
"""

from __future__ import annotations

import logging
import math
import os
from types import MappingProxyType
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from vocab_core.fsrs.constants import (
    DEFAULT_GRADUATION_STEPS,
    DEFAULT_LEARNING_STEPS,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_WEIGHTS,
    WEIGHT_COUNT,
    Rating,
)
from vocab_core.fsrs.exceptions import InvalidParametersError

logger = logging.getLogger(__name__)


class SchedulerParameters(BaseModel):
    """Read-only FSRS configuration shared by every scheduling call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    request_retention: float = Field(
        DEFAULT_REQUEST_RETENTION, gt=0.0, lt=1.0,
        description="Target recall probability that defines 'due'"
    )
    maximum_interval: int = Field(
        DEFAULT_MAXIMUM_INTERVAL, ge=1,
        description="Hard cap on scheduled_days"
    )
    w: tuple[float, ...] = Field(
        DEFAULT_WEIGHTS,
        description="FSRS-4.5 weight vector"
    )
    learning_steps: Mapping[Rating, int] = Field(
        default_factory=lambda: dict(DEFAULT_LEARNING_STEPS), validate_default=True,
        description="Minutes until the next showing per rating, while learning"
    )
    graduation_steps: int = Field(
        DEFAULT_GRADUATION_STEPS, ge=1,
        description="Non-Again steps required before entering Review"
    )

    @field_validator("w")
    @classmethod
    def _check_weights(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(value) != WEIGHT_COUNT:
            raise ValueError(f"expected {WEIGHT_COUNT} weights, got {len(value)}")
        if not all(math.isfinite(x) for x in value):
            raise ValueError("weights must be finite numbers")
        return value

    @field_validator("learning_steps")
    @classmethod
    def _check_learning_steps(cls, value: Mapping[Rating, int]) -> Mapping[Rating, int]:
        missing = [r.name for r in Rating if r not in value]
        if missing:
            raise ValueError(f"learning steps missing for: {', '.join(missing)}")
        if any(minutes <= 0 for minutes in value.values()):
            raise ValueError("learning step minutes must be positive")
        return MappingProxyType(dict(value))

    @field_serializer("learning_steps")
    def _dump_learning_steps(self, value: Mapping[Rating, int]) -> dict[Rating, int]:
        return dict(value)

    @property
    def hard_penalty(self) -> float:
        """Stability gain multiplier for a Hard review (w15)."""
        return self.w[15]

    @property
    def easy_bonus(self) -> float:
        """Stability gain multiplier for an Easy review (w16)."""
        return self.w[16]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SchedulerParameters":
        """
        Build parameters from a plain mapping (config file, settings row).

        Raises:
            InvalidParametersError: if any value is malformed or unknown keys are present
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise InvalidParametersError(f"Invalid scheduler parameters: {e}") from e


DEFAULT_PARAMETERS = SchedulerParameters()


# ---- Environment loading ----

def _parse_float_list(raw: str, name: str) -> list[float]:
    try:
        return [float(part) for part in raw.split(",") if part.strip()]
    except ValueError as e:
        raise InvalidParametersError(f"{name} must be a comma-separated list of numbers") from e


def load_parameters(env: Optional[Mapping[str, str]] = None) -> SchedulerParameters:
    """
    Load scheduler parameters from environment variables.

    Reads a .env file first (python-dotenv), then:
        FSRS_REQUEST_RETENTION  - float in (0, 1)
        FSRS_MAXIMUM_INTERVAL   - integer days
        FSRS_WEIGHTS            - 17 comma-separated floats
        FSRS_LEARNING_STEPS     - 4 comma-separated minutes (Again, Hard, Good, Easy)
        FSRS_GRADUATION_STEPS   - integer

    Unset variables keep their defaults.

    Args:
        env: Mapping to read instead of os.environ (no .env loading when given)

    Returns:
        Validated SchedulerParameters

    Raises:
        InvalidParametersError: if any variable is malformed
    """
    if env is None:
        load_dotenv()
        env = os.environ

    data: dict[str, Any] = {}

    retention = env.get("FSRS_REQUEST_RETENTION")
    if retention:
        data["request_retention"] = retention

    max_interval = env.get("FSRS_MAXIMUM_INTERVAL")
    if max_interval:
        data["maximum_interval"] = max_interval

    weights = env.get("FSRS_WEIGHTS")
    if weights:
        data["w"] = tuple(_parse_float_list(weights, "FSRS_WEIGHTS"))

    steps = env.get("FSRS_LEARNING_STEPS")
    if steps:
        minutes = _parse_float_list(steps, "FSRS_LEARNING_STEPS")
        if len(minutes) != len(Rating):
            raise InvalidParametersError(
                f"FSRS_LEARNING_STEPS needs {len(Rating)} values, got {len(minutes)}"
            )
        if not all(m.is_integer() for m in minutes):
            raise InvalidParametersError("FSRS_LEARNING_STEPS must be whole minutes")
        data["learning_steps"] = {rating: int(m) for rating, m in zip(Rating, minutes)}

    graduation = env.get("FSRS_GRADUATION_STEPS")
    if graduation:
        data["graduation_steps"] = graduation

    params = SchedulerParameters.from_mapping(data)
    if data:
        logger.info("Loaded FSRS parameters with overrides: %s", sorted(data))
    return params
