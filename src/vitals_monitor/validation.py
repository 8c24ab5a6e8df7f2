"""
Boundary validation for incoming vitals payloads.

Parsing returns a tagged result, ``Ok`` or ``Invalid``, instead of a
boolean so callers get the parsed snapshot or every reason it was
rejected.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, List, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidInputError
from .models import BloodPressure, VitalsSnapshot, utc_now

T = TypeVar("T")


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


@dataclass
class Ok(Generic[T]):
    """Successful parse."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass
class Invalid:
    """Rejected input with one human-readable reason per problem."""

    reasons: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False


ParseResult = Union[Ok[T], Invalid]


class BloodPressurePayload(BaseModel):
    """Blood pressure as received on the wire; both components required."""

    systolic: float = Field(strict=True, gt=0, le=300, allow_inf_nan=False)
    diastolic: float = Field(strict=True, gt=0, le=250, allow_inf_nan=False)


class VitalsPayload(BaseModel):
    """
    Vitals snapshot as received on the wire.

    Ranges reject readings that cannot be physiological; they are much
    wider than the alerting thresholds so that dangerous values still
    reach the classifier.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    heart_rate: Optional[float] = Field(
        default=None, strict=True, gt=0, le=300, allow_inf_nan=False
    )
    blood_pressure: Optional[BloodPressurePayload] = None
    temperature: Optional[float] = Field(
        default=None, strict=True, ge=25, le=45, allow_inf_nan=False
    )
    oxygen_saturation: Optional[float] = Field(
        default=None, strict=True, ge=0, le=100, allow_inf_nan=False
    )
    timestamp: Optional[datetime] = None

    def to_snapshot(self) -> VitalsSnapshot:
        timestamp = self.timestamp or utc_now()
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        blood_pressure = None
        if self.blood_pressure is not None:
            blood_pressure = BloodPressure(
                systolic=self.blood_pressure.systolic,
                diastolic=self.blood_pressure.diastolic,
            )

        return VitalsSnapshot(
            heart_rate=self.heart_rate,
            blood_pressure=blood_pressure,
            temperature=self.temperature,
            oxygen_saturation=self.oxygen_saturation,
            timestamp=timestamp,
        )


def _describe_errors(error: ValidationError) -> List[str]:
    reasons = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "body"
        reasons.append(f"{location}: {item['msg']}")
    return reasons


def parse_vitals_snapshot(data: Any) -> ParseResult[VitalsSnapshot]:
    """
    Parse a JSON-like mapping into a VitalsSnapshot.

    Args:
        data: Decoded request body (camelCase or snake_case keys)

    Returns:
        Ok(snapshot) or Invalid(reasons)
    """
    if isinstance(data, VitalsSnapshot):
        return Ok(data)
    if not isinstance(data, Mapping):
        return Invalid([f"body: expected a JSON object, got {type(data).__name__}"])

    try:
        payload = VitalsPayload.model_validate(dict(data))
    except ValidationError as e:
        return Invalid(_describe_errors(e))

    return Ok(payload.to_snapshot())


def require_vitals_snapshot(data: Any) -> VitalsSnapshot:
    """Parse a payload or raise InvalidInputError with every reason."""
    result = parse_vitals_snapshot(data)
    if isinstance(result, Invalid):
        raise InvalidInputError(result.reasons)
    return result.value
