"""
Decode the LoRaWAN application payload (hex string) into sensor readings.

Reference layout, big-endian:
  bytes[0:2]  int16   temperature * 100
  bytes[2:4]  uint16  humidity * 100
  bytes[4:]   kept verbatim as auxiliary hex

decode() never raises. Anything that goes wrong comes back as a
DecodeFailure carrying the original input.
"""
import struct
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from uplink_errors import DecodeError


@dataclass(frozen=True)
class FieldSpec:
    name: str
    offset: int
    fmt: str
    scale: float

    @property
    def end(self):
        return self.offset + struct.calcsize(self.fmt)


@dataclass(frozen=True)
class PayloadLayout:
    name: str
    fields: tuple

    @property
    def min_length(self):
        return max(f.end for f in self.fields)


REFERENCE_LAYOUT = PayloadLayout(
    name='reference',
    fields=(
        FieldSpec('temperature', 0, '>h', 100.0),
        FieldSpec('humidity',    2, '>H', 100.0),
    ),
)

# Same as reference, with supply voltage in millivolts appended
REFERENCE_BATTERY_LAYOUT = PayloadLayout(
    name='reference_battery',
    fields=REFERENCE_LAYOUT.fields + (
        FieldSpec('battery_voltage', 4, '>H', 1000.0),
    ),
)

PROFILES = {
    REFERENCE_LAYOUT.name: REFERENCE_LAYOUT,
    REFERENCE_BATTERY_LAYOUT.name: REFERENCE_BATTERY_LAYOUT,
}


def get_layout(name):
    try:
        return PROFILES[name]
    except KeyError:
        raise KeyError(f"Unknown device profile '{name}' (known: {', '.join(sorted(PROFILES))})") from None


@dataclass(frozen=True)
class DecodeSuccess:
    measurements: dict
    decoded_at: str
    auxiliary_hex: Optional[str] = None

    @property
    def temperature(self):
        return self.measurements.get('temperature')

    @property
    def humidity(self):
        return self.measurements.get('humidity')

    def to_dict(self):
        data = dict(self.measurements)
        data['decoded_at'] = self.decoded_at
        if self.auxiliary_hex:
            data['auxiliary_hex'] = self.auxiliary_hex
        return data


@dataclass(frozen=True)
class DecodeFailure:
    error: str
    raw_payload: object = field(default=None)

    def to_dict(self):
        return {'error': self.error, 'raw_payload': self.raw_payload}


def _to_bytes(payload_hex):
    if not isinstance(payload_hex, str):
        raise DecodeError(f"payload must be a hex string, got {type(payload_hex).__name__}")
    cleaned = ''.join(payload_hex.split())
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError as e:
        raise DecodeError(f"invalid hex payload: {e}") from e
    return cleaned, raw


def decode(payload_hex, layout=REFERENCE_LAYOUT):
    """
    Returns DecodeSuccess or DecodeFailure, exactly one of the two.
    """
    try:
        cleaned, raw = _to_bytes(payload_hex)
        if len(raw) < layout.min_length:
            raise DecodeError(
                f"payload too short: {len(raw)} bytes, need at least {layout.min_length}"
            )

        measurements = {}
        for spec in layout.fields:
            (value,) = struct.unpack_from(spec.fmt, raw, spec.offset)
            measurements[spec.name] = value / spec.scale

        # Two hex chars per byte; slice the cleaned input so case is preserved
        auxiliary = cleaned[2 * layout.min_length:] or None
        return DecodeSuccess(
            measurements=measurements,
            decoded_at=datetime.now(timezone.utc).isoformat(),
            auxiliary_hex=auxiliary,
        )
    except Exception as e:
        return DecodeFailure(error=str(e), raw_payload=payload_hex)
