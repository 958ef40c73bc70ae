"""
Pull deviceId / payload / link metadata out of whatever shape the
IoT rule hands us.

Observed shapes:
  { "payload": "...", "DevEUI": "..." }
  { "PayloadData": "...", "WirelessMetadata": { "LoRaWAN": { "DevEui": ..., "DataRate": ..., ... } } }
  [ { ...either of the above... } ]

Each field has an ordered list of extractors; the first one that yields a
non-empty value wins.
"""
from dataclasses import dataclass
from typing import Optional

from uplink_errors import MalformedEventError


@dataclass(frozen=True)
class RawUplink:
    device_id: str
    payload_hex: str
    link_metadata: Optional[dict] = None


def key(name):
    def extract(event):
        return event.get(name)
    extract.__name__ = f"key({name})"
    return extract


def nested(*path):
    def extract(event):
        node = event
        for part in path:
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node
    extract.__name__ = f"nested({'.'.join(path)})"
    return extract


PAYLOAD_EXTRACTORS = [
    key('payload'),
    key('PayloadData'),
    key('payload_data'),
]

DEVICE_ID_EXTRACTORS = [
    nested('WirelessMetadata', 'LoRaWAN', 'DevEUI'),
    nested('WirelessMetadata', 'LoRaWAN', 'DevEui'),
    nested('wirelessMetadata', 'LoRaWAN', 'DevEUI'),
    nested('wirelessMetadata', 'LoRaWAN', 'DevEui'),
    key('DevEUI'),
]

LINK_METADATA_EXTRACTORS = [
    nested('WirelessMetadata', 'LoRaWAN'),
    nested('wirelessMetadata', 'LoRaWAN'),
]


def first_match(event, extractors, kind=None):
    for extract in extractors:
        value = extract(event)
        if value and (kind is None or isinstance(value, kind)):
            return value
    return None


def normalize(raw_event):
    event = raw_event
    if isinstance(event, (list, tuple)) and len(event) == 1:
        event = event[0]
    if not isinstance(event, dict):
        event = {}

    # Payload is checked first; callers rely on this precedence
    payload = first_match(event, PAYLOAD_EXTRACTORS)
    if not payload:
        raise MalformedEventError("missing payload")

    device_id = first_match(event, DEVICE_ID_EXTRACTORS, kind=str)
    if not device_id:
        raise MalformedEventError("missing device identity")

    return RawUplink(
        device_id=device_id,
        payload_hex=payload,
        link_metadata=first_match(event, LINK_METADATA_EXTRACTORS),
    )
