import json
import time
import logging
from decimal import Decimal

from botocore.exceptions import BotoCoreError, ClientError

from payload_codec import DecodeSuccess
from uplink_errors import SinkError

logger = logging.getLogger(__name__)


def _number(value):
    # DynamoDB rejects float; go through str to keep the printed value
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    return value


def _first_gateway(link_metadata):
    gateways = link_metadata.get('Gateways')
    if isinstance(gateways, (list, tuple)) and gateways and isinstance(gateways[0], dict):
        return gateways[0]
    return {}


def link_fields(link_metadata):
    """Map whatever link metadata is present onto item attributes."""
    if not isinstance(link_metadata, dict):
        return {}

    gateway = _first_gateway(link_metadata)
    candidates = {
        'gatewayEui': link_metadata.get('GatewayEui') or gateway.get('GatewayEui'),
        'dataRate'  : link_metadata.get('DataRate'),
        'frequency' : link_metadata.get('Frequency'),
        'rssi'      : gateway.get('Rssi'),
        'snr'       : gateway.get('Snr'),
    }
    return {k: _number(v) for k, v in candidates.items() if v is not None}


class MetadataStore:
    """
    Per-device "last seen" state in DynamoDB, keyed by deviceId.

    Only attributes present in the current uplink are SET; anything the
    uplink doesn't carry keeps its previous value.
    """

    def __init__(self, table):
        self.table = table

    def upsert(self, device_id, reading, link_metadata=None):
        attrs = {
            'lastSeenEpochSeconds': int(time.time()),
            'lastPayloadJson'     : json.dumps(reading.to_dict(), default=str),
        }
        attrs.update(link_fields(link_metadata))

        if isinstance(reading, DecodeSuccess):
            if reading.temperature is not None:
                attrs['lastTemperature'] = _number(reading.temperature)
            if reading.humidity is not None:
                attrs['lastHumidity'] = _number(reading.humidity)

        names  = {}
        values = {}
        sets   = []
        for i, (attr, value) in enumerate(attrs.items()):
            names[f'#a{i}']  = attr
            values[f':v{i}'] = value
            sets.append(f'#a{i} = :v{i}')

        try:
            self.table.update_item(
                Key={'deviceId': device_id},
                UpdateExpression='SET ' + ', '.join(sets),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values
            )
        except (ClientError, BotoCoreError) as e:
            raise SinkError('metadata', str(e)) from e

        logger.info("Updated metadata for %s (%s)", device_id, ', '.join(attrs))

    def get(self, device_id):
        try:
            resp = self.table.get_item(Key={'deviceId': device_id})
        except (ClientError, BotoCoreError) as e:
            raise SinkError('metadata', str(e)) from e
        return resp.get('Item')
