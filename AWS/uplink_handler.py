import json
import logging

from event_normalizer import normalize
from payload_codec import REFERENCE_LAYOUT, DecodeFailure, DecodeSuccess, decode
from uplink_errors import MalformedEventError, SinkError

logger = logging.getLogger(__name__)


def response(status, body):
    return {
        'statusCode': status,
        'body'      : json.dumps(body, default=str)
    }


class UplinkHandler:
    """
    normalize -> decode -> Timestream -> DynamoDB

    Timestream is the primary write: if it fails the invocation fails with
    500 so the trigger can redeliver. The DynamoDB last-seen update is
    best-effort: errors are logged and the result is unaffected.
    """

    def __init__(self, timeseries_sink, metadata_store, layout=REFERENCE_LAYOUT):
        self.timeseries_sink = timeseries_sink
        self.metadata_store  = metadata_store
        self.layout          = layout

    def _write_timeseries(self, device_id, reading):
        # Raises SinkError; caller turns it into a 500
        return self.timeseries_sink.append(device_id, reading)

    def _record_last_seen(self, device_id, reading, link_metadata):
        try:
            self.metadata_store.upsert(device_id, reading, link_metadata)
        except SinkError as e:
            logger.error("Metadata update for %s failed, continuing: %s", device_id, e)
        except Exception:
            logger.exception("Unexpected error updating metadata for %s, continuing", device_id)

    def handle(self, event):
        # 1) Resolve the event shape
        try:
            uplink = normalize(event)
        except MalformedEventError as e:
            logger.error("Malformed event (%s)", e.reason)
            logger.debug("Rejected event: %s", event)
            return response(400, {'error': e.reason})

        device_id = uplink.device_id

        # 2) Decode; never raises
        reading = decode(uplink.payload_hex, self.layout)

        # 3) Primary write
        if isinstance(reading, DecodeSuccess):
            try:
                self._write_timeseries(device_id, reading)
            except SinkError as e:
                logger.error("Timestream write for %s failed: %s", device_id, e)
                return response(500, {'error': str(e)})
        elif isinstance(reading, DecodeFailure):
            logger.warning("Could not decode payload from %s: %s", device_id, reading.error)

        # 4) Secondary write
        self._record_last_seen(device_id, reading, uplink.link_metadata)

        return response(200, {
            'device_id'   : device_id,
            'decoded_data': reading.to_dict()
        })

