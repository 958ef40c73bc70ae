import os
import logging

import boto3

from metadata_store import MetadataStore
from payload_codec import get_layout
from timeseries_sink import TimeSeriesSink
from uplink_handler import UplinkHandler, response

logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Read environment variables
TIMESTREAM_DATABASE = os.environ['TIMESTREAM_DATABASE']
TIMESTREAM_TABLE    = os.environ['TIMESTREAM_TABLE']
METADATA_TABLE      = os.environ['METADATA_TABLE']
DEVICE_PROFILE      = os.environ.get('DEVICE_PROFILE', 'reference')

# AWS clients are created once and reused across invocations
timestream = boto3.client('timestream-write')
dynamodb   = boto3.resource('dynamodb')

handler = UplinkHandler(
    timeseries_sink=TimeSeriesSink(timestream, TIMESTREAM_DATABASE, TIMESTREAM_TABLE),
    metadata_store=MetadataStore(dynamodb.Table(METADATA_TABLE)),
    layout=get_layout(DEVICE_PROFILE),
)


def lambda_handler(event, context):
    """
    Triggered by an AWS IoT rule on LoRaWAN uplinks.
    Expects event = { "payload": "<hex>", "DevEUI": "..." } or one of the
    IoT Core for LoRaWAN variants (see event_normalizer).
    Returns { "statusCode": 200|400|500, "body": "<json>" }.
    """
    logger.debug("Event: %s", event)
    try:
        return handler.handle(event)
    except Exception as e:
        logger.exception("Unhandled error processing uplink")
        return response(500, {'error': str(e)})
