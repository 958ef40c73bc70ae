import time
import logging

from botocore.exceptions import BotoCoreError, ClientError

from payload_codec import DecodeSuccess
from uplink_errors import SinkError

logger = logging.getLogger(__name__)


class TimeSeriesSink:
    """
    Appends decoded measurements to Timestream, one record per measure,
    all records of an uplink in a single WriteRecords call.
    """

    def __init__(self, client, database, table):
        self.client   = client
        self.database = database
        self.table    = table

    def append(self, device_id, reading):
        if not isinstance(reading, DecodeSuccess):
            logger.debug("No measurements for %s; skipping Timestream write", device_id)
            return 0

        records = [
            {
                'MeasureName'     : name,
                'MeasureValue'    : str(float(value)),
                'MeasureValueType': 'DOUBLE',
            }
            for name, value in reading.measurements.items()
        ]
        if not records:
            return 0

        common = {
            'Dimensions': [{'Name': 'DeviceId', 'Value': device_id}],
            'Time'      : str(int(time.time() * 1000)),
            'TimeUnit'  : 'MILLISECONDS',
        }

        try:
            self.client.write_records(
                DatabaseName=self.database,
                TableName=self.table,
                CommonAttributes=common,
                Records=records
            )
        except ClientError as e:
            rejected = e.response.get('RejectedRecords')
            if rejected:
                logger.error("Timestream rejected records for %s: %s", device_id, rejected)
            raise SinkError('timeseries', e.response.get('Error', {}).get('Message', str(e))) from e
        except BotoCoreError as e:
            raise SinkError('timeseries', str(e)) from e

        logger.info("Wrote %d Timestream records for %s", len(records), device_id)
        return len(records)
