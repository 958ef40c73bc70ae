import os

import boto3
import pytest
from moto import mock_aws
from unittest.mock import MagicMock

# lambda_function reads these at import time
os.environ.setdefault("TIMESTREAM_DATABASE", "lorawan")
os.environ.setdefault("TIMESTREAM_TABLE", "uplinks")
os.environ.setdefault("METADATA_TABLE", "devices")
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "eu-central-1"

DEV_EUI = "0011223344556677"


@pytest.fixture(scope="function")
def devices_table():
    """Moto-backed DynamoDB table keyed by deviceId."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="eu-central-1")
        table = dynamodb.create_table(
            TableName="devices",
            KeySchema=[{"AttributeName": "deviceId", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "deviceId", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield table


@pytest.fixture(scope="function")
def timestream_client():
    """Timestream write client stand-in; records calls to write_records."""
    client = MagicMock()
    client.write_records.return_value = {"RecordsIngested": {"Total": 2}}
    return client


@pytest.fixture
def lorawan_event():
    """IoT Core for LoRaWAN style uplink."""
    return {
        "WirelessDeviceId": "5b0f6a3e-0000-4000-8000-000000000001",
        "PayloadData": "0F9E012C",
        "WirelessMetadata": {
            "LoRaWAN": {
                "DevEui": DEV_EUI,
                "DataRate": 5,
                "Frequency": 868100000,
                "FPort": 2,
                "Gateways": [
                    {"GatewayEui": "a84041ffff1ec39c", "Rssi": -87, "Snr": 9.5}
                ],
            }
        },
    }
