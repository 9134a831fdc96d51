"""Sequel247 carrier constants."""

from decimal import Decimal

CARRIER_NAME = "Sequel Logistics"
SHIPPING_METHOD = "sequel247"
DEFAULT_SHIPPING_SERVICE = "secure diamond & jewellery"

PRODUCTION_BASE_URL = "https://sequel247.com/"
TEST_BASE_URL = "https://test.sequel247.com/"

CREATE_SHIPMENT_PATH = "api/shipment/create"
TRACK_PATH = "api/track"
TRACK_MULTIPLE_PATH = "api/trackMultiple"
SERVICEABILITY_PATH = "api/checkServiceability"
ESTIMATED_DELIVERY_PATH = "api/shipment/calculateEDD"

DEFAULT_TIMEOUT_SECONDS = 30.0

# Fixed shipment parameters for insured jewellery pickups.
LOCATION = "domestic"
SHIPMENT_TYPE = "D&J"
SERVICE_TYPE = "valuable"
PICKUP_DATE = "Tomorrow"
PICKUP_TIME = "16:00-17:00"
PACKAGE_COUNT = "1"

DEFAULT_ITEM_WEIGHT_G = Decimal("10")
PACKAGING_WEIGHT_G = Decimal("50")
ADDRESS_LINE_MAX_LENGTH = 50
PHONE_DIGITS = 10

SUCCESS_FLAG = "true"
DEFAULT_FAILURE_MESSAGE = "Failed to create shipment"
