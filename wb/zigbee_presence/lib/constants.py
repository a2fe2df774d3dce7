"""
  File with all constants in project
"""


class Access:
    """Capability accessibility flags (combinable bitmask)"""
    STATE = 0b001
    WRITE = 0b010
    READ = 0b100
    ALL = STATE | WRITE | READ


class DataType:
    """ZCL datatype tags used in attribute writes"""
    BOOLEAN = 0x10
    BITMAP8 = 0x18
    UINT16 = 0x21
    UINT32 = 0x23
    ENUM8 = 0x30


class ReportKind:
    """Kinds of inbound attribute messages"""
    ATTRIBUTE_REPORT = "attributeReport"
    READ_RESPONSE = "readResponse"


# Cluster names (zigbee-herdsman naming)
CLUSTER_ON_OFF = "genOnOff"
CLUSTER_TIME = "genTime"
CLUSTER_ILLUMINANCE = "msIlluminanceMeasurement"
CLUSTER_OCCUPANCY = "msOccupancySensing"

# Standard attributes
ATTR_ON_OFF = 0x0000
ATTR_MEASURED_VALUE = 0x0000
ATTR_OCCUPANCY = 0x0000
ATTR_DST_START = 0x0003
ATTR_DST_END = 0x0004
ATTR_LOCAL_TIME = 0x0007

# Manufacturer-specific attributes
ATTR_ILLUMINANCE_THRESHOLD = 0xF001
ATTR_LED_MODE = 0xF004
ATTR_TARGET_DISTANCE = 0xF005
ATTR_TARGET_TYPE = 0xF006
ATTR_MEASUREMENT_PERIOD = 0xF007

# Endpoints
FIRST_ENDPOINT = 1
SECOND_ENDPOINT = 2
THIRD_ENDPOINT = 3
INVALID_ENDPOINT = 0

# Device identification
MODEL_ID = "Presence_Sensor_v2.6"
VENDOR = "Bacchus"
DESCRIPTION = "Bacchus presence sensor with illuminance"

# Reporting overrides applied during configure
REPORTING_MIN_INTERVAL = 0
REPORTING_MAX_INTERVAL = 3600
REPORTING_CHANGE = 0

SECONDS_PER_DAY = 86400

# Configuration file paths
CONFIG_PATH = "/etc/wb-zigbee-presence.conf"
# For logging to syslog/journald with name "wb-zigbee-presence-cli"
WB_ZIGBEE_PRESENCE_CLI_LOGGER_NAME = "wb-zigbee-presence-cli"
