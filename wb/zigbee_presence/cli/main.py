#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import argparse
import json
import logging
import sys
from enum import IntEnum

from wb.zigbee_presence.client.bridge.state_store import StateStore
from wb.zigbee_presence.client.device.capabilities import CAPABILITIES
from wb.zigbee_presence.client.device.decoder import InboundDecoder
from wb.zigbee_presence.client.downstream.file_replay.adapter import FileReplayConfig, FileReplayTransport
from wb.zigbee_presence.client.downstream.models import InboundEvent
from wb.zigbee_presence.lib.constants import (
    CONFIG_PATH,
    DESCRIPTION,
    MODEL_ID,
    VENDOR,
    WB_ZIGBEE_PRESENCE_CLI_LOGGER_NAME,
)

# Exit codes for CLI
class ExitCode(IntEnum):
    # Common linux codes (0-9)
    GEN_SUCCESS = 0 # Generic success for any command
    GEN_ERROR = 1  # Unexpected errors
    INIT_ERROR = 2  # Initialization errors (Not correct argument and etc)

    # Decode command (10-19)
    DECODE_FAILED = 10

logger = logging.getLogger(WB_ZIGBEE_PRESENCE_CLI_LOGGER_NAME)
logger.setLevel(logging.INFO)


def print_capabilities():
    """Print the capability table of the device as JSON."""
    doc = {
        "model": MODEL_ID,
        "vendor": VENDOR,
        "description": DESCRIPTION,
        "capabilities": [cap.as_dict() for cap in CAPABILITIES.values()],
    }
    print(json.dumps(doc, indent=2, ensure_ascii=False))
    return ExitCode.GEN_SUCCESS


def decode_file(path, device_id=None):
    """
    Replay recorded gateway reports through the decoder and print the
    resulting state per device.

    Returns:
        ExitCode
    """
    store = StateStore()
    decoder = InboundDecoder()

    def on_event(event: InboundEvent) -> None:
        store.apply_confirmed(event.device_id, decoder.decode(event))

    transport = FileReplayTransport(cfg=FileReplayConfig(path=path, device_id=device_id))
    try:
        transport.start(on_event)
    except (OSError, ValueError) as e:
        logger.error("Decode of %s failed: %r", path, e)
        print("Decode failed: %s" % e)
        return ExitCode.DECODE_FAILED
    finally:
        transport.stop()

    result = {dev: store.snapshot(dev) for dev in store.state}
    print(json.dumps(result, indent=2, ensure_ascii=False, sort_keys=True))
    return ExitCode.GEN_SUCCESS


def run_service(config_path):
    # Imported here so capabilities/decode work without broker settings
    from wb.zigbee_presence.client.main import main as client_main

    try:
        client_main(config_path)
    except (OSError, ValueError) as e:
        logger.error("Service failed to start: %r", e)
        print("Service failed to start: %s" % e)
        return ExitCode.INIT_ERROR
    return ExitCode.GEN_SUCCESS


def main(argv=None):
    parser = argparse.ArgumentParser(
    prog='wb-zigbee-presence',
    description='Capability bridge for the %s Zigbee presence sensor' % MODEL_ID,
    usage='wb-zigbee-presence [-h] <command>',  #  need for to hide "..." in end of  string
    add_help=False,
    epilog="""
Example:
  wb-zigbee-presence capabilities
  wb-zigbee-presence decode reports.json
"""
    )

    parser.add_argument(
        '-h', '--help',
        action='help',
        help='Show this help message and exit'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        title='Available commands',
        metavar='<command>          ' # 10 Spaces needed for it
    )

    subparsers.add_parser(
        'capabilities',
        help='Print capability table'
    )
    decode_parser = subparsers.add_parser(
        'decode',
        help='Decode recorded gateway reports'
    )
    decode_parser.add_argument('path', help='JSON file with recorded reports')
    decode_parser.add_argument('--device', default=None, help='Device ieee for records without "device"')
    run_parser = subparsers.add_parser(
        'run',
        help='Run the bridge service'
    )
    run_parser.add_argument('-c', '--config', default=CONFIG_PATH, help='Config file path')

    args = parser.parse_args(argv)
    if args.command == "capabilities":
        return int(print_capabilities())
    if args.command == "decode":
        return int(decode_file(args.path, args.device))
    if args.command == "run":
        return int(run_service(args.config))
    parser.print_help()
    return int(ExitCode.INIT_ERROR)


if __name__ == "__main__":
    sys.exit(main())
