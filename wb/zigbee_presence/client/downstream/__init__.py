#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Zigbee transports

Downstream = "southbound" side of the client (Zigbee protocol stack)

Each transport implementation is placed into its own package under:

  wb.zigbee_presence.client.downstream.<name>/

Example:
  - mqtt_zcl     (ZCL gateway reachable over MQTT)
  - file_replay  (replay recorded reports from JSON file; useful for tests)
"""
