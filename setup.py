#!/usr/bin/env python3

from setuptools import find_namespace_packages, setup


def get_version():
    with open("debian/changelog", "r", encoding="utf-8") as f:
        return f.readline().split()[1][1:-1]


setup(
    name="wb-zigbee-presence",
    version=get_version(),
    description="Capability bridge for the Presence_Sensor_v2.6 Zigbee presence sensor",
    license="MIT",
    maintainer="Wiren Board Team",
    maintainer_email="info@wirenboard.com",
    packages=find_namespace_packages(include=["wb.*"]),
    python_requires=">=3.8",
    install_requires=[
        "paho-mqtt>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "wb-zigbee-presence=wb.zigbee_presence.cli.main:main",
        ],
    },
)
