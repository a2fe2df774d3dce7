# upstream/types.py

from enum import Enum

class UpstreamState(Enum):
    # Adapter created, broker connection not confirmed yet
    INITIALIZING = "initializing"

    # Connected to the broker, set/get requests are accepted
    READY = "ready"

    # Broker connection lost, paho is reconnecting in background
    UNAVAILABLE = "unavailable"

    # Explicitly stopped via stop()
    STOPPED = "stopped"


class RequestAction(str, Enum):
    # Last topic level of an application request: <base>/<name>/<action>
    SET = "set"
    GET = "get"
