from enum import Enum


class PollingStateEnum(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"
