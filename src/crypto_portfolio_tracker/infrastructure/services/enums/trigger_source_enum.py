from enum import Enum


class TriggerSourceEnum(str, Enum):
    TIMER = "timer"
    MANUAL = "manual"
