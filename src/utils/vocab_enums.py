from enum import Enum

class ToggleValue(str, Enum):
    TRUE = "true"
    FALSE = "false"
