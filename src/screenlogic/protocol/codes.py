"""Wire codes and enumerations for the ScreenLogic protocol."""

from __future__ import annotations

from enum import IntEnum, IntFlag

# Number of IntelliFlo pump slots described by the equipment bitmask.
INTELLIFLO_SLOTS = 8
_INTELLIFLO_SHIFT = 4


class MsgCode(IntEnum):
    """Message codes. A response code is always request code + 1."""

    LOCAL_LOGIN = 27
    BAD_LOGIN = 13
    INVALID_REQUEST = 30
    BAD_PARAMETER = 31

    GET_DATE_TIME = 8110
    GET_VERSION = 8120
    GET_CONFIG = 12532
    GET_STATUS = 12526

    BUTTON_PRESS = 12530

    @property
    def response(self) -> int:
        """Code the controller uses to answer this request."""
        return int(self) + 1


class ControllerState(IntEnum):
    UNKNOWN = 0
    READY = 1
    SYNC = 2
    SERVICE = 3

    @classmethod
    def from_wire(cls, value: int) -> ControllerState:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    def __str__(self) -> str:
        return self.name.capitalize()


class EquipmentFlags(IntFlag):
    """Installed-equipment bitmask reported in the controller config."""

    SOLAR = 1 << 0
    SOLAR_HEAT_PUMP = 1 << 1
    CHLORINATOR = 1 << 2
    INTELLIBRIGHT = 1 << 3
    INTELLIFLO_0 = 1 << 4
    INTELLIFLO_1 = 1 << 5
    INTELLIFLO_2 = 1 << 6
    INTELLIFLO_3 = 1 << 7
    INTELLIFLO_4 = 1 << 8
    INTELLIFLO_5 = 1 << 9
    INTELLIFLO_6 = 1 << 10
    INTELLIFLO_7 = 1 << 11
    NO_SPECIAL_LIGHTS = 1 << 12
    COOLING = 1 << 13
    MAGIC_STREAM = 1 << 14
    INTELLICHEM = 1 << 15
    HYBRID_HEATER = 1 << 16

    def has_intelliflo(self, slot: int) -> bool:
        """Return True if pump slot ``slot`` (0-7) is installed."""
        return bool(int(self) & (1 << (slot + _INTELLIFLO_SHIFT)))

    @property
    def intelliflo_count(self) -> int:
        return sum(1 for slot in range(INTELLIFLO_SLOTS) if self.has_intelliflo(slot))


class ColorMode(IntEnum):
    ALL_OFF = 0
    ALL_ON = 1
    SET = 2
    SYNC = 3
    SWIM = 4
    PARTY = 5
    ROMANCE = 6
    CARIBBEAN = 7
    AMERICAN = 8
    SUNSET = 9
    ROYAL = 10
    SAVE = 11
    RECALL = 12
    BLUE = 13
    GREEN = 14
    RED = 15
    MAGENTA = 16
    THUMPER = 17
    NEXT_MODE = 18
    RESET = 19
    HOLD = 20


_FUNCTION_NAMES = (
    "Generic",
    "Spa",
    "Pool",
    "Second Spa",
    "Second Pool",
    "Master Cleaner",
    "Cleaner",
    "Light",
    "Dimmer",
    "SAM Light",
    "SAL Light",
    "Photo Next Gen",
    "Color Wheel",
    "Valve",
    "Spillway",
    "Floor Cleaner",
    "IntelliBrite",
    "Magic Stream",
    "Dimmer 25",
)


class CircuitFunction(IntEnum):
    GENERIC = 0
    SPA = 1
    POOL = 2
    SECOND_SPA = 3
    SECOND_POOL = 4
    MASTER_CLEANER = 5
    CLEANER = 6
    LIGHT = 7
    DIMMER = 8
    SAM_LIGHT = 9
    SAL_LIGHT = 10
    PHOTO_NEXT_GEN = 11
    COLOR_WHEEL = 12
    VALVE = 13
    SPILLWAY = 14
    FLOOR_CLEANER = 15
    INTELLIBRITE = 16
    MAGIC_STREAM = 17
    DIMMER_25 = 18

    def __str__(self) -> str:
        return _FUNCTION_NAMES[self.value]


_INTERFACE_NAMES = (
    "Pool",
    "Spa",
    "Features",
    "Sync Swim",
    "Lights",
    "Don't Show",
    "Invalid",
)


class CircuitInterface(IntEnum):
    POOL = 0
    SPA = 1
    FEATURES = 2
    SYNC_SWIM = 3
    LIGHTS = 4
    DONT_SHOW = 5
    INVALID = 6

    def __str__(self) -> str:
        return _INTERFACE_NAMES[self.value]


def circuit_function(value: int) -> CircuitFunction | int:
    """Map a wire byte to CircuitFunction, keeping unknown values as ints."""
    try:
        return CircuitFunction(value)
    except ValueError:
        return value


def circuit_interface(value: int) -> CircuitInterface | int:
    """Map a wire byte to CircuitInterface, keeping unknown values as ints."""
    try:
        return CircuitInterface(value)
    except ValueError:
        return value
