"""Linux input event records, event codes and device identity queries."""

from __future__ import annotations

import fcntl
import struct
from dataclasses import dataclass

EV_SYN = 0x00
EV_KEY = 0x01
EV_ABS = 0x03

SYN_REPORT = 0
SYN_MT_REPORT = 2
SYN_DROPPED = 3

BTN_LEFT = 0x110
BTN_TOUCH = 0x14A

ABS_X = 0x00
ABS_Y = 0x01
ABS_PRESSURE = 0x18
ABS_MT_SLOT = 0x2F
ABS_MT_TOUCH_MAJOR = 0x30
ABS_MT_TOUCH_MINOR = 0x31
ABS_MT_WIDTH_MAJOR = 0x32
ABS_MT_WIDTH_MINOR = 0x33
ABS_MT_ORIENTATION = 0x34
ABS_MT_POSITION_X = 0x35
ABS_MT_POSITION_Y = 0x36
ABS_MT_TOOL_TYPE = 0x37
ABS_MT_BLOB_ID = 0x38
ABS_MT_TRACKING_ID = 0x39
ABS_MT_PRESSURE = 0x3A
ABS_MT_DISTANCE = 0x3B
ABS_MT_TOOL_X = 0x3C
ABS_MT_TOOL_Y = 0x3D

BUS_USB = 0x03
USB_VID_EGALAX = 0x0EEF
EGALAX_VERSION_210 = 2

_EGALAX_PRODUCTS = (0x0001, 0x7200, 0x7201)

_EVENT_FORMAT = struct.Struct("@llHHi")
EVENT_SIZE = _EVENT_FORMAT.size

_INPUT_ID_FORMAT = struct.Struct("@HHHH")
_IOC_READ = 2


def _ior(kind, nr, size):
    return (_IOC_READ << 30) | (size << 16) | (ord(kind) << 8) | nr


EVIOCGID = _ior("E", 0x02, _INPUT_ID_FORMAT.size)


@dataclass
class InputEvent:
    """One record as delivered by an event device."""

    tv_sec: int = 0
    tv_usec: int = 0
    type: int = 0
    code: int = 0
    value: int = 0

    @classmethod
    def from_bytes(cls, data):
        """Decode the first event record held in data."""
        if len(data) < EVENT_SIZE:
            raise ValueError(f"an input event needs {EVENT_SIZE} bytes, got {len(data)}")
        sec, usec, type_, code, value = _EVENT_FORMAT.unpack_from(data)
        return cls(tv_sec=sec, tv_usec=usec, type=type_, code=code, value=value)

    def to_bytes(self):
        """Encode this event in the device's record layout."""
        return _EVENT_FORMAT.pack(self.tv_sec, self.tv_usec, self.type, self.code, self.value)


@dataclass(frozen=True)
class DeviceInfo:
    """Bus, vendor, product and version of an input device."""

    bustype: int = 0
    vendor: int = 0
    product: int = 0
    version: int = 0

    @property
    def special_device(self):
        """The known broken device this is, or 0 for an ordinary one."""
        if self.bustype != BUS_USB:
            return 0
        if (
            self.vendor == USB_VID_EGALAX
            and self.product in _EGALAX_PRODUCTS
            and self.version == 0x0210
        ):
            return EGALAX_VERSION_210
        return 0


def query_device_info(fd):
    """Ask an event device for its identity; raises OSError if it is not one."""
    raw = fcntl.ioctl(fd, EVIOCGID, bytes(_INPUT_ID_FORMAT.size))
    bustype, vendor, product, version = _INPUT_ID_FORMAT.unpack(raw)
    return DeviceInfo(bustype=bustype, vendor=vendor, product=product, version=version)