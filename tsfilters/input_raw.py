"""Raw reader for Linux input event devices, single-touch and multitouch."""

from __future__ import annotations

import errno
import fcntl
import logging
import os
import struct
from dataclasses import dataclass, replace

from .core import Module, MTSample, Sample, parse_c_ulong
from .events import (
    ABS_MT_BLOB_ID,
    ABS_MT_DISTANCE,
    ABS_MT_ORIENTATION,
    ABS_MT_POSITION_X,
    ABS_MT_POSITION_Y,
    ABS_MT_PRESSURE,
    ABS_MT_SLOT,
    ABS_MT_TOOL_TYPE,
    ABS_MT_TOOL_X,
    ABS_MT_TOOL_Y,
    ABS_MT_TOUCH_MAJOR,
    ABS_MT_TOUCH_MINOR,
    ABS_MT_TRACKING_ID,
    ABS_MT_WIDTH_MAJOR,
    ABS_MT_WIDTH_MINOR,
    ABS_PRESSURE,
    ABS_X,
    ABS_Y,
    BTN_LEFT,
    BTN_TOUCH,
    EGALAX_VERSION_210,
    EV_ABS,
    EV_KEY,
    EV_SYN,
    EVENT_SIZE,
    SYN_MT_REPORT,
    SYN_REPORT,
    DeviceInfo,
    InputEvent,
    query_device_info,
)

log = logging.getLogger(__name__)

EV_VERSION = 0x010001

_EV_MAX = 0x1F
_ABS_MAX = 0x3F
_KEY_MAX = 0x2FF

_LONG_SIZE = struct.calcsize("@l")
_LONG_BITS = _LONG_SIZE * 8

_IOC_WRITE = 1
_IOC_READ = 2


def _ioc(direction, nr, size):
    return (direction << 30) | (size << 16) | (ord("E") << 8) | nr


EVIOCGVERSION = _ioc(_IOC_READ, 0x01, 4)
EVIOCGRAB = _ioc(_IOC_WRITE, 0x90, 4)


def _eviocgbit(ev, size):
    return _ioc(_IOC_READ, 0x20 + ev, size)


_GRAB_WANTED = 1
_GRAB_ACTIVE = 2

# multitouch codes that only store their value in the slot
_MT_FIELDS = {
    ABS_MT_TOOL_X: "tool_x",
    ABS_MT_TOOL_Y: "tool_y",
    ABS_MT_TOOL_TYPE: "tool_type",
    ABS_MT_ORIENTATION: "orientation",
    ABS_MT_BLOB_ID: "blob_id",
    ABS_MT_WIDTH_MAJOR: "width_major",
    ABS_MT_TOUCH_MINOR: "touch_minor",
    ABS_MT_WIDTH_MINOR: "width_minor",
}


@dataclass(frozen=True)
class _Capabilities:
    version: int | None
    event_types: frozenset | None
    abs_codes: frozenset | None
    key_codes: frozenset | None
    info: DeviceInfo | None


def _bits(fd, ev, max_code):
    longs = (max_code + 1 + _LONG_BITS - 1) // _LONG_BITS
    nbytes = longs * _LONG_SIZE
    try:
        raw = fcntl.ioctl(fd, _eviocgbit(ev, nbytes), bytes(nbytes))
    except OSError:
        return None
    codes = set()
    for index, (word,) in enumerate(struct.iter_unpack("@L", raw)):
        codes.update(index * _LONG_BITS + bit for bit in range(_LONG_BITS) if word >> bit & 1)
    return frozenset(codes)


def _query_capabilities(fd):
    try:
        raw = fcntl.ioctl(fd, EVIOCGVERSION, bytes(4))
        version = struct.unpack("@i", raw)[0]
    except OSError:
        version = None
    if version is None:
        return _Capabilities(None, None, None, None, None)
    try:
        info = query_device_info(fd)
    except OSError:
        info = None
    return _Capabilities(
        version=version,
        event_types=_bits(fd, 0, _EV_MAX),
        abs_codes=_bits(fd, EV_ABS, _ABS_MAX),
        key_codes=_bits(fd, EV_KEY, _KEY_MAX),
        info=info,
    )


def _no_device(message):
    return OSError(errno.ENODEV, message)


class InputRaw(Module):
    """Read samples from an evdev touchscreen, single-touch or multitouch.

    `capabilities` may describe the device instead of asking it through
    ioctls; it needs the attributes version, event_types, abs_codes,
    key_codes (None if unreadable) and info (a DeviceInfo or None).
    """

    _next_trackid = 0

    def __init__(self, params=None, *, source=None, dev=None, capabilities=None):
        self.current_x = 0
        self.current_y = 0
        self.current_p = 0
        self.using_syn = False
        self.mt = False
        self.no_pressure = False
        self.type_a = 0
        self.special_device = 0
        self.slot = 0
        self._grab = 0
        self._capabilities = capabilities
        self._checked_fd = None
        self._buf = None
        self._max_slots = 0
        self._nr = 0
        self._last_pressure: list[int] = []
        self._last_type_a_slots = 0
        super().__init__(params, source=source, dev=dev)

    def _apply_option(self, name, value):
        if name == "grab_events":
            if parse_c_ulong(value):
                self._grab = _GRAB_WANTED
        else:
            super()._apply_option(name, value)

    def _check_device(self, fd):
        caps = self._capabilities if self._capabilities is not None else _query_capabilities(fd)
        if caps.version is None:
            raise _no_device("selected device is not a Linux input event device")
        if caps.version < EV_VERSION:
            log.warning("selected device uses a different version of the event protocol")

        events = caps.event_types or frozenset()
        if EV_ABS not in events:
            raise _no_device("selected device is not a touchscreen (must support ABS event type)")

        abs_codes = caps.abs_codes or frozenset()
        has_st = ABS_X in abs_codes and ABS_Y in abs_codes
        has_mt = ABS_MT_POSITION_X in abs_codes and ABS_MT_POSITION_Y in abs_codes
        if not has_st and not has_mt:
            raise _no_device(
                "selected device is not a touchscreen "
                "(must support ABS_X/Y or ABS_MT_POSITION_X/Y events)"
            )
        if has_mt:
            self.mt = True

        if EV_KEY in events:
            keys = caps.key_codes
            if keys is None:
                raise _no_device("cannot read the key capabilities of the device")
            if not (BTN_TOUCH in keys or BTN_LEFT in keys) and not self.mt:
                raise _no_device(
                    "selected device is not a touchscreen (missing BTN_TOUCH or BTN_LEFT)"
                )

        if EV_SYN in events:
            self.using_syn = True

        if caps.info is None:
            log.warning("can't read device id")
            self.special_device = 0
        else:
            self.special_device = caps.info.special_device

        if self.mt:
            self.no_pressure = ABS_MT_PRESSURE not in abs_codes
        else:
            self.no_pressure = ABS_PRESSURE not in abs_codes

        if self.mt and ABS_MT_SLOT not in abs_codes and ABS_MT_TRACKING_ID not in abs_codes:
            self.type_a = 1

        if self._grab == _GRAB_WANTED:
            try:
                fcntl.ioctl(fd, EVIOCGRAB, 1)
            except OSError as exc:
                raise _no_device("unable to grab selected input device") from exc
            self._grab = _GRAB_ACTIVE

        if self.mt and not self.using_syn:
            raise _no_device("unsupported multitouch device (missing EV_SYN)")

    def _ensure_checked(self):
        fd = self.dev.fd
        if fd != self._checked_fd:
            self._checked_fd = None
            self._check_device(fd)
            self._checked_fd = fd
        return fd

    def _set_pressure(self):
        self.current_p = 255
        if self._buf is not None:
            for row in self._buf[: self._nr]:
                for sample in row[: self._max_slots]:
                    sample.pressure = 255

    # single touch

    def read(self, nr):
        fd = self._ensure_checked()
        if self.no_pressure:
            self._set_pressure()
        if self.using_syn:
            return self._read_syn(fd, nr)
        return self._read_plain(fd, nr)

    def _track_abs(self, ev):
        code, value = ev.code, ev.value
        if self.special_device == EGALAX_VERSION_210:
            if code == ABS_X:
                self.current_x = value
            elif code == ABS_Y:
                self.current_y = value
            elif code == ABS_PRESSURE:
                self.current_p = value
            elif code == ABS_MT_DISTANCE:
                self.current_p = 0 if value > 0 else 255
            return
        if code in (ABS_X, ABS_MT_POSITION_X):
            self.current_x = value
            if code == ABS_MT_POSITION_X:
                self.type_a += 1
        elif code in (ABS_Y, ABS_MT_POSITION_Y):
            self.current_y = value
            if code == ABS_MT_POSITION_Y:
                self.type_a += 1
        elif code in (ABS_PRESSURE, ABS_MT_PRESSURE):
            self.current_p = value
        elif code == ABS_MT_TOUCH_MAJOR:
            if value == 0:
                self.current_p = 0
        elif code == ABS_MT_TRACKING_ID:
            if value == -1:
                self.current_p = 0

    def _read_syn(self, fd, nr):
        samples = []
        pen_up = False
        while len(samples) < nr:
            data = os.read(fd, EVENT_SIZE)
            if len(data) < EVENT_SIZE:
                raise EOFError("short read from input device")
            ev = InputEvent.from_bytes(data)
            if ev.type == EV_KEY:
                if ev.code in (BTN_TOUCH, BTN_LEFT) and ev.value == 0:
                    pen_up = True
            elif ev.type == EV_SYN:
                if ev.code == SYN_REPORT:
                    if pen_up:
                        sample = Sample(tv_sec=ev.tv_sec, tv_usec=ev.tv_usec)
                        pen_up = False
                    else:
                        sample = Sample(
                            x=self.current_x,
                            y=self.current_y,
                            pressure=self.current_p,
                            tv_sec=ev.tv_sec,
                            tv_usec=ev.tv_usec,
                        )
                    samples.append(sample)
                elif ev.code == SYN_MT_REPORT and self.type_a:
                    if self.type_a == 1:
                        # a report without data is a release
                        pen_up = True
                    else:
                        self.type_a = 1
            elif ev.type == EV_ABS:
                self._track_abs(ev)
        return samples

    def _read_plain(self, fd, nr):
        samples = []
        pending = b""
        while len(samples) < nr:
            try:
                chunk = os.read(fd, EVENT_SIZE - len(pending))
            except OSError:
                break
            if not chunk:
                break
            pending += chunk
            if len(pending) < EVENT_SIZE:
                continue
            ev = InputEvent.from_bytes(pending)
            pending = b""

            if ev.type == EV_ABS:
                if ev.code == ABS_X:
                    if ev.value == 0:
                        log.warning("dropped x = 0")
                        continue
                    self.current_x = ev.value
                elif ev.code == ABS_Y:
                    if ev.value == 0:
                        log.warning("dropped y = 0")
                        continue
                    self.current_y = ev.value
                elif ev.code == ABS_PRESSURE:
                    self.current_p = ev.value
                samples.append(
                    Sample(
                        x=self.current_x,
                        y=self.current_y,
                        pressure=self.current_p,
                        tv_sec=ev.tv_sec,
                        tv_usec=ev.tv_usec,
                    )
                )
            elif ev.type == EV_KEY:
                if ev.code in (BTN_TOUCH, BTN_LEFT) and ev.value == 0:
                    samples.append(Sample(tv_sec=ev.tv_sec, tv_usec=ev.tv_usec))
            else:
                log.warning("unknown event type %d", ev.type)
        return samples

    # multitouch

    def _ensure_buffer(self, max_slots, nr):
        if self._buf is None or self._max_slots < max_slots or self._nr < nr:
            self._buf = [[MTSample() for _ in range(max_slots)] for _ in range(nr)]
            self._max_slots = max_slots
            self._nr = nr
            self._last_pressure = [0] * max_slots

    def _cell(self, row, max_slots):
        if not 0 <= self.slot < max_slots:
            raise RuntimeError(f"slot {self.slot} out of range for {max_slots} slots")
        return row[self.slot]

    def read_mt(self, max_slots, nr):
        """Return up to nr frames; each SYN_REPORT completes one frame."""
        fd = self._ensure_checked()
        self._ensure_buffer(max_slots, nr)
        if self.no_pressure:
            self._set_pressure()

        for row in self._buf[:nr]:
            for sample in row[:max_slots]:
                sample.valid = False
                sample.pen_down = -1

        total = 0
        pen_up = False
        while total < nr:
            try:
                data = os.read(fd, EVENT_SIZE)
            except OSError:
                if total == 0:
                    raise
                break
            if len(data) < EVENT_SIZE:
                if total == 0:
                    raise EOFError("short read from input device")
                break
            ev = InputEvent.from_bytes(data)
            row = self._buf[total]

            if ev.type == EV_KEY:
                if ev.code == BTN_TOUCH:
                    cell = self._cell(row, max_slots)
                    cell.pen_down = ev.value
                    self._touch(cell, ev)
                    if ev.value == 0:
                        pen_up = True
            elif ev.type == EV_SYN:
                if ev.code == SYN_REPORT:
                    self._finish_frame(row, max_slots, pen_up)
                    pen_up = False
                    total += 1
                elif ev.code == SYN_MT_REPORT and self.type_a:
                    self._type_a_report(row, max_slots)
            elif ev.type == EV_ABS:
                self._handle_abs_mt(row, max_slots, ev)

        return [[replace(s) for s in self._buf[j][:max_slots]] for j in range(total)]

    @staticmethod
    def _touch(cell, ev):
        cell.tv_sec = ev.tv_sec
        cell.tv_usec = ev.tv_usec
        cell.valid = True

    def _finish_frame(self, row, max_slots, pen_up):
        if pen_up and self.no_pressure:
            for sample in row[:max_slots]:
                sample.pressure = 0

        # the last SYN_MT_REPORT advanced past the final slot
        if self.type_a and self.slot:
            self.slot -= 1

        if self.slot >= max_slots:
            raise RuntimeError("critical internal error: slot beyond max_slots")

        if self.type_a and self.slot < self._last_type_a_slots:
            for k in range(self._last_type_a_slots, max_slots):
                row[k].pressure = 0
                row[k].tracking_id = -1
                self._last_pressure[k] = 0
                row[k].valid = True
        self._last_type_a_slots = self.slot

        if self.type_a:
            self.slot = 0

    def _type_a_report(self, row, max_slots):
        cell = self._cell(row, max_slots)
        cell.slot = self.slot
        if not cell.valid:
            # a report with no data is a release
            cell.pressure = 0
            cell.tracking_id = -1
            self._last_pressure[self.slot] = 0
        elif self._last_pressure[self.slot] == 0:
            InputRaw._next_trackid += 1
            cell.tracking_id = InputRaw._next_trackid
            self._last_pressure[self.slot] = 1
        cell.valid = True
        if self.slot < max_slots:
            self.slot += 1

    def _handle_abs_mt(self, row, max_slots, ev):
        code, value = ev.code, ev.value

        if code == ABS_MT_SLOT:
            if value < 0 or value >= max_slots:
                log.warning("slot out of range, data corrupted")
                self.slot = max_slots - 1
            else:
                self.slot = value
                cell = row[value]
                cell.slot = value
                cell.valid = True
            return

        if code in (ABS_X, ABS_Y, ABS_PRESSURE):
            cell = self._cell(row, max_slots)
            if self.mt and cell.valid:
                return
            code = {
                ABS_X: ABS_MT_POSITION_X,
                ABS_Y: ABS_MT_POSITION_Y,
                ABS_PRESSURE: ABS_MT_PRESSURE,
            }[code]

        if code == ABS_MT_POSITION_X:
            field = "x"
        elif code == ABS_MT_POSITION_Y:
            field = "y"
        elif code == ABS_MT_PRESSURE:
            field = "pressure"
        elif code == ABS_MT_DISTANCE:
            field = "distance"
        elif code == ABS_MT_TOUCH_MAJOR:
            field = "touch_major"
        elif code == ABS_MT_TRACKING_ID:
            field = "tracking_id"
        elif code in _MT_FIELDS:
            field = _MT_FIELDS[code]
        else:
            return

        cell = self._cell(row, max_slots)
        setattr(cell, field, value)
        self._touch(cell, ev)

        if code == ABS_MT_DISTANCE and self.special_device == EGALAX_VERSION_210:
            cell.pressure = 0 if value > 0 else 255
        elif code == ABS_MT_TOUCH_MAJOR and value == 0:
            cell.pressure = 0
        elif code == ABS_MT_TRACKING_ID and value == -1:
            cell.pressure = 0

    def close(self):
        """Release the device grab, if held, and drop the buffers."""
        if self._grab == _GRAB_ACTIVE:
            try:
                fcntl.ioctl(self.dev.fd, EVIOCGRAB, 0)
            except OSError:
                log.warning("unable to un-grab selected input device")
            self._grab = _GRAB_WANTED
        self._buf = None
        self._last_pressure = []
        super().close()