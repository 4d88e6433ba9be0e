"""Variance filter: drop single samples that jump too far from their neighbours."""

from __future__ import annotations

from dataclasses import replace

from .core import Module, MTSample, Sample, parse_c_ulong


def _as_c_int(value):
    return (value + 2**31) % 2**32 - 2**31


class Variance(Module):
    """Delay samples by one; drop a sample that jumps more than `delta` unless the next one confirms it."""

    def __init__(self, params=None, *, source=None, dev=None):
        self.delta = 30
        self._last = Sample()
        self._noise = Sample()
        self._last_valid = False
        self._noise_valid = False
        self._submit_noise = False
        self._ident = (0, 0)
        super().__init__(params, source=source, dev=dev)
        self.delta = self.delta * self.delta

    def _apply_option(self, name, value):
        if name == "delta":
            self.delta = _as_c_int(parse_c_ulong(value))
        else:
            super()._apply_option(name, value)

    def _accept(self, cur):
        out = replace(self._last)
        self._last = cur
        return out

    def _process(self, cur):
        """Feed one sample; return the sample to emit, if any."""
        if cur.pressure == 0:
            # flush at once on release and reset the state machine
            self._last = cur
            self._last_valid = False
            self._noise_valid = False
            self._submit_noise = False
            return self._accept(cur)

        if not self._last_valid:
            self._last = cur
            self._last_valid = True
            return self._accept(cur)

        dist = (cur.x - self._last.x) ** 2 + (cur.y - self._last.y) ** 2
        if dist > self.delta:
            emitted = None
            if self._noise_valid:
                # two jumps in a row: a quick movement, not noise
                self._last = self._noise
                emitted = replace(self._noise)
                self._noise_valid = False
                self._submit_noise = True
            else:
                self._noise_valid = True
            self._noise = cur
            return emitted

        self._noise_valid = False
        return self._accept(cur)

    def _next_pending(self):
        if self._submit_noise:
            self._submit_noise = False
            return self._noise
        return None

    def read(self, nr):
        result = []
        while len(result) < nr:
            cur = self._next_pending()
            if cur is None:
                got = self._lower().read(1)
                if not got:
                    break
                cur = got[0]
            out = self._process(cur)
            if out is not None:
                result.append(out)
        return result

    def _frame(self, sample, max_slots):
        slot, tracking_id = self._ident
        frame = [MTSample() for _ in range(max_slots)]
        frame[0] = MTSample(
            x=sample.x,
            y=sample.y,
            pressure=sample.pressure,
            tv_sec=sample.tv_sec,
            tv_usec=sample.tv_usec,
            slot=slot,
            tracking_id=tracking_id,
            pen_down=1,
            valid=True,
        )
        return frame

    def read_mt(self, max_slots, nr):
        """Filter slot 0 only; data in other slots is dropped."""
        if max_slots < 1:
            raise ValueError("max_slots must be at least 1")
        frames = []
        while len(frames) < nr:
            cur = self._next_pending()
            if cur is None:
                got = self._lower().read_mt(max_slots, 1)
                if not got:
                    break
                first = got[0][0] if got[0] else None
                if first is None or not first.valid:
                    continue
                self._ident = (first.slot, first.tracking_id)
                cur = Sample(
                    x=first.x,
                    y=first.y,
                    pressure=first.pressure,
                    tv_sec=first.tv_sec,
                    tv_usec=first.tv_usec,
                )
            out = self._process(cur)
            if out is not None:
                frames.append(self._frame(out, max_slots))
        return frames