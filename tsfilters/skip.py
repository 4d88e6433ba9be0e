"""Skip filter: drop the first N samples after a press and the last M before a release."""

from __future__ import annotations

from dataclasses import replace

from .core import Module, MTSample, OptionError, Sample, parse_c_ulong


def _as_c_int(value):
    return (value + 2**31) % 2**32 - 2**31


class Skip(Module):
    """Skip `nhead` samples after pen down and `ntail` samples before pen up.

    A click with fewer than nhead + ntail + 1 samples is ignored entirely.
    """

    def __init__(self, params=None, *, source=None, dev=None):
        self.nhead = 1
        self.ntail = 1
        super().__init__(params, source=source, dev=dev)
        if self.ntail < 0:
            raise OptionError(f"ntail must not be negative, got {self.ntail}")
        self._buf = [Sample() for _ in range(self.ntail)]
        self._reset()

        self._slots = 0
        self._buf_mt: list[list[MTSample]] = []
        self._n_mt: list[int] = []
        self._m_mt: list[int] = []
        self._sent_mt: list[bool] = []

    def _apply_option(self, name, value):
        if name == "nhead":
            self.nhead = _as_c_int(parse_c_ulong(value))
        elif name == "ntail":
            self.ntail = _as_c_int(parse_c_ulong(value))
        else:
            super()._apply_option(name, value)

    def _reset(self):
        self._n = 0
        self._m = 0
        self._sent = False

    def _reset_slot(self, slot):
        self._n_mt[slot] = 0
        self._m_mt[slot] = 0
        self._sent_mt[slot] = False

    def read(self, nr):
        result = []
        while len(result) < nr:
            got = self._lower().read(1)
            if not got:
                break
            cur = got[0]

            if self._n < self.nhead:
                self._n += 1
                if cur.pressure == 0:
                    self._reset()
                continue

            # no press was sent, so the release is dropped too
            if cur.pressure == 0 and not self._sent:
                self._reset()
                continue

            if self.ntail == 0:
                result.append(cur)
                self._sent = True
                if cur.pressure == 0:
                    self._reset()
                continue

            if not self._sent and self._m < self.ntail:
                self._buf[self._m] = cur
                self._m += 1
                continue

            # queue full: emit the oldest queued sample, queue the current one
            if self._m >= self.ntail:
                self._m = 0
            queued = self._buf[self._m]
            if cur.pressure == 0:
                queued.pressure = 0
            result.append(replace(queued))

            if cur.pressure == 0:
                self._reset()
            else:
                self._buf[self._m] = cur
                self._m += 1
                self._sent = True
        return result

    def _ensure_slots(self, max_slots):
        if max_slots > self._slots:
            self._buf_mt = [[MTSample() for _ in range(max_slots)] for _ in range(self.ntail)]
            self._n_mt = [0] * max_slots
            self._m_mt = [0] * max_slots
            self._sent_mt = [False] * max_slots
            self._slots = max_slots

    def read_mt(self, max_slots, nr):
        """Filter each slot independently; return the frames in which some slot was accepted."""
        self._ensure_slots(max_slots)
        frames = self._lower().read_mt(max_slots, nr)

        accepted_frames = []
        for frame in frames:
            accepted = False
            for i, sample in enumerate(frame[:max_slots]):
                if not sample.valid:
                    continue
                cur = replace(sample)

                if self._n_mt[i] < self.nhead:
                    self._n_mt[i] += 1
                    if cur.pressure == 0:
                        self._reset_slot(i)
                    sample.valid = False
                    continue

                if cur.pressure == 0 and not self._sent_mt[i]:
                    self._reset_slot(i)
                    continue

                if self.ntail == 0:
                    if not self._sent_mt[i]:
                        cur.pen_down = 1
                    frame[i] = cur
                    accepted = True
                    self._sent_mt[i] = True
                    if cur.pressure == 0:
                        self._reset_slot(i)
                    continue

                if not self._sent_mt[i] and self._m_mt[i] < self.ntail:
                    cur.pen_down = 1
                    sample.valid = False
                    self._buf_mt[self._m_mt[i]][i] = cur
                    self._m_mt[i] += 1
                    continue

                if self._m_mt[i] >= self.ntail:
                    self._m_mt[i] = 0
                queued = self._buf_mt[self._m_mt[i]][i]
                if cur.pressure == 0:
                    queued.pressure = 0
                    queued.pen_down = 0
                    queued.tracking_id = -1
                    queued.valid = True
                frame[i] = replace(queued)
                accepted = True

                if cur.pressure == 0:
                    self._reset_slot(i)
                else:
                    self._buf_mt[self._m_mt[i]][i] = cur
                    self._sent_mt[i] = True
                    self._m_mt[i] += 1
            if accepted:
                accepted_frames.append(frame)
        return accepted_frames