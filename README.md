# tsfilters

Reading and filtering touchscreen samples in pure Python.

A touchscreen pipeline is a chain of modules. At the bottom sits a raw
reader that turns device data into samples; above it, any number of filters
refine those samples before they reach the application. Every module
(`tsfilters.core.Module`) offers the same calls:

- `read(nr)` returns a list of up to `nr` single-touch `Sample` objects
  (`x`, `y`, `pressure`, `tv_sec`, `tv_usec`).
- `read_mt(max_slots, nr)` returns up to `nr` frames, each a list of
  multitouch `MTSample` objects. Only entries whose `valid` is true carry
  data.
- `close()` releases what the module holds. Modules are also context
  managers that close on exit.

A module is built as `Class(params, source=lower_module, dev=device)`.
`params` is an option string such as `"pmin=20 pmax=1000"`, split by
`tsfilters.core.parse_params`; an option that is unknown or whose value
cannot be accepted raises `tsfilters.core.OptionError`. Integer values are
read with an automatic base (`0x..` hexadecimal, leading `0` octal,
otherwise decimal) by `parse_c_long` / `parse_c_ulong`. A filter shares the
`Device` (`fd`, `path`, `res_x`, `res_y`) of the module below it unless
one is given.

## Raw readers

These read from the file descriptor in `dev.fd`.

| Class | Device |
| --- | --- |
| `tsfilters.input_raw.InputRaw` | Linux input event devices, single touch and multitouch (type A and B); option `grab_events=1` grabs the device until `close()` |
| `tsfilters.mk712.MK712` | MK712 controllers |
| `tsfilters.tatung.Tatung` | Tatung 4-byte protocol |
| `tsfilters.ucb1x00.UCB1x00` | UCB1x00 style touchscreens |
| `tsfilters.one_wire.OneWire` | one-wire touchscreens reporting a packed 32-bit status |
| `tsfilters.touchkit.TouchKit` | TouchKit serial controllers, 5-byte packets (`find_packet` splits a byte buffer) |
| `tsfilters.waveshare.Waveshare` | WaveShare hidraw touchscreens; options `vid_pid=VVVV:PPPP` (searches `/dev/hidraw*` with `find_hidraw_device`) and `len` (record length, default 25) |

`InputRaw` checks the device's capabilities through ioctls the first time it
reads; a device that is not a usable touchscreen raises `OSError` with
`ENODEV`. A `capabilities` object may be passed instead of querying the
device. `tsfilters.events` holds the event record (`InputEvent`, with
`from_bytes` and `to_bytes`), the event codes, `DeviceInfo` and
`query_device_info`. Readers that get no data at all raise `EOFError`.

## Filters

| Class | Options (defaults) | What it does |
| --- | --- | --- |
| `tsfilters.linear.Linear` | `xyswap`, `pressure_offset` (0), `pressure_mul` (1), `pressure_div` (1), `rot` (0..3) | applies an affine calibration, resolution scaling, swap and rotation |
| `tsfilters.linear_h2200.LinearH2200` | none | fixed-point polynomial correction (`h2200_transform`) |
| `tsfilters.invert.Invert` | `x0`, `y0` | replaces x by `x0 - x` and/or y by `y0 - y` |
| `tsfilters.pthres.PressureThreshold` | `pmin` (1), `pmax` | drops samples above `pmax`; a sample below `pmin` after a press becomes a release with pressure 0 at the last pressed position, otherwise it is dropped |
| `tsfilters.lowpass.Lowpass` | `factor` (0.4, within 0..1), `threshold` (2) | moves each point only a fraction of the way to the new position |
| `tsfilters.median.Median` | `depth` (3, below 128) | median of x, y and pressure over the last `depth` samples |
| `tsfilters.skip.Skip` | `nhead` (1), `ntail` (1) | drops the first and last samples of each touch |
| `tsfilters.variance.Variance` | `delta` (30) | drops a single sample that jumps further than `delta`; `read_mt` filters slot 0 only |

`Linear` loads its coefficients with `load_calibration` from the file given
as `calibfile`, else from the `TSLIB_CALIBFILE` environment variable, else
from `/etc/pointercal`, when that file exists. The file holds up to seven
coefficients followed by the calibration resolution and rotation.

## Example

A `SampleSource` stands in for a device and replays known data:

```python
from tsfilters.core import Sample, SampleSource
from tsfilters.invert import Invert
from tsfilters.pthres import PressureThreshold

source = SampleSource([
    Sample(x=100, y=200, pressure=50),
    Sample(x=110, y=210, pressure=0),
])

pthres = PressureThreshold("pmin=10", source=source)
invert = Invert("x0=800", source=pthres)

for sample in invert.read(2):
    print(sample.x, sample.y, sample.pressure)
# 700 200 50
# 700 200 0
```

`SampleSource(samples, frames)` serves `read_mt` as well when given a list
of frames.

## What this package does not do

- It does not open devices or assemble a chain from a configuration file:
  the caller opens the device, puts its descriptor in a `Device`, and stacks
  the modules by hand.
- It has no command-line programs, no calibration tool that writes a
  calibration file, and no drawing on a screen.
- Filters other than those listed above are not provided.

## Tests

The tests under `tests/` run with pytest, installed by the `test` extra.