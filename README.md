# neocd

Components of a Neo Geo CD emulator, in pure Python with no third-party
dependencies.

## What is in the package

- `neocd.memory`: the 24-bit address map. `Memory` holds every RAM area
  (`ram`, `rom`, `spr_ram`, `fix_ram`, `pcm_ram`, `video_ram`, `palette_ram`,
  `z80_ram`, `backup_ram`), the DMA registers and a table of `Region` objects
  keyed by `RegionId`. `region_for()` gives the region the CPU sees at an
  address, including the swap of the first 0x80 bytes between ROM and RAM
  (`map_vectors_to_rom()` / `map_vectors_to_ram()`); `find_region()` gives the
  main-map region used by DMA. `generate_y_zoom_data()` builds the sprite
  vertical shrink table. `save_state()` / `load_state()` work on `bytes`.
- `neocd.dma`: `DmaEngine` runs the transfer chosen by `dma_config[0]`:
  `copy`, `copy_odd_bytes`, `copy_cdrom`, `copy_cdrom_odd_bytes`, `pattern`,
  `fill` and `fill_odd_bytes`. CD transfers read from any object that meets the
  `CdBufferSource` protocol (a `buffer` and an `end_transfer()` method).
- `neocd.handlers_io`: register handlers for backup RAM, the three controller
  ports (`InputPorts`), palette RAM, the system switches and the link to the
  sound CPU (`Z80CommHandlers`).
- `neocd.handlers_mapped`: `MappedRamHandlers` for the bank-switched window at
  0xE00000 and `VideoRegisterHandlers` for the registers at 0x3C0000.
- `neocd.timer` and `neocd.timergroup`: clock constants, conversions such as
  `pixel_to_master` and `master_to_m68k`, a countdown `Timer` and the
  machine's `TimerGroup`, indexed by `TimerId`.
- `neocd.machine`: `MachineState`, holding interrupt lines (`Interrupt`),
  interrupt masks, beam position and frame timing.
- `neocd.video`: `Video`, with palette conversion to RGB565
  (`convert_color_value`), the fix-layer usage map, `draw_fix`,
  `draw_black_line` and `draw_empty_line` into a 320x224 frame buffer.
- `neocd.wavfile`: `WavFile`, a reader for 16-bit 44.1 kHz PCM WAVE streams;
  other formats raise `WavFormatError`.
- `neocd.paths`: system, save and `.srm` path helpers and
  `split_compressed_path` for `archive.zip#member` paths.
- `neocd.circularbuffer`, `neocd.trackindex`, `neocd.profiler`,
  `neocd.rounding`: a ring buffer, a CD track/index pair, a per-category
  time profiler and integer rounding and byte-swap helpers.

## What it does not do

The package contains no 68000 or Z80 CPU core and no YM2610 sound chip, has
no CD-ROM drive or decoder model, does not draw the sprite layer, and does not
mix or output audio. There is no command to run and no window: it is a library
of parts that a host program drives.

## Installation

```
pip install .
```

## Examples

A timer fires its callback once its delay has elapsed:

```python
from neocd.timer import Timer, pixel_to_master

fired = []
timer = Timer(callback=lambda t, data: fired.append(data), user_data=7)
timer.arm(pixel_to_master(384))
timer.advance_time(pixel_to_master(384))
assert fired == [7]
```

A DMA pattern fill into program RAM:

```python
from neocd.dma import DmaEngine
from neocd.memory import Memory

memory = Memory()
memory.dma_config[0] = 0xFFCD
memory.dma_destination = 0x100000
memory.dma_length = 4
memory.dma_pattern = 0xABCD
assert DmaEngine(memory).run()
assert memory.ram[0x100000:0x100008] == b"\xab\xcd" * 4
```

Reading the PCM data of a WAVE track:

```python
from neocd.wavfile import WavFile

with open("track02.wav", "rb") as stream:
    wav = WavFile(stream)
    pcm = wav.read(wav.length())
```

## Running the tests

```
pip install .[test]
pytest
```