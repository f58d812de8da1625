"""Neo Geo CD emulation components: memory map, DMA, register handlers, timers, video and WAV tracks."""

__version__ = "0.1.0"