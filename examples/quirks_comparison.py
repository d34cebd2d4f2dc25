"""
Run the same program under every quirk preset and render the results side by side.

The program shifts V2 into V1 with 8126 and draws the hex digit left in V1, so
the default machine shows 1 (VY >> 1) while the modern preset shows 4 (VX >> 1).
"""

import argparse

from PIL import Image

from vipax import Machine, MachineConfig, batch_render
from vipax.logging import MachineLogger
from vipax.quirks import PRESETS, get_quirks
from vipax.rendering import create_video

PROGRAM = bytes([
    0x61, 0x08,  # LD V1, 0x08
    0x62, 0x03,  # LD V2, 0x03
    0x81, 0x26,  # SHR V1, V2
    0xF1, 0x29,  # LD F, V1
    0x63, 0x1C,  # LD V3, 28
    0x64, 0x0D,  # LD V4, 13
    0xD3, 0x45,  # DRW V3, V4, 5
    0x12, 0x0E,  # JP 0x20E
])


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Compare quirk presets on one program")
    parser.add_argument("output", nargs="?", default="quirks.png", help="Grid image to write")
    parser.add_argument("--preview", action="store_true", help="Play the last run in a window")
    args = parser.parse_args()

    logger = MachineLogger(log_level="WARNING")
    displays = []
    recordings = []
    for name in PRESETS:
        machine = Machine(MachineConfig(quirks=get_quirks(name)), logger=logger)
        machine.load(PROGRAM, source=name)
        recordings.append(machine.run(10, record=True))
        displays.append(machine.state.display)
        print(f"{name:>8s}: V1 = {int(machine.state.V[1])}")

    Image.fromarray(batch_render(displays, scale=6, color_scheme="vip")).save(args.output)
    print(f"Saved {args.output}")

    if args.preview:
        create_video(recordings[-1], display=True, persistence=False)
