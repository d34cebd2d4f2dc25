"""
CHIP-8 front end: pygame window, keyboard, beeper, and a headless runner
"""

import argparse
import sys

import numpy as np

from vipax import Machine, MachineConfig, EmulatorError, SCREEN_WIDTH, SCREEN_HEIGHT
from vipax.keypad import KEY_LAYOUT, KeyBuffer
from vipax.logging import MachineLogger
from vipax.quirks import PRESETS, get_quirks
from vipax.rendering import create_color_scheme, create_video, save_frame

TONE_HZ = 440


def build_key_map(pygame):
    """Map pygame key codes to keypad indices using the QWERTY layout."""
    return {pygame.key.key_code(name): index for index, name in enumerate(KEY_LAYOUT)}


def build_beep(pygame):
    """Square wave at TONE_HZ, one period long, for looping while the sound timer runs."""
    frequency, size, _ = pygame.mixer.get_init()
    period = int(round(frequency / TONE_HZ))
    amplitude = 2 ** (abs(size) - 1) - 1
    samples = np.where(np.arange(period) < period / 2, amplitude, -amplitude).astype(np.int16)
    return pygame.mixer.Sound(buffer=samples.tobytes())


def run_window(machine: Machine, program: bytes, scale: int = 8, color_scheme: str = "classic"):
    """Main emulator loop: poll input, run one frame, render, beep."""
    import pygame

    pygame.mixer.pre_init(44100, -16, 1)
    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
    pygame.display.set_caption("vipax")
    clock = pygame.time.Clock()
    key_map = build_key_map(pygame)
    keys = KeyBuffer()
    beep = build_beep(pygame)
    beeping = False
    on_color, off_color = create_color_scheme(color_scheme)
    halted = False

    running = True
    while running:
        dt = clock.tick(int(machine.config.timer_hz)) / 1000.0

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_F5:
                    machine.reset()
                    machine.load(program)
                    halted = False
                    pygame.display.set_caption("vipax")
                elif event.key in key_map:
                    keys.press(key_map[event.key])
            elif event.type == pygame.KEYUP:
                if event.key in key_map:
                    keys.release(key_map[event.key])

        if not halted:
            machine.set_keys(keys.flush())
            try:
                machine.run_frame(dt)
            except EmulatorError:
                halted = True
                pygame.display.set_caption("vipax - halted")

        if machine.sound_active() and not beeping:
            beep.play(-1)
            beeping = True
        elif not machine.sound_active() and beeping:
            beep.stop()
            beeping = False

        screen.fill(off_color)
        pixels = machine.display_snapshot()
        for y, x in zip(*np.nonzero(pixels)):
            pygame.draw.rect(screen, on_color, pygame.Rect(x * scale, y * scale, scale, scale))
        pygame.display.flip()

    pygame.quit()


def run_headless(machine: Machine, frames: int, screenshot=None, record=None,
                 scale: int = 8, color_scheme: str = "classic") -> int:
    """Run a fixed number of frames without a window."""
    try:
        displays = machine.run(frames, progress=True, record=record is not None)
    except EmulatorError:
        return 1

    if screenshot:
        save_frame(machine.state.display, screenshot, scale=scale, color_scheme=color_scheme)
        machine.logger.info(f"Screenshot saved: {screenshot}")
    if record and not displays:
        machine.logger.warning("No frames recorded, video not written")
    elif record:
        create_video(displays, filename=record, fps=machine.config.timer_hz,
                     scale=scale, color_scheme=color_scheme)
        machine.logger.info(f"Video saved: {record} ({len(displays)} frames)")
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run a CHIP-8 program"
    )
    parser.add_argument(
        "rom",
        help="Path to the program image (loaded at 0x200)"
    )
    parser.add_argument(
        "--cpu-hz",
        type=float,
        default=700,
        help="Instructions per second when timers are decoupled (default: 700)"
    )
    parser.add_argument(
        "--decouple-timers",
        action="store_true",
        help="Tick timers at 60 Hz independently of instruction throughput"
    )
    parser.add_argument(
        "--quirks",
        choices=sorted(PRESETS.keys()),
        default="default",
        help="Interpreter quirk preset (default: default)"
    )
    parser.add_argument(
        "--scale",
        type=int,
        default=8,
        help="Pixel upscaling factor (default: 8)"
    )
    parser.add_argument(
        "--color-scheme",
        default="classic",
        help="Color scheme (default: classic)"
    )
    parser.add_argument(
        "--headless",
        type=int,
        metavar="FRAMES",
        help="Run FRAMES frames without opening a window"
    )
    parser.add_argument(
        "--screenshot",
        help="Save the final display to this image file (headless only)"
    )
    parser.add_argument(
        "--record",
        help="Save every frame to this MP4 file (headless only)"
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Log every executed instruction"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = MachineConfig(
        cpu_hz=args.cpu_hz,
        decouple_timers=args.decouple_timers,
        quirks=get_quirks(args.quirks),
    )
    logger = MachineLogger(log_level="DEBUG" if args.trace else "INFO")
    machine = Machine(config, logger=logger, trace=args.trace)

    with open(args.rom, 'rb') as f:
        program = f.read()
    machine.load(program, source=args.rom)

    if args.headless is not None:
        return run_headless(machine, args.headless, args.screenshot, args.record,
                            scale=args.scale, color_scheme=args.color_scheme)

    run_window(machine, program, scale=args.scale, color_scheme=args.color_scheme)
    return 0


if __name__ == "__main__":
    sys.exit(main())
