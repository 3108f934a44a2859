"""Command line entry point: play a ROM in a window or run it headless."""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

import jax

from chip8vm.constants import INSTRUCTION_FREQUENCY, MAX_ROM_SIZE, TIMER_FREQUENCY
from chip8vm.errors import Chip8Error
from chip8vm.logging import LEVELS, ConsoleLogger, progress_bar
from chip8vm.machine import VirtualMachine
from chip8vm.rendering import COLOR_SCHEMES, save_screenshot


def read_rom(path: str) -> bytes:
    """Read a ROM file, refusing anything that cannot fit in memory."""
    rom_path = Path(path)
    if not rom_path.is_file():
        raise FileNotFoundError(f"ROM '{path}' not found")
    data = rom_path.read_bytes()
    if len(data) > MAX_ROM_SIZE:
        raise ValueError(f"ROM '{path}' is {len(data)} bytes, at most {MAX_ROM_SIZE} fit in memory")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8vm", description="CHIP-8 virtual machine")
    parser.add_argument("rom", help="path to a CHIP-8 ROM file")
    parser.add_argument("--headless", action="store_true", help="run without a window")
    parser.add_argument("--steps", type=int, default=10_000, help="instructions to run headless (default: %(default)s)")
    parser.add_argument("--ips", type=float, default=INSTRUCTION_FREQUENCY,
                        help="instructions per second (default: %(default)s)")
    parser.add_argument("--scale", type=int, default=10, help="pixel scale factor (default: %(default)s)")
    parser.add_argument("--color-scheme", default="classic", choices=list(COLOR_SCHEMES),
                        help="display colors (default: %(default)s)")
    parser.add_argument("--grid", action="store_true", help="outline every pixel")
    parser.add_argument("--screenshot", metavar="PATH", help="save the final frame of a headless run")
    parser.add_argument("--seed", type=int, default=0, help="random seed for CXNN (default: %(default)s)")
    parser.add_argument("--log-level", default="INFO", choices=LEVELS, type=str.upper,
                        help="console log level (default: %(default)s)")
    return parser


def run_headless(machine: VirtualMachine, steps: int, instruction_frequency: float) -> bool:
    """Run ``steps`` instructions as fast as possible, ticking timers at the emulated rate.

    Returns False if the machine faulted.
    """
    steps_per_tick = max(1, round(instruction_frequency / TIMER_FREQUENCY))
    with progress_bar(steps) as bar:
        for i in range(steps):
            try:
                machine.step()
            except Chip8Error:
                return False
            if (i + 1) % steps_per_tick == 0:
                machine.tick()
            bar.update(1)
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = ConsoleLogger("chip8vm", log_level=args.log_level)

    try:
        rom = read_rom(args.rom)
    except (OSError, ValueError) as e:
        logger.error(str(e))
        return 1
    logger.info(f"Loaded {args.rom} ({len(rom)} bytes)")

    machine = VirtualMachine(
        rom,
        rng=jax.random.PRNGKey(args.seed),
        instruction_frequency=args.ips,
        logger=logger,
    )

    if args.headless:
        ok = run_headless(machine, args.steps, args.ips)
        if args.screenshot:
            save_screenshot(machine.framebuffer(), args.screenshot, scale=args.scale,
                            color_scheme=args.color_scheme, grid=args.grid)
            logger.info(f"Screenshot saved: {args.screenshot}")
        return 0 if ok else 1

    from chip8vm.frontend import PygameFrontend

    frontend = PygameFrontend(machine, rom, scale=args.scale, color_scheme=args.color_scheme, grid=args.grid)
    frontend.run()
    return 1 if frontend.error is not None else 0


if __name__ == "__main__":
    sys.exit(main())
