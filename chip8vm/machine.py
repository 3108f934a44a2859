"""Threaded CHIP-8 virtual machine.

:class:`VirtualMachine` is the single owner of an :class:`EmulatorState`.
Instruction steps, timer ticks and key events each run inside one critical
section of a re-entrant lock, so the step loop, the 60 Hz ticker and host
threads can call in concurrently. Renderers only ever receive copies.
"""

import threading
import weakref
from typing import Callable, FrozenSet, Optional, Protocol

import jax
import numpy as np

from chip8vm.constants import INSTRUCTION_FREQUENCY, NUM_KEYS, SCREEN_HEIGHT, SCREEN_WIDTH, TIMER_FREQUENCY
from chip8vm.decode import Instruction
from chip8vm.emulator import SCREEN_INSTRUCTIONS, create_machine_state, step as step_state, tick_timers
from chip8vm.errors import Chip8Error, MachineHalted
from chip8vm.logging import ConsoleLogger
from chip8vm.scheduler import PeriodicWorker
from chip8vm.state import EmulatorState


class ScreenRenderer(Protocol):
    """Render Port: receives a framebuffer copy after every screen change."""

    def render(self, screen: np.ndarray, machine: "VirtualMachine") -> None:
        ...


def _weak_reference(renderer):
    return weakref.ref(renderer) if renderer is not None else None


class VirtualMachine:
    """CHIP-8 machine with a paced step loop and a 60 Hz timer ticker.

    Args:
        rom: Program bytes, copied into memory at 0x200.
        rng: JAX random key for CXNN.
        instruction_frequency: Steps per second of the run loop.
        timer_frequency: Timer ticks per second.
        renderer: Object with ``render(screen, machine)``. Held weakly.
        on_error: Called from the step loop thread with the fault that
            halted the machine.
        logger: Defaults to a ``ConsoleLogger`` named ``chip8vm``.
    """

    screen_width = SCREEN_WIDTH
    screen_height = SCREEN_HEIGHT

    def __init__(
        self,
        rom: bytes = b"",
        rng: jax.random.PRNGKey = None,
        instruction_frequency: float = INSTRUCTION_FREQUENCY,
        timer_frequency: float = TIMER_FREQUENCY,
        renderer: Optional[ScreenRenderer] = None,
        on_error: Optional[Callable[[Chip8Error], None]] = None,
        logger: Optional[ConsoleLogger] = None,
    ):
        self.logger = logger or ConsoleLogger("chip8vm")
        self.on_error = on_error
        self._lock = threading.RLock()
        self._rng = rng
        self._state = create_machine_state(rom, rng)
        self._renderer_ref = _weak_reference(renderer)
        self.error: Optional[Chip8Error] = None
        self.instruction_count = 0

        self._step_worker = PeriodicWorker(self._run_step, instruction_frequency, name="chip8vm-cpu")
        self._timer_worker = PeriodicWorker(self.tick, timer_frequency, name="chip8vm-timers")

    # ------------------------------------------------------------------ #
    # State access
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> EmulatorState:
        """Current state. Immutable, so safe to keep as a snapshot."""
        with self._lock:
            return self._state

    @property
    def halted(self) -> bool:
        return self.error is not None

    @property
    def is_running(self) -> bool:
        return self._step_worker.is_running

    @property
    def renderer(self) -> Optional[ScreenRenderer]:
        return self._renderer_ref() if self._renderer_ref is not None else None

    @renderer.setter
    def renderer(self, renderer: Optional[ScreenRenderer]) -> None:
        self._renderer_ref = _weak_reference(renderer)

    def framebuffer(self) -> np.ndarray:
        """Copy of the display as 2048 uint8 cells, row-major."""
        return np.asarray(self.state.display, dtype=np.uint8).copy()

    # ------------------------------------------------------------------ #
    # Input Port
    # ------------------------------------------------------------------ #

    @property
    def pressed_keys(self) -> FrozenSet[int]:
        keypad = np.asarray(self.state.keypad)
        return frozenset(int(key) for key in np.flatnonzero(keypad))

    def press(self, key: int) -> None:
        """Mark ``key`` as held down. Pressing a held key does nothing."""
        self._set_key(key, True)

    def release(self, key: int) -> None:
        """Mark ``key`` as up. Releasing a key that is up does nothing."""
        self._set_key(key, False)

    def _set_key(self, key: int, pressed: bool) -> None:
        key = int(key)
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be in 0..{NUM_KEYS - 1}, got {key}")
        with self._lock:
            self._state = self._state.replace(keypad=self._state.keypad.at[key].set(pressed))

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def step(self) -> Instruction:
        """Execute one instruction.

        Raises:
            Chip8Error: the fault that halted the machine. The state is left
                as it was before the faulting instruction.
            MachineHalted: if an earlier fault already halted the machine.
        """
        with self._lock:
            if self.error is not None:
                raise MachineHalted(self.error)
            pc = int(self._state.pc)
            try:
                new_state, instruction = step_state(self._state)
            except Chip8Error as error:
                self.error = error
                self.logger.error(f"Halted at 0x{pc:03X}: {error}")
                raise
            self._state = new_state
            self.instruction_count += 1
            if self.logger.enabled("DEBUG"):
                self.logger.debug(f"0x{pc:03X}  {instruction}")
            screen = self.framebuffer() if isinstance(instruction, SCREEN_INSTRUCTIONS) else None

        if screen is not None:
            renderer = self.renderer
            if renderer is not None:
                renderer.render(screen, self)
        return instruction

    def tick(self) -> None:
        """One 60 Hz timer tick: delay and sound timers count down to zero."""
        with self._lock:
            self._state = tick_timers(self._state)

    def _stop_workers(self) -> None:
        self._step_worker.stop()
        self._timer_worker.stop()

    def _run_step(self) -> None:
        try:
            self.step()
        except Chip8Error as error:
            self._stop_workers()
            self.logger.info("Step loop stopped")
            if self.on_error is not None:
                self._report_error(error)
        except Exception as error:
            # Raised by the renderer; the machine itself is still consistent
            self._stop_workers()
            self.logger.error(f"Step loop stopped by {type(error).__name__}: {error}")

    def _report_error(self, error: Chip8Error) -> None:
        try:
            self.on_error(error)
        except Exception as callback_error:
            self.logger.error(f"on_error callback raised {type(callback_error).__name__}: {callback_error}")

    def start(self) -> None:
        """Start the step loop and the timer ticker.

        Raises:
            MachineHalted: if the machine needs a ``reset`` first.
        """
        if self.error is not None:
            raise MachineHalted(self.error)
        if self.is_running:
            return
        self.logger.info(
            f"Starting at {1.0 / self._step_worker.period:.0f} steps/s, "
            f"timers at {1.0 / self._timer_worker.period:.0f} Hz"
        )
        self._timer_worker.start()
        self._step_worker.start()

    def stop(self) -> None:
        """Stop both loops.

        When called from any thread other than the loops themselves, no step
        or tick is in flight once this returns.
        """
        was_running = self.is_running
        self._stop_workers()
        if was_running:
            self.logger.info(f"Stopped after {self.instruction_count} instructions")

    def reset(self, rom: bytes = b"") -> None:
        """Stop, then load ``rom`` into a fresh state and clear any fault."""
        self.stop()
        with self._lock:
            self._state = create_machine_state(rom, self._rng)
            self.error = None
            self.instruction_count = 0
        renderer = self.renderer
        if renderer is not None:
            renderer.render(self.framebuffer(), self)
