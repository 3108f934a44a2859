"""Pygame window host for the CHIP-8 virtual machine.

The window is the Render Port and the Input Port of a running
:class:`VirtualMachine`: frames arrive from the step loop thread and are
drawn on the main thread, key events are translated through
``chip8vm.keys.KEYBOARD_LAYOUT``.
"""

import os
import threading
from typing import Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import numpy as np
import pygame

from chip8vm.constants import SCREEN_HEIGHT, SCREEN_SIZE, SCREEN_WIDTH
from chip8vm.errors import Chip8Error
from chip8vm.keys import key_for_character
from chip8vm.machine import VirtualMachine
from chip8vm.rendering import chip8_display_to_rgb, create_color_scheme


def draw_overlay_text(surface, text_lines, position, font, bg_color=(0, 0, 0), text_color=(255, 255, 255), alpha=120):
    """Draw text with semi-transparent background overlay"""
    if not text_lines:
        return

    line_height = font.get_height()
    max_width = max(font.size(line)[0] for line in text_lines)
    overlay = pygame.Surface((max_width + 16, len(text_lines) * line_height + 8))
    overlay.set_alpha(alpha)
    overlay.fill(bg_color)
    surface.blit(overlay, position)

    x, y = position
    for i, line in enumerate(text_lines):
        text_surface = font.render(line, True, text_color)
        surface.blit(text_surface, (x + 8, y + 4 + i * line_height))


class PygameFrontend:
    """Window that plays a ROM on a :class:`VirtualMachine`.

    Controls: mapped keys feed the keypad, ESC quits, F1 pauses, F2 resets,
    F3 toggles the debug overlay.
    """

    def __init__(
        self,
        machine: VirtualMachine,
        rom: bytes,
        scale: int = 10,
        color_scheme: str = "classic",
        grid: bool = False,
    ):
        self.machine = machine
        self.rom = rom
        self.scale = scale
        self.on_color, self.off_color = create_color_scheme(color_scheme)
        self.grid_color = (64, 64, 64) if grid else None
        self.show_debug = False
        self.paused = False
        self.error: Optional[Chip8Error] = None

        self._frame_lock = threading.Lock()
        self._frame = np.zeros(SCREEN_SIZE, dtype=np.uint8)

        machine.renderer = self
        machine.on_error = self._on_error

    # Render Port, called from the step loop thread
    def render(self, screen: np.ndarray, machine: VirtualMachine) -> None:
        with self._frame_lock:
            self._frame = screen

    def _on_error(self, error: Chip8Error) -> None:
        self.error = error

    def _handle_key(self, event) -> None:
        key = key_for_character(pygame.key.name(event.key))
        if key is None:
            return
        if event.type == pygame.KEYDOWN:
            self.machine.press(key)
        else:
            self.machine.release(key)

    def _toggle_pause(self) -> None:
        if self.machine.halted:
            return
        self.paused = not self.paused
        if self.paused:
            self.machine.stop()
        else:
            self.machine.start()

    def _reset(self) -> None:
        self.machine.reset(self.rom)
        self.error = None
        self.paused = False
        self.machine.start()
        self.machine.logger.info("Reset")

    def _draw(self, screen_surface, font) -> None:
        with self._frame_lock:
            frame = self._frame
        rgb = chip8_display_to_rgb(frame, self.scale, self.on_color, self.off_color, self.grid_color)
        # surfarray is indexed (x, y)
        pygame.surfarray.blit_array(screen_surface, rgb.swapaxes(0, 1))

        if self.show_debug:
            state = self.machine.state
            registers = [
                " ".join(f"V{j:X}:{int(state.V[j]):02X}" for j in range(i, i + 4))
                for i in range(0, 16, 4)
            ]
            debug_lines = [
                f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}",
                f"DT: {int(state.delay_timer)}  ST: {int(state.sound_timer)}",
                f"Instructions: {self.machine.instruction_count}",
                *registers,
            ]
            draw_overlay_text(screen_surface, debug_lines, (5, 5), font, alpha=100)

        if self.error is not None:
            draw_overlay_text(screen_surface, [str(self.error), "F2 to reset, ESC to quit"], (5, 5), font,
                              text_color=(255, 80, 80), alpha=180)
        elif self.paused:
            draw_overlay_text(screen_surface, ["PAUSED - F1 to resume"], (5, 5), font,
                              text_color=(255, 255, 0), alpha=150)

    def run(self) -> None:
        """Open the window and run until it is closed."""
        pygame.init()
        try:
            screen_surface = pygame.display.set_mode((SCREEN_WIDTH * self.scale, SCREEN_HEIGHT * self.scale))
            pygame.display.set_caption("CHIP-8")
            font = pygame.font.Font(None, 18)
            clock = pygame.time.Clock()

            self.machine.start()
            running = True
            while running:
                clock.tick(60)
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_F1:
                        self._toggle_pause()
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_F2:
                        self._reset()
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_F3:
                        self.show_debug = not self.show_debug
                    elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                        self._handle_key(event)

                self._draw(screen_surface, font)
                pygame.display.flip()
        finally:
            self.machine.stop()
            pygame.quit()
