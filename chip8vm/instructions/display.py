"""CHIP-8 display operations."""

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import Draw
from chip8vm.constants import FLAG_REGISTER, SCREEN_HEIGHT, SCREEN_SIZE, SCREEN_WIDTH, SPRITE_WIDTH

# Pre-computed coordinates of every cell of the flat display
xx = jnp.arange(SCREEN_SIZE) % SCREEN_WIDTH
yy = jnp.arange(SCREEN_SIZE) // SCREEN_WIDTH


@jax.jit
def execute_display(state: EmulatorState, instruction: Draw) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Sprites wrap around both screen edges. VF is 1 if any lit pixel is
    switched off, otherwise 0.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT

    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < instruction.n)

    rows = jnp.astype(state.I, jnp.int32) + row_offset
    sprite_bytes = jnp.astype(state.memory.at[rows].get(mode="clip"), jnp.int32)
    bit_index = jnp.clip(SPRITE_WIDTH - 1 - col_offset, 0, SPRITE_WIDTH - 1)
    sprite = jnp.astype((sprite_bytes >> bit_index) & 1, jnp.bool_) & in_sprite

    collision = jnp.any(state.display & sprite)
    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
