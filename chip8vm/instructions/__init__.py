"""Instruction handlers, one module per opcode family.

Every handler takes the state *after* fetch (program counter already moved
past the instruction) and returns the new state.
"""
