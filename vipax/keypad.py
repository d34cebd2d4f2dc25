"""CHIP-8 keypad state and the wait-for-key state machine.

The machine is either RUNNING or WAITING_FOR_KEY. ``FX0A`` enters the waiting
state, recording the destination register; the next host update that reports
a key press writes that key into the register and resumes execution.
"""

from enum import Enum
from typing import List, Optional, Sequence

import jax.numpy as jnp

from vipax.constants import NUM_KEYS
from vipax.state import EmulatorState, RunMode

# Physical keys for keypad indices 0x0..0xF, QWERTY layout:
#   1 2 3 4      1 2 3 C
#   Q W E R  ->  4 5 6 D
#   A S D F      7 8 9 E
#   Z X C V      A 0 B F
KEY_LAYOUT = "x123qweasdzc4rfv"


class KeyState(Enum):
    """Key transition reported by the host during one update."""
    PRESSED = "pressed"
    RELEASED = "released"


def begin_key_wait(state: EmulatorState, register: int) -> EmulatorState:
    """RUNNING -> WAITING_FOR_KEY(register)."""
    return state.replace(
        mode=jnp.asarray(RunMode.WAITING_FOR_KEY, dtype=jnp.uint8),
        wait_register=jnp.asarray(register, dtype=jnp.uint8),
    )


def resolve_key_wait(state: EmulatorState, key: int) -> EmulatorState:
    """WAITING_FOR_KEY(register) -> RUNNING, storing ``key`` in the register."""
    return state.replace(
        V=state.V.at[state.wait_register].set(key),
        mode=jnp.asarray(RunMode.RUNNING, dtype=jnp.uint8),
    )


def set_keys(state: EmulatorState, transitions: Sequence[Optional[KeyState]]) -> EmulatorState:
    """Apply one host update of key transitions.

    Args:
        state: Current emulator state
        transitions: One entry per keypad index; ``None`` leaves the key unchanged

    Returns:
        State with the keypad updated. When the machine is waiting for a key and
        several keys were pressed in this update, the highest index wins.
    """
    if len(transitions) != NUM_KEYS:
        raise ValueError(f"Expected {NUM_KEYS} key transitions, got {len(transitions)}")

    keypad = state.keypad
    last_pressed = None
    for key, transition in enumerate(transitions):
        if transition is None:
            continue
        transition = KeyState(transition)
        keypad = keypad.at[key].set(transition is KeyState.PRESSED)
        if transition is KeyState.PRESSED:
            last_pressed = key

    state = state.replace(keypad=keypad)
    if last_pressed is not None and state.waiting_for_key:
        state = resolve_key_wait(state, last_pressed)
    return state


class KeyBuffer:
    """Collects host key events between two ``set_keys`` updates.

    A key pressed and released within the same host frame is reported as
    pressed now and released on the next frame, so short taps still satisfy
    a pending FX0A.
    """

    def __init__(self):
        self._current = [None] * NUM_KEYS
        self._deferred = [None] * NUM_KEYS

    def press(self, key: int):
        self._current[key] = KeyState.PRESSED
        self._deferred[key] = None

    def release(self, key: int):
        if self._current[key] is KeyState.PRESSED:
            self._deferred[key] = KeyState.RELEASED
        else:
            self._current[key] = KeyState.RELEASED

    def flush(self) -> List[Optional[KeyState]]:
        """Transitions for this frame; deferred releases move to the next one."""
        transitions = self._current
        self._current = self._deferred
        self._deferred = [None] * NUM_KEYS
        return transitions
