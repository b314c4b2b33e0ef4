"""
Seeded randomness source for question selection.

Uses PCG64DXSM (Permuted Congruential Generator with DXSM output function):
1. Generate a cryptographic seed (32 bytes) via the secrets module
2. Derive the generator state via SHA512 with a versioned domain prefix
3. Map 64-bit outputs onto [minimum, maximum] with rejection sampling, so
   every value in the range is equally likely

A seeded source makes a sequence of draws reproducible, which the tests and
the simulation script rely on. Production deployments can plug any other
RandomnessSource (for example a verifiable randomness service).
"""

import hashlib
import secrets

from trivia.logic.ports import RandomnessSource

SEED_BYTES = 32
RNG_VERSION = "pcg64dxsm-v1"
_DOMAIN_PREFIX = b"trivia-draw-v1:"

# Full 128-bit LCG multiplier and DXSM output multiplier (same constants as NumPy)
_PCG_MULTIPLIER = 0x2360ED051FC65DA44385DF649FCCF645
_PCG_DXSM_MUL = 0xDA942042E4DD58B5
_UINT128_MASK = (1 << 128) - 1
_UINT64_MASK = (1 << 64) - 1


def validate_seed_hex(seed_hex: str) -> None:
    """Validate that a seed string is exactly SEED_BYTES of hex.

    Raises TypeError for non-string input, ValueError for invalid format.
    """
    if not isinstance(seed_hex, str):
        raise TypeError(f"Seed must be a string, got {type(seed_hex).__name__}")
    expected_length = SEED_BYTES * 2
    if len(seed_hex) != expected_length:
        raise ValueError(f"Seed must be exactly {expected_length} hex characters, got {len(seed_hex)}")
    try:
        bytes.fromhex(seed_hex)
    except ValueError:
        raise ValueError("Seed contains invalid hex characters") from None


def generate_seed() -> str:
    """Generate a cryptographic seed as a hex string (64 chars / 256 bits)."""
    return secrets.token_bytes(SEED_BYTES).hex()


class PCG64DXSM:
    """
    Pure Python PCG64DXSM.

    128-bit LCG state with the DXSM (double-xorshift-multiply) output
    permutation producing 64-bit values.
    """

    def __init__(self, state: int, increment: int) -> None:
        self._inc = ((increment << 1) | 1) & _UINT128_MASK  # increment must be odd
        self._state = (state + self._inc) & _UINT128_MASK
        self._state = (self._state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK
        self._state = (self._state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK

    def next_uint64(self) -> int:
        """Generate the next 64-bit unsigned integer and advance state."""
        state = self._state
        hi = (state >> 64) & _UINT64_MASK
        lo = (state & _UINT64_MASK) | 1

        hi ^= hi >> 32
        hi = (hi * _PCG_DXSM_MUL) & _UINT64_MASK
        hi ^= hi >> 48
        hi = (hi * lo) & _UINT64_MASK

        self._state = (state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK
        return hi


def derive_pcg(seed_hex: str) -> PCG64DXSM:
    """
    Derive a PCG64DXSM from SHA512(_DOMAIN_PREFIX + seed).

    The first 16 digest bytes become the state and the next 16 the increment.
    """
    validate_seed_hex(seed_hex)
    derived = hashlib.sha512(_DOMAIN_PREFIX + bytes.fromhex(seed_hex)).digest()
    state = int.from_bytes(derived[:16], byteorder="little")
    increment = int.from_bytes(derived[16:32], byteorder="little")
    return PCG64DXSM(state, increment)


def bounded_uint64(pcg: PCG64DXSM, bound: int) -> int:
    """
    Generate an unbiased random integer in [0, bound) via rejection sampling.

    Rejects values from the partial final bucket to eliminate modulo bias.
    """
    if bound <= 0 or bound > (1 << 64):
        raise ValueError("bound must be in (0, 2^64]")
    limit = (1 << 64) - ((1 << 64) % bound)
    while True:
        r = pcg.next_uint64()
        if r < limit:
            return r % bound


class PcgRandomness(RandomnessSource):
    """RandomnessSource backed by a seeded PCG64DXSM stream."""

    def __init__(self, seed_hex: str | None = None) -> None:
        self.seed = seed_hex if seed_hex is not None else generate_seed()
        self._pcg = derive_pcg(self.seed)

    async def draw(self, minimum: int, maximum: int) -> int:
        if maximum < minimum:
            raise ValueError(f"empty draw range [{minimum}, {maximum}]")
        return minimum + bounded_uint64(self._pcg, maximum - minimum + 1)
