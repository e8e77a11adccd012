# prng.py

# Bob Jenkins' small fast generator (jsf32). Deterministic, no external state.

MASK32 = 0xFFFFFFFF
SEED_CONSTANT = 0xF1EA5EED
WARMUP_ROUNDS = 20


def _rotl(value, bits):
    return ((value << bits) | (value >> (32 - bits))) & MASK32


class JsfRandom:
    """Four-word nonlinear generator with full 32-bit outputs."""

    def __init__(self, seed):
        seed = int(seed)
        if not 0 <= seed <= MASK32:
            raise ValueError(f"seed must be a 32-bit unsigned integer, got {seed!r}")
        self.a = SEED_CONSTANT
        self.b = self.c = self.d = seed
        for _ in range(WARMUP_ROUNDS):
            self.next_u32()

    def next_u32(self):
        e = (self.a - _rotl(self.b, 27)) & MASK32
        self.a = self.b ^ _rotl(self.c, 17)
        self.b = (self.c + self.d) & MASK32
        self.c = (self.d + e) & MASK32
        self.d = (e + self.a) & MASK32
        return self.d

    def next_float(self):
        """Uniform value in [0, 1) with 32 bits of resolution."""
        return self.next_u32() / 2**32

    @property
    def state(self):
        return (self.a, self.b, self.c, self.d)
