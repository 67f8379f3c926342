import random


class RandomPayloadGenerator:
    """Random test payloads from an explicit generator.

    The bytes only need to be incompressible, not secret, so a seeded
    random.Random is used; equal seeds give equal payload sequences.
    """

    def __init__(self, seed=None, rng=None):
        self.rng = rng if rng is not None else random.Random(seed)

    def payload(self, size):
        return self.rng.randbytes(size)

    def fill(self, buf):
        """Overwrite buf in place with len(buf) fresh random bytes.

        The caller's buffer is reused; randbytes still builds one temporary
        bytes object per call, before any timing starts.
        """
        view = memoryview(buf)
        view[:] = self.rng.randbytes(len(view))
        return buf
