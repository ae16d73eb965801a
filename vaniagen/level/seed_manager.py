"""
Seed Manager - Deterministic random streams for world generation

Every generator owns its own SeededRng built from a string seed. The seed is
hashed to a 32-bit state (xmur3 avalanche mixing) which then drives a
mulberry32 generator. All arithmetic is masked to 32 bits so the stream is
identical on every platform.
"""

from typing import Any, Dict, List, Optional, Sequence, TypeVar

from vaniagen.config import DEFAULT_SEED

T = TypeVar("T")

_MASK = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


def _utf16_units(text: str) -> List[int]:
    data = text.encode("utf-16-le")
    return [data[i] | (data[i + 1] << 8) for i in range(0, len(data), 2)]


def hash_seed(seed: str) -> int:
    """Hash a seed string to a 32-bit unsigned state."""
    units = _utf16_units(seed)
    h = (1779033703 ^ len(units)) & _MASK
    for unit in units:
        h = _imul(h ^ unit, 3432918353)
        h = ((h << 13) | (h >> 19)) & _MASK

    h = _imul(h ^ (h >> 16), 2246822507)
    h = _imul(h ^ (h >> 13), 3266489909)
    h ^= h >> 16
    return h & _MASK


def normalize_seed(seed: Optional[Any]) -> str:
    """Normalize any seed value to the string form used for hashing."""
    if seed is None:
        return DEFAULT_SEED
    return str(seed)


class SeededRng:
    """Deterministic pseudo-random stream (mulberry32)."""

    def __init__(self, seed: Optional[Any] = None):
        self.seed = normalize_seed(seed)
        self._state = hash_seed(self.seed)

    def random(self) -> float:
        """Return the next float in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & _MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / 4294967296

    def __call__(self) -> float:
        return self.random()

    def randint(self, lo: int, hi: int) -> int:
        """Inclusive random integer in [lo, hi]."""
        return int(self.random() * (hi - lo + 1)) + lo

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.randint(0, len(seq) - 1)]

    def shuffle(self, seq: Sequence[T]) -> List[T]:
        """
        Fisher-Yates shuffle driven by this stream.

        Returns a new list; the input sequence is left untouched.
        """
        out = list(seq)
        for i in range(len(out) - 1, 0, -1):
            j = self.randint(0, i)
            out[i], out[j] = out[j], out[i]
        return out


def create_rng(seed: Optional[Any] = None) -> SeededRng:
    """Create an independent generator for `seed`."""
    return SeededRng(seed)


def derive_seed(*parts: Any) -> str:
    """Join seed parts into a single derived seed string."""
    return "-".join(str(p) for p in parts)


def room_size_seed(world_seed: Any, room_id: str) -> str:
    return f"{world_seed}-roomsize-{room_id}"


def room_fill_seed(world_seed: Any, room_id: str, algorithm: str, counter: int = 0) -> str:
    """
    Seed for filling one room's tiles.

    Bumping `counter` gives a different but reproducible layout for the
    same room and algorithm.
    """
    return derive_seed(world_seed, room_id, algorithm, counter)


class SeedManager:
    """Hands out per-component generators derived from one world seed"""

    def __init__(self, world_seed: Optional[Any] = None):
        """
        Args:
            world_seed: Master seed for the world. None falls back to the default seed.
        """
        self.world_seed = normalize_seed(world_seed)
        self.sub_seeds: Dict[str, str] = {}

    def component_seed(self, component: str) -> str:
        """Get the derived seed string for a generation component"""
        if component not in self.sub_seeds:
            self.sub_seeds[component] = derive_seed(self.world_seed, component)
        return self.sub_seeds[component]

    def get_random(self, component: str) -> SeededRng:
        """
        Get a fresh generator for a component.

        Each call returns a new stream starting from the component's seed, so
        repeated calls replay the same sequence.
        """
        return SeededRng(self.component_seed(component))

    def room_size_rng(self, room_id: str) -> SeededRng:
        return SeededRng(room_size_seed(self.world_seed, room_id))

    def room_fill_seed(self, room_id: str, algorithm: str, counter: int = 0) -> str:
        return room_fill_seed(self.world_seed, room_id, algorithm, counter)

    def get_seed_info(self) -> Dict[str, Any]:
        """Get information about current seeds"""
        return {
            'world_seed': self.world_seed,
            'sub_seeds': self.sub_seeds.copy(),
        }
