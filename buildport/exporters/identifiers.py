"""
Deterministic synthetic identifiers for Xcode and MSBuild documents.

Identifiers come from a seeded 64-bit FNV-1a style multiplicative hash over
the seed, a name and a running counter, so exporting the same project twice
yields the same identifiers. Nothing here uses randomness or the clock.
"""

from typing import Dict

FNV_OFFSET = 0xCBF29CE484222325
FNV_PRIME = 0x100000001B3
MASK64 = 0xFFFFFFFFFFFFFFFF


def fnv1a(data: str, seed: int = FNV_OFFSET) -> int:
    value = seed
    for byte in data.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & MASK64
    return value


class IdentifierFactory:
    """
    Hands out identifiers that depend only on (seed, name, call order).

    The same name may be requested several times; each request advances the
    counter, so identifiers never collide within one document.
    """

    def __init__(self, seed: str = "buildport"):
        self.seed = seed
        self.counter = 0
        self._seed_hash = fnv1a(seed)

    def _next_hash(self, name: str, salt: str) -> int:
        self.counter += 1
        return fnv1a(f"{salt}:{name}:{self.counter}", self._seed_hash)

    def xcode_uuid(self, name: str) -> str:
        """24 upper-case hex digits, as used for pbxproj object keys."""
        high = self._next_hash(name, "xc")
        low = fnv1a(str(self.counter), high) & 0xFFFFFFFF
        return f"{high:016X}{low:08X}"

    def guid(self, name: str) -> str:
        """Upper-case GUID in the 8-4-4-4-12 layout."""
        high = self._next_hash(name, "guid")
        low = fnv1a(name, high)
        digits = f"{high:016X}{low:016X}"
        return f"{digits[:8]}-{digits[8:12]}-{digits[12:16]}-{digits[16:20]}-{digits[20:32]}"


def stable_guid(seed: str, name: str) -> str:
    """GUID that depends only on seed and name, not on call order."""
    return IdentifierFactory(seed).guid(name)


class UuidPool:
    """Named Xcode UUID allocation; asking twice for a key returns the same UUID."""

    def __init__(self, factory: IdentifierFactory):
        self.factory = factory
        self._ids: Dict[str, str] = {}

    def __getitem__(self, key: str) -> str:
        if key not in self._ids:
            self._ids[key] = self.factory.xcode_uuid(key)
        return self._ids[key]
