"""Pseudonymization of client identities.

Rate-limit counters are keyed by a hash of the client address so the store
never holds the raw address. The hash only needs an even key distribution,
not cryptographic strength.
"""

_FNV_OFFSET_BASIS = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_MASK_64 = 0xFFFFFFFFFFFFFFFF
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def fnv1a_64(data: bytes) -> int:
    """64-bit FNV-1a hash."""
    value = _FNV_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * _FNV_PRIME) & _MASK_64
    return value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def pseudonymize(identity: str, salt: str = "") -> str:
    """Return a short, storage-safe pseudonym for a client identity."""
    return _to_base36(fnv1a_64(f"{salt}{identity}".encode("utf-8")))
