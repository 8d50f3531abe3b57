"""64-bit FNV-1a hashing rendered as lower-case hexadecimal."""

_OFFSET_BASIS = 0xCBF29CE484222325
_PRIME = 0x100000001B3
_MASK = (1 << 64) - 1


def fnv64a(text):
    """Return the FNV-1a 64-bit hash of text as a hex string."""
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    value = _OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * _PRIME) & _MASK
    return format(value, "x")