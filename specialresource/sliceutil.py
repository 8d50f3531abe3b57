"""Small helpers over string lists and chart files."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChartFile:
    """A file inside a chart."""

    name: str
    data: bytes = b""


def find(a, x):
    """Return the first index of x in a, or len(a) when absent."""
    return next((i for i, item in enumerate(a) if item == x), len(a))


def contains(a, x):
    """Tell whether a contains x."""
    return x in a


def find_cr_file(files, x):
    """Return the index of the file named <x>.yaml, or -1."""
    target = x + ".yaml"
    return next((i for i, f in enumerate(files) if f.name == target), -1)


def insert(a, index, value):
    """Return a new list with value inserted at index."""
    if not 0 <= index <= len(a):
        raise IndexError(f"index {index} out of range for length {len(a)}")
    result = list(a)
    result.insert(index, value)
    return result