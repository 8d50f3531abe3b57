import pytest

from specialresource.fnv import fnv64a


def test_empty_input_is_offset_basis():
    assert fnv64a("") == "cbf29ce484222325"


def test_standard_vector():
    assert fnv64a("a") == "af63dc4c8601ec8c"


def test_bytes_and_str_agree():
    assert fnv64a(b"driver-container") == fnv64a("driver-container")


@pytest.mark.parametrize("text", ["x", "special-resource", "nsname", "4.18.0"])
def test_output_is_short_hex(text):
    value = fnv64a(text)
    assert 0 < len(value) <= 16
    assert int(value, 16) < 2**64
    assert value == value.lower()


def test_distinct_inputs_give_distinct_hashes():
    assert fnv64a("podA") != fnv64a("podB")