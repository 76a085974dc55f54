import pytest

from passwordless.domain.generators import (
    CROCKFORD_ALPHABET,
    CrockfordGenerator,
    PinGenerator,
)


def test_crockford_alphabet_has_no_ambiguous_letters():
    assert len(CROCKFORD_ALPHABET) == 32
    for ch in "ILOU":
        assert ch not in CROCKFORD_ALPHABET


@pytest.mark.parametrize("length", [1, 4, 10])
def test_crockford_tokens_have_requested_length_and_alphabet(length):
    g = CrockfordGenerator(length)
    for _ in range(50):
        token = g.generate(None)
        assert len(token) == length
        assert set(token) <= set(CROCKFORD_ALPHABET)


def test_crockford_tokens_vary():
    g = CrockfordGenerator(10)
    assert len({g.generate(None) for _ in range(50)}) > 40


def test_crockford_sanitize():
    g = CrockfordGenerator(8)
    assert g.sanitize(None, "abcd-ef0l") == "ABCDEF01"
    assert g.sanitize(None, " o1 iL ") == "0111"
    assert g.sanitize(None, "ABCD1234") == "ABCD1234"


def test_crockford_sanitize_is_idempotent_on_generated_tokens():
    g = CrockfordGenerator(10)
    for _ in range(20):
        token = g.generate(None)
        assert g.sanitize(None, token) == token


def test_pin_generator():
    g = PinGenerator(4)
    seen = set()
    for _ in range(200):
        pin = g.generate(None)
        assert len(pin) == 4 and pin.isdigit(), pin
        seen.add(pin)
    assert len(seen) > 10


def test_pin_sanitize_drops_separators():
    assert PinGenerator(6).sanitize(None, "123-456") == "123456"
    assert PinGenerator(6).sanitize(None, " 123 456 ") == "123456"


@pytest.mark.parametrize("cls", [CrockfordGenerator, PinGenerator])
def test_length_must_be_positive(cls):
    with pytest.raises(ValueError):
        cls(0)
