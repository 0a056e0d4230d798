import itertools

import pytest

from app.services.codes import (
    CODE_LENGTH,
    CodeGenerator,
    generate_unique_code,
    is_valid_code,
)


def _repeating(values):
    """Byte source that cycles through ``values`` forever."""
    it = itertools.cycle(values)
    return lambda n: bytes(next(it) for _ in range(n))


def test_generated_code_matches_format():
    gen = CodeGenerator()
    for _ in range(50):
        code = gen.generate()
        assert len(code) == CODE_LENGTH == 18
        assert is_valid_code(code)


def test_generator_maps_bytes_onto_alphabet():
    gen = CodeGenerator(_repeating([0, 1, 2, 3, 4, 5]))
    assert gen.generate() == "CERT-ABCDEF-ABCDEF"

    gen = CodeGenerator(_repeating([35]))
    assert gen.generate() == "CERT-999999-999999"


def test_generator_rejects_biased_bytes():
    # 252..255 would skew the first four characters, they are skipped
    gen = CodeGenerator(_repeating([255, 252, 36, 253, 37, 254]))
    code = gen.generate()
    assert code == "CERT-ABABAB-ABABAB"


@pytest.mark.parametrize(
    "source",
    [lambda n: b"", lambda n: bytes([1] * (n - 1)), lambda n: bytes([255] * n)],
    ids=["empty", "short", "all-rejected"],
)
def test_broken_random_source_raises_instead_of_spinning(source):
    with pytest.raises(ValueError):
        CodeGenerator(source).generate()


@pytest.mark.parametrize(
    "code",
    [
        "",
        "CERT-ABC-DEF",
        "cert-abcdef-123456",
        "CERT-ABCDEF-12345!",
        "XERT-ABCDEF-123456",
        "CERT-ABCDEF-1234567",
        "CERT_ABCDEF_123456",
    ],
)
def test_malformed_codes_are_invalid(code):
    assert not is_valid_code(code)


def test_unique_code_first_attempt():
    attempt = generate_unique_code(lambda code: False, CodeGenerator(), 10)
    assert attempt.ok
    assert attempt.attempts == 1
    assert is_valid_code(attempt.code)


def test_unique_code_retries_on_collision():
    taken = {"CERT-AAAAAA-AAAAAA"}
    sequence = iter([[0] * 6, [0] * 6, [1] * 6, [1] * 6])
    gen = CodeGenerator(lambda n: bytes(next(sequence)))

    attempt = generate_unique_code(lambda code: code in taken, gen, 10)

    assert attempt.ok
    assert attempt.code == "CERT-BBBBBB-BBBBBB"
    assert attempt.attempts == 2


def test_unique_code_exhaustion_reports_attempts():
    gen = CodeGenerator(_repeating([7]))
    seen = []

    def exists(code):
        seen.append(code)
        return True

    attempt = generate_unique_code(exists, gen, 3)

    assert not attempt.ok
    assert attempt.code is None
    assert attempt.attempts == 3
    assert seen == ["CERT-HHHHHH-HHHHHH"] * 3
