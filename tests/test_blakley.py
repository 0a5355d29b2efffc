"""
Blakley Share — core test suite.

Tests GF(2^8) arithmetic, hyperplane generation and evaluation, the
Gaussian-elimination solver, the share codec, and split/combine.
"""

import itertools
import os
import secrets
import sys
from unittest import mock

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from blakley import codec, field, hyperplane, scheme, solver
from blakley.errors import (
    EntropyError, InvariantError, NotEnoughSharesError,
    ShareError, ShareFormatError, SingularMatrixError,
)


# ==========================================================================
# Field Arithmetic Tests
# ==========================================================================

def test_field_inverse_all_elements():
    """a * inverse(a) == 1 for every nonzero element."""
    for a in range(1, 256):
        assert field.multiply(a, field.inverse(a)) == 1, a


def test_field_divide_undoes_multiply():
    """(a * b) / b == a for all a and nonzero b."""
    for a in range(256):
        for b in range(1, 256):
            assert field.divide(field.multiply(a, b), b) == a


def test_field_known_values():
    """Spot values in the 0x11B field."""
    assert field.multiply(3, 7) == 9
    assert field.multiply(0, 4) == 0
    assert field.multiply(4, 0) == 0
    assert field.multiply(3, 3) == 5
    assert field.multiply(0x57, 0x83) == 0xC1  # FIPS-197 example
    assert field.divide(9, 7) == 3
    assert field.divide(9, 3) == 7
    assert field.divide(0, 3) == 0
    assert field.divide(2, 2) == 1


def test_field_multiply_commutes():
    for a, b in [(1, 255), (0x53, 0xCA), (17, 200), (128, 2)]:
        assert field.multiply(a, b) == field.multiply(b, a)


def test_field_divide_by_zero():
    """Division by zero is a programming error."""
    try:
        field.divide(7, 0)
        assert False, "Should have raised ZeroDivisionError"
    except ZeroDivisionError:
        pass

    try:
        field.inverse(0)
        assert False, "Should have raised ZeroDivisionError"
    except ZeroDivisionError:
        pass


def test_field_power():
    assert field.power(0, 0) == 1
    assert field.power(0, 5) == 0
    assert field.power(7, 0) == 1
    assert field.power(7, 1) == 7
    assert field.power(7, 2) == field.multiply(7, 7)
    assert field.power(field.GENERATOR, 255) == 1
    for a in range(1, 256):
        assert field.power(a, 254) == field.inverse(a)


def test_field_tables_immutable():
    """The shared context cannot be modified."""
    gf = field.FIELD
    assert len(gf.exp) == 255
    assert len(set(gf.exp)) == 255
    try:
        gf.exp = b''
        assert False, "Should have raised AttributeError"
    except AttributeError:
        pass
    try:
        gf.log[1] = 0
        assert False, "Should have raised TypeError"
    except TypeError:
        pass


def test_field_bad_generator():
    """2 is not a generator of GF(256)* under 0x11B."""
    try:
        field.GF256(generator=2)
        assert False, "Should have raised ValueError"
    except ValueError:
        pass


# ==========================================================================
# Hyperplane Tests
# ==========================================================================

def test_generate_point_fixed_first():
    """The intercept is pinned at position 0."""
    p = hyperplane.generate_point(True, 0x42, 6)
    assert len(p) == 6
    assert p[0] == 0x42
    q = hyperplane.generate_point(False, 0x42, 6)
    assert len(q) == 6


def test_generate_point_entropy_failure():
    """An unavailable random source surfaces as EntropyError."""
    with mock.patch('blakley.hyperplane.os.urandom', side_effect=OSError("no entropy")):
        try:
            hyperplane.generate_point(True, 1, 4)
            assert False, "Should have raised EntropyError"
        except EntropyError:
            pass


def test_generate_abscissas_distinct():
    for count in (1, 2, 17, 255, 256):
        xs = hyperplane.generate_abscissas(count)
        assert len(xs) == count
        assert len(set(xs)) == count
        assert all(0 <= x <= 255 for x in xs)


def test_generate_abscissas_entropy_failure():
    with mock.patch.object(secrets.SystemRandom, 'sample', side_effect=OSError("no entropy")):
        try:
            hyperplane.generate_abscissas(5)
            assert False, "Should have raised EntropyError"
        except EntropyError:
            pass


def test_evaluate_known_values():
    assert hyperplane.evaluate([3, 3, 3], [7, 7, 7], 3) == 7
    assert hyperplane.evaluate([0x52, 0x7B, 0], [5, 6, 2], 3) == 2


def test_evaluate_wrong_length():
    """Mismatched vector lengths are an internal fault."""
    for share, point in (([1, 2], [1, 2, 3]), ([1, 2, 3], [1, 2]), ([1, 2, 3], [1, 2, 3, 4])):
        try:
            hyperplane.evaluate(share, point, 3)
            assert False, "Should have raised InvariantError"
        except InvariantError:
            pass


def test_direction_layout():
    """Direction vectors are offset + moment curve; last slot left for evaluate()."""
    offset = bytes([10, 20, 30, 40])
    e = 5
    vec = hyperplane.direction(e, offset, 4)
    assert len(vec) == 4
    assert vec[0] == 10 ^ field.power(e, 3)
    assert vec[1] == 20 ^ e
    assert vec[2] == 30 ^ field.power(e, 2)
    assert vec[3] == 0

    vec2 = hyperplane.direction(e, offset, 2)
    assert list(vec2) == [10 ^ e, 0]


def test_evaluated_vector_on_hyperplane():
    """The evaluated coordinate satisfies the row the solver rebuilds."""
    point = hyperplane.generate_point(True, 99, 3)
    vec = hyperplane.direction(7, hyperplane.generate_point(False, 0, 3), 3)
    vec[2] = hyperplane.evaluate(vec, point, 3)

    # row: a0*x0 + a1*x1 + x2 == c
    lhs = field.multiply(vec[0], point[0]) ^ field.multiply(vec[1], point[1]) ^ point[2]
    assert lhs == vec[2]


# ==========================================================================
# Solver Tests
# ==========================================================================

def test_solve_known_system():
    matrix = [bytearray([1, 2, 3]), bytearray([2, 3, 4]), bytearray([3, 4, 5])]
    b = bytearray([0, 5, 2])
    assert solver.solve(matrix, b, 3) == 1


def test_solve_pivot_swap():
    """A zero on the diagonal is fixed by a row swap."""
    matrix = [[0, 1], [1, 0]]
    b = [5, 7]
    assert solver.solve(matrix, b, 2) == 7


def test_solve_invalid_shapes():
    """Malformed systems are rejected before elimination."""
    b = [3, 2, 3]
    bad = [
        [[3, 3], [2, 1, 1], [7, 7, 3]],      # short row
        [[2, 1, 1], [7, 7, 3]],              # missing row
        [[2, 1, 1], None, [7, 7, 3]],        # null row
        None,
    ]
    for matrix in bad:
        try:
            solver.solve(matrix, list(b), 3)
            assert False, f"Should have raised ShareError for {matrix}"
        except ShareError:
            pass

    try:
        solver.solve([[1, 0], [0, 1]], [1], 2)
        assert False, "Should have raised ShareError"
    except ShareError:
        pass


def test_solve_singular():
    """Duplicate rows cannot be solved."""
    try:
        solver.solve([[1, 2], [1, 2]], [3, 3], 2)
        assert False, "Should have raised SingularMatrixError"
    except SingularMatrixError:
        pass

    try:
        solver.solve([[0, 1], [0, 2]], [3, 4], 2)
        assert False, "Should have raised SingularMatrixError"
    except SingularMatrixError:
        pass


# ==========================================================================
# Codec Tests
# ==========================================================================

def test_compress():
    a = [
        [[1, 1], [2, 2], [3, 3]],
        [[4, 4], [5, 5], [6, 6]],
    ]
    assert codec.compress(a) == [
        bytes([1, 1, 2, 2, 3, 3, 2]),
        bytes([4, 4, 5, 5, 6, 6, 2]),
    ]
    assert codec.decompress(codec.compress(a)) == [[bytes(v) for v in party] for party in a]


def test_decompress():
    b = [
        bytes([1, 1, 2, 2, 1, 1, 2]),
        bytes([4, 4, 5, 5, 6, 6, 2]),
    ]
    assert codec.decompress(b) == [
        [bytes([1, 1]), bytes([2, 2]), bytes([1, 1])],
        [bytes([4, 4]), bytes([5, 5]), bytes([6, 6])],
    ]
    assert codec.compress(codec.decompress(b)) == b


def test_decompress_errors():
    cases = [
        ([], NotEnoughSharesError),
        ([b'\x03\x03\x03', b'\x03\x03\x03'], NotEnoughSharesError),   # tag 3, two shares
        ([b'\x01\x01', b'\x01\x01'], NotEnoughSharesError),           # tag below 2
        ([b'\x01\x02\x03\x02', b'\x01\x02\x03\x02'], ShareFormatError),  # 3 % 2 != 0
        ([b'\x02', b'\x02'], ShareFormatError),                       # no blocks
        ([b'\x01\x01\x02', b'\x01\x02'], ShareFormatError),           # lengths differ
        ([b'', b''], ShareFormatError),
    ]
    for shares, exc in cases:
        try:
            codec.decompress(shares)
            assert False, f"Should have raised {exc.__name__} for {shares}"
        except exc:
            pass


def test_armor_round_trip():
    share = bytes(range(17))
    text = codec.format_share("deadbeef01234567", 4, share)
    assert text.startswith("BLAKLEY_SHARE_v1:deadbeef01234567:004:")
    sid, index, parsed = codec.parse_share(text + '\n')
    assert sid == "deadbeef01234567"
    assert index == 4
    assert parsed == share


def test_armor_tampered_checksum():
    text = codec.format_share(codec.new_set_id(), 1, b'\x10\x20\x30\x02')
    parts = text.split(':')
    parts[3] = 'ff' + parts[3][2:]
    try:
        codec.parse_share(':'.join(parts))
        assert False, "Should have raised ShareFormatError"
    except ShareFormatError as e:
        assert "checksum" in str(e).lower()


def test_armor_malformed():
    for text in ("", "a:b:c", "OTHER_v1:x:001:00:00000000", "BLAKLEY_SHARE_v1:x:one:00:00000000",
                 "BLAKLEY_SHARE_v1:x:001:zz:00000000"):
        try:
            codec.parse_share(text)
            assert False, f"Should have raised ShareFormatError for {text!r}"
        except ShareFormatError:
            pass


# ==========================================================================
# Split / Combine Tests
# ==========================================================================

def test_split_test_scenario():
    """'test' split 4-of-5: 17-byte shares, any 4 reconstruct."""
    secret = bytes([116, 101, 115, 116])
    shares = scheme.split(secret, 5, 4)
    assert len(shares) == 5
    for s in shares:
        assert len(s) == 4 * 4 + 1
        assert s[-1] == 4

    for combo in itertools.combinations(range(5), 4):
        subset = [shares[i] for i in combo]
        assert scheme.combine(subset) == secret, f"Failed with combination {combo}"


def test_split_share_length():
    secret = b"the quick brown fox jumps over the lazy dog"
    shares = scheme.split(secret, 5, 4)
    assert len(shares) == 5
    assert all(len(s) - 1 == 4 * len(secret) for s in shares)


def test_combine_any_subset():
    """Any 5 of 8 shares reconstruct a longer secret, in any order."""
    secret = b"VGhpcyBpcyBhIHNpbXBsZSB0ZXN0IQpBbmQgSSB3YW50IHRvIGRyaW5rIGEgY3VwIGmIHBvcDop"
    shares = scheme.split(secret, 8, 5)
    assert scheme.combine(shares) == secret

    for combo in itertools.combinations(range(8), 5):
        subset = [shares[i] for i in reversed(combo)]
        assert scheme.combine(subset) == secret, f"Failed with combination {combo}"


def test_combine_2_of_2():
    """Minimum possible threshold."""
    secret = os.urandom(32)
    shares = scheme.split(secret, 2, 2)
    assert scheme.combine(shares) == secret
    assert scheme.combine(shares[::-1]) == secret


def test_combine_every_byte_value():
    """All 256 byte values survive a round trip."""
    secret = bytes(range(256))
    shares = scheme.split(secret, 3, 2)
    for combo in itertools.combinations(shares, 2):
        assert scheme.combine(list(combo)) == secret


def test_max_parts():
    """255 parties, each pair able to reconstruct."""
    secret = b'\x00\xff\x42'
    shares = scheme.split(secret, 255, 2)
    assert len(shares) == 255
    assert scheme.combine([shares[0], shares[254]]) == secret
    assert scheme.combine([shares[100], shares[7]]) == secret


def test_large_threshold():
    secret = b'\x9c\x01'
    shares = scheme.split(secret, 40, 32)
    assert scheme.combine(shares[8:]) == secret
    assert scheme.combine(shares[:32]) == secret


def test_split_accepts_bytearray():
    secret = bytearray(b"mutable secret")
    shares = scheme.split(secret, 3, 2)
    assert scheme.combine(shares[1:]) == bytes(secret)


def test_split_invalid():
    secret = b"test"
    cases = [
        (secret, 0, 0),
        (secret, 2, 3),       # parts < threshold
        (secret, 1000, 3),    # parts > 255
        (secret, 10, 1),      # threshold < 2
        (secret, 300, 256),   # threshold > 255
        (b"", 3, 2),          # empty secret
        (None, 3, 2),
        ("text", 3, 2),
        (secret, 3.0, 2),
        (secret, 3, True),
    ]
    for args in cases:
        try:
            scheme.split(*args)
            assert False, f"Should have raised ShareError for {args}"
        except ShareError:
            pass


def test_split_entropy_failure():
    """No shares are returned when randomness is unavailable."""
    with mock.patch('blakley.hyperplane.os.urandom', side_effect=OSError("no entropy")):
        try:
            scheme.split(b"secret", 3, 2)
            assert False, "Should have raised EntropyError"
        except EntropyError:
            pass


def test_combine_insufficient_shares():
    """T-1 shares must fail, never return a wrong secret."""
    secret = os.urandom(32)
    shares = scheme.split(secret, 5, 3)
    try:
        scheme.combine(shares[:2])
        assert False, "Should have raised NotEnoughSharesError"
    except NotEnoughSharesError:
        pass


def test_combine_duplicate_shares():
    """The same share twice leaves the system singular."""
    shares = scheme.split(b"duplicate", 4, 3)
    try:
        scheme.combine([shares[0], shares[0], shares[1]])
        assert False, "Should have raised SingularMatrixError"
    except SingularMatrixError:
        pass


def test_combine_invalid():
    cases = [
        None,
        [],
        [b"foo", b"ba"],     # length mismatch
        [b"f", b"b"],        # too short
        [b"foo", b"foo"],    # tag 'o' far above share count
        [b"\x02", b"\x02"],  # tag only, no blocks
        [b"abc\x02", None],
        [b"abc\x02", "abc\x02"],
        [b"\x01\x02\x03\x02", b"\x01\x02\x03\x03"],  # tags differ
    ]
    for shares in cases:
        try:
            scheme.combine(shares)
            assert False, f"Should have raised ShareError for {shares!r}"
        except ShareError:
            pass


def test_combine_does_not_mutate_shares():
    shares = [bytearray(s) for s in scheme.split(b"keep me", 3, 3)]
    before = [bytes(s) for s in shares]
    assert scheme.combine(shares) == b"keep me"
    assert [bytes(s) for s in shares] == before


def _rank(rows):
    """Rank of a list of GF(256) row vectors."""
    m = [list(r) for r in rows]
    rank = 0
    cols = len(m[0]) if m else 0
    for col in range(cols):
        pivot = next((r for r in range(rank, len(m)) if m[r][col]), None)
        if pivot is None:
            continue
        m[rank], m[pivot] = m[pivot], m[rank]
        for r in range(len(m)):
            if r != rank and m[r][col]:
                factor = field.divide(m[r][col], m[rank][col])
                m[r] = [x ^ field.multiply(y, factor) for x, y in zip(m[r], m[rank])]
        rank += 1
    return rank


def test_threshold_minus_one_hides_secret():
    """T-1 shares never pin down x_0: e_0 is outside their row space."""
    for threshold, parts in ((2, 3), (3, 5), (4, 6), (5, 7), (6, 8)):
        shares = scheme.split(os.urandom(3), parts, threshold)
        vectors = codec.decompress(shares)
        e0 = [1] + [0] * (threshold - 1)

        for subset in itertools.combinations(range(parts), threshold - 1):
            for idx in range(len(vectors[0])):
                rows = [list(vectors[p][idx][:threshold - 1]) + [1] for p in subset]
                base = _rank(rows)
                assert base == threshold - 1
                assert _rank(rows + [e0]) == base + 1, \
                    f"x_0 determined by shares {subset} at byte {idx} (T={threshold})"


def test_sentinel_value():
    assert scheme.SENTINEL == 255


def test_shares_are_randomized():
    """Two splits of the same secret do not produce the same shares."""
    a = scheme.split(b"same secret", 3, 2)
    b = scheme.split(b"same secret", 3, 2)
    assert a != b


# ==========================================================================
# Runner
# ==========================================================================

def run_all():
    tests = [obj for name, obj in sorted(globals().items())
             if name.startswith('test_') and callable(obj)]

    passed = 0
    failed = 0
    for t in tests:
        try:
            t()
            print(f"[PASS] {t.__name__}")
            passed += 1
        except Exception as e:
            print(f"[FAIL] {t.__name__}: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print(f"\n--- Blakley core tests: {passed} passed, {failed} failed ---")
    return failed == 0


if __name__ == "__main__":
    sys.exit(0 if run_all() else 1)
