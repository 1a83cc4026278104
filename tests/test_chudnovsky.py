"""
Tests for the Chudnovsky digit generator.

Every digit is checked against something independent: the literal first
50 digits, mpmath's π, or gmpy2's own integer square root.
"""

import logging
from functools import reduce

import pytest
import gmpy2
from gmpy2 import mpz

from pinormal import chudnovsky
from pinormal.chudnovsky import (
    PI_FIRST_50,
    ChudnovskyGenerator,
    binary_split,
    compute_pi_scaled,
    generate_digits,
    isqrt,
    merge_splits,
    num_terms,
    verify_digits,
)


class TestDigits:
    """Exact digit output."""

    def test_first_50_digits(self):
        """generate_digits(50) is the known literal."""
        digits = generate_digits(50)
        assert ''.join(str(d) for d in digits) == PI_FIRST_50
        assert digits[:5] == [1, 4, 1, 5, 9]

    def test_exact_length_and_range(self):
        for n in [1, 2, 13, 14, 15, 999, 1000]:
            digits = generate_digits(n)
            assert len(digits) == n
            assert all(0 <= d <= 9 for d in digits)

    def test_zero_digits_skips_generator(self, monkeypatch):
        """n = 0 returns [] without computing anything."""
        def fail(a, b):
            raise AssertionError("binary_split must not be called")

        monkeypatch.setattr(chudnovsky, "binary_split", fail)
        assert generate_digits(0) == []

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            generate_digits(-1)

    def test_prefix_never_retracts(self):
        """Every larger request reproduces every smaller one."""
        sizes = [1, 7, 50, 99, 100, 101, 500, 1000, 2048, 3000]
        results = {n: generate_digits(n) for n in sizes}
        for i, n1 in enumerate(sizes):
            for n2 in sizes[i + 1:]:
                assert results[n2][:n1] == results[n1], f"prefix {n1} changed at {n2}"

    def test_against_mpmath(self):
        """2000 digits agree with an independent arbitrary precision library."""
        mpmath = pytest.importorskip("mpmath")
        n = 2000
        mpmath.mp.dps = n + 30
        reference = str(mpmath.mp.pi)[2:2 + n]
        assert ''.join(str(d) for d in generate_digits(n)) == reference

    def test_pi_scaled_magnitude(self):
        """compute_pi_scaled(n) ≈ π × 10^(n + 20)."""
        scaled = compute_pi_scaled(30)
        s = str(scaled)
        assert len(s) == 1 + 30 + 20
        assert s.startswith("3" + PI_FIRST_50[:30])

    def test_verify_digits(self):
        assert verify_digits(PI_FIRST_50)
        assert verify_digits([1, 4, 1, 5, 9], n=5)
        assert not verify_digits([1, 4, 1, 5, 8], n=5)


class TestBinarySplitting:
    """Split triples and their merge rule."""

    def test_base_case_zero(self):
        assert binary_split(0, 1) == (1, 1, 13591409)

    def test_base_case_terms(self):
        """P(a), Q(a), T(a) for single terms, sign alternating."""
        for a in [1, 2, 3, 10]:
            P, Q, T = binary_split(a, a + 1)
            p = (6 * a - 5) * (2 * a - 1) * (6 * a - 1)
            assert P == p
            assert Q == a ** 3 * 10939058860032000
            expected_t = (13591409 + 545140134 * a) * p
            assert T == (-expected_t if a % 2 else expected_t)

    def test_c3_over_24(self):
        assert chudnovsky.C3_OVER_24 == 10939058860032000
        assert chudnovsky.C3_OVER_24 == 640320 ** 3 // 24

    @pytest.mark.parametrize("a,b", [(0, 2), (0, 9), (1, 8), (3, 17), (5, 26)])
    def test_merge_any_midpoint(self, a, b):
        """Combining [a,m) and [m,b) gives the triple of [a,b) for every m."""
        whole = binary_split(a, b)
        for m in range(a + 1, b):
            assert merge_splits(binary_split(a, m), binary_split(m, b)) == whole

    @pytest.mark.parametrize("a,b", [(0, 12), (4, 19)])
    def test_matches_term_by_term_fold(self, a, b):
        """The recursive split equals a left fold over single terms."""
        singles = [binary_split(k, k + 1) for k in range(a, b)]
        assert reduce(merge_splits, singles) == binary_split(a, b)

    def test_num_terms(self):
        # ceil((50 + 20) / 14.1816474) + 2
        assert num_terms(50) == 7
        assert num_terms(1000) == 74
        assert num_terms(0, guard_digits=0) == 2


class TestIntegerSqrt:
    """Newton integer square root, checked against gmpy2.isqrt."""

    def test_small_values(self):
        for n in range(0, 2000):
            assert isqrt(n) == gmpy2.isqrt(n), f"isqrt({n})"

    def test_perfect_squares_and_neighbours(self):
        for root in [1, 2, 3, 10, 12345, 10 ** 20 + 7, mpz(3) ** 200]:
            sq = mpz(root) ** 2
            assert isqrt(sq) == root
            assert isqrt(sq - 1) == root - 1
            assert isqrt(sq + 1) == root

    def test_large_value(self):
        n = 10005 * mpz(10) ** 2040
        r = isqrt(n)
        assert r == gmpy2.isqrt(n)
        assert r * r <= n < (r + 1) * (r + 1)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            isqrt(-4)


class TestChudnovskyGenerator:
    """Stateful wrapper used by the scheduler."""

    def test_records_last_call(self):
        gen = ChudnovskyGenerator()
        digits = gen(100)

        assert digits == generate_digits(100)
        assert gen.calls == 1
        assert gen.last_digits == 100
        assert gen.last_terms == num_terms(100)
        assert gen.last_elapsed >= 0.0

    def test_debug_line_per_call(self, caplog):
        gen = ChudnovskyGenerator()
        with caplog.at_level(logging.DEBUG, logger="pinormal.chudnovsky"):
            gen(50)
            gen(60)

        lines = [r.getMessage() for r in caplog.records if r.name == "pinormal.chudnovsky"]
        assert len(lines) == 2
        assert lines[1].startswith("Generated 60 digits")
        assert not any("gmpy2" in line for line in lines)

    def test_zero_request(self):
        gen = ChudnovskyGenerator()
        assert gen.generate(0) == []
        assert gen.last_terms == 0
