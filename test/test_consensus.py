import itertools
import os
import random
import unittest
from itertools import combinations
from unittest import mock

from secretsolver.arithmetic import PrimeField, RationalField
from secretsolver.consensus import (
    VoteTally, classify_shares, filter_shares, recover, solve,
)
from secretsolver.crypto import interpolate_at_zero, reconstruct
from secretsolver.entities import Share
from secretsolver.errors import (
    InvalidInput, DivisionByZero, InsufficientConsistentShares,
)
from secretsolver.loader import load_shares
from shamir import ShamirSecretSharing, corrupt_shares

TESTCASES = os.path.join(os.path.dirname(__file__), "testcases")
P127 = 2**127 - 1


def load_testcase(name):
    return load_shares(os.path.join(TESTCASES, name))


class VoteTallyTest(unittest.TestCase):
    def test_record_and_majority(self):
        tally = VoteTally()
        tally.record((0, 1), 5)
        tally.record((1, 2), 5)
        tally.record((0, 3), 9)
        tally.abstain()
        self.assertEqual(tally.majority(), (5, 2))
        self.assertEqual(list(tally.supporters(5)), [0, 1, 2])
        self.assertEqual(tally.voting, 3)
        self.assertEqual(tally.abstentions, 1)

    def test_empty_tally_has_no_majority(self):
        self.assertIsNone(VoteTally().majority())

    def test_tie_picks_smallest_value(self):
        tally = VoteTally()
        for indices, value in (((0, 1), 40), ((1, 2), -3), ((2, 3), 40), ((0, 3), -3), ((0, 2), 7)):
            tally.record(indices, value)
        with self.assertLogs("secretsolver.consensus", level="WARNING"):
            self.assertEqual(tally.majority(), (-3, 2))
        self.assertEqual(list(tally.supporters(-3)), [0, 1, 2, 3])

    def test_merge_is_order_independent(self):
        a, b = VoteTally(), VoteTally()
        a.record((0, 1), 1)
        a.abstain()
        b.record((2, 3), 1)
        b.record((0, 2), 2)
        left = VoteTally().merge(a).merge(b)
        right = VoteTally().merge(b).merge(a)
        self.assertEqual(left.counts, right.counts)
        self.assertEqual(left.members, right.members)
        self.assertEqual(left.evaluated, 4)
        self.assertEqual(list(left.supporters(1)), [0, 1, 2, 3])


class FilterTest(unittest.TestCase):
    def test_two_corrupted_of_five(self):
        """Three shares on a polynomial with secret 12345, two corrupted"""
        shares, k = load_testcase("corrupted_12345.json")
        classified = classify_shares(shares, k, field=RationalField())
        self.assertEqual(classified.authentic_ids(), [101, 103, 105])
        self.assertEqual(classified.rejected_ids(), [102, 104])
        self.assertEqual(classified.secret, 12345)
        self.assertEqual(classified.votes, 1)
        self.assertEqual(classified.abstentions, 9)
        self.assertEqual(classified.total, 10)
        self.assertTrue(classified.complete)
        self.assertEqual(solve(shares, k, field=RationalField()), 12345)

    def test_no_consistent_subset(self):
        """Five shares, k = 4, no 4-subset reconstructs a common exact value"""
        shares, k = load_testcase("inconsistent.json")
        with self.assertRaises(InsufficientConsistentShares):
            solve(shares, k, field=RationalField())

    def test_mixed_base_testcase_with_one_corrupted_share(self):
        shares, k = load_testcase("testcase2.json")
        classified = classify_shares(shares, k, field=RationalField())
        self.assertEqual(classified.secret, 12345678901234567890)
        self.assertEqual(classified.rejected_ids(), [6])
        self.assertEqual(classified.votes, 15)
        self.assertEqual(solve(shares, k, field=RationalField()), 12345678901234567890)

    def test_consistent_testcase(self):
        shares, k = load_testcase("testcase1.json")
        self.assertEqual(solve(shares, k, field=RationalField()), 3)
        self.assertEqual(len(filter_shares(shares, k, field=RationalField())), 4)

    def test_tie_is_broken_towards_smallest_value(self):
        # 9 and 5 each get two votes, 7 gets one
        shares = [Share(x, y, x) for x, y in zip(range(1, 6), (9, 5, 9, 5, 7))]
        with self.assertLogs("secretsolver.consensus", level="WARNING"):
            classified = classify_shares(shares, 1, field=RationalField())
        self.assertEqual(classified.secret, 5)
        self.assertEqual(classified.votes, 2)
        self.assertEqual(classified.authentic_ids(), [2, 4])
        self.assertEqual(solve(shares, 1, field=RationalField()), 5)

    def test_distinct_values_have_no_majority(self):
        """{x=1..4} reconstructs 12 and {x=2..5} reconstructs -200; the rest are fractional"""
        shares = [Share(x, y, x) for x, y in zip(range(1, 6), (100, 205, 311, 402, 515))]
        with self.assertRaisesRegex(InsufficientConsistentShares, "No two of the 2"):
            classify_shares(shares, 4, field=RationalField())
        with self.assertRaises(InsufficientConsistentShares):
            solve(shares, 4, field=RationalField())

    def test_distinct_values_have_no_majority_prime_field(self):
        """Every combination votes in GF(p), each for a different value"""
        shares = [Share(x, y, x) for x, y in zip(range(1, 6), (17, 3, 88, 41, 9))]
        with self.assertRaisesRegex(InsufficientConsistentShares, "No two of the 5"):
            classify_shares(shares, 4, field=PrimeField(P127))
        with self.assertRaises(InsufficientConsistentShares):
            solve(shares, 4, field=PrimeField(P127))

    def test_min_votes(self):
        shares, k = load_testcase("testcase1.json")
        self.assertEqual(classify_shares(shares, k, field=RationalField(), min_votes=4).votes, 4)
        with self.assertRaises(InsufficientConsistentShares):
            classify_shares(shares, k, field=RationalField(), min_votes=5)

    def test_random_corruption_prime_field(self):
        rng = random.Random(2024)
        sss = ShamirSecretSharing(3, 8, prime=P127, rng=rng)
        secret = rng.randrange(P127)
        shares, corrupted = corrupt_shares(sss.split_secret(secret), 3, rng, prime=P127)

        authentic = filter_shares(shares, 3, field=PrimeField(P127))
        self.assertEqual({share.id for share in authentic}, {s.id for s in shares} - corrupted)
        self.assertEqual(sss.recover_secret(shares), secret)

    def test_random_corruption_rational(self):
        rng = random.Random(99)
        sss = ShamirSecretSharing(4, 9, rng=rng)
        secret = rng.randint(0, 10**40)
        shares, corrupted = corrupt_shares(sss.split_secret(secret), 4, rng)
        rng.shuffle(shares)

        classified = classify_shares(shares, 4, field=RationalField())
        self.assertEqual(set(classified.rejected_ids()), corrupted)
        self.assertEqual(classified.secret, secret)

    def test_reconstruction_invariance(self):
        rng = random.Random(3)
        sss = ShamirSecretSharing(3, 7, prime=P127, rng=rng)
        shares, _ = corrupt_shares(sss.split_secret(31337), 2, rng, prime=P127)
        authentic = filter_shares(shares, 3, field=PrimeField(P127))
        for subset in combinations(sorted(authentic, key=lambda s: s.id), 3):
            self.assertEqual(reconstruct(subset, PrimeField(P127)), 31337)

    def test_idempotent(self):
        shares, k = load_testcase("testcase2.json")
        first = filter_shares(shares, k, field=RationalField())
        second = filter_shares(shares, k, field=RationalField())
        self.assertEqual(first, second)

    def test_threshold_one(self):
        shares = [Share(1, 7, 1), Share(2, 7, 2), Share(3, 9, 3)]
        classified = classify_shares(shares, 1, field=RationalField())
        self.assertEqual(classified.secret, 7)
        self.assertEqual(classified.authentic_ids(), [1, 2])
        self.assertEqual(solve(shares, 1, field=RationalField()), 7)

    def test_division_by_zero_abstains(self):
        shares = [Share(x, 5 + 2 * x + x * x, x) for x in range(1, 6)]

        def flaky(subset, field):
            if subset[0].x == 1:
                raise DivisionByZero("simulated")
            return interpolate_at_zero(subset, field)

        with mock.patch("secretsolver.consensus.interpolate_at_zero", side_effect=flaky):
            classified = classify_shares(shares, 3, field=RationalField())
        self.assertEqual(classified.abstentions, 6)
        self.assertEqual(classified.votes, 4)
        self.assertEqual(classified.rejected_ids(), [1])
        self.assertEqual(classified.secret, 5)

    def test_deadline_keeps_partial_tally(self):
        shares, k = load_testcase("testcase2.json")
        with mock.patch("secretsolver.consensus.time") as clock:
            clock.monotonic.side_effect = itertools.count()
            classified = classify_shares(shares, k, field=RationalField(), deadline=2.5)
        self.assertFalse(classified.complete)
        self.assertEqual(classified.evaluated, 2)
        self.assertEqual(classified.total, 35)
        self.assertEqual(classified.secret, 12345678901234567890)
        self.assertEqual(classified.authentic_ids(), [1, 2, 3, 4, 5])

    def test_parallel_matches_serial(self):
        shares, k = load_testcase("testcase2.json")
        serial = classify_shares(shares, k, field=RationalField(), workers=1)
        parallel = classify_shares(shares, k, field=RationalField(), workers=2, batch_size=4)
        self.assertEqual(parallel.authentic, serial.authentic)
        self.assertEqual(parallel.secret, serial.secret)
        self.assertEqual(parallel.votes, serial.votes)
        self.assertEqual(parallel.abstentions, serial.abstentions)
        self.assertEqual(parallel.evaluated, 35)

    def test_second_polynomial_with_same_constant_is_not_trusted(self):
        # (1,11), (2,12) lie on 10 + x; (3,25), (4,30) lie on 10 + 5x
        shares = [Share(1, 11, 1), Share(3, 25, 2), Share(2, 12, 3), Share(4, 30, 4)]
        classified = classify_shares(shares, 2, field=RationalField())
        self.assertEqual(classified.secret, 10)
        self.assertEqual(len(classified.authentic), 4)
        with self.assertRaises(InsufficientConsistentShares):
            recover(shares, 2, field=RationalField())


class FilterValidationTest(unittest.TestCase):
    def setUp(self):
        self.shares = [Share(x, x * 3 + 1, x) for x in range(1, 5)]

    def test_bad_threshold(self):
        for k in (0, -2, True, "3"):
            with self.assertRaises(InvalidInput):
                filter_shares(self.shares, k)

    def test_too_few_shares(self):
        with self.assertRaises(InvalidInput):
            solve(self.shares, 5)

    def test_duplicate_x(self):
        with self.assertRaises(InvalidInput):
            filter_shares(self.shares + [Share(1, 9, 99)], 2)

    def test_duplicate_id(self):
        with self.assertRaises(InvalidInput):
            filter_shares(self.shares + [Share(9, 9, 1)], 2)

    def test_combination_limit(self):
        with self.assertRaises(InvalidInput):
            filter_shares(self.shares, 2, max_combinations=5)
        self.assertEqual(len(filter_shares(self.shares, 2, max_combinations=None)), 4)

    def test_value_outside_prime_field(self):
        with self.assertRaises(InvalidInput):
            filter_shares(self.shares + [Share(7, 500, 7)], 2, field=PrimeField(97))


if __name__ == '__main__':
    unittest.main()
