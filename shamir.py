import random
from secretsolver.entities import Share
from secretsolver.arithmetic import PrimeField, RationalField
from secretsolver.consensus import solve


class ShamirSecretSharing:
    """
    Share generator for fixtures and demos.
    With a prime, shares live in GF(prime); without one they are plain
    integers on an integer-coefficient polynomial.
    """

    COEFFICIENT_BITS = 64

    def __init__(self, threshold: int, total_shares: int, prime: int = None, rng=None):
        if threshold <= 0:
            raise ValueError("Threshold must be positive")
        if threshold > total_shares:
            raise ValueError("Threshold cannot be greater than the number of shares.")
        self.threshold = threshold
        self.total_shares = total_shares
        self.prime = prime
        self.rng = rng or random.Random()

    @staticmethod
    def _evaluate_polynomial(coefficients: list, x: int, prime: int = None) -> int:
        """Evaluate polynomial at x"""
        result = 0
        for coefficient in reversed(coefficients):
            result = result * x + coefficient
            if prime is not None:
                result %= prime
        return result

    def _random_coefficient(self):
        if self.prime is not None:
            return self.rng.randint(1, self.prime - 1)
        return self.rng.randint(1, 2**self.COEFFICIENT_BITS)

    def split_secret(self, secret: int) -> list:
        """Split secret into shares with x = 1..n and ids 1..n"""
        if self.prime is not None and not 0 <= secret < self.prime:
            raise ValueError("Secret is too large for the chosen prime")

        coefficients = [secret] + [
            self._random_coefficient()
            for _ in range(self.threshold - 1)
        ]

        shares = []
        for i in range(1, self.total_shares + 1):
            y = self._evaluate_polynomial(coefficients, i, self.prime)
            shares.append(Share(i, y, i))
        return shares

    def field(self):
        if self.prime is not None:
            return PrimeField(self.prime)
        return RationalField()

    def recover_secret(self, shares: list, **options) -> int:
        """Recover secret from possibly corrupted shares"""
        return solve(shares, self.threshold, field=self.field(), **options)


def corrupt_shares(shares, count, rng=None, prime=None):
    """
    Replaces y of `count` randomly chosen shares by a different random value.
    Returns (tampered shares in original order, set of corrupted ids).
    """
    rng = rng or random.Random()
    victims = set(rng.sample([share.id for share in shares], count))
    upper = prime - 1 if prime is not None else 2**128

    tampered = []
    for share in shares:
        if share.id in victims:
            y = share.y
            while y == share.y:
                y = rng.randint(0, upper)
            share = share.with_y(y)
        tampered.append(share)
    return tampered, victims
