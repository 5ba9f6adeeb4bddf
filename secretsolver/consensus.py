import logging
import time
from concurrent.futures import ProcessPoolExecutor, FIRST_COMPLETED, wait

import config
from secretsolver.arithmetic import get_field
from secretsolver.combinations import enumerate_combinations, count_combinations, batched
from secretsolver.crypto import interpolate_at_zero, reconstruct
from secretsolver.entities import ClassifiedShares
from secretsolver.errors import (
    InvalidInput, DivisionByZero, NonIntegerResult, InsufficientConsistentShares,
)

logger = logging.getLogger(__name__)

_UNSET = object()


class VoteTally:
    """
    Accumulates reconstructed values across combinations.

    For every distinct value it keeps how many combinations produced it and
    a bitmask of the share indices that took part in any of them. Merging
    two tallies is commutative and associative, so partial tallies from
    workers can be combined in any order.
    """

    def __init__(self):
        self.counts = {}
        self.members = {}
        self.abstentions = 0
        self.evaluated = 0

    def record(self, indices, value):
        mask = 0
        for i in indices:
            mask |= 1 << i
        self.counts[value] = self.counts.get(value, 0) + 1
        self.members[value] = self.members.get(value, 0) | mask
        self.evaluated += 1

    def abstain(self):
        self.abstentions += 1
        self.evaluated += 1

    def merge(self, other):
        for value, count in other.counts.items():
            self.counts[value] = self.counts.get(value, 0) + count
            self.members[value] = self.members.get(value, 0) | other.members[value]
        self.abstentions += other.abstentions
        self.evaluated += other.evaluated
        return self

    @property
    def voting(self):
        return self.evaluated - self.abstentions

    def majority(self):
        """
        (value, count) of the most frequent value, or None if nothing voted.
        Ties are broken in favour of the numerically smallest value.
        classify_shares refuses a top count of 1 when several combinations
        voted, so the tie-break only decides between values with real support.
        """
        if not self.counts:
            return None
        top = max(self.counts.values())
        tied = [value for value, count in self.counts.items() if count == top]
        value = min(tied)
        if len(tied) > 1:
            logger.warning("Ambiguous majority: %d values share the top count %d; picking %d",
                           len(tied), top, value)
        return value, top

    def supporters(self, value):
        mask = self.members.get(value, 0)
        index = 0
        while mask:
            if mask & 1:
                yield index
            mask >>= 1
            index += 1


def _vote(shares, field, indices, tally):
    try:
        value = interpolate_at_zero([shares[i] for i in indices], field)
    except (NonIntegerResult, DivisionByZero) as e:
        logger.debug("Combination %s does not vote: %s", indices, e)
        tally.abstain()
    else:
        tally.record(indices, value)


def tally_batch(shares, field, batch):
    """Worker entry point: tallies one batch of index combinations"""
    tally = VoteTally()
    for indices in batch:
        _vote(shares, field, indices, tally)
    return tally


def _expired(expires):
    return expires is not None and time.monotonic() > expires


def _tally_serial(shares, k, field, expires):
    tally = VoteTally()
    for indices in enumerate_combinations(len(shares), k):
        if _expired(expires):
            return tally, False
        _vote(shares, field, indices, tally)
    return tally, True


def _tally_parallel(shares, k, field, workers, expires, batch_size):
    tally = VoteTally()
    complete = True
    with ProcessPoolExecutor(max_workers=workers) as executor:
        pending = set()
        for batch in batched(enumerate_combinations(len(shares), k), batch_size):
            if _expired(expires):
                complete = False
                break
            pending.add(executor.submit(tally_batch, shares, field, batch))
            if len(pending) >= workers * 2:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    tally.merge(future.result())
        for future in wait(pending).done:
            tally.merge(future.result())
    return tally, complete


def _validate(shares, k, field, max_combinations):
    if not isinstance(k, int) or isinstance(k, bool) or k <= 0:
        raise InvalidInput(f"Threshold must be a positive integer, got {k!r}")
    if len(shares) < k:
        raise InvalidInput(f"Not enough shares. Need {k}, got {len(shares)}")

    xs, ids = set(), set()
    for share in shares:
        if share.x in xs:
            raise InvalidInput(f"Duplicate x value {share.x} (share id {share.id})")
        if share.id in ids:
            raise InvalidInput(f"Duplicate share id {share.id}")
        xs.add(share.x)
        ids.add(share.id)
        field.lift(share.x)
        field.lift(share.y)

    total = count_combinations(len(shares), k)
    if max_combinations is not None and total > max_combinations:
        raise InvalidInput(
            f"{len(shares)} choose {k} = {total} combinations exceeds the limit of {max_combinations}")
    if len(shares) > config.Config.MAX_SHARES:
        logger.warning("%d shares is outside the supported range (<= %d)",
                       len(shares), config.Config.MAX_SHARES)
    return total


def classify_shares(shares, k, field=None, workers=None, deadline=_UNSET,
                    min_votes=None, max_combinations=_UNSET, batch_size=None):
    """
    Separates authentic shares from corrupted ones by majority vote over
    every k-combination of `shares`.

    A share is authentic iff it belongs to at least one combination that
    reconstructs the majority value. Combinations that raise
    NonIntegerResult or DivisionByZero abstain instead of failing the run.
    When several combinations vote and no two of them agree, there is no
    majority and InsufficientConsistentShares is raised.

    `deadline` (seconds) stops enumeration early; the result is then marked
    incomplete but is still built from the combinations already tallied.
    """
    shares = list(shares)
    if field is None:
        field = get_field()
    if workers is None:
        workers = config.Config.WORKERS
    if deadline is _UNSET:
        deadline = config.Config.DEADLINE
    if min_votes is None:
        min_votes = config.Config.MIN_VOTES
    if max_combinations is _UNSET:
        max_combinations = config.Config.MAX_COMBINATIONS
    if batch_size is None:
        batch_size = config.Config.BATCH_SIZE

    total = _validate(shares, k, field, max_combinations)
    expires = None if deadline is None else time.monotonic() + deadline

    logger.debug("Voting over %d combinations of %d shares (k=%d, %s, workers=%d)",
                 total, len(shares), k, field.name, workers)
    if workers > 1 and total > batch_size:
        tally, complete = _tally_parallel(shares, k, field, workers, expires, batch_size)
    else:
        tally, complete = _tally_serial(shares, k, field, expires)

    if not complete:
        logger.warning("Deadline reached after %d of %d combinations; tally is incomplete",
                       tally.evaluated, total)

    majority = tally.majority()
    if majority is None:
        raise InsufficientConsistentShares(
            f"None of the {tally.evaluated} evaluated combinations reconstructed an exact value")
    secret, votes = majority
    if votes == 1 and tally.voting > 1:
        raise InsufficientConsistentShares(
            f"No two of the {tally.voting} voting combinations agree on a value")
    if votes < min_votes:
        raise InsufficientConsistentShares(
            f"Majority value is backed by {votes} combination(s), need at least {min_votes}")

    supporters = set(tally.supporters(secret))
    authentic = [share for i, share in enumerate(shares) if i in supporters]
    rejected = [share for i, share in enumerate(shares) if i not in supporters]
    if len(authentic) < k:
        raise InsufficientConsistentShares(
            f"Only {len(authentic)} shares support the majority value, need {k}")

    logger.info("%d of %d shares authentic (%d/%d combinations agree, %d abstained)",
                len(authentic), len(shares), votes, tally.voting, tally.abstentions)
    return ClassifiedShares(
        authentic=authentic,
        rejected=rejected,
        secret=secret,
        votes=votes,
        voting_combinations=tally.voting,
        abstentions=tally.abstentions,
        evaluated=tally.evaluated,
        total=total,
        complete=complete,
    )


def filter_shares(shares, k, **options):
    """Returns the authentic subset of `shares` as a frozenset"""
    return classify_shares(shares, k, **options).authentic


def recover(shares, k, field=None, **options):
    """
    Filters `shares` and reconstructs the secret from the first k authentic
    shares in input order. Returns (secret, ClassifiedShares).
    """
    shares = list(shares)
    if field is None:
        field = get_field()
    classified = classify_shares(shares, k, field=field, **options)

    chosen = [share for share in shares if share in classified.authentic][:k]
    secret = reconstruct(chosen, field)
    if secret != classified.secret:
        raise InsufficientConsistentShares(
            f"Authentic shares {[share.id for share in chosen]} reconstruct {secret}, "
            f"but the majority value is {classified.secret}")
    return secret, classified


def solve(shares, k, **options) -> int:
    """Recovers the secret from possibly corrupted shares"""
    secret, _ = recover(shares, k, **options)
    return secret
