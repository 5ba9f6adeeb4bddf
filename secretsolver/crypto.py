import logging

from secretsolver.arithmetic import RationalField
from secretsolver.errors import InvalidInput

logger = logging.getLogger(__name__)


def interpolate_at_zero(shares, field):
    """
    Evaluates the interpolating polynomial of `shares` at x = 0.
    No validation: DivisionByZero and NonIntegerResult escape to the caller.
    """
    if len(shares) == 1:
        return field.to_integer(field.lift(shares[0].y))

    xs = [field.lift(share.x) for share in shares]
    secret = field.zero
    for j, share in enumerate(shares):
        numerator = field.one
        denominator = field.one
        for m, xm in enumerate(xs):
            if m != j:
                numerator = field.mul(numerator, field.sub(field.zero, xm))
                denominator = field.mul(denominator, field.sub(xs[j], xm))

        lagrange_basis = field.div(numerator, denominator)
        term = field.mul(field.lift(share.y), lagrange_basis)
        secret = field.add(secret, term)

    return field.to_integer(secret)


def reconstruct(shares, field=None) -> int:
    """
    Reconstructs the secret (the constant term) from exactly the given shares
    using Lagrange interpolation.
    """
    if field is None:
        field = RationalField()
    shares = list(shares)
    if not shares:
        raise InvalidInput("Cannot reconstruct secret from zero shares.")

    seen = set()
    for share in shares:
        x = field.lift(share.x)
        if x in seen:
            raise InvalidInput(f"Duplicate x value {share.x} (share id {share.id})")
        seen.add(x)
        # y must be representable in the field as well
        field.lift(share.y)

    secret = interpolate_at_zero(shares, field)
    logger.debug("Reconstructed secret from shares %s", [share.id for share in shares])
    return secret
