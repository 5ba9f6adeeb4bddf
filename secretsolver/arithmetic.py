from fractions import Fraction

import config
from secretsolver.errors import InvalidInput, DivisionByZero, NonIntegerResult

# Deterministic Miller-Rabin witnesses, exact for n < 3.3 * 10**24
_WITNESSES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)


def is_probable_prime(n: int, rounds: int = 16) -> bool:
    """Miller-Rabin primality test"""
    if n < 2:
        return False
    for p in _WITNESSES:
        if n % p == 0:
            return n == p

    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1

    witnesses = list(_WITNESSES)
    # Extra bases for moduli outside the deterministic range
    witnesses += [pow(3, i + 2, n - 3) + 2 for i in range(rounds)]
    for a in witnesses:
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = (x * x) % n
            if x == n - 1:
                break
        else:
            return False
    return True


class FieldElement:
    """Immutable element of GF(p), always kept in [0, p)"""

    __slots__ = ("_value", "_modulus")

    def __init__(self, value: int, modulus: int):
        object.__setattr__(self, "_value", value % modulus)
        object.__setattr__(self, "_modulus", modulus)

    def __setattr__(self, name, value):
        raise AttributeError("FieldElement is immutable")

    def __reduce__(self):
        return (FieldElement, (self._value, self._modulus))

    @property
    def value(self):
        return self._value

    @property
    def modulus(self):
        return self._modulus

    def _coerce(self, other):
        if isinstance(other, FieldElement):
            if other._modulus != self._modulus:
                raise InvalidInput("Cannot mix elements of different fields")
            return other._value
        if isinstance(other, int):
            return other
        return NotImplemented

    def __add__(self, other):
        o = self._coerce(other)
        if o is NotImplemented:
            return o
        return FieldElement(self._value + o, self._modulus)

    __radd__ = __add__

    def __sub__(self, other):
        o = self._coerce(other)
        if o is NotImplemented:
            return o
        return FieldElement(self._value - o, self._modulus)

    def __rsub__(self, other):
        o = self._coerce(other)
        if o is NotImplemented:
            return o
        return FieldElement(o - self._value, self._modulus)

    def __mul__(self, other):
        o = self._coerce(other)
        if o is NotImplemented:
            return o
        return FieldElement(self._value * o, self._modulus)

    __rmul__ = __mul__

    def __neg__(self):
        return FieldElement(-self._value, self._modulus)

    def inverse(self):
        """Modular inverse via Fermat's little theorem"""
        if self._value == 0:
            raise DivisionByZero(f"0 has no inverse modulo {self._modulus}")
        return FieldElement(pow(self._value, self._modulus - 2, self._modulus), self._modulus)

    def __truediv__(self, other):
        o = self._coerce(other)
        if o is NotImplemented:
            return o
        return self * FieldElement(o, self._modulus).inverse()

    def __eq__(self, other):
        if isinstance(other, FieldElement):
            return self._value == other._value and self._modulus == other._modulus
        return NotImplemented

    def __hash__(self):
        return hash((self._value, self._modulus))

    def __int__(self):
        return self._value

    def __repr__(self):
        return f"FieldElement({self._value}, {self._modulus})"


class RationalField:
    """Exact rational arithmetic over arbitrary-precision integers"""

    name = "rational"
    zero = Fraction(0)
    one = Fraction(1)

    def lift(self, value: int) -> Fraction:
        if not isinstance(value, int):
            raise InvalidInput(f"Expected an integer, got {value!r}")
        return Fraction(value)

    def add(self, a, b):
        return a + b

    def sub(self, a, b):
        return a - b

    def mul(self, a, b):
        return a * b

    def div(self, a, b):
        if b == 0:
            raise DivisionByZero(f"Cannot divide {a} by zero")
        return a / b

    def to_integer(self, value: Fraction) -> int:
        if value.denominator != 1:
            raise NonIntegerResult(f"The calculated secret is not an integer: {value}", value)
        return value.numerator

    def __eq__(self, other):
        return isinstance(other, RationalField)

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return "RationalField()"


class PrimeField:
    """GF(p) arithmetic; every input must already lie in [0, p)"""

    name = "prime"

    def __init__(self, modulus: int = None):
        if modulus is None:
            modulus = config.Config.FIELD_PRIME
        if not is_probable_prime(modulus):
            raise InvalidInput(f"Field modulus {modulus} is not prime")
        self.modulus = modulus
        self.zero = FieldElement(0, modulus)
        self.one = FieldElement(1, modulus)

    def lift(self, value: int) -> FieldElement:
        if not isinstance(value, int):
            raise InvalidInput(f"Expected an integer, got {value!r}")
        if not 0 <= value < self.modulus:
            raise InvalidInput(f"Value {value} lies outside the field [0, {self.modulus})")
        return FieldElement(value, self.modulus)

    def add(self, a, b):
        return a + b

    def sub(self, a, b):
        return a - b

    def mul(self, a, b):
        return a * b

    def div(self, a, b):
        return a / b

    def to_integer(self, value: FieldElement) -> int:
        return value.value

    def __eq__(self, other):
        return isinstance(other, PrimeField) and other.modulus == self.modulus

    def __hash__(self):
        return hash((self.name, self.modulus))

    def __repr__(self):
        return f"PrimeField({self.modulus})"


FIELDS = {
    RationalField.name: RationalField,
    PrimeField.name: PrimeField,
}


def get_field(name: str = None, modulus: int = None):
    """Resolve an arithmetic domain by name"""
    if name is None:
        name = config.Config.ARITHMETIC
    if not isinstance(name, str) or name not in FIELDS:
        raise InvalidInput(f"Unknown arithmetic '{name}'. Choose one of: {', '.join(FIELDS)}")
    if name == PrimeField.name:
        return PrimeField(modulus)
    if modulus is not None:
        raise InvalidInput("A modulus only applies to prime-field arithmetic")
    return RationalField()
