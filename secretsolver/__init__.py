from secretsolver.arithmetic import FieldElement, RationalField, PrimeField, get_field
from secretsolver.combinations import enumerate_combinations, count_combinations
from secretsolver.consensus import VoteTally, classify_shares, filter_shares, recover, solve
from secretsolver.crypto import reconstruct
from secretsolver.entities import Share, ClassifiedShares
from secretsolver.errors import (
    SecretSolverError, InvalidInput, DivisionByZero, NonIntegerResult,
    InsufficientConsistentShares,
)
from secretsolver.loader import load_shares, parse_document, parse_int

__all__ = [
    "FieldElement", "RationalField", "PrimeField", "get_field",
    "enumerate_combinations", "count_combinations",
    "VoteTally", "classify_shares", "filter_shares", "recover", "solve",
    "reconstruct", "Share", "ClassifiedShares",
    "SecretSolverError", "InvalidInput", "DivisionByZero", "NonIntegerResult",
    "InsufficientConsistentShares",
    "load_shares", "parse_document", "parse_int",
]
