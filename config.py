# Global configuration for SecretSolver
import os
from math import comb


def _optional_float(value):
    return float(value) if value else None


class Config:
    # Arithmetic
    ARITHMETIC = os.environ.get("SECRETSOLVER_ARITHMETIC", "rational")  # "rational" or "prime"
    FIELD_PRIME = 2**256 - 2**32 - 977  # secp256k1 prime

    # Majority-vote filter
    WORKERS = int(os.environ.get("SECRETSOLVER_WORKERS", 1))
    BATCH_SIZE = 2048  # combinations per worker task
    DEADLINE = _optional_float(os.environ.get("SECRETSOLVER_DEADLINE"))  # seconds
    MIN_VOTES = 1
    MAX_SHARES = 25
    MAX_COMBINATIONS = comb(25, 12)  # 5,200,300

    # Service
    SERVICE_HOST = os.environ.get("SECRETSOLVER_HOST", "localhost")
    SERVICE_PORT = int(os.environ.get("SECRETSOLVER_PORT", 5000))
    REQUEST_TIMEOUT = 30

    # Paths
    DATA_DIR = os.environ.get("SECRETSOLVER_DATA_DIR", "data")
    AUDIT_LOG = os.path.join(DATA_DIR, "solve_audit.json")
    TESTCASE_DIR = os.environ.get(
        "SECRETSOLVER_TESTCASE_DIR",
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "test", "testcases")
    )

    LOG_LEVEL = os.environ.get("SECRETSOLVER_LOG_LEVEL", "WARNING")

    # Research parameters
    PERFORMANCE_SAMPLES = 20  # For benchmarking

    @classmethod
    def service_url(cls):
        return f"http://{cls.SERVICE_HOST}:{cls.SERVICE_PORT}"
