import requests
import config
from tabulate import tabulate
from secretsolver import errors

ERRORS = {
    cls.__name__: cls
    for cls in (
        errors.SecretSolverError,
        errors.InvalidInput,
        errors.DivisionByZero,
        errors.NonIntegerResult,
        errors.InsufficientConsistentShares,
    )
}


class SolverClient:
    def __init__(self, base_url=None, timeout=None):
        self.base_url = (base_url or config.Config.service_url()).rstrip("/")
        self.timeout = timeout or config.Config.REQUEST_TIMEOUT

    def _post(self, path, document):
        response = requests.post(
            f"{self.base_url}{path}",
            json=document,
            timeout=self.timeout
        )
        try:
            data = response.json()
        except ValueError:
            data = None
        if response.status_code != 200:
            if not isinstance(data, dict):
                raise errors.SecretSolverError(f"HTTP {response.status_code} from {path}")
            kind = data.get("kind", "SecretSolverError")
            message = data.get("error", f"HTTP {response.status_code}")
            raise ERRORS.get(kind, errors.SecretSolverError)(message)
        if not isinstance(data, dict):
            raise errors.SecretSolverError(f"Malformed response from {path}")
        return data

    def recover(self, document) -> dict:
        """Solve a share document remotely; returns the full result body"""
        return self._post("/solve", document)

    def solve(self, document) -> int:
        """Solve a share document remotely; returns the secret as int"""
        return int(self.recover(document)["secret"])

    def classify(self, document) -> dict:
        return self._post("/classify", document)

    def status(self) -> dict:
        response = requests.get(f"{self.base_url}/status", timeout=self.timeout)
        response.raise_for_status()
        return response.json()


def render_classification(shares, authentic_ids):
    """Table of every share with its verdict"""
    authentic_ids = set(authentic_ids)
    rows = [
        [share.id, share.x, share.y, "authentic" if share.id in authentic_ids else "corrupted"]
        for share in shares
    ]
    return tabulate(rows, headers=["ID", "x", "y", "Verdict"], tablefmt="grid")
