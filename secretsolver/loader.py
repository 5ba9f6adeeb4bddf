import json
import logging
import os

from secretsolver.entities import Share
from secretsolver.errors import InvalidInput

logger = logging.getLogger(__name__)

_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def parse_int(value, base=None) -> int:
    """
    Parses an integer given as int or string.
    Strings may carry a sign and, when no explicit base is given, a 0x/0o/0b prefix.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        if base not in (None, 10):
            raise InvalidInput(f"Integer {value} cannot carry base {base}")
        return value
    if not isinstance(value, str):
        raise InvalidInput(f"Expected an integer or string, got {value!r}")

    if base is not None:
        try:
            base = int(base)
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid base {base!r}") from None
        if not 2 <= base <= 36:
            raise InvalidInput(f"Base must be between 2 and 36, got {base}")

    text = value.strip().replace("_", "")
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if base is None:
        base = 10
        prefix = text[:2].lower()
        if prefix in _PREFIXES:
            base = _PREFIXES[prefix]
            text = text[2:]
    if not text:
        raise InvalidInput(f"Empty number in {value!r}")
    try:
        return sign * int(text, base)
    except ValueError:
        raise InvalidInput(f"Invalid base-{base} number {value!r}") from None


def _parse_threshold(value):
    k = parse_int(value)
    if k <= 0:
        raise InvalidInput(f"Threshold must be positive, got {k}")
    return k


def _parse_testcase(data):
    keys = data["keys"]
    if not isinstance(keys, dict) or "k" not in keys:
        raise InvalidInput("'keys' must be an object holding 'k'")
    k = _parse_threshold(keys["k"])

    shares = []
    for key, point in data.items():
        if key == "keys":
            continue
        if not isinstance(point, dict) or "value" not in point:
            raise InvalidInput(f"Point {key!r} must be an object with 'base' and 'value'")
        x = parse_int(key)
        y = parse_int(point["value"], point.get("base", 10))
        shares.append(Share(x, y, len(shares) + 1))

    if "n" in keys and parse_int(keys["n"]) != len(shares):
        logger.warning("Document declares n=%s but holds %d shares", keys["n"], len(shares))
    return shares, k


def _parse_share_list(data):
    if "k" not in data:
        raise InvalidInput("Share list must declare the threshold 'k'")
    k = _parse_threshold(data["k"])
    entries = data["shares"]
    if not isinstance(entries, list):
        raise InvalidInput("'shares' must be a list")

    shares = []
    for position, entry in enumerate(entries, 1):
        if isinstance(entry, dict):
            try:
                x, y = entry["x"], entry["y"]
            except KeyError as e:
                raise InvalidInput(f"Share #{position} is missing {e}") from None
            share_id = entry.get("id", position)
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            x, y = entry
            share_id = position
        else:
            raise InvalidInput(f"Share #{position} must be an object or an [x, y] pair")
        shares.append(Share(parse_int(x), parse_int(y), parse_int(share_id)))
    return shares, k


def parse_document(data):
    """Turns a decoded JSON document into (shares, k)"""
    if not isinstance(data, dict):
        raise InvalidInput("Share document must be a JSON object")
    if "keys" in data:
        return _parse_testcase(data)
    if "shares" in data:
        return _parse_share_list(data)
    raise InvalidInput("Share document needs either 'keys' or 'shares'")


def load_shares(path):
    """Reads (shares, k) from a JSON file"""
    if not os.path.exists(path):
        raise InvalidInput(f"Share file not found: {path}")
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInput(f"{path} is not valid JSON: {e}") from None
    shares, k = parse_document(data)
    logger.debug("Loaded %d shares (k=%d) from %s", len(shares), k, path)
    return shares, k
