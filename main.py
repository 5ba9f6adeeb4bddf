# ----- main.py -----
import argparse
import json
import logging
import os
import sys

import requests

import config
from client.app import SolverClient, render_classification
from secretsolver.arithmetic import get_field
from secretsolver.consensus import recover
from secretsolver.errors import SecretSolverError
from secretsolver.loader import load_shares

DEFAULT_TESTCASES = ["testcase1.json", "testcase2.json"]


# --- Helper Functions ---
def print_header(title):
    print("\n" + "="*50)
    print(f"{title}")
    print("="*50)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Recover Shamir secrets from share files, ignoring corrupted shares."
    )
    parser.add_argument("files", nargs="*",
                        help="share documents (default: testcase1.json and testcase2.json)")
    parser.add_argument("--arithmetic", choices=["rational", "prime"], default=config.Config.ARITHMETIC)
    parser.add_argument("--workers", type=int, default=config.Config.WORKERS)
    parser.add_argument("--deadline", type=float, default=config.Config.DEADLINE,
                        help="stop voting after this many seconds")
    parser.add_argument("--min-votes", type=int, default=config.Config.MIN_VOTES)
    parser.add_argument("--show-shares", action="store_true",
                        help="print every share with its verdict")
    parser.add_argument("--remote", metavar="URL",
                        help="solve through a running SecretSolver service")
    return parser


def solve_local(path, args):
    shares, k = load_shares(path)
    secret, classified = recover(
        shares, k,
        field=get_field(args.arithmetic),
        workers=args.workers,
        deadline=args.deadline,
        min_votes=args.min_votes,
    )
    print(f"Secret for {os.path.basename(path)}: {secret}")
    if classified.rejected:
        print(f"  Corrupted shares (ids): {classified.rejected_ids()}")
    if not classified.complete:
        print(f"  Warning: only {classified.evaluated} of {classified.total} combinations evaluated")
    if args.show_shares:
        print(render_classification(shares, classified.authentic_ids()))


def solve_remote(path, args):
    with open(path, "r") as f:
        document = json.load(f)
    document["arithmetic"] = args.arithmetic
    document["min_votes"] = args.min_votes
    client = SolverClient(args.remote)
    result = client.recover(document)
    print(f"Secret for {os.path.basename(path)}: {int(result['secret'])}")
    if result["rejected"]:
        print(f"  Corrupted shares (ids): {result['rejected']}")
    if args.show_shares:
        shares, _ = load_shares(path)
        print(render_classification(shares, result["authentic"]))


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=config.Config.LOG_LEVEL, format="[%(name)s] %(message)s")

    files = args.files or [os.path.join(config.Config.TESTCASE_DIR, name) for name in DEFAULT_TESTCASES]
    print_header("--- Secrets Found ---")

    exit_code = 0
    for path in files:
        try:
            if args.remote:
                solve_remote(path, args)
            else:
                solve_local(path, args)
        except SecretSolverError as e:
            print(f"Error processing {path}: [{type(e).__name__}] {e}", file=sys.stderr)
            exit_code = 1
        except requests.exceptions.RequestException as e:
            print(f"Error contacting {args.remote}: {e}", file=sys.stderr)
            exit_code = 1
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error processing {path}: {e}", file=sys.stderr)
            exit_code = 1
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
