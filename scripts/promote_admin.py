#!/usr/bin/env python3
"""
Grant or revoke admin rights for an existing user.

Usage:
  python scripts/promote_admin.py --user alice [--revoke]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Make the courtside package importable when run directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from courtside.repositories.sql_repository import SQLRepository  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Grant or revoke admin rights")
    ap.add_argument("--user", required=True, help="User id, username or email")
    ap.add_argument("--revoke", action="store_true", help="Remove admin rights instead of granting them")
    args = ap.parse_args()

    repo = SQLRepository()
    ident = (args.user or "").strip()
    user = repo.find_user(ident)
    if not user:
        raise SystemExit(f"User '{ident}' not found")
    repo.set_user_admin(user.id, not args.revoke)
    state = "revoked" if args.revoke else "granted"
    print(f"OK: admin {state}")
    print(f"  ID: {user.id}")
    print(f"  Username: {user.username}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
