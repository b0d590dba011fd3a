"""
Delete verification codes that can no longer be confirmed.

Expiry is enforced when a code is read, so this sweep only bounds table
growth. Rows younger than the issuance rate window are kept.

Usage:
    python -m aura.commands.sweep_verification_codes
    aura-sweep-verification-codes --init-db
"""

import argparse
import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from aura.core.config import VerificationPolicy, settings
from aura.database import SessionLocal, init_db
from aura.services.verification_store import VerificationStore

logger = logging.getLogger(__name__)


def sweep_verification_codes(db: Session, policy: Optional[VerificationPolicy] = None) -> int:
    """
    Run one sweep.

    Args:
        db: Database session
        policy: Verification policy (defaults to the configured one)

    Returns:
        Number of rows deleted
    """
    store = VerificationStore(db, policy or settings.verification_policy())
    return store.sweep_expired()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Sweep stale verification codes")
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before sweeping",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.init_db:
        init_db()

    db = SessionLocal()
    try:
        removed = sweep_verification_codes(db)
    finally:
        db.close()

    print(f"Removed {removed} stale verification codes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
