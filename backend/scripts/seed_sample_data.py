"""Seed sample data for local testing.

Idempotent: skips seeding if the sample creator already exists.
Run: python scripts/seed_sample_data.py
"""

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

# Ensure backend root is on sys.path so 'config' and 'db' resolve
backend_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_root))

from sqlalchemy.orm import Session  # noqa: E402

from db.connection import get_session  # noqa: E402
from db.models import Tips  # noqa: E402
from migrations.migrate import migrate  # noqa: E402
from tipjar.services.profile_service import ProfileService  # noqa: E402


def _uid() -> str:
    return str(uuid4())


def _ts(days_ago: int = 0, hours_ago: int = 0) -> str:
    return (datetime.now(UTC) - timedelta(days=days_ago, hours=hours_ago)).isoformat(
        timespec="microseconds"
    )


CREATOR = "0x71C7656EC7ab88b098defB751B7401B5f6d8976F"
TIPPERS = [
    "0xFABB0ac9d68B0B445fB7357272Ff202C5651694a",
    "0x1CBd3b2770909D4e10f157cABC84C7264073C9Ec",
    "0xdF3e18d64BC6A983f673Ab319CCaE4f1a57C7097",
]
MESSAGES = ["Love the stream!", None, "Thanks for the tutorial", None, "gm"]


def seed(session: Session) -> None:
    svc = ProfileService(session)
    if svc.get_profile_by_address(CREATOR):
        print("Sample data already seeded, skipping.")
        return

    profile = svc.create_profile(
        wallet_address=CREATOR,
        display_name="Sample Creator",
        bio="Makes videos about onchain things.",
    )

    # Tips are inserted directly so they can be spread over past days
    for i in range(12):
        session.add(
            Tips(
                tip_id=_uid(),
                sender_address=TIPPERS[i % len(TIPPERS)],
                receiver_address=CREATOR,
                amount=float(1 + (i % 4) * 2.5),
                currency="USDC",
                message=MESSAGES[i % len(MESSAGES)],
                timestamp=_ts(days_ago=i * 2, hours_ago=i),
                transaction_hash="0x" + (_uid().replace("-", "") * 2)[:64],
            )
        )

    session.flush()
    print(f"  creator /{profile['vanity_url']}")
    print("  12 tips from 3 tippers over ~24 days")
    print("Done.")


if __name__ == "__main__":
    migrate()
    with get_session() as session:
        seed(session)
