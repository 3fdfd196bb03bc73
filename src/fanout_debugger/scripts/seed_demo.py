"""Create the schema and seed a small social graph for local debugging."""
from __future__ import annotations

import argparse
import logging

from sqlalchemy.orm import Session

from fanout_debugger.db.session import SessionLocal, create_tables, drop_tables
from fanout_debugger.models import EventType, Follower, User
from fanout_debugger.repositories.fanout_repo import SqlAlchemyFanoutRepository
from fanout_debugger.services.fanout import EventInput, FanoutService

logger = logging.getLogger(__name__)

DEMO_USERS: tuple[str, ...] = ("alice", "bob", "carol", "dave", "erin")

# (follower, followed)
DEMO_FOLLOWS: tuple[tuple[str, str], ...] = (
    ("carol", "bob"),
    ("dave", "bob"),
    ("alice", "bob"),
    ("bob", "alice"),
    ("erin", "carol"),
)


def seed_users(db: Session) -> dict[str, User]:
    """Insert demo users that do not exist yet and return all of them by username."""
    repo = SqlAlchemyFanoutRepository(db)
    users: dict[str, User] = {}
    for username in DEMO_USERS:
        user = repo.get_user_by_username(username)
        if user is None:
            user = User(username=username, email=f"{username}@example.com")
            db.add(user)
            db.flush()
        users[username] = user

    existing = {
        (row.user_id, row.follows_user_id) for row in db.query(Follower).all()
    }
    for follower_name, followed_name in DEMO_FOLLOWS:
        edge = (users[follower_name].id, users[followed_name].id)
        if edge not in existing:
            db.add(Follower(user_id=edge[0], follows_user_id=edge[1]))
    db.commit()
    return users


def seed_events(db: Session, users: dict[str, User]) -> None:
    """Run one event of each type through the fanout engine."""
    service = FanoutService(SqlAlchemyFanoutRepository(db))
    samples = (
        ("alice", EventType.LIKE, "bob"),
        ("alice", EventType.COMMENT, "bob"),
        ("erin", EventType.FOLLOW, "carol"),
    )
    for actor, event_type, target in samples:
        result = service.process_event(
            EventInput(
                actor_id=users[actor].id,
                type=event_type.value,
                target_id=users[target].id,
            )
        )
        print(
            f"[seed] {actor} {event_type.value} {target}: "
            f"{len(result.notifications)} notifications, {len(result.logs)} trace entries"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the fanout debugger database")
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop all tables before recreating them.",
    )
    parser.add_argument(
        "--with-events",
        action="store_true",
        help="Also create sample events and run their fanout.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    if args.drop_tables:
        drop_tables()
        print("[seed] dropped all tables")
    create_tables()

    db = SessionLocal()
    try:
        users = seed_users(db)
        print(f"[seed] {len(users)} users ready")
        if args.with_events:
            seed_events(db, users)
    finally:
        db.close()


if __name__ == "__main__":
    main()
