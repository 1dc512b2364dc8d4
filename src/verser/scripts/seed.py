"""Create the tables and load sample users, communities and memberships."""
from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.exc import SQLAlchemyError

from verser.db.session import create_tables, drop_tables
from verser.storage import SqlStorage, Storage, StorageError

SAMPLE_USERS = [
    {
        "username": "alex_johnson",
        "email": "alex@example.com",
        "avatar": "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=100&h=100&fit=crop&crop=face",
        "bio": "Product Designer",
    },
    {
        "username": "jane_smith",
        "email": "jane@example.com",
        "avatar": "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=100&h=100&fit=crop&crop=face",
        "bio": "Full-stack developer passionate about creating amazing user experiences",
    },
    {
        "username": "sarah_chen",
        "email": "sarah@example.com",
        "avatar": "https://images.unsplash.com/photo-1494790108755-2616b612b786?w=100&h=100&fit=crop&crop=face",
        "bio": "UI/UX Designer | Creative Director",
    },
    {
        "username": "mike_rodriguez",
        "email": "mike@example.com",
        "avatar": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=100&h=100&fit=crop&crop=face",
        "bio": "Startup Founder | Tech Entrepreneur",
    },
]

SAMPLE_COMMUNITIES = [
    ("Web Developers", "A community for web developers to share knowledge, ask questions, and collaborate on projects", "fas fa-code", "blue"),
    ("UI/UX Designers", "Design community for sharing inspiration, tools, and best practices", "fas fa-palette", "purple"),
    ("Startup Founders", "Entrepreneurship discussions, networking, and startup advice", "fas fa-rocket", "green"),
    ("Photography", "Photo sharing, tips, and techniques for photographers of all levels", "fas fa-camera", "yellow"),
    ("Digital Marketing", "Marketing strategies, tools, and case studies", "fas fa-bullhorn", "red"),
    ("React Developers", "React.js community for developers working with React ecosystem", "fas fa-code", "blue"),
    ("Graphic Design", "Creative design community for graphic designers and artists", "fas fa-palette", "purple"),
    ("Tech Entrepreneurs", "Technology entrepreneurship and innovation discussions", "fas fa-rocket", "green"),
    ("Mobile Photography", "Mobile photography tips, tricks, and photo challenges", "fas fa-camera", "yellow"),
    ("Content Marketing", "Content creation, strategy, and marketing best practices", "fas fa-bullhorn", "red"),
]

# (user index, community index) into the lists above
SAMPLE_MEMBERSHIPS = [(0, 0), (0, 1), (1, 0), (1, 2), (2, 1), (2, 3), (3, 0), (3, 4)]


async def seed(storage: Storage) -> bool:
    """Load the sample data. Returns ``False`` if users already exist."""
    if await storage.get_user_by_username(SAMPLE_USERS[0]["username"]) is not None:
        return False

    users = [await storage.create_user(**data) for data in SAMPLE_USERS]
    communities = [
        await storage.create_community(name=name, description=description, icon=icon, color=color)
        for name, description, icon, color in SAMPLE_COMMUNITIES
    ]
    for user_index, community_index in SAMPLE_MEMBERSHIPS:
        await storage.join_community(users[user_index].id, communities[community_index].id)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Create tables and load sample data")
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop all tables before recreating them.",
    )
    args = parser.parse_args()

    try:
        if args.drop:
            drop_tables()
            print("[seed] dropped all tables")
        create_tables()
        loaded = asyncio.run(seed(SqlStorage()))
    except (SQLAlchemyError, StorageError) as exc:
        print(f"[seed] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    if loaded:
        print(
            f"[seed] loaded {len(SAMPLE_USERS)} users, {len(SAMPLE_COMMUNITIES)} communities, "
            f"{len(SAMPLE_MEMBERSHIPS)} memberships"
        )
    else:
        print("[seed] sample data already present")


if __name__ == "__main__":
    main()
