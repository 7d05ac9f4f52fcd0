#!/usr/bin/env python3
"""
Owner Provisioning Script
Creates or updates the shop owner account for the Dragon Auto Shop Billing API

Usage:
    python scripts/provision_owner.py --character-name "Dragon Boss" \
        --discord-id 123456789012345678 --verification-key OWNERKEY
"""

import argparse
import logging
import sys
from typing import Tuple

from sqlalchemy.orm import Session

from app.config.database import Base, SessionLocal, engine
from app.shared.database.models import Owner

logger = logging.getLogger("provision_owner")

def provision_owner(
    db: Session,
    character_name: str,
    discord_id: str,
    verification_key: str
) -> Tuple[Owner, bool]:
    """Insert the owner, or refresh the Discord id and key of an existing one"""
    name = character_name.strip().lower()
    owner = db.query(Owner).filter(Owner.character_name == name).first()
    created = owner is None

    if created:
        owner = Owner(character_name=name, discord_id="", verification_key="")
        db.add(owner)

    owner.discord_id = discord_id.strip()
    owner.verification_key = verification_key.strip().upper()
    db.commit()
    db.refresh(owner)
    return owner, created

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or update the shop owner")
    parser.add_argument("--character-name", required=True, help="Owner's in-game character name")
    parser.add_argument("--discord-id", required=True, help="Owner's Discord user id")
    parser.add_argument("--verification-key", required=True, help="Owner's personal login key")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        owner, created = provision_owner(
            db, args.character_name, args.discord_id, args.verification_key
        )
    finally:
        db.close()

    action = "created" if created else "updated"
    logger.info(f"👑 Owner '{owner.character_name}' {action} (id={owner.id})")
    return 0

if __name__ == "__main__":
    sys.exit(main())
