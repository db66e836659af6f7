#!/usr/bin/env python3
"""
Minimal seed:
- Creates tables if they are missing.
- Ensures the default manager account exists.
- Adds the demo courses, cohorts and facilitators.
- Safe to run multiple times (idempotent).
"""
import os

from coursehub.db.seed import seed_default_admin, seed_sample_data
from coursehub.db.session import SessionLocal, engine
from coursehub.models import Base


def main():
    password = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        u = seed_default_admin(db, password=password)
        print(f"OK: default admin ensured -> {u.email} (id={u.id})")
        print(f"OK: sample data rows added -> {seed_sample_data(db)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
