"""
Add the double-booking exclusion constraint to the bookings table

Migration to add:
- btree_gist extension (equality on therapist_id inside a GiST index)
- bookings_no_overlap: no two pending/confirmed bookings of the same
  therapist may have overlapping [scheduled_at, scheduled_end_at) ranges

Inserts that violate it fail with SQLSTATE 23P01, which the booking
service reports as "time slot no longer available".

Run with: python migrations/add_booking_overlap_constraint.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text
from app.database import engine

CONSTRAINT_NAME = "bookings_no_overlap"


def upgrade():
    """Add the exclusion constraint"""
    with engine.connect() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
        print("✅ btree_gist extension available")

        result = conn.execute(
            text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
            {"name": CONSTRAINT_NAME},
        )
        if result.first():
            print(f"ℹ️  {CONSTRAINT_NAME} constraint already exists")
        else:
            conn.execute(text(f"""
                ALTER TABLE bookings
                ADD CONSTRAINT {CONSTRAINT_NAME}
                EXCLUDE USING gist (
                    therapist_id WITH =,
                    tsrange(scheduled_at, scheduled_end_at, '[)') WITH &&
                )
                WHERE (status IN ('pending', 'confirmed'))
            """))
            print(f"✅ Added {CONSTRAINT_NAME} constraint")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove the exclusion constraint"""
    with engine.connect() as conn:
        conn.execute(text(f"ALTER TABLE bookings DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME}"))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description='Manage booking overlap constraint migration')
    parser.add_argument('--down', action='store_true', help='Rollback the migration')
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
