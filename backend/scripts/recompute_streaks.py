"""
Re-sync a user's streak and workout totals from their stored activities.

Uses the same conditional write as activity creation, so it is safe to run
while the API is serving traffic and safe to run multiple times.

Usage:
    cd backend
    SUPABASE_URL=... SUPABASE_SERVICE_KEY=... python scripts/recompute_streaks.py <user_id> [--dry-run]
"""
import os
import sys

# Add project root to path so we can import the package
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fitstreak.db import get_client, get_user
from fitstreak.errors import FitStreakError
from fitstreak.tracker import resync_user


FIELDS = ["current_streak", "best_streak", "total_workouts", "last_workout_date"]


def run(user_id: str, dry_run: bool = False) -> int:
    print(f"\n🔍 Recomputing streak for user: {user_id[:8]}...\n")

    db = get_client()
    current = get_user(db, user_id)
    if not current:
        print(f"❌ User not found: {user_id}")
        return 1

    print("  Current stats:")
    for k in FIELDS:
        print(f"    {k}: {current.get(k)}")

    try:
        new_stats = resync_user(db, user_id, dry_run=dry_run)
    except FitStreakError as e:
        print(f"❌ {e}")
        return 1

    print("\n  Computed stats:")
    for k in FIELDS:
        v = new_stats.get(k)
        was = current.get(k)
        marker = " ✅" if v == was else f" 📈 (was {was})"
        print(f"    {k}: {v}{marker}")

    if dry_run:
        print("\n  DRY RUN — no changes written.")
    else:
        print(f"\n✅ Stats updated for {current.get('username', user_id)}!\n")
    return 0


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--dry-run"]
    dry = "--dry-run" in sys.argv

    if not args:
        print("Usage: python scripts/recompute_streaks.py <user_id> [--dry-run]")
        sys.exit(1)

    sys.exit(run(args[0], dry_run=dry))
