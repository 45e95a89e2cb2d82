# Check NextUP Supabase table schemas
from __future__ import annotations
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from nextup_core.data.supabase_client import get_supabase_client
from nextup_core.config import get_settings

TABLES = [
    "projects",
    "gigs",
    "events",
    "hackathons",
    "scholarships",
    "bookmarks",
    "notifications",
    "profiles",
]


def main() -> int:
    settings = get_settings()
    if not settings.is_configured:
        print(f"Supabase not configured (missing: {', '.join(settings.missing)})")
        return 1

    client = get_supabase_client()
    if client is None:
        print("Could not create a Supabase client")
        return 1

    for table in TABLES:
        print(f"\n{'='*60}")
        print(f"Table: {table}")
        print(f"{'='*60}")
        try:
            # Fetch one row to see column structure
            response = client.table(table).select("*", count="exact").limit(1).execute()
            print(f"Rows: {response.count}")
            if response.data:
                row = response.data[0]
                print("Columns:")
                for key, value in row.items():
                    print(f"  - {key}: {type(value).__name__} = {repr(value)[:50]}")
            else:
                print("  (no data found)")
        except Exception as e:
            print(f"  Error: {e}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
