from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "face_attendance"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from face_attendance.database.bootstrap import apply_schema, list_tables
from face_attendance.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = DBConfig.from_mapping(settings.DB_CONFIG)

    count = apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(db_config)
    print(f"OK: {count} statements applied to {db_config.describe()} (tables: {', '.join(tables)})")


if __name__ == "__main__":
    main()
