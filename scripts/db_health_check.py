#!/usr/bin/env python
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, inspect, text


EXPECTED_HEAD = "0001_initial"
MAX_PUNCHES_PER_DAY = int(os.environ.get("MAX_PUNCHES_PER_DAY", "4"))


def load_env_if_exists() -> None:
    env_file = Path(".env")
    if not env_file.exists():
        return
    for raw_line in env_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def run() -> dict:
    load_env_if_exists()
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL not found (.env or env vars).")

    engine = create_engine(database_url)
    report: dict = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "checks": [],
    }

    def add(name: str, status: str, details: dict) -> None:
        report["checks"].append(
            {
                "name": name,
                "status": status,
                "details": details,
            }
        )

    with engine.connect() as conn:
        tables = set(inspect(conn).get_table_names())

        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add("alembic_version", "ok" if current_versions else "fail", {"current": current_versions})
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        if "punch_events" not in tables:
            add("punch_events_table", "fail", {"missing": "punch_events"})
            return report
        add("punch_events_table", "ok", {})

        overfull_days = conn.execute(
            text(
                """
                select identity, local_day, count(*)
                from punch_events
                group by identity, local_day
                having count(*) > :max_punches
                limit 20
                """
            ),
            {"max_punches": MAX_PUNCHES_PER_DAY},
        ).fetchall()
        add(
            "days_over_punch_limit",
            "fail" if overfull_days else "ok",
            {"rows": [[str(value) for value in row] for row in overfull_days]},
        )

        exits_without_entry = conn.execute(
            text(
                """
                select x.id
                from punch_events x
                left join punch_events e
                  on e.identity = x.identity
                 and e.local_day = x.local_day
                 and e.punch_type = 'ENTRY'
                where x.punch_type = 'EXIT' and e.id is null
                limit 20
                """
            )
        ).fetchall()
        add(
            "exit_without_entry",
            "warn" if exits_without_entry else "ok",
            {"sample_ids": [row[0] for row in exits_without_entry]},
        )

    return report


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
