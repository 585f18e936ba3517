#!/usr/bin/env python3
"""Validate local Pitchbook environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sqlite3
import sys
import tempfile
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pitchbook.repository.data_repository import DataRepository
from pitchbook.services.availability_service import AvailabilityService
from pitchbook.utils.config import get_settings

SEPARATOR_LINE = "=" * 44

# (import name, distribution name)
REQUIRED_PACKAGES = [
    ("fastapi", "fastapi"),
    ("uvicorn", "uvicorn"),
    ("pydantic", "pydantic"),
    ("tzdata", "tzdata"),
    ("httpx", "httpx"),
    ("pytest", "pytest"),
]


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="pitchbook-env-")

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = REQUIRED_PACKAGES
    import_errors: list[str] = []
    from importlib.metadata import version
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            _ = version(dist_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        base_settings = get_settings()
        temp_db_path = Path(temp_dir) / "pitchbook_validation.db"
        validation_settings = replace(base_settings, database_path=temp_db_path)
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo seeding (4 pitches, 7 schedule rows each)
        try:
            repository.seed_demo_data()
            with sqlite3.connect(temp_db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM PitchSchedules;")
                schedule_rows = int(cursor.fetchone()[0])
            if schedule_rows != 28:
                raise RuntimeError(f"expected 28 schedule rows, got {schedule_rows}")
            ok, line = _print_result("Demo dataset: 28 schedule rows", True)
        except Exception as exc:
            ok, line = _print_result("Demo dataset", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Availability for a weekday before any booking
        try:
            service = AvailabilityService(
                repository=repository,
                settings=validation_settings,
                clock=lambda: datetime(2000, 1, 1, tzinfo=timezone.utc),
            )
            slots = service.get_day_availability(1, date(2026, 2, 23))
            if len(slots) != 13 or not all(slot.available for slot in slots):
                raise RuntimeError(f"expected 13 open slots, got {len(slots)}")
            ok, line = _print_result(
                "Availability generation",
                True,
                f": first slot {slots[0].to_api_dict()['start']}",
            )
        except Exception as exc:
            ok, line = _print_result("Availability generation", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Pitchbook Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
