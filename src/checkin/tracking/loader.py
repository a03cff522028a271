"""Import weekly check-ins from CSV files."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from checkin.tracking.queries import RecordQueries

logger = logging.getLogger(__name__)


def _optional_float(value: Any) -> Optional[float]:
    if pd.isna(value):
        return None
    return float(value)


def _optional_date(value: Any) -> Optional[date]:
    if pd.isna(value):
        return None
    return pd.Timestamp(value).date()


class CheckinLoader:
    """Handles importing weekly check-ins from CSV files."""

    REQUIRED_COLUMNS = ["week_number"]
    OPTIONAL_COLUMNS = ["weight", "waist", "date", "notes"]

    def __init__(self, conn: sqlite3.Connection, patient_id: int):
        """Initialize the loader.

        Args:
            conn: SQLite database connection
            patient_id: Patient the rows belong to
        """
        self.conn = conn
        self.patient_id = patient_id

    def load_from_csv(self, csv_path: Path) -> dict[str, int]:
        """Load check-ins from a CSV file.

        CSV format:
            week_number,weight,waist,date,notes
            0,200.0,40.5,2025-01-06,starting point
            1,198.2,,2025-01-13,

        Existing weeks are overwritten.

        Args:
            csv_path: Path to the CSV file

        Returns:
            Dict with counts: {'loaded': n, 'skipped_invalid_week': m}

        Raises:
            ValueError: If required columns are missing, or a row has an invalid
                measurement (nothing from the file is stored)
        """
        df = pd.read_csv(csv_path)

        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(
                f"Missing required columns: {missing}. "
                f"Required columns are: {self.REQUIRED_COLUMNS}"
            )

        df["week_number"] = pd.to_numeric(df["week_number"], errors="coerce")

        loaded = 0
        skipped_invalid_week = 0

        # One transaction for the whole file: a bad row leaves nothing behind
        try:
            for _, row in df.iterrows():
                week = row["week_number"]
                if pd.isna(week) or float(week) < 0 or not float(week).is_integer():
                    skipped_invalid_week += 1
                    continue

                RecordQueries._upsert(
                    self.conn,
                    self.patient_id,
                    int(week),
                    weight=_optional_float(row.get("weight")),
                    waist=_optional_float(row.get("waist")),
                    recorded_at=_optional_date(row.get("date")),
                    notes=None if pd.isna(row.get("notes")) else str(row.get("notes")),
                )
                loaded += 1
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()

        logger.info(
            "Imported %d weeks from %s (%d skipped)", loaded, csv_path, skipped_invalid_week
        )
        return {
            "loaded": loaded,
            "skipped_invalid_week": skipped_invalid_week,
        }
