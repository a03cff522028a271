"""Database queries for patients and weekly check-ins."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from typing import Optional

from checkin.tracking.models import Patient, WeeklyRecord

logger = logging.getLogger(__name__)

_PATIENT_COLUMNS = """
    patient_id, full_name, goal_rate_percent, protein_goal_grams,
    unit_system, created_at
"""

_RECORD_COLUMNS = """
    record_id, patient_id, week_number, weight, waist, recorded_at, notes
"""


def _row_to_patient(row: sqlite3.Row) -> Patient:
    return Patient(
        patient_id=row[0],
        full_name=row[1],
        goal_rate_percent=row[2],
        protein_goal_grams=row[3],
        unit_system=row[4],
        created_at=datetime.fromisoformat(row[5]) if row[5] else None,
    )


def _row_to_record(row: sqlite3.Row) -> WeeklyRecord:
    return WeeklyRecord(
        record_id=row[0],
        patient_id=row[1],
        week_number=row[2],
        quantity=row[3],
        waist=row[4],
        recorded_at=date.fromisoformat(row[5]) if row[5] else None,
        notes=row[6],
    )


class PatientQueries:
    """Database queries for patient profiles."""

    @staticmethod
    def create_patient(conn: sqlite3.Connection, patient: Patient) -> int:
        """Create a new patient and return the patient_id."""
        cursor = conn.execute(
            """
            INSERT INTO patients (full_name, goal_rate_percent, protein_goal_grams, unit_system)
            VALUES (?, ?, ?, ?)
            """,
            (
                patient.full_name,
                patient.goal_rate_percent,
                patient.protein_goal_grams,
                patient.unit_system,
            ),
        )
        conn.commit()
        patient_id = cursor.lastrowid or 0
        logger.info("Created patient %d (%s)", patient_id, patient.full_name)
        return patient_id

    @staticmethod
    def get_patient(conn: sqlite3.Connection, patient_id: int) -> Optional[Patient]:
        """Get a patient by ID."""
        row = conn.execute(
            f"SELECT {_PATIENT_COLUMNS} FROM patients WHERE patient_id = ?",
            (patient_id,),
        ).fetchone()
        return _row_to_patient(row) if row else None

    @staticmethod
    def get_default_patient(conn: sqlite3.Connection) -> Optional[Patient]:
        """Get the first (default) patient."""
        row = conn.execute(
            f"SELECT {_PATIENT_COLUMNS} FROM patients ORDER BY patient_id LIMIT 1"
        ).fetchone()
        return _row_to_patient(row) if row else None

    @staticmethod
    def list_patients(conn: sqlite3.Connection) -> list[Patient]:
        """List all patients."""
        rows = conn.execute(
            f"SELECT {_PATIENT_COLUMNS} FROM patients ORDER BY patient_id"
        ).fetchall()
        return [_row_to_patient(row) for row in rows]


class RecordQueries:
    """Database queries for weekly check-in records."""

    @staticmethod
    def upsert_record(
        conn: sqlite3.Connection,
        patient_id: int,
        week_number: int,
        weight: Optional[float] = None,
        waist: Optional[float] = None,
        recorded_at: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> WeeklyRecord:
        """
        Add or replace the check-in for a week and commit.

        There is at most one record per patient and week, so writing a week
        that already exists overwrites it (this is how a coach corrects a
        value). Nothing derived is stored; metrics are recomputed on read.
        """
        record = RecordQueries._upsert(
            conn, patient_id, week_number, weight, waist, recorded_at, notes
        )
        conn.commit()

        stored = RecordQueries.get_record(conn, patient_id, week_number)
        return stored if stored is not None else record

    @staticmethod
    def _upsert(
        conn: sqlite3.Connection,
        patient_id: int,
        week_number: int,
        weight: Optional[float] = None,
        waist: Optional[float] = None,
        recorded_at: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> WeeklyRecord:
        """Write one week without committing. Raises ValueError on invalid values."""
        # Validate before touching the database
        record = WeeklyRecord(
            week_number=week_number,
            quantity=weight,
            waist=waist,
            recorded_at=recorded_at,
            notes=notes,
            patient_id=patient_id,
        )

        conn.execute(
            """
            INSERT INTO weekly_records (patient_id, week_number, weight, waist, recorded_at, notes)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (patient_id, week_number) DO UPDATE SET
                weight = excluded.weight,
                waist = excluded.waist,
                recorded_at = excluded.recorded_at,
                notes = excluded.notes,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                patient_id,
                week_number,
                weight,
                waist,
                recorded_at.isoformat() if recorded_at else None,
                notes,
            ),
        )
        logger.info("Saved week %d for patient %d", week_number, patient_id)
        return record

    @staticmethod
    def get_record(
        conn: sqlite3.Connection, patient_id: int, week_number: int
    ) -> Optional[WeeklyRecord]:
        """Get the check-in for a single week."""
        row = conn.execute(
            f"""
            SELECT {_RECORD_COLUMNS} FROM weekly_records
            WHERE patient_id = ? AND week_number = ?
            """,
            (patient_id, week_number),
        ).fetchone()
        return _row_to_record(row) if row else None

    @staticmethod
    def get_records(conn: sqlite3.Connection, patient_id: int) -> list[WeeklyRecord]:
        """Get all check-ins for a patient, ascending by week."""
        rows = conn.execute(
            f"""
            SELECT {_RECORD_COLUMNS} FROM weekly_records
            WHERE patient_id = ?
            ORDER BY week_number
            """,
            (patient_id,),
        ).fetchall()
        return [_row_to_record(row) for row in rows]

    @staticmethod
    def delete_record(conn: sqlite3.Connection, patient_id: int, week_number: int) -> bool:
        """Delete a week's check-in. Returns True if a row was removed."""
        cursor = conn.execute(
            "DELETE FROM weekly_records WHERE patient_id = ? AND week_number = ?",
            (patient_id, week_number),
        )
        conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted week %d for patient %d", week_number, patient_id)
        return deleted
