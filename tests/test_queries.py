"""Tests for patient and check-in storage and CSV import."""

from __future__ import annotations

from datetime import date

import pytest

from checkin.tracking.loader import CheckinLoader
from checkin.tracking.models import Patient
from checkin.tracking.queries import PatientQueries, RecordQueries
from checkin.tracking.rates import compute_momentum_rate


class TestPatientQueries:
    """Tests for PatientQueries."""

    def test_create_and_get(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            patient = PatientQueries.get_patient(conn, patient_id)

        assert patient is not None
        assert patient.full_name == "Jane Doe"
        assert patient.goal_rate_percent == 1.0
        assert patient.protein_goal_grams == 140
        assert patient.unit_system == "imperial"
        assert patient.created_at is not None

    def test_get_missing(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            assert PatientQueries.get_patient(conn, 999) is None
            assert PatientQueries.get_default_patient(conn) is None

    def test_default_is_first(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            PatientQueries.create_patient(conn, Patient(patient_id=None, full_name="Sam Lee"))
            default = PatientQueries.get_default_patient(conn)
            patients = PatientQueries.list_patients(conn)

        assert default is not None
        assert default.patient_id == patient_id
        assert [p.full_name for p in patients] == ["Jane Doe", "Sam Lee"]

    def test_invalid_unit_system(self) -> None:
        with pytest.raises(ValueError, match="unit_system"):
            Patient(patient_id=None, full_name="Sam", unit_system="furlongs")


class TestRecordQueries:
    """Tests for RecordQueries."""

    def test_upsert_and_get(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            stored = RecordQueries.upsert_record(
                conn,
                patient_id,
                0,
                weight=200.0,
                waist=40.0,
                recorded_at=date(2025, 1, 6),
                notes="start",
            )

        assert stored.record_id is not None
        assert stored.patient_id == patient_id
        assert stored.quantity == 200.0
        assert stored.waist == 40.0
        assert stored.recorded_at == date(2025, 1, 6)
        assert stored.notes == "start"

    def test_upsert_overwrites_week(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            RecordQueries.upsert_record(conn, patient_id, 1, weight=198.0)
            RecordQueries.upsert_record(conn, patient_id, 1, weight=197.5)
            records = RecordQueries.get_records(conn, patient_id)

        assert len(records) == 1
        assert records[0].quantity == 197.5

    def test_records_ordered_by_week(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            for week, weight in [(3, 195.0), (0, 200.0), (1, 198.0)]:
                RecordQueries.upsert_record(conn, patient_id, week, weight=weight)
            records = RecordQueries.get_records(conn, patient_id)

        assert [r.week_number for r in records] == [0, 1, 3]

    def test_weight_optional(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            stored = RecordQueries.upsert_record(conn, patient_id, 2, notes="skipped scale")
        assert stored.quantity is None

    def test_invalid_values_not_stored(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError):
                RecordQueries.upsert_record(conn, patient_id, 1, weight=-3.0)
            with pytest.raises(ValueError):
                RecordQueries.upsert_record(conn, patient_id, -1, weight=190.0)
            assert RecordQueries.get_records(conn, patient_id) == []

    def test_delete(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            RecordQueries.upsert_record(conn, patient_id, 0, weight=200.0)
            assert RecordQueries.delete_record(conn, patient_id, 0) is True
            assert RecordQueries.delete_record(conn, patient_id, 0) is False
            assert RecordQueries.get_record(conn, patient_id, 0) is None

    def test_edit_recomputes_metrics(self, temp_db, patient_id) -> None:
        """Correcting a week changes the rates read afterwards."""
        with temp_db.get_connection() as conn:
            RecordQueries.upsert_record(conn, patient_id, 0, weight=200.0)
            RecordQueries.upsert_record(conn, patient_id, 1, weight=198.0)
            before = compute_momentum_rate(RecordQueries.get_records(conn, patient_id), 1)

            RecordQueries.upsert_record(conn, patient_id, 1, weight=196.0)
            after = compute_momentum_rate(RecordQueries.get_records(conn, patient_id), 1)

        assert before == pytest.approx(1.0)
        assert after == pytest.approx(2.0)

    def test_patients_isolated(self, temp_db, patient_id) -> None:
        with temp_db.get_connection() as conn:
            other = PatientQueries.create_patient(conn, Patient(patient_id=None, full_name="Sam"))
            RecordQueries.upsert_record(conn, patient_id, 0, weight=200.0)
            RecordQueries.upsert_record(conn, other, 0, weight=150.0)

            assert [r.quantity for r in RecordQueries.get_records(conn, patient_id)] == [200.0]
            assert [r.quantity for r in RecordQueries.get_records(conn, other)] == [150.0]


class TestCheckinLoader:
    """Tests for CSV import."""

    def test_load(self, temp_db, patient_id, tmp_path) -> None:
        csv_path = tmp_path / "checkins.csv"
        csv_path.write_text(
            "week_number,weight,waist,date,notes\n"
            "0,200.0,40.5,2025-01-06,starting point\n"
            "1,198.2,,2025-01-13,\n"
            "2,,,2025-01-20,no scale\n"
        )

        with temp_db.get_connection() as conn:
            result = CheckinLoader(conn, patient_id).load_from_csv(csv_path)
            records = RecordQueries.get_records(conn, patient_id)

        assert result == {"loaded": 3, "skipped_invalid_week": 0}
        assert [r.week_number for r in records] == [0, 1, 2]
        assert records[0].waist == 40.5
        assert records[0].notes == "starting point"
        assert records[1].waist is None
        assert records[1].recorded_at == date(2025, 1, 13)
        assert records[2].quantity is None

    def test_weight_only_columns(self, temp_db, patient_id, tmp_path) -> None:
        csv_path = tmp_path / "weights.csv"
        csv_path.write_text("week_number,weight\n0,200\n1,198\n")

        with temp_db.get_connection() as conn:
            CheckinLoader(conn, patient_id).load_from_csv(csv_path)
            records = RecordQueries.get_records(conn, patient_id)

        assert [r.quantity for r in records] == [200.0, 198.0]
        assert records[0].recorded_at is None

    def test_invalid_weeks_skipped(self, temp_db, patient_id, tmp_path) -> None:
        csv_path = tmp_path / "bad.csv"
        csv_path.write_text("week_number,weight\n0,200\n-1,199\nabc,198\n1.5,197\n2,196\n")

        with temp_db.get_connection() as conn:
            result = CheckinLoader(conn, patient_id).load_from_csv(csv_path)
            records = RecordQueries.get_records(conn, patient_id)

        assert result == {"loaded": 2, "skipped_invalid_week": 3}
        assert [r.week_number for r in records] == [0, 2]

    def test_missing_required_column(self, temp_db, patient_id, tmp_path) -> None:
        csv_path = tmp_path / "nocol.csv"
        csv_path.write_text("weight\n200\n")

        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError, match="Missing required columns"):
                CheckinLoader(conn, patient_id).load_from_csv(csv_path)

    def test_bad_row_stores_nothing(self, temp_db, patient_id, tmp_path) -> None:
        """A failing row rolls back the rows before it."""
        csv_path = tmp_path / "partial.csv"
        csv_path.write_text("week_number,weight\n0,200\n1,198\n2,-5\n3,195\n")

        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError):
                CheckinLoader(conn, patient_id).load_from_csv(csv_path)
            assert RecordQueries.get_records(conn, patient_id) == []

        with temp_db.get_connection() as conn:
            assert RecordQueries.get_records(conn, patient_id) == []

    def test_bad_row_keeps_existing_weeks(self, temp_db, patient_id, tmp_path) -> None:
        csv_path = tmp_path / "partial.csv"
        csv_path.write_text("week_number,weight\n0,210\n1,abc\n")

        with temp_db.get_connection() as conn:
            RecordQueries.upsert_record(conn, patient_id, 0, weight=200.0)
            with pytest.raises(ValueError):
                CheckinLoader(conn, patient_id).load_from_csv(csv_path)
            records = RecordQueries.get_records(conn, patient_id)

        assert [r.quantity for r in records] == [200.0]

    def test_infinite_weight_rejected(self, temp_db, patient_id, tmp_path) -> None:
        csv_path = tmp_path / "inf.csv"
        csv_path.write_text("week_number,weight\n0,inf\n1,198\n")

        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError, match="finite"):
                CheckinLoader(conn, patient_id).load_from_csv(csv_path)
            assert RecordQueries.get_records(conn, patient_id) == []
