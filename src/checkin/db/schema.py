"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Patients being tracked
CREATE TABLE IF NOT EXISTS patients (
    patient_id INTEGER PRIMARY KEY AUTOINCREMENT,
    full_name TEXT NOT NULL,
    goal_rate_percent REAL,
    protein_goal_grams REAL,
    unit_system TEXT NOT NULL DEFAULT 'imperial',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- One check-in per patient per week; week 0 is the baseline
CREATE TABLE IF NOT EXISTS weekly_records (
    record_id INTEGER PRIMARY KEY AUTOINCREMENT,
    patient_id INTEGER NOT NULL,
    week_number INTEGER NOT NULL CHECK (week_number >= 0),
    weight REAL,
    waist REAL,
    recorded_at DATE,
    notes TEXT,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (patient_id, week_number),
    FOREIGN KEY (patient_id) REFERENCES patients(patient_id)
);

CREATE INDEX IF NOT EXISTS idx_weekly_records_patient ON weekly_records(patient_id);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
