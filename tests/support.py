"""Shared sqlite fixtures for the test modules."""
import json

from adminlist.core_services.Config import Config
from adminlist.core_services.Sqlite3Database import Sqlite3Database
from adminlist.database.Model import BelongsTo, Model
from adminlist.database.fields.Fields import (
    CharField,
    DateTimeField,
    EmailField,
    ForeignKeyField,
    ImageField,
    IntegerField,
    JsonField,
    TextField,
)


def make_config(**overrides) -> Config:
    values = {"ADMINLIST_DEBUG": False, "ADMINLIST_SQL_LOG": False, "ADMINLIST_PAGE_LIMIT": "20"}
    values.update(overrides)
    return Config(values)


def make_db(config: Config = None) -> Sqlite3Database:
    return Sqlite3Database(":memory:", config=config or make_config())


class Doctor(Model):
    __table__ = "doctors"

    id = IntegerField(primary_key=True)
    name = CharField(max_length=100)


class Patient(Model):
    __table__ = "patients"
    __relationships__ = {"doctor": BelongsTo("doctors", "doctor_id")}

    id = IntegerField(primary_key=True)
    name = CharField(max_length=100, label="Name")
    email = EmailField(label="Email")
    notes = TextField()
    status = CharField(max_length=20)
    doctor_id = ForeignKeyField("doctors")
    tags = JsonField()
    photos = ImageField()
    created_at = DateTimeField()


class Missing(Model):
    __table__ = "missing_table"

    id = IntegerField(primary_key=True)


DOCTORS = [
    {"id": 1, "name": "House"},
    {"id": 2, "name": "Grey"},
]

PATIENTS = [
    {"id": 1, "name": "Alice", "email": "alice@example.com", "notes": "Allergic to penicillin and peanuts",
     "status": "active", "doctor_id": 2, "tags": json.dumps(["vip", "new"]),
     "photos": json.dumps([{"url": "/p/1.jpg", "name": "one"}]), "created_at": "2024-01-01 10:00:00"},
    {"id": 2, "name": "Bob", "email": "bob@example.com", "notes": "", "status": "inactive",
     "doctor_id": 1, "tags": "[]", "photos": None, "created_at": "2024-01-02 10:00:00"},
    {"id": 3, "name": "Carol", "email": "carol@example.com", "notes": "Follow-up", "status": "active",
     "doctor_id": 1, "tags": None, "photos": None, "created_at": "2024-01-03 10:00:00"},
    {"id": 4, "name": "Dave", "email": "dave@example.org", "notes": None, "status": "inactive",
     "doctor_id": None, "tags": None, "photos": None, "created_at": "2024-01-04 10:00:00"},
    {"id": 5, "name": "Eve", "email": "eve@example.com", "notes": "Night shift", "status": "active",
     "doctor_id": 2, "tags": None, "photos": None, "created_at": "2024-01-05 10:00:00"},
]


def seed_clinic(db: Sqlite3Database):
    """Create and fill ``doctors`` and ``patients``; returns ``(Patient, Doctor)`` instances."""
    db.executescript(f"{Doctor.create_table_sql()}; {Patient.create_table_sql()};")
    doctors, patients = Doctor(db), Patient(db)
    for row in DOCTORS:
        doctors.save(row)
    for row in PATIENTS:
        patients.save(row)
    return patients, doctors


def plain_model(db: Sqlite3Database, table: str, ddl: str, rows: list[dict] = ()):
    """Introspected model (no declared fields) over a table created from ``ddl``."""
    db.executescript(ddl)
    model = type(table.title(), (Model,), {"__table__": table})(db)
    for row in rows:
        model.save(row)
    return model
