"""
Shared helpers: an in-memory local backend and a mounted log component.
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from medlog.db.session import init_db, make_engine, make_session_factory
from medlog.schemas.log import Identity, Medication
from medlog.services.local_backend import LocalBackend
from medlog.services.logger import MedicationLogger

BASE_TIME = datetime(2024, 3, 14, 9, 0, 0)


def make_backend(user_id=None, backend_class=LocalBackend):
    engine = make_engine("sqlite://")
    init_db(engine)
    identity = Identity(id=user_id) if user_id else None
    return backend_class(make_session_factory(engine), identity=identity)


def note_row(user_id, content, minutes=0, **extra):
    row = {
        "user_id": user_id,
        "content": content,
        "is_administration": False,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    row.update(extra)
    return row


async def mounted(backend, medications=()):
    component = MedicationLogger(backend, medications=medications)
    await component.mount()
    await component.wait_idle()
    return component


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def medications():
    return [Medication(id="1", name="Aspirin"), Medication(id="2", name="Ibuprofen")]
