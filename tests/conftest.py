"""
Shared fixtures: an in-memory SQLite database per test, the service
factory bound to it, and ready-made drafts and workers.
"""

import pytest
from sqlalchemy.pool import StaticPool

from komuniteti.db.init_db import drop_db, init_db
from komuniteti.db.session import build_engine, build_session_factory
from komuniteti.schemas.common.enums import MaintenanceType
from komuniteti.services.maintenance import MaintenanceServiceFactory
from tests.factories import make_draft, make_worker


@pytest.fixture
def engine():
    engine = build_engine(url="sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def services(db):
    return MaintenanceServiceFactory(db)


@pytest.fixture
def draft():
    return make_draft()


@pytest.fixture
def request_snapshot(services, draft):
    return services.requests().create_request(draft).unwrap()


@pytest.fixture
def worker(services):
    return services.workers().register_worker(make_worker()).unwrap()


@pytest.fixture
def second_worker(services):
    return services.workers().register_worker(
        make_worker(
            name="Besa Gashi",
            email="besa@example.com",
            specialties=[MaintenanceType.ELECTRICAL],
        )
    ).unwrap()
