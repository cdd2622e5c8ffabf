from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from field_reports.api import deps
from field_reports.database import build_engine
from field_reports.main import app
from field_reports.models import Base, Tenant
from field_reports.services.counter_store import ProjectCounterStore
from field_reports.services.path_resolver import PathResolver
from field_reports.services.report_storage import ReportStorageService
from field_reports.services.tenant_settings import DatabaseTenantSettings


class FakeTenantSettings:
    """In-memory tenant settings that records which providers were called"""

    def __init__(self, tenant_paths=None, legacy_path=None):
        self.tenant_paths = dict(tenant_paths or {})
        self.legacy_path = legacy_path
        self.calls = []

    def get_tenant_storage_path(self, tenant_id):
        self.calls.append(("tenant", tenant_id))
        return self.tenant_paths.get(tenant_id)

    def get_legacy_shared_path(self):
        self.calls.append(("legacy",))
        return self.legacy_path


@pytest.fixture()
def make_settings():
    return FakeTenantSettings


@pytest.fixture()
def engine(tmp_path: Path):
    engine = build_engine(f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def counter_store(session_factory):
    return ProjectCounterStore(
        session_factory,
        base_year=2022,
        block_size=400,
        max_retries=3,
        retry_delay=0,
    )


@pytest.fixture()
def tenant(db):
    tenant = Tenant(id=1, name="Acme Testing", project_number_prefix="MAK")
    db.add(tenant)
    db.commit()
    return tenant


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture()
def last_resort(tmp_path: Path) -> Path:
    return tmp_path / "last_resort_pdfs"


@pytest.fixture()
def storage_service(storage_root, last_resort):
    settings = FakeTenantSettings(tenant_paths={1: str(storage_root)})
    return ReportStorageService(PathResolver(settings, default_path="", last_resort_path=last_resort))


@pytest.fixture()
def client(session_factory, counter_store, tenant, last_resort):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    storage = ReportStorageService(
        PathResolver(DatabaseTenantSettings(session_factory), default_path="", last_resort_path=last_resort)
    )
    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_report_storage] = lambda: storage
    app.dependency_overrides[deps.get_counter_store] = lambda: counter_store
    try:
        yield TestClient(app, headers={"X-Tenant-ID": "1"})
    finally:
        app.dependency_overrides.clear()
