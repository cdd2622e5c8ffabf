import logging

import pytest
from sqlalchemy.exc import OperationalError

from field_reports.core.exceptions import ConfigurationError
from field_reports.services import path_resolver
from field_reports.services.path_resolver import PathResolver, normalize_user_path, validate_path
from field_reports.services.report_storage import ReportStorageService


@pytest.fixture()
def folders(tmp_path):
    paths = {}
    for name in ("tenant", "legacy", "default"):
        paths[name] = tmp_path / name
        paths[name].mkdir()
    return paths


def test_tenant_path_wins(folders, last_resort, make_settings):
    settings = make_settings(tenant_paths={1: str(folders["tenant"])}, legacy_path=str(folders["legacy"]))
    resolver = PathResolver(settings, default_path=str(folders["default"]), last_resort_path=last_resort)

    assert resolver.resolve(1) == folders["tenant"].resolve()
    # Lower priority candidates are never asked for
    assert settings.calls == [("tenant", 1)]


def test_falls_through_configured_legacy_default_last_resort(folders, last_resort, make_settings):
    settings = make_settings(legacy_path=str(folders["legacy"]))
    resolver = PathResolver(settings, default_path=str(folders["default"]), last_resort_path=last_resort)
    assert resolver.resolve(1) == folders["legacy"].resolve()

    settings.legacy_path = None
    assert resolver.resolve(1) == folders["default"].resolve()

    resolver.default_path = ""
    assert not last_resort.exists()
    resolved = resolver.resolve(1)
    assert resolved == last_resort.resolve()
    assert resolved.is_dir()


def test_tenant_path_pointing_at_file_falls_through(tmp_path, folders, last_resort, make_settings, caplog):
    regular_file = tmp_path / "report.pdf"
    regular_file.write_bytes(b"%PDF")
    settings = make_settings(tenant_paths={1: str(regular_file)}, legacy_path=str(folders["legacy"]))
    resolver = PathResolver(settings, default_path="", last_resort_path=last_resort)

    with caplog.at_level(logging.WARNING):
        resolved = resolver.resolve(1)

    assert resolved == folders["legacy"].resolve()
    assert "not a directory" in caplog.text


def test_missing_and_unwritable_paths_fall_through(tmp_path, folders, last_resort, make_settings, monkeypatch, caplog):
    settings = make_settings(tenant_paths={1: str(tmp_path / "gone")}, legacy_path=str(folders["legacy"]))
    resolver = PathResolver(settings, default_path=str(folders["default"]), last_resort_path=last_resort)

    real_check = path_resolver._check_writable
    monkeypatch.setattr(
        path_resolver, "_check_writable",
        lambda path: False if path.name == "legacy" else real_check(path),
    )

    with caplog.at_level(logging.WARNING):
        assert resolver.resolve(1) == folders["default"].resolve()

    assert "does not exist" in caplog.text
    assert "not writable" in caplog.text


def test_last_resort_failure_is_configuration_error(tmp_path, make_settings):
    blocker = tmp_path / "blocker"
    blocker.write_text("file")
    resolver = PathResolver(make_settings(), default_path="", last_resort_path=blocker / "pdfs")

    with pytest.raises(ConfigurationError):
        resolver.resolve(1)


def test_validate_path_results(tmp_path):
    assert validate_path(tmp_path).valid
    assert validate_path(None).error == "Path is required"
    assert validate_path(tmp_path / "missing").error == "Path does not exist"
    file_path = tmp_path / "f.txt"
    file_path.write_text("x")
    assert validate_path(file_path).error == "Path is not a directory"
    # The test file does not stay behind
    assert sorted(p.name for p in tmp_path.iterdir()) == ["f.txt"]


def test_normalize_user_path():
    assert normalize_user_path("  /srv/reports/ ") == "/srv/reports"
    with pytest.raises(ValueError):
        normalize_user_path("/srv/../etc")
    with pytest.raises(ValueError):
        normalize_user_path("   ")


def test_status_lists_every_candidate(tmp_path, folders, last_resort, make_settings):
    regular_file = tmp_path / "report.pdf"
    regular_file.write_bytes(b"%PDF")
    settings = make_settings(tenant_paths={1: str(regular_file)})
    resolver = PathResolver(settings, default_path=str(folders["default"]), last_resort_path=last_resort)

    status = resolver.status(1)

    by_name = {c.name: c for c in status.candidates}
    assert by_name["tenant"].configured and not by_name["tenant"].valid
    assert not by_name["legacy"].configured
    assert by_name["default"].valid
    assert status.effective_path == str(folders["default"].resolve())


class UnreadableTenantSettings:
    def get_tenant_storage_path(self, tenant_id):
        raise OperationalError("SELECT", {}, Exception("db down"))

    def get_legacy_shared_path(self):
        return None


def test_unreadable_source_falls_through(folders, last_resort, caplog):
    resolver = PathResolver(UnreadableTenantSettings(), default_path=str(folders["default"]), last_resort_path=last_resort)

    with caplog.at_level(logging.WARNING):
        assert resolver.resolve(1) == folders["default"].resolve()

    assert "Could not read tenant path" in caplog.text


def test_status_reports_unreadable_source(folders, last_resort):
    resolver = PathResolver(UnreadableTenantSettings(), default_path=str(folders["default"]), last_resort_path=last_resort)

    status = resolver.status(1)

    tenant = next(c for c in status.candidates if c.name == "tenant")
    assert not tenant.configured
    assert "db down" in tenant.error
    assert status.effective_path == str(folders["default"].resolve())


def test_save_uses_default_when_tenant_settings_unreadable(folders, last_resort):
    resolver = PathResolver(UnreadableTenantSettings(), default_path=str(folders["default"]), last_resort_path=last_resort)

    result = ReportStorageService(resolver).save_artifact(1, "MAK-2025-0007", "Density", "2025-03-14", b"%PDF")

    assert result.persisted
    assert result.path.startswith(str(folders["default"].resolve()))
