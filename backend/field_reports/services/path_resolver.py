"""
Path Resolver - where report PDFs of a tenant are written

Candidates, in priority order (first valid wins):
1. tenant workflow path (tenants.workflow_base_path)
2. legacy shared path (app_settings 'onedrive_base_path'), for deployments
   that predate multi-tenancy
3. process default (PDF_BASE_PATH)
4. last resort: <backend>/pdfs, created if missing

A configured but unusable path only logs a warning: a broken optional
setting must never stop a report from being saved somewhere.
"""
import logging
import os
import uuid
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple

from pydantic import BaseModel

from field_reports.config import settings
from field_reports.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LAST_RESORT_PATH = Path(__file__).resolve().parents[2] / "pdfs"


class TenantSettings(Protocol):
    def get_tenant_storage_path(self, tenant_id: int) -> Optional[str]: ...

    def get_legacy_shared_path(self) -> Optional[str]: ...


class PathValidation(BaseModel):
    valid: bool
    path: Optional[str] = None
    error: Optional[str] = None


class CandidateStatus(BaseModel):
    name: str
    configured: bool
    path: Optional[str] = None
    valid: bool = False
    error: Optional[str] = None


class StorageStatus(BaseModel):
    effective_path: Optional[str] = None
    candidates: List[CandidateStatus] = []
    error: Optional[str] = None


def normalize_user_path(raw: str) -> str:
    """
    Normalizes a user supplied path

    Raises:
        ValueError: empty path or directory traversal ("..")
    """
    if not raw or not raw.strip():
        raise ValueError("Path must be a non-empty string")
    stripped = raw.strip()
    if ".." in Path(stripped).parts:
        raise ValueError("Invalid path: directory traversal detected")
    return os.path.normpath(stripped)


def _check_writable(path: Path) -> bool:
    """Creates and removes a scratch file; permission bits alone are not trusted"""
    scratch = path / f".write_check_{uuid.uuid4().hex}"
    try:
        with open(scratch, "xb") as f:
            f.write(b"check")
    except OSError:
        return False
    try:
        scratch.unlink()
    except OSError as e:
        logger.warning("[STORAGE] Could not remove write check file %s: %s", scratch, e)
    return True


def validate_path(path) -> PathValidation:
    """Checks that the path exists, is a directory and is writable"""
    if not path:
        return PathValidation(valid=False, error="Path is required")

    candidate = Path(path)
    if not candidate.exists():
        return PathValidation(valid=False, path=str(candidate), error="Path does not exist")
    if not candidate.is_dir():
        return PathValidation(valid=False, path=str(candidate), error="Path is not a directory")
    if not _check_writable(candidate):
        return PathValidation(valid=False, path=str(candidate), error="Directory is not writable")
    return PathValidation(valid=True, path=str(candidate))


class PathResolver:
    """
    Resolves the effective storage root of a tenant

    Candidates are (name, provider) pairs evaluated lazily: a provider is
    only called when every higher priority candidate failed.
    """

    def __init__(
        self,
        tenant_settings: TenantSettings,
        default_path: Optional[str] = None,
        last_resort_path: Optional[Path] = None,
    ):
        self.tenant_settings = tenant_settings
        self.default_path = default_path if default_path is not None else settings.PDF_BASE_PATH
        self.last_resort_path = Path(last_resort_path or LAST_RESORT_PATH)

    def candidates(self, tenant_id: int) -> List[Tuple[str, Callable[[], Optional[str]]]]:
        return [
            ("tenant", lambda: self.tenant_settings.get_tenant_storage_path(tenant_id)),
            ("legacy", self.tenant_settings.get_legacy_shared_path),
            ("default", lambda: self.default_path),
        ]

    def resolve(self, tenant_id: int) -> Path:
        """
        Returns the first valid candidate as an absolute path

        Raises:
            ConfigurationError: not even the last-resort folder is usable
        """
        for name, provider in self.candidates(tenant_id):
            configured = self._read_candidate(name, provider, tenant_id)
            if not configured:
                continue
            validation = validate_path(configured)
            if validation.valid:
                return Path(configured).resolve()
            logger.warning(
                "[STORAGE] %s path for tenant %s is configured but invalid: %s (%s)",
                name.capitalize(), tenant_id, configured, validation.error,
            )

        return self._last_resort()

    def _read_candidate(self, name, provider, tenant_id) -> Optional[str]:
        """Provider value, or None when the source itself could not be read"""
        try:
            return provider()
        except Exception as e:
            logger.warning(
                "[STORAGE] Could not read %s path for tenant %s, skipping it: %s",
                name, tenant_id, e,
            )
            return None

    def _last_resort(self) -> Path:
        try:
            self.last_resort_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Could not create default storage folder {self.last_resort_path}: {e}"
            ) from e

        validation = validate_path(self.last_resort_path)
        if not validation.valid:
            raise ConfigurationError(
                f"Default storage folder {self.last_resort_path} is unusable: {validation.error}"
            )
        return self.last_resort_path.resolve()

    def status(self, tenant_id: int) -> StorageStatus:
        """Every candidate with its validation result, plus the effective path"""
        candidates = []
        for name, provider in self.candidates(tenant_id):
            try:
                configured = provider()
            except Exception as e:
                logger.warning("[STORAGE] Could not read %s path for tenant %s: %s", name, tenant_id, e)
                candidates.append(CandidateStatus(name=name, configured=False, error=f"Could not read setting: {e}"))
                continue
            if not configured:
                candidates.append(CandidateStatus(name=name, configured=False))
                continue
            validation = validate_path(configured)
            candidates.append(CandidateStatus(
                name=name,
                configured=True,
                path=configured,
                valid=validation.valid,
                error=validation.error,
            ))
        candidates.append(CandidateStatus(
            name="last_resort",
            configured=True,
            path=str(self.last_resort_path),
            valid=validate_path(self.last_resort_path).valid,
        ))

        try:
            effective = str(self.resolve(tenant_id))
        except ConfigurationError as e:
            return StorageStatus(candidates=candidates, error=str(e))
        return StorageStatus(effective_path=effective, candidates=candidates)
