"""
Report storage service - saves generated report PDFs

Pipeline for one save:
    resolve base path -> provision project folders -> sequence / revision
    -> filename -> write

Only ConfigurationError (no usable base path at all) is raised. Any other
filesystem problem is logged and returned in the result, because the PDF
must still reach the technician who generated it.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from field_reports.config import settings
from field_reports.core.categories import ArtifactCategory, coerce_category
from field_reports.core.exceptions import FilesystemError
from field_reports.database import SessionLocal
from field_reports.schemas.report import ArtifactSaveResult
from field_reports.services.path_resolver import PathResolver
from field_reports.services.report_files import (
    DateLike,
    build_filename,
    category_directory,
    ensure_project_directory,
    find_existing_sequence,
    folder_lock,
    is_revision,
    next_revision,
    next_sequence,
    write_artifact,
)
from field_reports.services.tenant_settings import DatabaseTenantSettings

logger = logging.getLogger(__name__)


class ReportStorageService:
    """Saves report PDFs under the tenant's storage root"""

    def __init__(self, resolver: PathResolver, max_attempts: Optional[int] = None):
        self.resolver = resolver
        self.max_attempts = max_attempts or settings.ARTIFACT_SAVE_ATTEMPTS

    def ensure_project_folder(self, tenant_id: int, project_number: str) -> Path:
        """
        Creates the project folder tree in the tenant storage root

        Raises:
            ConfigurationError: no usable storage root
            FilesystemError: folder could not be created
        """
        base_dir = self.resolver.resolve(tenant_id)
        try:
            return ensure_project_directory(base_dir, project_number)
        except OSError as e:
            raise FilesystemError(f"Could not create folders for project {project_number}: {e}") from e

    def save_artifact(
        self,
        tenant_id: int,
        project_number: str,
        category: Union[ArtifactCategory, str],
        report_date: DateLike,
        payload: bytes,
        force_revision: bool = False,
        sequence: Optional[int] = None,
    ) -> ArtifactSaveResult:
        """
        Saves a report PDF

        Args:
            tenant_id: Tenant ID
            project_number: Project number (ex: "02-2025-1201")
            category: Report category
            report_date: Field date of the report
            payload: Rendered PDF bytes
            force_revision: Regenerating a report already saved for this
                category and date: reuse its sequence and add _REV<n>
            sequence: Sequence of the report being re-saved, when the caller
                knows it

        Returns:
            ArtifactSaveResult (persisted=False + error when writing failed)

        Raises:
            ConfigurationError: no usable storage root
            ValueError: unknown category
        """
        category = coerce_category(category)
        base_dir = self.resolver.resolve(tenant_id)

        try:
            project_root = ensure_project_directory(base_dir, project_number)
        except OSError as e:
            logger.error(
                "[STORAGE] Could not create folders for project %s (tenant %s): %s",
                project_number, tenant_id, e,
            )
            return ArtifactSaveResult(persisted=False, error=str(e))

        folder = category_directory(project_root, category)
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            with folder_lock(folder):
                try:
                    target_sequence, revision, target = self._plan_target(
                        project_root, category, project_number, report_date,
                        force_revision, sequence,
                    )
                except OSError as e:
                    logger.error("[STORAGE] Could not read folder %s: %s", folder, e)
                    return ArtifactSaveResult(persisted=False, error=str(e))

                written = write_artifact(target, payload)

            if written.conflict:
                # Another writer took this name between the scan and the write
                last_error = written.error
                logger.warning(
                    "[STORAGE] %s was created concurrently, recomputing (attempt %d/%d)",
                    target.name, attempt, self.max_attempts,
                )
                continue

            result = ArtifactSaveResult(
                path=str(target),
                filename=target.name,
                sequence=target_sequence,
                revision=revision,
                is_revision=revision is not None,
                persisted=written.persisted,
                error=written.error,
            )
            if result.persisted:
                logger.info(
                    "[STORAGE] PDF saved successfully: %s (Sequence: %d%s)",
                    result.filename, target_sequence,
                    f", Revision: {revision}" if revision else "",
                )
            return result

        return ArtifactSaveResult(persisted=False, error=last_error)

    def _plan_target(self, project_root, category, project_number, report_date, force_revision, sequence):
        """Returns (sequence, revision or None, target path)"""
        existing = sequence
        if existing is None and force_revision:
            existing = find_existing_sequence(project_root, category, report_date)
            if existing is None:
                logger.info(
                    "[STORAGE] No saved %s report for %s on that date, saving as a new report",
                    category.value, project_number,
                )

        target_sequence = existing if existing is not None else next_sequence(project_root, category)
        folder = category_directory(project_root, category)
        original = folder / build_filename(project_number, category, target_sequence, report_date)

        # Forced or not, a revision needs the original on disk
        if not is_revision(original):
            return target_sequence, None, original

        revision = next_revision(original)
        target = folder / build_filename(project_number, category, target_sequence, report_date, revision)
        return target_sequence, revision, target


def build_report_storage_service() -> ReportStorageService:
    """Service bound to the application database settings"""
    return ReportStorageService(PathResolver(DatabaseTenantSettings(SessionLocal)))
