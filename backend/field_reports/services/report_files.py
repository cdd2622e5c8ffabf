"""
Report files - naming, folders, sequences and revisions of report PDFs

Layout:
    <base>/<sanitized project number>/<category folder>/<filename>.pdf

Filename (FILENAME_FORMAT_VERSION 1):
    <project>_<Label>_<NN>_Field_<YYYYMMDD>[_REV<n>].pdf
    ex: MAK-2025-0007_Density_01_Field_20250314.pdf

IMPORTANT: next_sequence() parses existing filenames to find the next
sequence. Any change to the format must bump FILENAME_FORMAT_VERSION and keep
the old pattern parseable, otherwise sequences restart at 01.
"""
import logging
import re
import threading
import weakref
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

from field_reports.core.categories import (
    ArtifactCategory,
    all_category_folders,
    category_folder,
)

logger = logging.getLogger(__name__)

FILENAME_FORMAT_VERSION = 1
PDF_EXTENSION = ".pdf"

# Characters not allowed in a path component on Windows / OneDrive
RESERVED_PATH_CHARS = re.compile(r'[\\/:*?"<>|]')
UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9_-]')
LEADING_DOTS = re.compile(r'^\.+')

FILENAME_PATTERN = re.compile(
    r'^(?P<project>.+)_(?P<label>[A-Za-z]+)_(?P<sequence>\d{2,})_Field_(?P<date>\d{8})'
    r'(?:_REV(?P<revision>\d+))?\.pdf$'
)

DateLike = Union[date, datetime, str, None]


class ParsedFilename(BaseModel):
    project: str
    label: str
    sequence: int
    date: str
    revision: Optional[int] = None


class WriteResult(BaseModel):
    persisted: bool
    error: Optional[str] = None
    conflict: bool = False  # target already existed, nothing written


# ============ SANITIZATION ============

def sanitize_path_component(value: str) -> str:
    """
    Replaces \\ / : * ? " < > | with _ so the value is a legal folder name

    Leading dots become _ too, so "." and ".." never name the current or
    parent folder. An empty value becomes "_".

    Usage:
        sanitize_path_component("MAK/2025:01")
        # Returns: "MAK_2025_01"
        sanitize_path_component("..")
        # Returns: "__"
    """
    cleaned = RESERVED_PATH_CHARS.sub("_", value)
    cleaned = LEADING_DOTS.sub(lambda m: "_" * len(m.group()), cleaned)
    return cleaned or "_"


def sanitize_filename_component(value: str) -> str:
    """Keeps only letters, digits, '_' and '-'"""
    return UNSAFE_FILENAME_CHARS.sub("_", value)


# ============ FILENAMES ============

def format_date_for_filename(value: DateLike = None) -> str:
    """
    Formats a date as YYYYMMDD

    Accepts date/datetime objects and ISO strings ("2025-03-14",
    "2025-03-14T10:00:00"). None or an unparseable string means today.
    """
    if isinstance(value, date):  # datetime included
        return value.strftime("%Y%m%d")
    if value is None or not str(value).strip():
        return date.today().strftime("%Y%m%d")

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).strftime("%Y%m%d")
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").strftime("%Y%m%d")
    except ValueError:
        logger.warning("[STORAGE] Invalid report date %r, using today", value)
        return date.today().strftime("%Y%m%d")


def build_filename(
    project_number: str,
    category: Union[ArtifactCategory, str],
    sequence: int,
    report_date: DateLike = None,
    revision: Optional[int] = None,
) -> str:
    """
    Builds the report filename

    Args:
        project_number: Project number (ex: "MAK-2025-0007")
        category: Report category (enum, enum value or folder label)
        sequence: Sequence of the report in the category (>= 1)
        report_date: Field date
        revision: Revision number; None or 0 means the original file

    Returns:
        Filename (ex: "MAK-2025-0007_Density_01_Field_20250314.pdf")
    """
    if sequence < 1:
        raise ValueError(f"Sequence must be >= 1, got {sequence}")

    filename = (
        f"{sanitize_filename_component(project_number)}_{category_folder(category)}"
        f"_{sequence:02d}_Field_{format_date_for_filename(report_date)}"
    )
    if revision:
        filename += f"_REV{revision}"
    return filename + PDF_EXTENSION


def parse_filename(filename: str) -> Optional[ParsedFilename]:
    """Inverse of build_filename; None for files that do not follow the format"""
    match = FILENAME_PATTERN.match(filename)
    if not match:
        return None
    revision = match.group("revision")
    return ParsedFilename(
        project=match.group("project"),
        label=match.group("label"),
        sequence=int(match.group("sequence")),
        date=match.group("date"),
        revision=int(revision) if revision else None,
    )


def parse_sequence(filename: str) -> Optional[int]:
    parsed = parse_filename(filename)
    return parsed.sequence if parsed else None


# ============ FOLDERS ============

def project_directory(base_dir: Path, project_number: str) -> Path:
    """
    Project folder directly under base_dir

    Raises:
        ValueError: the identifier does not name a child of base_dir
    """
    base_dir = Path(base_dir)
    project_root = base_dir / sanitize_path_component(project_number)
    if project_root.parent != base_dir or project_root.name in ("", ".", ".."):
        raise ValueError(f"Project number {project_number!r} does not map to a folder under {base_dir}")
    return project_root


def category_directory(project_root: Path, category: Union[ArtifactCategory, str]) -> Path:
    return Path(project_root) / category_folder(category)


def ensure_project_directory(base_dir: Path, project_number: str) -> Path:
    """
    Creates the project folder and one subfolder per category (idempotent)

    Returns:
        Path of the project folder
    """
    project_root = project_directory(base_dir, project_number)
    if not project_root.exists():
        project_root.mkdir(parents=True, exist_ok=True)
        logger.info("[STORAGE] Created project directory: %s", project_root)

    for folder in all_category_folders():
        (project_root / folder).mkdir(exist_ok=True)

    return project_root


# ============ SEQUENCES AND REVISIONS ============

# Serializes sequence/revision decisions per category folder inside this
# process. Other processes can still race; write_artifact's exclusive create
# catches that case. A lock lives only while some caller holds it.
_folder_locks = weakref.WeakValueDictionary()
_folder_locks_guard = threading.Lock()


def folder_lock(folder: Path) -> threading.Lock:
    key = str(Path(folder).resolve())
    with _folder_locks_guard:
        lock = _folder_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _folder_locks[key] = lock
        return lock


def _original_files(folder: Path):
    """Parsed non-revision PDFs of the folder"""
    if not folder.is_dir():
        return
    for entry in folder.iterdir():
        if not entry.is_file() or not entry.name.endswith(PDF_EXTENSION):
            continue
        parsed = parse_filename(entry.name)
        if parsed and parsed.revision is None:
            yield parsed


def next_sequence(project_root: Path, category: Union[ArtifactCategory, str]) -> int:
    """
    Next sequence for a new report of the category

    Only original files count: revisions never move the sequence.
    """
    sequences = [parsed.sequence for parsed in _original_files(category_directory(project_root, category))]
    if not sequences:
        return 1
    return max(sequences) + 1


def find_existing_sequence(
    project_root: Path,
    category: Union[ArtifactCategory, str],
    report_date: DateLike = None,
) -> Optional[int]:
    """Highest sequence already saved for the category on that date"""
    wanted = format_date_for_filename(report_date)
    sequences = [
        parsed.sequence
        for parsed in _original_files(category_directory(project_root, category))
        if parsed.date == wanted
    ]
    return max(sequences) if sequences else None


def is_revision(target_path: Path, force: bool = False) -> bool:
    """A save is a revision when the original file exists or the caller asks for one"""
    return force or Path(target_path).exists()


def next_revision(target_path: Path) -> int:
    """
    Next _REV<n> number for the original file at target_path

    Returns:
        max existing revision + 1, or 1 when there is none
    """
    target_path = Path(target_path)
    base_name = target_path.name[:-len(PDF_EXTENSION)] if target_path.name.endswith(PDF_EXTENSION) else target_path.stem
    revision_pattern = re.compile(rf'^{re.escape(base_name)}_REV(\d+)\.pdf$')

    revisions = []
    if target_path.parent.is_dir():
        for entry in target_path.parent.iterdir():
            match = revision_pattern.match(entry.name)
            if match:
                revisions.append(int(match.group(1)))

    if not revisions:
        return 1
    return max(revisions) + 1


# ============ WRITER ============

def write_artifact(path: Path, payload: bytes) -> WriteResult:
    """
    Writes the PDF bytes, never overwriting an existing file

    Errors (permission denied, disk full, ...) are returned, not raised:
    the caller still has to deliver the generated report.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("[STORAGE] Failed to create folder %s: %s", path.parent, e)
        return WriteResult(persisted=False, error=str(e))

    try:
        f = open(path, "xb")
    except FileExistsError:
        return WriteResult(persisted=False, error=f"File already exists: {path.name}", conflict=True)
    except OSError as e:
        logger.error("[STORAGE] Failed to create %s: %s", path, e)
        return WriteResult(persisted=False, error=str(e))

    try:
        with f:
            f.write(payload)
    except OSError as e:
        logger.error("[STORAGE] Failed to write %s: %s", path, e)
        _discard_partial(path)
        return WriteResult(persisted=False, error=str(e))

    logger.info("[STORAGE] PDF saved to: %s", path)
    return WriteResult(persisted=True)


def _discard_partial(path: Path) -> None:
    """Removes a file this call created but could not finish writing"""
    try:
        path.unlink()
    except OSError as e:
        logger.warning("[STORAGE] Could not remove partial file %s: %s", path, e)
