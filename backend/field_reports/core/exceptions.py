"""
Errors raised by the storage core

Propagation is deliberately asymmetric:
- allocation errors (StoreUnavailableError, ProjectNumberCollisionError)
  block project creation entirely
- filesystem errors while saving a report never block delivery of the
  report; they are attached to the save result instead
"""


class StorageCoreError(Exception):
    """Base class for every storage core error"""


class ConfigurationError(StorageCoreError):
    """No usable storage base path, not even the last-resort default"""


class StoreUnavailableError(StorageCoreError):
    """Counter store unreachable after the bounded number of retries"""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class FilesystemError(StorageCoreError):
    """Permission denied, disk full or similar while writing a report"""


class ProjectNumberCollisionError(StorageCoreError):
    """Allocated project number already used by a project of the tenant"""

    def __init__(self, project_number: str, tenant_id: int):
        super().__init__(
            f"Project number {project_number} already exists for tenant {tenant_id}"
        )
        self.project_number = project_number
        self.tenant_id = tenant_id
