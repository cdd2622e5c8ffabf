from sqlalchemy import Column, String, Text
from field_reports.models.base import Base, TimestampMixin


class AppSetting(Base, TimestampMixin):
    """
    Process-wide key/value settings

    Kept for deployments that predate multi-tenancy: the shared OneDrive
    folder was stored here under LEGACY_SHARED_PATH_KEY and is still honoured
    as the second storage candidate.
    """
    __tablename__ = "app_settings"

    LEGACY_SHARED_PATH_KEY = "onedrive_base_path"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)

    def __repr__(self):
        return f"<AppSetting {self.key}>"
