"""Import log model: audit row per import or sync run."""

from sqlalchemy import Column, String, Integer, DateTime, Text

from ishimport.models.base import Base, JSONType, UUIDMixin

COUNTER_FIELDS = (
    "total_found",
    "new_imported",
    "updated",
    "duplicates",
    "validation_errors",
    "errors",
    "total_checked",
    "still_active",
    "removed_at_source",
    "marked_filled",
    "reactivated",
    "unchanged",
)


class ImportLog(UUIDMixin, Base):
    __tablename__ = "import_logs"

    source = Column(String(50), nullable=False, index=True)
    triggered_by = Column(String(20), nullable=False, default="api")  # api, cron, manual
    operation_type = Column(String(10), nullable=False)  # import, sync
    status = Column(String(30), nullable=False, default="running")  # running, completed, completed_with_errors, failed

    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True))

    # Import counters
    total_found = Column(Integer, default=0, nullable=False)
    new_imported = Column(Integer, default=0, nullable=False)
    updated = Column(Integer, default=0, nullable=False)
    duplicates = Column(Integer, default=0, nullable=False)
    validation_errors = Column(Integer, default=0, nullable=False)
    errors = Column(Integer, default=0, nullable=False)

    # Sync counters
    total_checked = Column(Integer, default=0, nullable=False)
    still_active = Column(Integer, default=0, nullable=False)
    removed_at_source = Column(Integer, default=0, nullable=False)
    marked_filled = Column(Integer, default=0, nullable=False)
    reactivated = Column(Integer, default=0, nullable=False)
    unchanged = Column(Integer, default=0, nullable=False)

    error_details = Column(JSONType)
    notes = Column(Text)
