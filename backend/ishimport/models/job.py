"""Job model: canonical vacancy row, imported or native."""

from sqlalchemy import (
    Column, String, Float, Boolean, DateTime, Text, ForeignKey, Index, Integer, UniqueConstraint, Uuid,
)

from ishimport.models.base import Base, JSONType, TimestampMixin, UUIDMixin

SOURCE_STATUSES = ("active", "filled", "removed_at_source")


class Job(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "jobs"

    # Dedup key: (source, source_id), immutable after insert
    source = Column(String(50), nullable=False, index=True)
    source_id = Column(String(100))
    source_url = Column(Text)
    is_imported = Column(Boolean, default=False, nullable=False)

    # Content
    title_uz = Column(Text, nullable=False)
    title_ru = Column(Text)
    description_uz = Column(Text)
    description_ru = Column(Text)
    requirements_uz = Column(Text)
    requirements_ru = Column(Text)
    company_name = Column(String(255))
    salary_min = Column(Integer)
    salary_max = Column(Integer)
    payment_type = Column(Integer)
    employment_type = Column(String(20), default="full_time")  # full_time, part_time, contract, internship, remote
    work_mode = Column(String(20))  # onsite, remote, hybrid
    experience = Column(String(20), default="no_experience")  # no_experience, 1_3, 3_6, 6_plus
    experience_years = Column(Integer)
    education_level = Column(String(20), default="any")  # any, secondary, vocational, higher, master
    gender = Column(String(10))  # male, female, any
    age_min = Column(Integer)
    age_max = Column(Integer)
    working_hours = Column(String(50))
    working_days = Column(String(50))
    skills = Column(JSONType, default=list)
    benefits = Column(Text)
    vacancy_count = Column(Integer, default=1)
    views_count = Column(Integer, default=0)

    # Contacts
    contact_phone = Column(String(20))
    contact_telegram = Column(String(100))
    contact_email = Column(String(255))
    additional_phone = Column(String(20))
    hr_name = Column(String(255))
    has_contact = Column(Boolean, default=False, nullable=False)

    # Location
    region_id = Column(Integer, ForeignKey("regions.id"), index=True)
    district_id = Column(Integer, ForeignKey("districts.id"), index=True)
    region_name = Column(String(255))
    district_name = Column(String(255))
    address = Column(Text)
    latitude = Column(Float)
    longitude = Column(Float)

    # Classification
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), index=True)
    source_category = Column(Text)
    source_subcategory = Column(Text)
    is_for_students = Column(Boolean, default=False, nullable=False)
    is_for_disabled = Column(Boolean, default=False, nullable=False)
    is_for_women = Column(Boolean, default=False, nullable=False)
    is_for_graduates = Column(Boolean, default=False, nullable=False)

    # Lifecycle
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    source_status = Column(String(20), default="active", index=True)  # active, filled, removed_at_source
    last_seen_at = Column(DateTime(timezone=True))
    last_checked_at = Column(DateTime(timezone=True))
    last_synced_at = Column(DateTime(timezone=True))
    source_created_at = Column(DateTime(timezone=True))
    source_updated_at = Column(DateTime(timezone=True))

    # Verbatim source payload
    raw_source_json = Column(JSONType)

    # Relationships (import strings to avoid circular imports)
    from sqlalchemy.orm import relationship
    region = relationship("Region")
    district = relationship("District")
    category = relationship("Category")

    __table_args__ = (
        UniqueConstraint("source", "source_id", name="uq_jobs_source_source_id"),
        Index("idx_job_source_status", "source", "source_status"),
        Index("idx_job_region_district", "region_id", "district_id"),
        Index("idx_job_active_category", "is_active", "category_id"),
    )
