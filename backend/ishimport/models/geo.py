"""Canonical geography: regions, districts and per-source numeric id maps."""

from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint

from ishimport.models.base import Base, TimestampMixin


class Region(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True)
    name_uz = Column(String(255), nullable=False)
    name_ru = Column(String(255))
    slug = Column(String(100), unique=True)

    from sqlalchemy.orm import relationship
    districts = relationship("District", back_populates="region")


class District(Base):
    __tablename__ = "districts"

    id = Column(Integer, primary_key=True)
    name_uz = Column(String(255), nullable=False)
    name_ru = Column(String(255))
    region_id = Column(Integer, ForeignKey("regions.id"), index=True)

    from sqlalchemy.orm import relationship
    region = relationship("Region", back_populates="districts")


class GeoSourceRef(TimestampMixin, Base):
    """Maps a source's own numeric region/city id onto a canonical id."""

    __tablename__ = "geo_source_refs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String(50), nullable=False)
    kind = Column(String(10), nullable=False)  # region, district
    external_id = Column(String(50), nullable=False)
    canonical_id = Column(Integer, nullable=False)
    external_name = Column(String(255))

    __table_args__ = (
        UniqueConstraint("source", "kind", "external_id", name="uq_geo_source_ref"),
    )
