"""Category model: flat canonical job category list."""

from sqlalchemy import Column, String, Integer

from ishimport.models.base import Base, UUIDMixin


class Category(UUIDMixin, Base):
    __tablename__ = "categories"

    key = Column(String(30), unique=True, nullable=False)  # IT, HEALTHCARE, ...
    name_uz = Column(String(255), nullable=False)
    name_ru = Column(String(255))
    icon = Column(String(50))
    sort_order = Column(Integer, default=0, nullable=False)
