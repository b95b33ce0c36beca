"""
Schema Migration Model

Ledger of migrations applied at startup
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from ..database import Base


class SchemaMigration(Base):
    __tablename__ = "schema_migrations"

    version = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    applied_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<SchemaMigration(version={self.version}, name='{self.name}')>"
