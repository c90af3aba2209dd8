"""OdsInstance model - ODS instances registered in the admin database.

The table is managed by the ODS admin tooling; this service only reads it.
"""

from sqlalchemy import Column, Integer, String, Text

from .base import Base


class OdsInstance(Base):
    """Registered ODS instance with its encrypted connection string."""
    __tablename__ = "ods_instance"

    ods_instance_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    instance_type = Column(String(100), nullable=True)
    connection_string = Column(
        Text,
        nullable=False,
        comment="Encrypted with the symmetric ENCRYPTION_KEY"
    )

    def __repr__(self):
        return f"<OdsInstance(ods_instance_id={self.ods_instance_id}, name='{self.name}')>"
