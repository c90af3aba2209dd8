"""EducationOrganization model - Local cache of ODS education organizations.

Rows are owned by the education organization refresh: each refresh fully
replaces the rows of one ODS instance with the organizations currently
present in that instance's ODS database.
"""

from sqlalchemy import (
    BigInteger,
    Column,
    Index,
    Integer,
    String,
    TIMESTAMP,
    UniqueConstraint,
)

from .base import Base, PortableBigInteger


class EducationOrganization(Base):
    """Cached education organization of one ODS instance.

    education_organization_id is unique within an instance, and parent_id
    refers to another organization of the same instance (not enforced).
    """
    __tablename__ = "education_organization"
    __table_args__ = (
        UniqueConstraint(
            "instance_id",
            "education_organization_id",
            name="uq_education_organization_instance_edorg",
        ),
        Index("ix_education_organization_instance_id", "instance_id"),
    )

    id = Column(PortableBigInteger, primary_key=True, autoincrement=True)
    instance_id = Column(
        Integer,
        nullable=False,
        comment="ODS instance id (not enforced, lives in the admin database)"
    )
    instance_name = Column(
        String(100),
        nullable=False,
        comment="Instance name at the time the row was inserted"
    )
    education_organization_id = Column(BigInteger, nullable=False)
    name_of_institution = Column(String(75), nullable=False)
    short_name_of_institution = Column(String(75), nullable=True)
    discriminator = Column(
        String(128),
        nullable=False,
        comment="Organization type, e.g. 'edfi.School'"
    )
    parent_id = Column(BigInteger, nullable=True)
    last_modified_date = Column(TIMESTAMP(timezone=True), nullable=False)
    last_refreshed = Column(TIMESTAMP(timezone=True), nullable=False)

    def __repr__(self):
        return (
            f"<EducationOrganization(instance_id={self.instance_id}, "
            f"education_organization_id={self.education_organization_id}, "
            f"discriminator='{self.discriminator}')>"
        )
