"""Unit tests for full-replace reconciliation of the education organization cache."""

from datetime import datetime, timedelta, timezone

import pytest

from edorgs.schemas import OdsInstanceTarget
from edorgs.service import reconcile_education_organizations
from fixtures.ods import edorg
from models.education_organization import EducationOrganization

T0 = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def instance():
    return OdsInstanceTarget(instance_id=5, name="District ODS", connection_string="ods-5")


def cached(db_session, instance_id=5):
    rows = (
        db_session.query(EducationOrganization)
        .filter(EducationOrganization.instance_id == instance_id)
        .order_by(EducationOrganization.education_organization_id)
        .all()
    )
    return {row.education_organization_id: row for row in rows}


def reconcile(db_session, instance, results, now=T0):
    counts = reconcile_education_organizations(db_session, instance, results, now)
    db_session.commit()
    db_session.expire_all()
    return counts


class TestReconcile:
    """Test insert, update and delete of cached rows."""

    def test_inserts_new_organizations(self, db_session, instance):
        counts = reconcile(db_session, instance, [
            edorg(100, "School", name="Lincoln Elementary", short_name="LE", parent_id=50),
            edorg(50, "LocalEducationAgency", parent_id=10),
        ])

        assert counts == {"inserted": 2, "updated": 0, "deleted": 0}
        rows = cached(db_session)
        assert set(rows) == {50, 100}
        school = rows[100]
        assert school.instance_id == 5
        assert school.instance_name == "District ODS"
        assert school.name_of_institution == "Lincoln Elementary"
        assert school.short_name_of_institution == "LE"
        assert school.discriminator == "edfi.School"
        assert school.parent_id == 50
        assert school.last_modified_date.replace(tzinfo=timezone.utc) == T0
        assert school.last_refreshed.replace(tzinfo=timezone.utc) == T0

    def test_full_replace(self, db_session, instance):
        reconcile(db_session, instance, [edorg(1), edorg(2), edorg(3)])
        surrogate_ids = {k: v.id for k, v in cached(db_session).items()}

        later = T0 + timedelta(hours=1)
        counts = reconcile(db_session, instance, [
            edorg(2, name="Renamed School"),
            edorg(3),
            edorg(4),
        ], now=later)

        assert counts == {"inserted": 1, "updated": 2, "deleted": 1}
        rows = cached(db_session)
        assert set(rows) == {2, 3, 4}
        # Rows present in both are updated in place
        assert rows[2].id == surrogate_ids[2]
        assert rows[3].id == surrogate_ids[3]
        assert rows[2].name_of_institution == "Renamed School"
        assert rows[2].last_refreshed.replace(tzinfo=timezone.utc) == later

    def test_update_overwrites_mutable_fields(self, db_session, instance):
        reconcile(db_session, instance, [edorg(7, "LocalEducationAgency", short_name="OLD", parent_id=1)])

        reconcile(db_session, instance, [edorg(7, "EducationServiceCenter", short_name=None, parent_id=None)])

        row = cached(db_session)[7]
        assert row.discriminator == "edfi.EducationServiceCenter"
        assert row.short_name_of_institution is None
        assert row.parent_id is None

    def test_empty_source_deletes_all_rows(self, db_session, instance):
        reconcile(db_session, instance, [edorg(1), edorg(2)])

        counts = reconcile(db_session, instance, [])

        assert counts == {"inserted": 0, "updated": 0, "deleted": 2}
        assert cached(db_session) == {}

    def test_other_instances_are_untouched(self, db_session, instance):
        other = OdsInstanceTarget(instance_id=6, name="Other", connection_string="ods-6")
        reconcile(db_session, other, [edorg(1), edorg(2)])

        reconcile(db_session, instance, [edorg(1)])

        assert set(cached(db_session, instance_id=6)) == {1, 2}
        assert set(cached(db_session, instance_id=5)) == {1}

    def test_idempotent(self, db_session, instance):
        source = [
            edorg(100, "School", parent_id=50),
            edorg(50, "LocalEducationAgency", parent_id=10),
            edorg(10, "StateEducationAgency"),
        ]
        reconcile(db_session, instance, source)
        first = {
            k: (v.id, v.name_of_institution, v.discriminator, v.parent_id)
            for k, v in cached(db_session).items()
        }

        counts = reconcile(db_session, instance, source, now=T0 + timedelta(minutes=5))

        second = {
            k: (v.id, v.name_of_institution, v.discriminator, v.parent_id)
            for k, v in cached(db_session).items()
        }
        assert counts == {"inserted": 0, "updated": 3, "deleted": 0}
        assert first == second
        assert db_session.query(EducationOrganization).count() == 3

    def test_hierarchy_parent_ids(self, db_session, instance):
        reconcile(db_session, instance, [
            edorg(100, "School", parent_id=50),
            edorg(50, "LocalEducationAgency", parent_id=10),
            edorg(10, "StateEducationAgency", parent_id=None),
        ])

        rows = cached(db_session)
        assert rows[100].parent_id == 50
        assert rows[50].parent_id == 10
        assert rows[10].parent_id is None

    def test_duplicate_source_ids_produce_one_row(self, db_session, instance):
        reconcile(db_session, instance, [edorg(1, name="First"), edorg(1, name="Second")])

        rows = cached(db_session)
        assert len(rows) == 1
        assert rows[1].name_of_institution == "Second"

    def test_large_identifiers(self, db_session, instance):
        big = 2 ** 62
        reconcile(db_session, instance, [edorg(big, parent_id=big - 1)])

        row = cached(db_session)[big]
        assert row.parent_id == big - 1
