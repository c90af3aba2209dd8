"""Job names and job metadata keys."""

REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME = "RefreshEducationOrganizationsJob"

# Job metadata keys
TENANT_NAME_KEY = "tenant_name"
ODS_INSTANCE_ID_KEY = "instance_id"
