"""Common types and enums shared across all models."""

from enum import Enum


class AuditAction(str, Enum):
    """Kind of mutation recorded in the audit trail."""

    create = "create"
    update = "update"
    delete = "delete"


class AuditEntityType(str, Enum):
    """Domain nouns that can appear in the audit trail."""

    organization = "organization"
    market = "market"
    vertical = "vertical"
    company = "company"
    contact = "contact"
    campaign = "campaign"
    activity = "activity"
    asset = "asset"
    result = "result"
    playbook_template = "playbook_template"
    playbook_step = "playbook_step"
    digital_snapshot = "digital_snapshot"
    email_template = "email_template"
    document_template = "document_template"
    generated_document = "generated_document"
    platform_role = "platform_role"


class PlatformRoleName(str, Enum):
    """Cross-tenant administrative roles."""

    platform_owner = "platform_owner"
    platform_admin = "platform_admin"


class OrgRole(str, Enum):
    """Per-tenant user role stored on the profile."""

    owner = "owner"
    admin = "admin"
    user = "user"
    viewer = "viewer"


class OrganizationType(str, Enum):
    """Organization kind."""

    agency = "agency"
    client = "client"


class CompanyStatus(str, Enum):
    """Pipeline status of a target company."""

    prospect = "prospect"
    target = "target"
    active_campaign = "active_campaign"
    client = "client"
    lost = "lost"
    churned = "churned"
    excluded = "excluded"
