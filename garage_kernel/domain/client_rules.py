"""
Client identity rules (pure).

An individual client is identified by a personal tax id and has no business
tax id; a business client is the reverse.  Exactly one of the two is set and
it must match the account kind.
"""

from garage_kernel.domain.enums import AccountKind
from garage_kernel.exceptions import TaxIdRuleError


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def check_tax_ids(
    account_kind: AccountKind,
    personal_tax_id: str | None,
    business_tax_id: str | None,
) -> None:
    """
    Raise TaxIdRuleError unless exactly the id matching ``account_kind`` is set.
    """
    if account_kind == AccountKind.INDIVIDUAL:
        if _blank(personal_tax_id):
            raise TaxIdRuleError(account_kind.value, "personal tax id is required")
        if not _blank(business_tax_id):
            raise TaxIdRuleError(account_kind.value, "business tax id must be empty")
    elif account_kind == AccountKind.BUSINESS:
        if _blank(business_tax_id):
            raise TaxIdRuleError(account_kind.value, "business tax id is required")
        if not _blank(personal_tax_id):
            raise TaxIdRuleError(account_kind.value, "personal tax id must be empty")
    else:
        raise TaxIdRuleError(str(account_kind), "unknown account kind")


def normalize_email(email: str | None) -> str | None:
    """Trim and lower-case an email; blank becomes None."""
    if _blank(email):
        return None
    return email.strip().lower()
