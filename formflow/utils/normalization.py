"""Input cleanup for emails, display names, and choice options."""

from typing import Optional

from email_validator import EmailNotValidError, validate_email


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Canonical form used for account and invitation lookups.

    Returns:
        Trimmed, lowercased address, or None for blank input
    """
    if not email:
        return None
    return email.strip().lower() or None


def is_valid_email(email: Optional[str]) -> bool:
    """Syntax-only check; no DNS lookups."""
    if not email:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_name(name: Optional[str]) -> Optional[str]:
    """Collapse runs of whitespace; blank names become None."""
    if not name:
        return None
    return " ".join(name.split()) or None


def clean_options(options: Optional[list[str]]) -> list[str]:
    """Trim option labels, dropping blanks and duplicates while keeping order."""
    if not options:
        return []
    cleaned = (option.strip() for option in options if option is not None)
    return list(dict.fromkeys(option for option in cleaned if option))
