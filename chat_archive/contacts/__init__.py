"""Contacts database access and sender name resolution."""

from chat_archive.contacts.models import (
    ContactEmail,
    ContactPhone,
    ContactRecord,
    ContactsBase,
)
from chat_archive.contacts.reader import (
    CONTACT_TABLES,
    Contact,
    ContactDirectory,
    ContactSummary,
    load_directory,
    read_contacts,
    summarize_contacts,
)

__all__ = [
    "CONTACT_TABLES",
    "Contact",
    "ContactDirectory",
    "ContactEmail",
    "ContactPhone",
    "ContactRecord",
    "ContactSummary",
    "ContactsBase",
    "load_directory",
    "read_contacts",
    "summarize_contacts",
]
