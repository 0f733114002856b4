"""Read contacts and resolve chat identifiers to contact names."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import reduce
from pathlib import Path

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from chat_archive.contacts.models import ContactEmail, ContactPhone, ContactRecord
from chat_archive.db.session import get_session
from chat_archive.utils.phones import digits_only, is_phone_like, phone_suffix

log = logging.getLogger(__name__)

CONTACT_TABLES = frozenset({"ZABCDRECORD", "ZABCDEMAILADDRESS", "ZABCDPHONENUMBER"})

DEFAULT_CONTACT_LIMIT = 1000


@dataclass
class Contact:
    """A contact card with its addresses.

    Phones hold digits only.
    """

    contact_id: str
    first_name: str | None = None
    last_name: str | None = None
    nickname: str | None = None
    organization: str | None = None
    emails: list[str] = field(default_factory=list)
    phones: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str | None:
        full_name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full_name or self.nickname or self.organization or None

    def to_dict(self) -> dict:
        return {
            "contact_id": self.contact_id,
            "name": self.display_name,
            "emails": list(self.emails),
            "phones": list(self.phones),
        }


def _text(value: object, column: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise TypeError(f"{column} is not text: {type(value).__name__}")


def read_contacts(session: Session, limit: int = DEFAULT_CONTACT_LIMIT) -> list[Contact]:
    """Read named contacts and their emails and phone numbers.

    Rows with undecodable columns are skipped with a warning.

    Args:
        session: Session on the contacts database.
        limit: Maximum rows read from each table.

    Returns:
        Contacts in card order.
    """
    contacts: dict[int, Contact] = {}

    record_stmt = (
        select(ContactRecord)
        .where(
            or_(
                ContactRecord.first_name.is_not(None),
                ContactRecord.last_name.is_not(None),
                ContactRecord.nickname.is_not(None),
                ContactRecord.organization.is_not(None),
            )
        )
        .order_by(ContactRecord.pk)
        .limit(limit)
    )
    for record in session.scalars(record_stmt):
        try:
            contacts[record.pk] = Contact(
                contact_id=str(record.pk),
                first_name=_text(record.first_name, "ZFIRSTNAME"),
                last_name=_text(record.last_name, "ZLASTNAME"),
                nickname=_text(record.nickname, "ZNICKNAME"),
                organization=_text(record.organization, "ZORGANIZATION"),
            )
        except TypeError as e:
            log.warning("Skipping contact %s: %s", record.pk, e)

    def owner(owner_id: int) -> Contact:
        if owner_id not in contacts:
            contacts[owner_id] = Contact(contact_id=str(owner_id))
        return contacts[owner_id]

    email_stmt = (
        select(ContactEmail.owner, ContactEmail.address)
        .where(ContactEmail.address.is_not(None), ContactEmail.owner.is_not(None))
        .order_by(ContactEmail.pk)
        .limit(limit)
    )
    for owner_id, address in session.execute(email_stmt):
        try:
            owner(owner_id).emails.append(_text(address, "ZADDRESS"))
        except TypeError as e:
            log.warning("Skipping email of contact %s: %s", owner_id, e)

    phone_stmt = (
        select(ContactPhone.owner, ContactPhone.full_number)
        .where(ContactPhone.full_number.is_not(None), ContactPhone.owner.is_not(None))
        .order_by(ContactPhone.pk)
        .limit(limit)
    )
    for owner_id, number in session.execute(phone_stmt):
        try:
            digits = digits_only(_text(number, "ZFULLNUMBER"))
        except TypeError as e:
            log.warning("Skipping phone of contact %s: %s", owner_id, e)
            continue
        if digits:
            owner(owner_id).phones.append(digits)

    log.debug("Read %d contacts", len(contacts))
    return list(contacts.values())


@dataclass(frozen=True)
class ContactSummary:
    """Counts of contacts and their addresses."""

    contacts: int = 0
    emails: int = 0
    phones: int = 0

    def add(self, contact: Contact) -> ContactSummary:
        return ContactSummary(
            contacts=self.contacts + 1,
            emails=self.emails + len(contact.emails),
            phones=self.phones + len(contact.phones),
        )


def summarize_contacts(contacts: Iterable[Contact]) -> ContactSummary:
    return reduce(ContactSummary.add, contacts, ContactSummary())


@dataclass
class ContactDirectory:
    """Lookup from chat identifiers to contact names.

    Phones are keyed by their last digits and emails by lower case, so
    differently formatted identifiers resolve to the same contact.
    """

    by_phone: dict[str, str] = field(default_factory=dict)
    by_email: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_contacts(cls, contacts: Iterable[Contact]) -> ContactDirectory:
        directory = cls()
        for contact in contacts:
            name = contact.display_name
            if not name:
                continue
            for phone in contact.phones:
                suffix = phone_suffix(phone)
                if suffix:
                    directory.by_phone.setdefault(suffix, name)
            for email in contact.emails:
                directory.by_email.setdefault(email.strip().lower(), name)
        return directory

    def resolve(self, identifier: str | None) -> str | None:
        """Contact name for a handle identifier, or None if unknown."""
        if not identifier:
            return None
        identifier = identifier.strip()
        if "@" in identifier:
            return self.by_email.get(identifier.lower())
        if is_phone_like(identifier):
            return self.by_phone.get(phone_suffix(identifier))
        return None

    def __len__(self) -> int:
        return len(self.by_phone) + len(self.by_email)


def load_directory(contacts_db: Path) -> ContactDirectory:
    """Read the contacts database at ``contacts_db`` into a directory."""
    with get_session(contacts_db, required_tables=CONTACT_TABLES) as session:
        return ContactDirectory.from_contacts(read_contacts(session))
