"""SQLAlchemy ORM models for the AddressBook contacts database."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class ContactsBase(DeclarativeBase):
    """Base class for contacts database models."""

    pass


class ContactRecord(ContactsBase):
    """A person or organization card."""

    __tablename__ = "ZABCDRECORD"

    pk: Mapped[int] = mapped_column("Z_PK", Integer, primary_key=True)
    first_name: Mapped[str | None] = mapped_column("ZFIRSTNAME", Text)
    last_name: Mapped[str | None] = mapped_column("ZLASTNAME", Text)
    nickname: Mapped[str | None] = mapped_column("ZNICKNAME", Text)
    organization: Mapped[str | None] = mapped_column("ZORGANIZATION", Text)

    def __repr__(self) -> str:
        return f"<ContactRecord(pk={self.pk}, name='{self.first_name} {self.last_name}')>"


class ContactEmail(ContactsBase):
    """An email address owned by a contact card."""

    __tablename__ = "ZABCDEMAILADDRESS"

    pk: Mapped[int] = mapped_column("Z_PK", Integer, primary_key=True)
    owner: Mapped[int | None] = mapped_column("ZOWNER", Integer, ForeignKey("ZABCDRECORD.Z_PK"))
    address: Mapped[str | None] = mapped_column("ZADDRESS", Text)

    def __repr__(self) -> str:
        return f"<ContactEmail(owner={self.owner}, address='{self.address}')>"


class ContactPhone(ContactsBase):
    """A phone number owned by a contact card."""

    __tablename__ = "ZABCDPHONENUMBER"

    pk: Mapped[int] = mapped_column("Z_PK", Integer, primary_key=True)
    owner: Mapped[int | None] = mapped_column("ZOWNER", Integer, ForeignKey("ZABCDRECORD.Z_PK"))
    full_number: Mapped[str | None] = mapped_column("ZFULLNUMBER", Text)

    def __repr__(self) -> str:
        return f"<ContactPhone(owner={self.owner}, number='{self.full_number}')>"
