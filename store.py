import logging
from enum import IntEnum
from typing import Callable, Iterator, List, Optional

import codec
from errors import ContactNotFoundError
from models import Contact, ContactUpdate

logger = logging.getLogger(__name__)

DB_FILE = "contacts_db.txt"


class SearchField(IntEnum):
    ID = 1
    NAME = 2
    PHONE = 3
    EMAIL = 4


class ContactStore:
    """Ordered, in-memory contact list backed by a flat file.

    Every mutation rewrites the whole file. When that write fails the
    in-memory change is kept and the PersistenceError reaches the caller.
    """

    def __init__(self, path=DB_FILE, contacts: Optional[List[Contact]] = None,
                 next_id: Optional[int] = None):
        self.path = path
        self._contacts: List[Contact] = list(contacts or [])
        if next_id is None:
            next_id = max((c.id for c in self._contacts), default=0) + 1
        self.next_id = next_id

    @classmethod
    def load(cls, path=DB_FILE) -> "ContactStore":
        return cls(path, codec.load_contacts(path))

    def __len__(self) -> int:
        return len(self._contacts)

    def __iter__(self) -> Iterator[Contact]:
        return iter(list(self._contacts))

    @property
    def contacts(self) -> List[Contact]:
        return list(self._contacts)

    def save(self) -> None:
        codec.save_contacts(self.path, self._contacts)

    def add(self, name: str, phone: str, email: str, address: str) -> Contact:
        contact = Contact(id=self.next_id, name=name, phone=phone, email=email, address=address)
        self.next_id += 1
        self._contacts.append(contact)
        logger.info("Added contact %d", contact.id)
        self.save()
        return contact

    def find_by_id(self, contact_id: int) -> Optional[Contact]:
        for contact in self._contacts:
            if contact.id == contact_id:
                return contact
        return None

    def find(self, predicate: Callable[[Contact], bool]) -> List[Contact]:
        return [contact for contact in self._contacts if predicate(contact)]

    def search(self, field: SearchField, keyword) -> List[Contact]:
        if field == SearchField.ID:
            return self.find(lambda c: c.id == keyword)
        if field == SearchField.NAME:
            keyword = keyword.lower()
            return self.find(lambda c: keyword in c.name.lower())
        if field == SearchField.PHONE:
            return self.find(lambda c: keyword in c.phone)
        if field == SearchField.EMAIL:
            keyword = keyword.lower()
            return self.find(lambda c: keyword in c.email.lower())
        raise ValueError(f"unknown search field: {field!r}")

    def _get(self, contact_id: int) -> Contact:
        contact = self.find_by_id(contact_id)
        if contact is None:
            raise ContactNotFoundError(contact_id)
        return contact

    def update(self, contact_id: int, name: Optional[str] = None, phone: Optional[str] = None,
               email: Optional[str] = None, address: Optional[str] = None) -> Contact:
        contact = self._get(contact_id)
        changes = ContactUpdate(name=name, phone=phone, email=email, address=address).changes()
        for field, value in changes.items():
            setattr(contact, field, value)
        logger.info("Updated contact %d (%s)", contact_id, ", ".join(changes) or "no changes")
        self.save()
        return contact

    def delete(self, contact_id: int) -> Contact:
        for i, contact in enumerate(self._contacts):
            if contact.id == contact_id:
                self._contacts.pop(i)
                logger.info("Deleted contact %d", contact_id)
                self.save()
                return contact
        raise ContactNotFoundError(contact_id)

    def sort_by_name(self) -> None:
        # list.sort is stable, so equal names keep their relative order
        self._contacts.sort(key=lambda c: c.name.lower())
        self.save()
