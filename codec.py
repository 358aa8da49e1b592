"""Line-oriented, tab-separated storage format for contacts.

Each contact is written as one line holding five fields in a fixed order
(id, name, phone, email, address). Backslash, tab, newline and carriage
return inside string fields are backslash-escaped so a record never spans
more than one line or more than five columns. There is no header line.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

from errors import PersistenceError
from models import Contact

logger = logging.getLogger(__name__)

FIELDS = ("id", "name", "phone", "email", "address")
SEPARATOR = "\t"

_ESCAPES = [
    ("\\", "\\\\"),
    ("\t", "\\t"),
    ("\n", "\\n"),
    ("\r", "\\r"),
]
_UNESCAPES = {"\\": "\\", "t": "\t", "n": "\n", "r": "\r"}
_ESCAPE_SEQUENCE = re.compile(r"\\(.)", re.DOTALL)


def escape(value: str) -> str:
    for raw, escaped in _ESCAPES:
        value = value.replace(raw, escaped)
    return value


def unescape(value: str) -> str:
    # Single pass so "\\t" decodes to a backslash followed by "t", not a tab.
    return _ESCAPE_SEQUENCE.sub(
        lambda m: _UNESCAPES.get(m.group(1), m.group(0)), value
    )


def encode_contact(contact: Contact) -> str:
    return SEPARATOR.join(
        [str(contact.id)]
        + [escape(getattr(contact, field)) for field in FIELDS[1:]]
    )


def decode_line(line: str) -> Optional[Contact]:
    """Parse one stored line, returning None when it is not a valid record."""
    parts = line.split(SEPARATOR)
    if len(parts) != len(FIELDS):
        return None
    try:
        contact_id = int(parts[0])
    except ValueError:
        return None
    name, phone, email, address = (unescape(part) for part in parts[1:])
    return Contact(id=contact_id, name=name, phone=phone, email=email, address=address)


def encode(contacts: Iterable[Contact]) -> str:
    return "".join(encode_contact(contact) + "\n" for contact in contacts)


def decode(text: str) -> List[Contact]:
    contacts = []
    for lineno, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        contact = decode_line(line)
        if contact is None:
            logger.warning("Skipping malformed record on line %d", lineno)
            continue
        contacts.append(contact)
    return contacts


def load_contacts(path) -> List[Contact]:
    path = Path(path)
    if not path.exists():
        logger.info("No contacts file at %s, starting empty", path)
        return []
    try:
        # surrogateescape keeps undecodable bytes so they are written back unchanged
        with path.open("r", encoding="utf-8", errors="surrogateescape") as f:
            text = f.read()
    except OSError as e:
        logger.error("Failed to read %s: %s", path, e)
        raise PersistenceError(str(e)) from e
    contacts = decode(text)
    logger.info("Loaded %d contact(s) from %s", len(contacts), path)
    return contacts


def save_contacts(path, contacts: Iterable[Contact]) -> None:
    path = Path(path)
    # Encode before opening: opening for write truncates the file.
    try:
        data = encode(contacts).encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError as e:
        logger.error("Cannot encode contacts for %s: %s", path, e)
        raise PersistenceError(str(e)) from e
    try:
        with path.open("wb") as f:
            f.write(data)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        raise PersistenceError(str(e)) from e
    logger.debug("Saved contacts to %s", path)
