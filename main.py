import argparse
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import List, Optional

from errors import PersistenceError
from models import Contact
from store import DB_FILE, ContactStore, SearchField

logger = logging.getLogger(__name__)


class Command(IntEnum):
    ADD = 1
    VIEW = 2
    SEARCH = 3
    UPDATE = 4
    DELETE = 5
    SORT = 6
    EXIT = 7


MENU_LABELS = {
    Command.ADD: "Add Contact",
    Command.VIEW: "View All Contacts",
    Command.SEARCH: "Search Contact",
    Command.UPDATE: "Update Contact",
    Command.DELETE: "Delete Contact",
    Command.SORT: "Sort Contacts by Name",
    Command.EXIT: "Exit",
}

COLUMNS = [("ID", 5), ("NAME", 20), ("PHONE", 15), ("EMAIL", 25), ("ADDRESS", 30)]
RULE = "=" * 38


def truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[:limit - 3] + "..."


def format_header() -> str:
    return " ".join(f"{title:<{width}}" for title, width in COLUMNS)


def format_row(contact: Contact) -> str:
    (_, id_width), *text_columns = COLUMNS
    values = [contact.name, contact.phone, contact.email, contact.address]
    # ids are never cut; Update and Delete ask for them
    cells = [f"{contact.id:<{id_width}}"]
    cells += [f"{truncate(value, width):<{width}}" for value, (_, width) in zip(values, text_columns)]
    return " ".join(cells)


class Shell:
    """Menu loop reading commands and field values from a text stream."""

    def __init__(self, store: ContactStore, stdin=None, stdout=None):
        self.store = store
        self.stdin = sys.stdin if stdin is None else stdin
        self.stdout = sys.stdout if stdout is None else stdout
        self.handlers = {
            Command.ADD: self.add_contact,
            Command.VIEW: self.view_contacts,
            Command.SEARCH: self.search_contacts,
            Command.UPDATE: self.update_contact,
            Command.DELETE: self.delete_contact,
            Command.SORT: self.sort_contacts,
            Command.EXIT: self.exit,
        }

    # ---- console helpers ----

    def write(self, text: str = "") -> None:
        print(text, file=self.stdout)

    def read_line(self, prompt: str) -> str:
        while True:
            print(prompt, end="", file=self.stdout)
            self.stdout.flush()
            try:
                line = self.stdin.readline()
            except UnicodeDecodeError:
                logger.warning("Discarded undecodable console input")
                self.write("Could not read that input, please try again.")
                continue
            if not line:
                raise EOFError
            return line.rstrip("\r\n")

    def read_int(self, prompt: str) -> int:
        while True:
            try:
                return int(self.read_line(prompt).strip())
            except ValueError:
                self.write("Please enter a valid number.")

    def read_required(self, prompt: str) -> str:
        while True:
            value = self.read_line(prompt).strip()
            if value:
                return value
            self.write("This field cannot be empty.")

    def read_optional(self, prompt: str) -> str:
        # kept as typed; the store ignores it when blank
        return self.read_line(prompt)

    def print_table(self, contacts: List[Contact]) -> None:
        header = format_header()
        self.write(header)
        self.write("-" * len(header))
        for contact in contacts:
            self.write(format_row(contact))

    def print_menu(self) -> None:
        self.write(RULE)
        self.write("       CONTACT MANAGEMENT SYSTEM      ")
        self.write(RULE)
        for command in Command:
            self.write(f"{command.value}. {MENU_LABELS[command]}")
        self.write(RULE)

    def report_save_failure(self, error: PersistenceError) -> None:
        self.write(f"Failed to save contacts: {error}")

    # ---- commands ----

    def add_contact(self) -> bool:
        self.write("---- Add Contact ----")
        name = self.read_required("Name: ")
        phone = self.read_required("Phone: ")
        email = self.read_required("Email: ")
        address = self.read_required("Address: ")
        try:
            contact = self.store.add(name, phone, email, address)
        except PersistenceError as e:
            self.report_save_failure(e)
            return True
        self.write(f"Contact added successfully. ID = {contact.id}")
        return True

    def view_contacts(self) -> bool:
        self.write("---- All Contacts ----")
        if not len(self.store):
            self.write("No contacts found.")
            return True
        self.print_table(self.store.contacts)
        return True

    def search_contacts(self) -> bool:
        self.write("---- Search Contact ----")
        self.write("Search by: 1) ID  2) Name  3) Phone  4) Email")
        option = self.read_int("Enter option: ")
        try:
            field = SearchField(option)
        except ValueError:
            self.write("Invalid search option.")
            return True

        if field == SearchField.ID:
            keyword = self.read_int("Enter ID: ")
        else:
            keyword = self.read_required(f"Enter {field.name.lower()} keyword: ")
        results = self.store.search(field, keyword)

        if not results:
            self.write("No matching contacts found.")
        else:
            self.write(f"Matches found: {len(results)}")
            self.print_table(results)
        return True

    def update_contact(self) -> bool:
        self.write("---- Update Contact ----")
        contact_id = self.read_int("Enter Contact ID to update: ")
        contact = self.store.find_by_id(contact_id)
        if contact is None:
            self.write("Contact not found.")
            return True

        self.write("Current details:")
        self.print_table([contact])
        self.write()
        self.write("Enter new values (press ENTER to keep old value):")
        name = self.read_optional("New Name: ")
        phone = self.read_optional("New Phone: ")
        email = self.read_optional("New Email: ")
        address = self.read_optional("New Address: ")
        try:
            self.store.update(contact_id, name=name, phone=phone, email=email, address=address)
        except PersistenceError as e:
            self.report_save_failure(e)
            return True
        self.write("Contact updated successfully.")
        return True

    def delete_contact(self) -> bool:
        self.write("---- Delete Contact ----")
        contact_id = self.read_int("Enter Contact ID to delete: ")
        contact = self.store.find_by_id(contact_id)
        if contact is None:
            self.write("Contact not found.")
            return True

        self.write("Deleting:")
        self.print_table([contact])
        answer = self.read_line("Are you sure? (y/n): ").strip().lower()
        if answer != "y":
            self.write("Cancelled.")
            return True
        try:
            self.store.delete(contact_id)
        except PersistenceError as e:
            self.report_save_failure(e)
            return True
        self.write("Contact deleted successfully.")
        return True

    def sort_contacts(self) -> bool:
        self.write("---- Sort Contacts by Name ----")
        try:
            self.store.sort_by_name()
        except PersistenceError as e:
            self.report_save_failure(e)
            return True
        self.write("Contacts sorted by name.")
        return True

    def exit(self) -> bool:
        try:
            self.store.save()
        except PersistenceError as e:
            self.report_save_failure(e)
        self.write("Bye.")
        return False

    def run(self) -> None:
        running = True
        while running:
            try:
                self.print_menu()
                choice = self.read_int("Enter choice: ")
                try:
                    command = Command(choice)
                except ValueError:
                    self.write("Invalid choice. Try again.")
                    command = None
                if command is not None:
                    running = self.handlers[command]()
            except EOFError:
                logger.info("End of input, exiting")
                self.write()
                running = self.exit()
            if running:
                self.write()


def open_store(path, stdout=None) -> ContactStore:
    stdout = sys.stdout if stdout is None else stdout
    if not Path(path).exists():
        print(f"No database file found. A new one will be created: {path}", file=stdout)
        return ContactStore(path)
    try:
        store = ContactStore.load(path)
    except PersistenceError as e:
        print(f"Failed to load contacts: {e}", file=stdout)
        print(f"Tip: Delete {path} if it's corrupted and re-run.", file=stdout)
        return ContactStore(path)
    print(f"Loaded {len(store)} contact(s) from {path}", file=stdout)
    return store


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="contact-book", description="Manage personal contacts")
    parser.add_argument("--db", default=DB_FILE, help="contacts file (default: %(default)s)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="log level for messages written to stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    store = open_store(args.db)
    Shell(store).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
