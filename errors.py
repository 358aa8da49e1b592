class ContactBookError(Exception):
    pass


class ContactNotFoundError(ContactBookError):
    def __init__(self, contact_id: int):
        super().__init__("Contact not found")
        self.contact_id = contact_id


class PersistenceError(ContactBookError):
    """Reading or writing the contacts file failed."""
