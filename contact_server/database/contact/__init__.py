from contact_server.database.contact.contact import Contacts, ContactStore, PersistenceError, ProbeResult
