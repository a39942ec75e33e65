"""The set of printers and classes a server knows about."""


import logging

from cupsclient import builders
from cupsclient import client as client_
from cupsclient import ipp


logger = logging.getLogger(__name__)


PRINTER = 'printer'
CLASS = 'class'
UNKNOWN = 'unknown'


class Catalog(object):
    """Known destinations, keyed case-insensitively.

    The server is queried on first use and the result kept for the rest
    of the invocation. A Catalog built with entries never queries.
    """

    def __init__(self, client=None, entries=None):
        self.client = client
        self._entries = None
        self.error = None
        if entries is not None:
            self._entries = {}
            for name, kind in entries.items():
                self._add(name, kind)

    def _add(self, name, kind):
        key = name.lower()
        existing = self._entries.get(key)
        # A class and a printer of the same name: the class wins
        if existing is None or kind == CLASS or existing[1] == UNKNOWN:
            self._entries[key] = (name, kind)

    def load(self):
        """Query CUPS-Get-Printers then CUPS-Get-Classes.

        Returns the catalog itself. A failure of one query still leaves
        the names from the other; if both fail the first error is
        raised.
        """
        if self._entries is not None:
            return self
        if self.error is not None:
            raise self.error

        entries = {}
        self._entries = entries
        errors = []
        for op, kind in ((ipp.OP_CUPS_GET_PRINTERS, PRINTER),
                         (ipp.OP_CUPS_GET_CLASSES, CLASS)):
            msg = builders.new_request(op)
            builders.requested_attributes(msg, ['printer-name'])
            try:
                response = self.client.call(msg)
            except (client_.TransportError, ipp.StatusError) as e:
                logger.debug('%s failed: %s', ipp.operation_name(op), e)
                errors.append(e)
                continue
            for group in response.groups_of(ipp.TAG_PRINTER):
                name = builders.text_value(group, 'printer-name')
                if name:
                    self._add(name, kind)

        if len(errors) == 2:
            self._entries = None
            self.error = errors[0]
            raise errors[0]
        return self

    def try_load(self):
        """load(), but report failure as False instead of raising."""
        try:
            self.load()
        except (client_.TransportError, ipp.StatusError):
            return False
        return True

    @property
    def available(self):
        return self._entries is not None

    def kind(self, name):
        entry = self._lookup(name)
        if entry is None:
            return None
        return entry[1]

    def canonical(self, name):
        """Return the server's spelling of name, or name if unknown."""
        entry = self._lookup(name)
        if entry is None:
            return name
        return entry[0]

    def names(self):
        if not self._entries:
            return []
        return sorted(entry[0] for entry in self._entries.values())

    def _lookup(self, name):
        if not self._entries or not name:
            return None
        return self._entries.get(name.strip().lower())

    def __contains__(self, name):
        kind = self.kind(name)
        return kind is not None and kind != UNKNOWN

    def __len__(self):
        return len(self._entries or {})


def default_destination(client):
    """Ask the server for its default destination via CUPS-Get-Default.

    Returns:
      The destination name, or '' when the server has no default.
    """
    msg = builders.new_request(ipp.OP_CUPS_GET_DEFAULT)
    builders.requested_attributes(msg, ['printer-name'])
    response = client.send(msg)
    if response.code == ipp.STATUS_NOT_FOUND:
        return ''
    ipp.check_status(response)
    return builders.text_value(response, 'printer-name')
