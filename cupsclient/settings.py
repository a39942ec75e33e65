"""Server-wide settings kept in the scheduler's SQLite database.

Settings are a flat key/value space. Keys beginning with "_" are the
toggles cupsctl exposes as --[no-]<name>; anything else is a cupsd.conf
style directive.
"""


import contextlib
import logging
import os
import sqlite3


logger = logging.getLogger(__name__)


# Directives only the administrator may change, by editing files.
BLOCKED_DIRECTIVES = (
    'AccessLog',
    'CacheDir',
    'ConfigFilePerm',
    'DataDir',
    'DocumentRoot',
    'ErrorLog',
    'FatalErrors',
    'FileDevice',
    'Group',
    'Listen',
    'LogFilePerm',
    'PageLog',
    'PassEnv',
    'Port',
    'Printcap',
    'PrintcapFormat',
    'RemoteRoot',
    'RequestRoot',
    'ServerBin',
    'ServerCertificate',
    'ServerKey',
    'ServerKeychain',
    'ServerRoot',
    'SetEnv',
    'StateDir',
    'SystemGroup',
    'SystemGroupAuthKey',
    'TempDir',
    'User',
)

TOGGLES = (
    'debug_logging',
    'preserve_job_files',
    'preserve_job_history',
    'remote_admin',
    'remote_any',
    'remote_printers',
    'share_printers',
    'user_cancel_any',
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class BlockedDirective(ValueError):
    def __init__(self, directive):
        self.directive = directive
        ValueError.__init__(self, 'cannot set %s directly' % directive)


def db_path():
    if os.environ.get('CUPS_DB_PATH'):
        return os.environ['CUPS_DB_PATH']
    if os.environ.get('CUPS_DATA_DIR'):
        return os.path.join(os.environ['CUPS_DATA_DIR'], 'cups.db')
    return os.path.join('data', 'cups.db')


def normalize_key(key):
    """Map a user-facing toggle name such as share_printers to its key."""
    key = key.strip()
    if key.startswith('--'):
        key = key[2:]
    if not key or key.startswith('_'):
        return key
    if key.lower() in TOGGLES:
        return '_' + key.lower()
    return key


def output_key(key):
    if key.startswith('_') and key[1:] in TOGGLES:
        return key[1:]
    return key


def blocked_directive(key):
    """Return the blocked directive key names, or None."""
    key = key.strip().lower()
    for directive in BLOCKED_DIRECTIVES:
        if directive.lower() == key:
            return directive
    return None


class Store(object):
    """A connection to the settings database."""

    def __init__(self, path=None):
        self.path = path or db_path()
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.conn = sqlite3.connect(self.path, timeout=5,
                                    isolation_level=None)
        self.conn.execute(SCHEMA)

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @contextlib.contextmanager
    def with_tx(self, readonly=False):
        """Run the body of a with block inside one transaction.

        Yields a cursor. Leaving the block normally commits, unless the
        transaction is read-only, in which case it is always rolled
        back. An exception rolls back and propagates.
        """
        cursor = self.conn.cursor()
        cursor.execute('BEGIN' if readonly else 'BEGIN IMMEDIATE')
        try:
            yield cursor
        except BaseException:
            cursor.execute('ROLLBACK')
            raise
        if readonly:
            cursor.execute('ROLLBACK')
        else:
            cursor.execute('COMMIT')


def set_setting(tx, key, value):
    tx.execute('INSERT INTO settings (key, value) VALUES (?, ?) '
               'ON CONFLICT(key) DO UPDATE SET value = excluded.value',
               (key, value))


def get_setting(tx, key, default=None):
    row = tx.execute('SELECT value FROM settings WHERE key = ?',
                     (key,)).fetchone()
    if row is None:
        return default
    return row[0]


def list_settings(tx):
    rows = tx.execute('SELECT key, value FROM settings ORDER BY key')
    return dict(rows.fetchall())


def apply_settings(store, updates):
    """Write every update, or none of them.

    Raises:
      BlockedDirective: some key names a blocked directive; nothing
        was written.
    """
    with store.with_tx() as tx:
        for key in updates:
            directive = blocked_directive(key)
            if directive is not None:
                raise BlockedDirective(directive)
        for key in sorted(updates):
            set_setting(tx, key, updates[key])
    logger.debug('updated %s', ', '.join(sorted(updates)))


__all__ = ['Store', 'BlockedDirective', 'BLOCKED_DIRECTIVES', 'TOGGLES',
           'db_path', 'normalize_key', 'output_key', 'blocked_directive',
           'set_setting', 'get_setting', 'list_settings', 'apply_settings',
           ]
