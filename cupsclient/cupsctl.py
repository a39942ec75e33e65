#!/usr/bin/python3
"""cupsctl: show or change server settings.

With no updates, the current settings are listed as key=value lines.
Toggles may be given as --[no-]<name> or as <name>=<value>; any other
key=value pair is stored as a directive, unless it is one of the
directives that can only be changed by editing the server's files.
"""


import sqlite3
import sys

from cupsclient import common
from cupsclient import settings


opts = 'Eh:U:'


USAGE = """\
Usage: cupsctl [options] [param=value ... paramN=valueN]
Options:
-E                      Encrypt the connection to the server
-h server[:port]        Connect to the named server and port
-U username             Specify username to use for authentication
--[no-]debug-logging    Turn debug logging on/off
--[no-]remote-admin     Turn remote administration on/off
--[no-]remote-any       Allow/prevent access from the Internet
--[no-]share-printers   Turn printer sharing on/off
--[no-]user-cancel-any  Allow/prevent users to cancel any job
--[no-]preserve-job-history  Preserve or clean completed jobs
--[no-]preserve-job-files    Preserve or clean job files
"""


def toggle_options():
    """Long option names for every toggle, both senses."""
    longopts = []
    for toggle in settings.TOGGLES:
        name = toggle.replace('_', '-')
        longopts.extend([name, 'no-' + name])
    return longopts


def parse_args(args):
    """Parse cupsctl's arguments (without argv[0]).

    Returns:
      A tuple of (options, updates), where options is the getopt list
      of short options and updates maps setting keys to new values.
    """
    options, arguments = common.parse_args(args, opts, toggle_options())
    updates = {}
    for o, _ in options:
        if not o.startswith('--'):
            continue
        name = o[2:]
        value = '1'
        if name.startswith('no-'):
            name = name[3:]
            value = '0'
        updates['_' + name.replace('-', '_')] = value

    for arg in arguments:
        arg = arg.strip()
        if not arg:
            continue
        if '=' not in arg:
            raise common.UsageError('unknown argument "%s"' % arg)
        key, value = arg.split('=', 1)
        key = settings.normalize_key(key)
        if not key:
            raise common.UsageError('invalid setting "%s"' % arg)
        updates[key] = value
    return options, updates


def list_settings(store, out=None):
    out = out or sys.stdout
    with store.with_tx(readonly=True) as tx:
        current = settings.list_settings(tx)
    current.setdefault('_share_printers', '1')
    for key in sorted(current):
        out.write('%s=%s\n' % (settings.output_key(key), current[key]))


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        _, updates = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('cupsctl', e)

    try:
        with settings.Store() as store:
            if updates:
                settings.apply_settings(store, updates)
            else:
                list_settings(store)
    except (ValueError, sqlite3.Error, OSError) as e:
        common.fail('cupsctl', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
