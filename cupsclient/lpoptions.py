#!/usr/bin/python3
"""lpoptions: show and change per-user destination options.

Options live in ~/.cups/lpoptions. -d sets the default destination,
-o and -r edit the options of the -p destination, -x forgets a
destination and -l lists the options its PPD offers. With none of
those, the destination's effective defaults are printed.
"""


import logging
import sys

from cupsclient import builders
from cupsclient import catalog as catalog_
from cupsclient import client as client_
from cupsclient import common
from cupsclient import destopts
from cupsclient import ipp
from cupsclient import ppd as ppd_


logger = logging.getLogger(__name__)


opts = 'Eh:U:p:d:lo:r:x:'


USAGE = """\
Usage: lpoptions [options]
Options:
  -E                      Encrypt connection
  -h server[:port]        Connect to server
  -U username             Authenticate as user
  -p destination          Select destination
  -d destination          Set default destination
  -l                      List supported options
  -o name=value           Set option
  -r name                 Remove option
  -x destination          Remove destination from lpoptions
"""


# Printer attributes listed as defaults, and the option each one sets.
DEFAULT_ATTRIBUTES = [
    'media',
    'sides',
    'print-color-mode',
    'printer-resolution',
    'output-bin',
    'print-quality',
    'finishings',
    'number-up',
    'orientation-requested',
    'page-delivery',
    'print-scaling',
    'job-sheets',
]


class Options(object):
    def __init__(self):
        self.server = ''
        self.encrypt = False
        self.user = ''
        self.printer = ''
        self.default = ''
        self.list = False
        self.set_options = []
        self.remove_options = []
        self.remove_dest = ''


def parse_args(args):
    options, arguments = common.parse_args(args, opts)
    common.require_server_first(options)
    if arguments:
        raise common.UsageError('unexpected argument "%s"' % arguments[0])
    result = Options()
    for o, v in options:
        if o == '-h':
            result.server = v.strip()
        elif o == '-E':
            result.encrypt = True
        elif o == '-U':
            result.user = v.strip()
        elif o == '-p':
            result.printer = v.strip()
        elif o == '-d':
            result.default = v.strip()
        elif o == '-l':
            result.list = True
        elif o == '-o':
            result.set_options.append(v.strip())
        elif o == '-r':
            result.remove_options.append(v.strip())
        elif o == '-x':
            result.remove_dest = v.strip()
    return result


def ensure_destination(client, store, dest):
    """Raise ValueError unless dest is in lpoptions or on the server."""
    if store.has(dest):
        return
    name = destopts.split_destination(dest)[0]
    if name and name in catalog_.Catalog(client).load():
        return
    raise ValueError('Unknown printer or class.')


def resolve_destination(explicit, store, client):
    """Pick the destination to show or edit.

    -p, then the lpoptions default, then LPDEST, PRINTER and
    CUPS_PRINTER, then the first destination in lpoptions, then the
    server default.
    """
    dest = explicit or store.default or common.env_destination(
        'LPDEST', 'PRINTER', 'CUPS_PRINTER')
    if not dest and store.dests:
        dest = store.display_name(sorted(store.dests)[0])
    if dest:
        return dest
    try:
        return catalog_.default_destination(client)
    except (client_.TransportError, ipp.StatusError) as e:
        logger.debug('no server default: %s', e)
        return ''


def edit_options(store, dest, set_options, remove_options):
    store.ensure(dest)
    for text in set_options:
        for name, value in destopts.parse_options(text).items():
            store.set_option(dest, name, value)
    for name in remove_options:
        if name.strip():
            store.remove_option(dest, name)


def fetch_defaults(client, dest):
    """Return the server's job defaults for dest as option strings."""
    msg = builders.new_request(ipp.OP_GET_PRINTER_ATTRIBUTES)
    msg.operation.add('printer-uri', ipp.TAG_URI, client.printer_uri(dest))
    builders.requested_attributes(
        msg, [name + '-default' for name in DEFAULT_ATTRIBUTES])
    response = client.call(msg)
    defaults = {}
    for group in response.groups_of(ipp.TAG_PRINTER):
        for name in DEFAULT_ATTRIBUTES:
            values = builders.all_values(group, name + '-default')
            if values:
                defaults[name] = ','.join(
                    builders.format_value(v).strip() for v in values)
    return defaults


def show_defaults(client, store, dest, out=None):
    out = out or sys.stdout
    name, instance = destopts.split_destination(dest)
    local = store.merge(name, instance)
    try:
        remote = fetch_defaults(client, name)
    except (client_.TransportError, ipp.StatusError):
        if not local:
            raise
        remote = {}
    if store.default and store.default.lower() == dest.lower():
        out.write('Default %s\n' % store.default)
    merged = dict(remote)
    merged.update(local)
    out.write(destopts.format_options(merged) + '\n')


def fetch_ppd(client, dest):
    """Fetch dest's PPD with CUPS-Get-PPD and parse it."""
    msg = builders.new_request(ipp.OP_CUPS_GET_PPD)
    msg.operation.add('printer-uri', ipp.TAG_URI, client.printer_uri(dest))
    response, payload = client.send_with_payload(msg)
    ipp.check_status(response)
    if not payload:
        raise ValueError('Unable to get PPD file for %s.' % dest)
    return ppd_.loads(payload, prefix='lpoptions-')


def list_supported(client, store, dest, out=None):
    out = out or sys.stdout
    name, instance = destopts.split_destination(dest)
    ppd = fetch_ppd(client, name)
    for line in ppd_.list_options(ppd, store.merge(name, instance)):
        out.write(line + '\n')


def run(client, options, store, out=None):
    if options.default:
        ensure_destination(client, store, options.default)
        store.set_default(options.default)
        if options.set_options or options.remove_options:
            edit_options(store, options.default, options.set_options,
                         options.remove_options)
        store.save()
        return

    if options.remove_dest:
        store.remove_destination(options.remove_dest)
        store.save()
        return

    dest = resolve_destination(options.printer, store, client)
    if options.set_options or options.remove_options:
        if not dest:
            raise ValueError('No printers.')
        edit_options(store, dest, options.set_options, options.remove_options)
        store.save()
        return

    if options.list:
        if not dest:
            raise ValueError('No printers.')
        list_supported(client, store, dest, out)
        return

    if dest:
        show_defaults(client, store, dest, out)


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lpoptions', e)

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.user)
        run(client, options, destopts.OptionsStore.load())
    except common.COMMAND_ERRORS as e:
        common.fail('lpoptions', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
