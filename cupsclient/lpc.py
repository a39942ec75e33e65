#!/usr/bin/python3
"""lpc: the BSD line printer control program.

Only the "status" command does anything; the queue control commands
of the BSD lpc are answered with a notice. Without arguments, commands
are read from standard input.
"""


import logging
import sys

from cupsclient import builders
from cupsclient import common
from cupsclient import ipp


logger = logging.getLogger(__name__)


PROMPT = 'lpc> '

STATUS_ATTRIBUTES = [
    'device-uri',
    'printer-is-accepting-jobs',
    'printer-name',
    'printer-state',
    'queued-job-count',
]

PRINTER_STOPPED = 5


def is_abbrev(value, full, minimum):
    """True if value is an abbreviation of full at least minimum long."""
    value = value.strip()
    return len(value) >= max(minimum, 1) and full.startswith(value)


def parse_destinations(value):
    """Return the queues named by a status argument; [] means all."""
    value = value.strip()
    if not value or value.lower() == 'all':
        return []
    return builders.split_list(value)


def device_description(device_uri):
    if device_uri.startswith('file:'):
        return device_uri[len('file:'):]
    scheme, sep, _ = device_uri.partition(':')
    if sep and scheme:
        return scheme
    return device_uri


def show_status(client, params, out=None):
    out = out or sys.stdout
    msg = builders.new_request(ipp.OP_CUPS_GET_PRINTERS)
    builders.requested_attributes(msg, STATUS_ATTRIBUTES)
    response = client.call(msg)

    targets = parse_destinations(params)
    for group in response.groups_of(ipp.TAG_PRINTER):
        name = builders.text_value(group, 'printer-name')
        if not name or (targets and name not in targets):
            continue
        device_uri = builders.text_value(group, 'device-uri') or \
            'file:/dev/null'
        out.write('%s:\n' % name)
        out.write("\tprinter is on device '%s' speed -1\n" %
                  device_description(device_uri))
        if builders.bool_value(group, 'printer-is-accepting-jobs', True):
            out.write('\tqueuing is enabled\n')
        else:
            out.write('\tqueuing is disabled\n')
        if builders.int_value(group, 'printer-state', 3) != PRINTER_STOPPED:
            out.write('\tprinting is enabled\n')
        else:
            out.write('\tprinting is disabled\n')
        jobs = builders.int_value(group, 'queued-job-count')
        if jobs <= 0:
            out.write('\tno entries\n')
        else:
            out.write('\t%d entries\n' % jobs)
        out.write('\tdaemon present\n')


def show_help(command, out=None):
    out = out or sys.stdout
    command = command.strip()
    if not command:
        out.write('Commands may be abbreviated.  Commands are:\n\n')
        out.write('exit    help    quit    status  ?\n')
    elif command == '?' or is_abbrev(command, 'help', 1):
        out.write('help\t\tGet help on commands.\n')
    elif is_abbrev(command, 'status', 4):
        out.write('status\t\tShow status of daemon and queue.\n')
    else:
        out.write('?Invalid help command unknown.\n')


def do_command(client, command, params, out=None):
    """Run one lpc command.

    Errors from the status command are printed and do not end the
    session.
    """
    out = out or sys.stdout
    if is_abbrev(command, 'status', 4):
        try:
            show_status(client, params, out)
        except common.COMMAND_ERRORS as e:
            logger.debug('status failed', exc_info=True)
            out.write('lpc: %s\n' % e)
    elif command == '?' or is_abbrev(command, 'help', 1):
        show_help(params, out)
    else:
        out.write('%s is not implemented by the CUPS version of lpc.\n' %
                  command)


def interact(client, stream=None, out=None):
    """Read commands until end of input, quit or exit."""
    stream = stream or sys.stdin
    out = out or sys.stdout
    out.write(PROMPT)
    out.flush()
    for line in stream:
        parts = line.split()
        if parts:
            command, params = parts[0], ' '.join(parts[1:])
            if is_abbrev(command, 'quit', 1) or is_abbrev(command, 'exit', 2):
                break
            do_command(client, command, params, out)
        out.write(PROMPT)
        out.flush()


def _main(args):
    args.pop(0)
    common.setup_logging()

    if args and args[0] == '--help':
        show_help('')
        return 0

    try:
        client = common.make_client()
    except common.COMMAND_ERRORS as e:
        common.fail('lpc', e)

    if args:
        do_command(client, args[0].strip(), ' '.join(args[1:]).strip())
    else:
        interact(client)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
