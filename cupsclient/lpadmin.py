#!/usr/bin/python3
"""lpadmin: add, change and delete printers and classes.

-E means "encrypt" when it appears before -p and "enable and accept
jobs" after it, so options are handled in command-line order.
"""


import logging
import sys

from cupsclient import builders
from cupsclient import common
from cupsclient import ipp
from cupsclient import uri


logger = logging.getLogger(__name__)


opts = 'A:c:D:d:Eh:i:I:L:m:o:p:P:r:R:u:U:v:x:'


USAGE = """\
Usage: lpadmin [options]
Options:
  -E                      Encrypt connection or enable queue when used after -p
  -h server[:port]        Connect to server
  -U username             Authenticate as user
  -u allow:userlist|deny:userlist
  -A file                 Not supported (System V interfaces are removed)
  -I type-list            Accepted for compatibility; ignored
  -p printer              Add/modify printer
  -v device-uri           Set device URI
  -m model                Set ppd-name
  -P file                 Upload PPD file
  -i file                 Alias for -P
  -o name=value           Set default option
  -R name                 Remove default option
  -D info                 Set printer-info
  -L location             Set printer-location
  -c class                Add printer to class
  -r class                Remove printer from class
  -d printer              Set default destination
  -x destination          Delete printer/class
"""


# Job template attributes whose printer default is "<name>-default".
JOB_DEFAULTS = frozenset([
    'finishings',
    'finishings-col',
    'job-account-id',
    'job-accounting-user-id',
    'job-cancel-after',
    'job-hold-until',
    'job-priority',
    'media',
    'media-col',
    'media-source',
    'media-type',
    'multiple-document-handling',
    'number-up',
    'orientation-requested',
    'output-bin',
    'output-mode',
    'page-delivery',
    'page-ranges',
    'print-as-raster',
    'print-color-mode',
    'print-quality',
    'print-scaling',
    'printer-resolution',
    'sides',
])

# Printer attributes set under their own names.
PRINTER_ATTRIBUTES = frozenset([
    'port-monitor',
    'printer-error-policy',
    'printer-is-shared',
    'printer-op-policy',
])

NAME_ATTRIBUTES = frozenset(['port-monitor', 'printer-error-policy',
                             'printer-op-policy'])

MAX_NAME = 128
BAD_NAME_CHARS = '/\\?\'"#'

ALLOWED = 'requesting-user-name-allowed'
DENIED = 'requesting-user-name-denied'


class Options(object):
    def __init__(self):
        self.server = ''
        self.encrypt = False
        self.user = ''
        self.printer = ''
        self.device_uri = ''
        self.description = ''
        self.location = ''
        self.ppd_file = ''
        self.ppd_name = ''
        self.delete = ''
        self.default = ''
        self.enable = False
        self.class_add = ''
        self.class_remove = ''
        self.settings = {}
        self.removals = []
        self.warnings = []

    def modifies_printer(self):
        return bool(self.printer or self.device_uri or self.description or
                    self.location or self.settings or self.removals or
                    self.ppd_file or self.ppd_name)


def valid_name(name):
    """Check a printer or class name the way the scheduler does.

    Names may not contain control characters, spaces or any of
    / \\ ? ' " #, and must be shorter than 128 characters. Anything
    after an "@" is a server name and is not checked.
    """
    name = name.strip()
    if not name:
        return False
    name = name.split('@', 1)[0]
    for ch in name:
        if ord(ch) <= 0x20 or ord(ch) == 0x7f or ch in BAD_NAME_CHARS:
            return False
    return len(name) < MAX_NAME


def parse_option(value):
    name, sep, v = value.strip().partition('=')
    if not sep:
        return name.strip(), 'true'
    return name.strip(), v.strip()


def parse_access(value):
    """Parse -u allow:users or -u deny:users.

    Returns:
      A tuple of (attribute name, user list), or None.
    """
    value = value.strip()
    lower = value.lower()
    if lower.startswith('allow:'):
        return ALLOWED, value[len('allow:'):].strip()
    if lower.startswith('deny:'):
        return DENIED, value[len('deny:'):].strip()
    return None


def parse_args(args):
    options, arguments = common.parse_args(args, opts)
    if arguments:
        raise common.UsageError('unexpected argument "%s"' % arguments[0])
    result = Options()
    for o, v in options:
        v = v.strip()
        if o == '-h':
            result.server = v
        elif o == '-U':
            result.user = v
        elif o == '-A':
            raise common.UsageError('System V interface scripts are no '
                                    'longer supported for security reasons')
        elif o == '-I':
            result.warnings.append('Warning - content type list ignored.')
        elif o == '-p':
            result.printer = v
        elif o == '-v':
            result.device_uri = v
        elif o == '-D':
            result.description = v
        elif o == '-L':
            result.location = v
        elif o == '-x':
            result.delete = v
        elif o in ('-P', '-i'):
            result.ppd_file = v
        elif o == '-m':
            result.ppd_name = v
        elif o == '-d':
            result.default = v
        elif o == '-E':
            if result.printer:
                result.enable = True
            else:
                result.encrypt = True
        elif o == '-o':
            name, value = parse_option(v)
            if not name:
                raise common.UsageError('invalid -o value "%s"' % v)
            result.settings[name] = value
        elif o == '-R':
            result.removals.extend(builders.split_list(v))
        elif o == '-u':
            access = parse_access(v)
            if access is None:
                raise common.UsageError('unknown allow/deny option "%s"' % v)
            result.settings.pop(ALLOWED, None)
            result.settings.pop(DENIED, None)
            result.settings[access[0]] = access[1]
        elif o == '-c':
            result.class_add = v
        elif o == '-r':
            result.class_remove = v

    for name in (result.printer, result.default, result.delete):
        if name and not valid_name(name):
            raise common.UsageError(
                'printer name can only contain printable characters')
    for name in (result.class_add, result.class_remove):
        if name and not valid_name(name):
            raise common.UsageError(
                'class name can only contain printable characters')
    return result


def default_name(name):
    """Map an -o/-R option name to the printer attribute it changes."""
    name = name.strip().lower()
    if name in ('job-sheets', 'job-sheets-default'):
        return 'job-sheets-default'
    if name in PRINTER_ATTRIBUTES or name in (ALLOWED, DENIED):
        return name
    if name in JOB_DEFAULTS:
        return name + '-default'
    return name


def setting_attribute(name, value):
    """Build the printer attribute for one -o or -u setting."""
    attr_name = default_name(name)
    if attr_name in (ALLOWED, DENIED):
        users = builders.split_list(value)
        if not users:
            users = ['all'] if attr_name == ALLOWED else ['none']
        return ipp.Attribute(attr_name, ipp.TAG_NAME, users)
    value = value.strip() or 'true'
    if attr_name in NAME_ATTRIBUTES:
        return ipp.Attribute(attr_name, ipp.TAG_NAME, [value])
    if attr_name == 'printer-is-shared':
        return ipp.Attribute(attr_name, ipp.TAG_BOOLEAN,
                             [builders.parse_bool(value) is True])
    if attr_name == 'job-sheets-default':
        sheets = builders.split_list(value, 2) + ['none', 'none']
        return ipp.Attribute(attr_name, ipp.TAG_NAME, sheets[:2])
    try:
        return builders.make_attribute(attr_name, value)
    except ValueError:
        return ipp.Attribute(attr_name, ipp.TAG_KEYWORD, [value])


def _admin_request(op, client, name, printer_uri):
    msg = builders.new_request(op)
    msg.operation.add('printer-uri', ipp.TAG_URI, printer_uri)
    msg.operation.add('printer-name', ipp.TAG_NAME, name)
    builders.add_user(msg, client.user)
    return msg


def add_modify_printer(client, options):
    """Send CUPS-Add-Modify-Printer, with the PPD file as the document."""
    msg = _admin_request(ipp.OP_CUPS_ADD_MODIFY_PRINTER, client,
                         options.printer,
                         client.printer_uri(options.printer))
    printer = msg.printer
    if options.device_uri:
        printer.add('device-uri', ipp.TAG_URI, options.device_uri)
    if options.ppd_name:
        printer.add('ppd-name', ipp.TAG_NAME, options.ppd_name)
    if options.description:
        printer.add('printer-info', ipp.TAG_TEXT, options.description)
    if options.location:
        printer.add('printer-location', ipp.TAG_TEXT, options.location)
    for name in sorted(options.settings):
        printer.attributes.append(
            setting_attribute(name, options.settings[name]))
    seen = set()
    for name in options.removals:
        attr_name = default_name(name)
        if attr_name and attr_name not in seen:
            seen.add(attr_name)
            printer.attributes.append(builders.delete_attribute(attr_name))

    if options.ppd_file:
        with open(options.ppd_file, 'rb') as f:
            client.call(msg, f)
    else:
        client.call(msg)


def delete_destination(client, name):
    """Delete a printer, or the class of that name if no printer exists."""
    msg = _admin_request(ipp.OP_CUPS_DELETE_PRINTER, client, name,
                         client.printer_uri(name))
    response = client.send(msg)
    if response.code != ipp.STATUS_NOT_FOUND:
        ipp.check_status(response)
        return
    logger.debug('no printer %s, deleting class', name)
    delete_class(client, name)


def delete_class(client, name):
    client.call(_admin_request(ipp.OP_CUPS_DELETE_CLASS, client, name,
                               uri.class_uri(name)))


def set_default(client, name):
    client.call(_admin_request(ipp.OP_CUPS_SET_DEFAULT, client, name,
                               client.printer_uri(name)))


def enable_printer(client, name):
    """Resume the printer and let it accept jobs."""
    for op in (ipp.OP_RESUME_PRINTER, ipp.OP_CUPS_ACCEPT_JOBS):
        client.call(builders.request(op, client, printer=name))


def class_members(client, name):
    """Fetch a class's members.

    Returns:
      A list of (member name, member uri) tuples, or None if the class
      does not exist.
    """
    msg = builders.new_request(ipp.OP_GET_PRINTER_ATTRIBUTES)
    msg.operation.add('printer-uri', ipp.TAG_URI, uri.class_uri(name))
    builders.requested_attributes(msg, ['member-names', 'member-uris'])
    builders.add_user(msg, client.user)
    response = client.send(msg)
    if response.code == ipp.STATUS_NOT_FOUND:
        return None
    ipp.check_status(response)

    group = response.group(ipp.TAG_PRINTER, create=False)
    if group is None:
        return []
    names = [str(v).strip() for v in builders.all_values(group,
                                                         'member-names')]
    uris = [str(v).strip() for v in builders.all_values(group,
                                                        'member-uris')]
    members = []
    seen = set()
    for i in range(max(len(names), len(uris))):
        member_uri = uris[i] if i < len(uris) else ''
        member = names[i] if i < len(names) else ''
        member = member or uri.name_from_uri(member_uri)
        if not member or member.lower() in seen:
            continue
        seen.add(member.lower())
        members.append((member, member_uri or uri.destination_uri(member)))
    return members


def update_class(client, printer, class_add='', class_remove=''):
    """Add printer to, or remove it from, a class.

    A class left with no members is deleted.
    """
    if class_add and class_remove and \
            class_add.lower() != class_remove.lower():
        raise ValueError('cannot combine -c %s with -r %s' % (class_add,
                                                              class_remove))
    name = class_add or class_remove
    members = class_members(client, name)
    if members is None:
        if not class_add:
            raise ValueError('class %s does not exist' % name)
        members = []

    changed = False
    if class_remove:
        kept = [m for m in members if m[0].lower() != printer.lower()]
        if len(kept) == len(members) and not class_add:
            raise ValueError('printer %s is not a member of class %s' % (
                printer, name))
        changed = len(kept) != len(members)
        members = kept
    if class_add and printer.lower() not in [m[0].lower() for m in members]:
        members.append((printer, client.printer_uri(printer)))
        changed = True

    if not changed:
        return
    if not members:
        delete_class(client, name)
        return
    msg = _admin_request(ipp.OP_CUPS_ADD_MODIFY_CLASS, client, name,
                         uri.class_uri(name))
    msg.printer.add('member-uris', ipp.TAG_URI, [m[1] for m in members])
    client.call(msg)


def run(client, options):
    if options.delete:
        delete_destination(client, options.delete)
        return

    if options.modifies_printer():
        if not options.printer:
            raise ValueError('missing -p printer')
        add_modify_printer(client, options)

    if options.class_add or options.class_remove:
        if not options.printer:
            raise ValueError('missing -p printer for class operation')
        update_class(client, options.printer, options.class_add,
                     options.class_remove)

    if options.enable and options.printer:
        enable_printer(client, options.printer)

    if options.default:
        set_default(client, options.default)


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lpadmin', e)

    for warning in options.warnings:
        common.warn('lpadmin', warning)

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.user)
        run(client, options)
    except common.COMMAND_ERRORS as e:
        common.fail('lpadmin', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
