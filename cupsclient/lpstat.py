#!/usr/bin/python3
"""lpstat: show the status of the scheduler, destinations and jobs.

Several options take an optional comma-separated list ("-p", "-p Lab",
"-pLab,Office"), which getopt cannot express, so the command line is
parsed here by hand. With no view selected, the requesting user's
unfinished jobs are listed.
"""


import sys
import time

from cupsclient import builders
from cupsclient import catalog as catalog_
from cupsclient import common
from cupsclient import ipp
from cupsclient import uri


USAGE = """\
Usage: lpstat [options] [destination(s)]
Options:
  -a [destinations]   Show acceptance status
  -c [classes]        Show classes
  -d                  Show default destination
  -e                  Show destinations
  -f [forms]          Show forms (compatibility no-op)
  -h server[:port]    Specify server
  -H                  Show server host
  -l                  Show long status
  -o [destinations]   Show jobs
  -p [destinations]   Show printers
  -P [destinations]   Show paper types
  -r                  Show scheduler status
  -R                  Show job ranking
  -s                  Show summary
  -S [destinations]   Show charsets
  -t                  Show all status
  -u [users]          Show jobs for users
  -U username         Specify username
  -v [destinations]   Show devices
  -W which-jobs       completed|not-completed|successful|all
  -D                  Show descriptions
  -E                  Encrypt connection
"""


# Options that require a value.
VALUE_OPTIONS = 'hUW'
# Options that take an optional list, and the view each one selects.
LIST_OPTIONS = {
    'a': 'accepting',
    'c': 'classes',
    'f': 'forms',
    'o': 'jobs',
    'p': 'printers',
    'P': 'paper',
    'S': 'charsets',
    'u': 'jobs',
    'v': 'devices',
}
FLAG_OPTIONS = 'EHRDldrest'

WHICH_JOBS = ('completed', 'not-completed', 'successful', 'all')

DATE_FORMAT = '%a %b %e %H:%M:%S %Y'

PRINTER_ATTRIBUTES = [
    'printer-name',
    'printer-state',
    'printer-state-message',
    'printer-state-reasons',
    'printer-state-change-time',
    'printer-type',
    'printer-is-accepting-jobs',
    'device-uri',
    'printer-location',
    'printer-info',
    'printer-make-and-model',
    'printer-uri-supported',
    'printer-is-temporary',
    'requesting-user-name-allowed',
    'requesting-user-name-denied',
    'media-supported',
    'charset-supported',
]

JOB_ATTRIBUTES = [
    'job-id',
    'job-k-octets',
    'job-originating-user-name',
    'job-printer-state-message',
    'job-printer-uri',
    'job-state-reasons',
    'time-at-creation',
    'time-at-completed',
]

PRINTER_IDLE = 3
PRINTER_PROCESSING = 4
PRINTER_STOPPED = 5
JOB_PROCESSING = 5
PRINTER_TYPE_REMOTE = 0x0002


class Options(object):
    def __init__(self):
        self.server = ''
        self.encrypt = False
        self.user = ''
        self.views = set()
        self.long_status = 0
        self.which_jobs = ''
        self.printers = []
        self.users = []


def split_names(value):
    return [part.strip() for part in value.split(',') if part.strip()]


def parse_args(args):
    """Parse lpstat's arguments (without argv[0]) into an Options.

    Raises:
      HelpRequested: --help was given
      UsageError: the arguments could not be parsed
    """
    result = Options()
    seen_other = False
    i = 0
    while i < len(args):
        arg = args[i].strip()
        i += 1
        if not arg:
            continue
        if arg == '--help':
            raise common.HelpRequested()
        if arg == '--':
            for dest in args[i:]:
                if dest.strip():
                    result.views.add('jobs')
                    result.printers.extend(split_names(dest))
            break
        if arg.startswith('--'):
            raise common.UsageError('unknown option "%s"' % arg)
        if not arg.startswith('-') or arg == '-':
            result.views.add('jobs')
            result.printers.extend(split_names(arg))
            seen_other = True
            continue

        pos = 1
        while pos < len(arg):
            ch = arg[pos]
            rest = arg[pos + 1:]
            pos += 1
            value = ''
            if ch in VALUE_OPTIONS:
                if rest:
                    value = rest
                    pos = len(arg)
                elif i < len(args):
                    value = args[i]
                    i += 1
                else:
                    raise common.UsageError('missing argument for -%s' % ch)
            elif ch in LIST_OPTIONS:
                if rest:
                    value = rest
                    pos = len(arg)
                elif i < len(args) and not args[i].startswith('-'):
                    value = args[i]
                    i += 1
            elif ch not in FLAG_OPTIONS:
                raise common.UsageError('unknown option "-%s"' % ch)

            if ch == 'h' and seen_other:
                raise common.UsageError(
                    '-h must appear before all other options')
            if ch not in 'hEU':
                seen_other = True
            _apply_option(result, ch, value.strip())
    return result


def _apply_option(result, ch, value):
    if ch == 'h':
        result.server = value
    elif ch == 'E':
        result.encrypt = True
    elif ch == 'U':
        result.user = value
    elif ch == 'W':
        value = value.lower()
        if value not in WHICH_JOBS:
            raise common.UsageError('need "completed", "not-completed", '
                                    '"successful", or "all" after -W')
        result.which_jobs = value
    elif ch == 'D':
        result.long_status = max(result.long_status, 1)
    elif ch == 'l':
        result.long_status = 2
    elif ch == 'H':
        result.views.add('host')
    elif ch == 'R':
        result.views.add('ranking')
    elif ch == 'd':
        result.views.add('default')
    elif ch == 'r':
        result.views.add('scheduler')
    elif ch == 'e':
        result.views.add('destinations')
    elif ch == 's':
        result.views.update(['default', 'scheduler', 'printers'])
    elif ch == 't':
        result.views.update(['default', 'scheduler', 'printers', 'jobs',
                             'devices', 'accepting'])
    elif ch == 'u':
        result.views.add('jobs')
        result.users.extend(split_names(value))
    elif ch == 'f':
        result.views.add('forms')
    elif ch in LIST_OPTIONS:
        result.views.add(LIST_OPTIONS[ch])
        result.printers.extend(split_names(value))


def matches(names, value):
    """True if names is empty, contains "all", or contains value."""
    if not names:
        return True
    lowered = [name.lower() for name in names]
    return 'all' in lowered or value.strip().lower() in lowered


def format_date(epoch):
    if epoch <= 0:
        return ''
    return time.strftime(DATE_FORMAT, time.localtime(epoch))


class Printer(object):
    """The lpstat view of one printer group."""

    def __init__(self, group):
        self.name = builders.text_value(group, 'printer-name')
        self.state = builders.int_value(group, 'printer-state')
        self.accepting = builders.bool_value(group,
                                             'printer-is-accepting-jobs')
        self.device_uri = builders.text_value(group, 'device-uri')
        self.location = builders.text_value(group, 'printer-location')
        self.info = builders.text_value(group, 'printer-info')
        self.message = builders.text_value(group, 'printer-state-message')
        self.changed = builders.int_value(group, 'printer-state-change-time')
        self.type = builders.int_value(group, 'printer-type')
        self.uri = builders.text_value(group, 'printer-uri-supported')
        self.temporary = builders.bool_value(group, 'printer-is-temporary')
        self.allowed = _strings(group, 'requesting-user-name-allowed')
        self.denied = _strings(group, 'requesting-user-name-denied')
        self.reasons = _strings(group, 'printer-state-reasons')
        self.media = _strings(group, 'media-supported')
        self.charsets = _strings(group, 'charset-supported')

    @property
    def since(self):
        return format_date(self.changed)


def _strings(group, name):
    return [builders.format_value(v).strip()
            for v in builders.all_values(group, name)]


def fetch_printers(client):
    msg = builders.new_request(ipp.OP_CUPS_GET_PRINTERS)
    builders.requested_attributes(msg, PRINTER_ATTRIBUTES)
    response = client.call(msg)
    printers = []
    for group in response.groups_of(ipp.TAG_PRINTER):
        printer = Printer(group)
        if printer.name:
            printers.append(printer)
    return printers


def current_job_id(client, name):
    """Return the id of the job name is printing, or 0."""
    msg = builders.new_request(ipp.OP_GET_JOBS)
    builders.add_printer_uri(msg, name)
    msg.operation.add('limit', ipp.TAG_INTEGER, 20)
    builders.requested_attributes(msg, ['job-id', 'job-state'])
    response = client.call(msg)
    for group in response.groups_of(ipp.TAG_JOB):
        if builders.int_value(group, 'job-state') == JOB_PROCESSING:
            job_id = builders.int_value(group, 'job-id')
            if job_id > 0:
                return job_id
    return 0


def show_default(client, out):
    name = catalog_.default_destination(client)
    if name:
        out.write('system default destination: %s\n' % name)
    else:
        out.write('no system default destination\n')


def show_printers(client, printers, names, long_status, out):
    for p in printers:
        if not matches(names, p.name):
            continue
        if p.state == PRINTER_PROCESSING:
            out.write('printer %s now printing %s-%d.  enabled since %s\n' % (
                p.name, p.name, current_job_id(client, p.name), p.since))
        elif p.state == PRINTER_STOPPED:
            out.write('printer %s disabled since %s -\n' % (p.name, p.since))
        elif 'hold-new-jobs' in [r.lower() for r in p.reasons]:
            out.write('printer %s is holding new jobs.  enabled since %s\n' %
                      (p.name, p.since))
        else:
            out.write('printer %s is idle.  enabled since %s\n' % (
                p.name, p.since))
        if p.message:
            out.write('\t%s\n' % p.message)
        elif p.state == PRINTER_STOPPED:
            out.write('\treason unknown\n')

        if long_status > 0:
            out.write('\tDescription: %s\n' % p.info)
            if p.reasons:
                out.write('\tAlerts: %s\n' % ' '.join(p.reasons))
        if long_status > 1:
            out.write('\tLocation: %s\n' % p.location)
            if p.type & PRINTER_TYPE_REMOTE:
                out.write('\tConnection: remote\n')
            else:
                out.write('\tConnection: direct\n')
            out.write('\tOn fault: no alert\n')
            out.write('\tAfter fault: continue\n')
            if p.allowed:
                out.write('\tUsers allowed:\n')
                users = p.allowed
            elif p.denied:
                out.write('\tUsers denied:\n')
                users = p.denied
            else:
                out.write('\tUsers allowed:\n')
                users = ['(all)']
            for user in users:
                out.write('\t\t%s\n' % user)


def show_accepting(printers, names, out):
    for p in printers:
        if not matches(names, p.name):
            continue
        if p.accepting:
            out.write('%s accepting requests since %s\n' % (p.name, p.since))
        else:
            out.write('%s not accepting requests since %s -\n' % (
                p.name, p.since))
            out.write('\t%s\n' % (p.message or 'reason unknown'))


def show_devices(printers, names, out):
    for p in printers:
        if not matches(names, p.name):
            continue
        device = p.device_uri
        if device.startswith('file:'):
            device = device[len('file:'):]
        device = device or p.uri
        if device:
            out.write('device for %s: %s\n' % (p.name, device))


def show_paper(printers, names, out):
    for p in printers:
        if not matches(names, p.name):
            continue
        out.write('printer %s supports:\n' % p.name)
        for media in [m for m in p.media if m] or ['application/octet-stream']:
            out.write('\t%s\n' % media)


def show_charsets(printers, names, out):
    for p in printers:
        if not matches(names, p.name):
            continue
        out.write('printer %s accepts charsets:\n' % p.name)
        for charset in [c for c in p.charsets if c] or ['utf-8']:
            out.write('\t%s\n' % charset)


def _destination_type(p):
    if p.temporary:
        return 'temporary'
    if p.uri:
        return 'permanent'
    return 'network'


def show_destinations(printers, long_status, out):
    for p in sorted(printers, key=lambda p: p.name.strip().lower()):
        if long_status > 0:
            out.write('%s %s %s %s\n' % (p.name, _destination_type(p),
                                         p.uri or 'none',
                                         p.device_uri or 'none'))
        else:
            out.write('%s\n' % p.name)


def show_classes(client, names, out):
    msg = builders.new_request(ipp.OP_CUPS_GET_CLASSES)
    builders.requested_attributes(msg, ['printer-name', 'member-names'])
    response = client.call(msg)
    for group in response.groups_of(ipp.TAG_PRINTER):
        name = builders.text_value(group, 'printer-name')
        if not name or not matches(names, name):
            continue
        members = _strings(group, 'member-names')
        if members:
            out.write('class %s is %s\n' % (name, ' '.join(members)))
        else:
            out.write('class %s is empty\n' % name)


def show_jobs(client, options, out):
    which = options.which_jobs or 'not-completed'
    msg = builders.new_request(ipp.OP_GET_JOBS)
    builders.requested_attributes(msg, JOB_ATTRIBUTES)
    if which == 'successful':
        msg.operation.add('which-jobs', ipp.TAG_KEYWORD, 'completed')
    else:
        msg.operation.add('which-jobs', ipp.TAG_KEYWORD, which)
    if len(options.printers) == 1:
        builders.add_printer_uri(msg, options.printers[0])
    if len(options.users) == 1:
        builders.add_user(msg, options.users[0])
        msg.operation.add('my-jobs', ipp.TAG_BOOLEAN, True)
    response = client.call(msg)

    rank = -1
    for group in response.groups_of(ipp.TAG_JOB):
        job_id = builders.int_value(group, 'job-id')
        owner = builders.text_value(group, 'job-originating-user-name')
        printer = uri.name_from_uri(
            builders.text_value(group, 'job-printer-uri'))
        reasons = _strings(group, 'job-state-reasons')
        if not matches(options.printers, printer or ''):
            continue
        if not matches(options.users, owner):
            continue
        if which == 'successful' and reasons[:1] != [
                'job-completed-successfully']:
            continue
        if job_id <= 0:
            continue
        rank += 1

        when = builders.int_value(group, 'time-at-creation')
        if which != 'not-completed':
            when = builders.int_value(group, 'time-at-completed') or when
        name = '%s-%d' % (printer, job_id)
        size = builders.int_value(group, 'job-k-octets') * 1024.0
        if 'ranking' in options.views:
            out.write('%3d %-21s %-13s %8.0f %s\n' % (
                rank, name, owner or 'unknown', size, format_date(when)))
        else:
            out.write('%-23s %-13s %8.0f   %s\n' % (
                name, owner or 'unknown', size, format_date(when)))
        if options.long_status > 0:
            message = builders.text_value(group, 'job-printer-state-message')
            if message:
                out.write('\tStatus: %s\n' % message)
            if reasons:
                out.write('\tAlerts: %s\n' % ' '.join(reasons))
            out.write('\tqueued for %s\n' % printer)


# Views that need the CUPS-Get-Printers listing.
PRINTER_VIEWS = frozenset(['printers', 'accepting', 'devices', 'destinations',
                           'paper', 'charsets'])
# Views that suppress the default job listing.
SELECTING_VIEWS = frozenset(['default', 'scheduler', 'printers', 'accepting',
                             'jobs', 'devices', 'forms', 'classes',
                             'destinations'])


def run(client, options, out=None):
    out = out or sys.stdout
    views = options.views
    if not views & SELECTING_VIEWS:
        views.add('jobs')
        if not options.users:
            options.users = [client.user]

    if 'host' in views:
        out.write('scheduler is running on %s:%d\n' % (client.host,
                                                      client.port))
    if 'scheduler' in views:
        out.write('scheduler is running\n')
    if 'default' in views:
        show_default(client, out)

    printers = []
    if views & PRINTER_VIEWS:
        printers = fetch_printers(client)
    if 'printers' in views:
        show_printers(client, printers, options.printers,
                      options.long_status, out)
    if 'accepting' in views:
        show_accepting(printers, options.printers, out)
    if 'devices' in views:
        show_devices(printers, options.printers, out)
    if 'paper' in views:
        show_paper(printers, options.printers, out)
    if 'charsets' in views:
        show_charsets(printers, options.printers, out)
    if 'destinations' in views:
        show_destinations(printers, options.long_status, out)
    if 'classes' in views:
        show_classes(client, options.printers, out)
    if 'jobs' in views:
        show_jobs(client, options, out)


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lpstat', e)

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.user)
        run(client, options)
    except common.COMMAND_ERRORS as e:
        common.fail('lpstat', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
