#!/usr/bin/python3
"""lpq: show the print queue, BSD style."""


import sys
import time

from cupsclient import builders
from cupsclient import catalog as catalog_
from cupsclient import common
from cupsclient import destopts
from cupsclient import ipp
from cupsclient import submit
from cupsclient import uri


opts = 'aEh:lP:U:'


USAGE = """\
Usage: lpq [options] [+interval]
Options:
-a                      Show jobs on all destinations
-E                      Encrypt the connection to the server
-h server[:port]        Connect to the named server and port
-l                      Show verbose (long) output
-P destination          Show status for the specified destination
-U username             Specify the username to use for authentication
"""


JOB_ATTRIBUTES = [
    'copies',
    'job-id',
    'job-k-octets',
    'job-name',
    'job-originating-user-name',
    'job-printer-uri',
    'job-priority',
    'job-state',
]

JOB_PROCESSING = 4


class Options(object):
    def __init__(self):
        self.server = ''
        self.encrypt = False
        self.auth_user = ''
        self.destination = ''
        self.user_filter = ''
        self.job_id = 0
        self.show_all = False
        self.long_status = False
        self.interval = 0


def parse_args(args):
    options, arguments = common.parse_args(args, opts)
    result = Options()
    for o, v in options:
        if o == '-a':
            result.show_all = True
        elif o == '-E':
            result.encrypt = True
        elif o == '-h':
            result.server = v.strip()
        elif o == '-l':
            result.long_status = True
        elif o == '-P':
            result.destination = destopts.split_destination(v)[0]
        elif o == '-U':
            result.auth_user = v.strip()
    for arg in arguments:
        arg = arg.strip()
        if not arg:
            continue
        if arg.startswith('+'):
            try:
                result.interval = int(arg[1:])
            except ValueError:
                raise common.UsageError('bad interval "%s"' % arg)
            if result.interval < 0:
                raise common.UsageError('bad interval "%s"' % arg)
        elif arg.isdigit() and int(arg) > 0:
            result.job_id = int(arg)
        else:
            result.user_filter = arg
    return result


def rank_string(state, rank):
    if state == JOB_PROCESSING:
        return 'active'
    if 11 <= rank % 100 <= 13:
        return '%dth' % rank
    suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(rank % 10, 'th')
    return '%d%s' % (rank, suffix)


def show_printer(client, destination, out=None):
    out = out or sys.stdout
    msg = builders.new_request(ipp.OP_GET_PRINTER_ATTRIBUTES)
    builders.add_printer_uri(msg, destination)
    response = client.call(msg)
    state = 5
    printer = response.group(ipp.TAG_PRINTER, create=False)
    if printer is not None:
        state = builders.int_value(printer, 'printer-state', 5)
    if state == 3:
        out.write('%s is ready\n' % destination)
    elif state == 4:
        out.write('%s is ready and printing\n' % destination)
    else:
        out.write('%s is not ready\n' % destination)


def fetch_jobs(client, options):
    if options.job_id:
        msg = builders.new_request(ipp.OP_GET_JOB_ATTRIBUTES)
        builders.add_job_uri(msg, options.job_id)
    else:
        msg = builders.new_request(ipp.OP_GET_JOBS)
        if options.destination:
            builders.add_printer_uri(msg, options.destination)
        else:
            msg.operation.add('printer-uri', ipp.TAG_URI, 'ipp://localhost/')
    if options.user_filter:
        builders.add_user(msg, options.user_filter)
        msg.operation.add('my-jobs', ipp.TAG_BOOLEAN, True)
    else:
        builders.add_user(msg, client.user)
    builders.requested_attributes(msg, JOB_ATTRIBUTES)
    return client.call(msg).groups_of(ipp.TAG_JOB)


def show_jobs(client, options, out=None):
    """Print the job table.

    Returns:
      The number of jobs shown.
    """
    out = out or sys.stdout
    jobs = [job for job in fetch_jobs(client, options)
            if builders.int_value(job, 'job-id') and
            uri.name_from_uri(builders.text_value(job, 'job-printer-uri'))]
    if not jobs:
        out.write('no entries\n')
        return 0

    if not options.long_status:
        out.write('Rank    Owner   Job     File(s)'
                  '                         Total Size\n')
    rank = 1
    for job in jobs:
        state = builders.int_value(job, 'job-state', 3)
        rank_text = rank_string(state, rank)
        if state != JOB_PROCESSING:
            rank += 1
        job_id = builders.int_value(job, 'job-id')
        owner = builders.text_value(job, 'job-originating-user-name') or \
            'unknown'
        name = builders.text_value(job, 'job-name') or 'unknown'
        size = builders.int_value(job, 'job-k-octets') * 1024
        if options.long_status:
            copies = builders.int_value(job, 'copies', 1)
            if copies > 1:
                name = '%d copies of %s' % (copies, name)
            out.write('\n')
            out.write('%s: %-33.33s [job %d localhost]\n' % (
                owner, rank_text, job_id))
            out.write('        %-39.39s %d bytes\n' % (name, size))
        else:
            out.write('%-7s %-7.7s %-7d %-31.31s %d bytes\n' % (
                rank_text, owner, job_id, name, size))
    return len(jobs)


def run(client, options, store, out=None):
    catalog = catalog_.Catalog(client).load()
    if options.destination and options.destination not in catalog:
        raise ValueError('unknown destination "%s"' % options.destination)
    if not options.show_all and not options.destination:
        options.destination = submit.resolve_destination(
            '', store, client, ('LPDEST', 'PRINTER'))[0]
        if options.destination and options.destination not in catalog:
            raise ValueError('unknown destination "%s"' %
                             options.destination)

    while True:
        if options.destination:
            show_printer(client, options.destination, out)
        count = show_jobs(client, options, out)
        if options.interval <= 0 or count <= 0:
            break
        time.sleep(options.interval)


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lpq', e)

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.auth_user)
        run(client, options, destopts.OptionsStore.load())
    except common.COMMAND_ERRORS as e:
        common.fail('lpq', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
