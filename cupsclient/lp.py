#!/usr/bin/python3
"""lp: submit files for printing, or change a queued job."""


import os
import sys

from cupsclient import builders
from cupsclient import common
from cupsclient import destopts
from cupsclient import ipp
from cupsclient import operands
from cupsclient import submit


opts = 'Eh:U:d:n:t:o:H:i:q:P:ms'


USAGE = """\
Usage: lp [options] [--] [file(s)]
       lp [options] -i id
Options:
-d destination          Specify the destination
-E                      Encrypt the connection to the server
-h server[:port]        Connect to the named server and port
-H HH:MM                Hold the job until the specified UTC time
-H hold                 Hold the job until released/resumed
-H immediate            Print the job as soon as possible
-H restart              Reprint the job
-H resume               Resume a held job
-i id                   Specify an existing job ID to modify
-m                      Send an email notification when the job completes
-n num-copies           Specify the number of copies to print
-o option[=value]       Specify a printer-specific option
-P page-list            Specify a list of pages to print
-q priority             Specify the priority from low (1) to high (100)
-s                      Be silent
-t title                Specify the job title
-U username             Specify the username to use for authentication
"""


HOLD_VALUES = {
    'hold': 'indefinite',
    'indefinite': 'indefinite',
    'resume': 'no-hold',
    'release': 'no-hold',
    'no-hold': 'no-hold',
    'immediate': 'no-hold',
}


class Options(object):
    def __init__(self):
        self.server = ''
        self.encrypt = False
        self.user = ''
        self.dest = ''
        self.title = ''
        self.hold = ''
        self.job = ''
        self.silent = False
        self.job_options = {}
        self.files = []


def parse_args(args):
    """Parse lp's arguments (without argv[0]) into an Options."""
    options, arguments = common.parse_args(args, opts)
    common.require_server_first(options)
    result = Options()
    for o, v in options:
        if o == '-h':
            result.server = v.strip()
        elif o == '-E':
            result.encrypt = True
        elif o == '-U':
            result.user = v.strip()
        elif o == '-d':
            result.dest = v.strip()
        elif o == '-n':
            try:
                copies = int(v.strip())
            except ValueError:
                copies = 0
            if copies < 1:
                raise common.UsageError('copies must be 1 or more')
            result.job_options['copies'] = str(copies)
        elif o == '-t':
            result.title = v.strip()
        elif o == '-o':
            result.job_options.update(destopts.parse_options(v))
        elif o == '-H':
            result.hold = v.strip().lower()
        elif o == '-i':
            result.job = v.strip()
        elif o == '-q':
            try:
                priority = int(v.strip())
            except ValueError:
                priority = 0
            if not 1 <= priority <= 100:
                raise common.UsageError(
                    'priority must be between 1 and 100')
            result.job_options['job-priority'] = str(priority)
        elif o == '-P':
            result.job_options['page-ranges'] = v.strip()
        elif o == '-s':
            result.silent = True

    if '-' in arguments and len(arguments) > 1:
        raise common.UsageError("'-' can only be used for a single document")
    result.files = [a for a in arguments if a != '-']
    return result


def hold_options(hold):
    """Translate -H into job attributes."""
    if not hold:
        return {}
    options = {'job-hold-until': HOLD_VALUES.get(hold, hold)}
    if hold == 'immediate':
        options['job-priority'] = '100'
    return options


def parse_job_id(value):
    job_id = operands.split_job_spec(value)[1]
    if not job_id:
        raise common.UsageError('invalid job id')
    return job_id


def modify_job(client, options):
    """Change a queued job with Set-Job-Attributes, Hold-Job or Release-Job."""
    job_id = parse_job_id(options.job)
    changes = dict(options.job_options)
    if options.title:
        changes['job-name'] = options.title

    if options.hold and not changes:
        value = HOLD_VALUES.get(options.hold)
        if value == 'indefinite':
            msg = builders.request(ipp.OP_HOLD_JOB, client, job_id=job_id)
            msg.job.add('job-hold-until', ipp.TAG_KEYWORD, value)
            client.call(msg)
            return
        if value == 'no-hold':
            client.call(builders.request(ipp.OP_RELEASE_JOB, client,
                                         job_id=job_id))
            if options.hold != 'immediate':
                return
            changes = {'job-priority': '100'}

    changes.update(hold_options(options.hold))
    if not changes:
        raise common.UsageError('no changes requested for job %d' % job_id)
    msg = builders.request(ipp.OP_SET_JOB_ATTRIBUTES, client, job_id=job_id)
    builders.add_job_options(msg, changes)
    client.call(msg)


def submit_job(client, options, store):
    dest, instance = submit.resolve_destination(
        options.dest, store, client, ('LPDEST', 'PRINTER', 'CUPS_PRINTER'))
    if not dest:
        raise ValueError('no default destination available')

    explicit = dict(options.job_options)
    explicit.update(hold_options(options.hold))
    hints, job_options = submit.job_options(store, dest, instance, explicit)

    title = options.title
    if not title:
        if options.files:
            title = os.path.basename(options.files[0])
        else:
            title = '(stdin)'

    if options.files:
        job_id = submit.print_files(client, dest, title, options.files,
                                    hints, job_options)
    else:
        job_id = submit.print_stdin(client, dest, title, hints, job_options)

    if not options.silent and job_id:
        sys.stdout.write('request id is %s-%d (%d file(s))\n' % (
            dest, job_id, max(len(options.files), 1)))
    return job_id


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lp', e)

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.user)
        if options.job:
            modify_job(client, options)
        else:
            submit_job(client, options, destopts.OptionsStore.load())
    except common.COMMAND_ERRORS as e:
        common.fail('lp', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
