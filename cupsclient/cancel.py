#!/usr/bin/python3
"""cancel: cancel print jobs.

Operands are job ids, destinations, destination-id pairs or "-" for
the current job on the default destination.
"""


import sys

from cupsclient import builders
from cupsclient import catalog as catalog_
from cupsclient import common
from cupsclient import ipp
from cupsclient import operands


opts = 'aEh:u:U:x'


USAGE = """\
Usage: cancel [options] [id]
       cancel [options] [destination]
       cancel [options] [destination-id]
Options:
-a                      Cancel all jobs
-E                      Encrypt the connection to the server
-h server[:port]        Connect to the named server and port
-u owner                Specify the owner to use for jobs
-U username             Specify the username to use for authentication
-x                      Purge jobs rather than just canceling
"""


class Options(object):
    def __init__(self):
        self.cancel_all = False
        self.user = ''
        self.jobs = []
        self.server = ''
        self.encrypt = False
        self.auth_user = ''
        self.purge = False


def parse_args(args):
    """Parse cancel's arguments (without argv[0]) into an Options."""
    options, arguments = common.parse_args(args, opts)
    result = Options()
    for o, v in options:
        if o == '-a':
            result.cancel_all = True
        elif o == '-E':
            result.encrypt = True
        elif o == '-h':
            result.server = v.strip()
        elif o == '-u':
            result.user = v.strip()
        elif o == '-U':
            result.auth_user = v.strip()
        elif o == '-x':
            result.purge = True
    result.jobs = [a for a in arguments if a.strip()]
    return result


def cancel_job(client, job_id, purge=False, user='', printer=None):
    """Cancel-Job by job-uri, or by printer-uri plus job-id.

    job_id 0 with a printer cancels that printer's current job.
    """
    msg = builders.request(ipp.OP_CANCEL_JOB, client, user=user,
                           printer=printer, job_id=job_id)
    if purge:
        msg.operation.add('purge-job', ipp.TAG_BOOLEAN, True)
    client.call(msg)


def cancel_jobs(client, printer='', purge=False, user=''):
    """Cancel-Jobs on printer, or on every destination when printer is ''."""
    msg = builders.request(ipp.OP_CANCEL_JOBS, client, user=user,
                           printer=printer)
    if purge:
        msg.operation.add('purge-jobs', ipp.TAG_BOOLEAN, True)
    client.call(msg)


def cancel_my_jobs(client, user, printer='', purge=False):
    """Cancel-My-Jobs; the requesting user precedes printer-uri."""
    msg = builders.new_request(ipp.OP_CANCEL_MY_JOBS)
    builders.add_user(msg, builders.resolve_user(user, client))
    builders.add_printer_uri(msg, printer)
    if purge:
        msg.operation.add('purge-jobs', ipp.TAG_BOOLEAN, True)
    client.call(msg)


def cancel_destination(client, options, dest):
    if options.cancel_all and options.user:
        cancel_my_jobs(client, options.user, dest, options.purge)
    elif options.cancel_all:
        cancel_jobs(client, dest, options.purge, options.user)
    elif options.user:
        cancel_my_jobs(client, options.user, dest, options.purge)
    else:
        cancel_job(client, 0, options.purge, printer=dest)


def cancel_without_targets(client, options):
    if options.user:
        cancel_my_jobs(client, options.user, '', options.purge)
    elif options.cancel_all:
        cancel_jobs(client, '', options.purge, options.user)
    # Nothing to do without a target or a scope flag


def run(client, options, catalog):
    if not options.jobs:
        cancel_without_targets(client, options)
        return

    i = 0
    while i < len(options.jobs):
        token = options.jobs[i].strip()
        i += 1
        operand = operands.split_operand(token, catalog)
        if operand is None:
            continue
        if operand.dest == operands.SENTINEL:
            cancel_job(client, 0, options.purge, options.user, printer='')
        elif operand.job_id:
            cancel_job(client, operand.job_id, options.purge, options.user)
            # "cancel Office-123 Office" names the destination twice
            if (not token.isdigit() and i < len(options.jobs) and
                    options.jobs[i].strip() != operands.SENTINEL and
                    operands.is_known_destination(options.jobs[i],
                                                  catalog)):
                i += 1
        else:
            cancel_destination(client, options, operand.dest)


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('cancel', e)

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.auth_user)
        catalog = catalog_.Catalog(client)
        catalog.try_load()
        run(client, options, catalog)
    except common.COMMAND_ERRORS as e:
        common.fail('cancel', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
