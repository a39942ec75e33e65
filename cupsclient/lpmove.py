#!/usr/bin/python3
"""lpmove: move a job, or every job on a queue, to another destination."""


import sys

from cupsclient import builders
from cupsclient import catalog as catalog_
from cupsclient import common
from cupsclient import ipp
from cupsclient import operands


opts = 'Eh:U:'


USAGE = """\
Usage: lpmove [options] job destination
       lpmove [options] source-destination destination
Options:
-E                      Encrypt the connection to the server
-h server[:port]        Connect to the named server and port
-U username             Specify the username to use for authentication
"""


def parse_args(args):
    """Returns (options, source_token, job_id, source, destination)."""
    options, arguments = common.parse_args(args, opts)
    arguments = [a.strip() for a in arguments if a.strip()]
    if len(arguments) != 2:
        raise common.UsageError('usage: lpmove job destination')
    job_id, source = operands.parse_move_source(arguments[0])
    if not job_id and not source:
        raise common.UsageError('invalid job id')
    return options, arguments[0], job_id, source, arguments[1]


def build_move_request(client, job_id, source, destination):
    """CUPS-Move-Job for one job, or for every job on source."""
    msg = builders.new_request(ipp.OP_CUPS_MOVE_JOB)
    if job_id:
        builders.add_job_uri(msg, job_id)
    else:
        builders.add_printer_uri(msg, source)
    builders.add_user(msg, client.user)
    msg.job.add('job-printer-uri', ipp.TAG_URI,
                client.printer_uri(destination))
    return msg


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options, token, job_id, source, destination = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lpmove', e)

    try:
        client = common.make_client(*common.connection_options(options))
        catalog = catalog_.Catalog(client)
        if catalog.try_load():
            job_id, source = operands.normalize_move_source(
                token, job_id, source, catalog)
        client.call(build_move_request(client, job_id, source, destination))
    except common.COMMAND_ERRORS as e:
        common.fail('lpmove', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
