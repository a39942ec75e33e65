#!/usr/bin/python3
"""lprm: cancel print jobs, BSD style.

"-" cancels every job on the active destination. A destination operand
becomes the active destination and cancels its current job.
"""


import sys

from cupsclient import builders
from cupsclient import catalog as catalog_
from cupsclient import common
from cupsclient import destopts
from cupsclient import ipp
from cupsclient import operands
from cupsclient import submit


opts = 'Eh:U:P:'


USAGE = """\
Usage: lprm [options] [id]
       lprm [options] -
Options:
-                       Cancel all jobs
-E                      Encrypt the connection to the server
-h server[:port]        Connect to the named server and port
-P destination          Specify the destination
-U username             Specify the username to use for authentication
"""


class Remover(object):
    """Walks lprm operands, tracking the active destination."""

    def __init__(self, client, catalog, store, destination=''):
        self.client = client
        self.catalog = catalog
        self.store = store
        self.active = destination

    def active_destination(self):
        if not self.active:
            self.active = submit.resolve_destination(
                '', self.store, self.client, ('LPDEST', 'PRINTER'))[0]
            if not self.active:
                raise ValueError('no default destination available')
        return self.active

    def cancel_all(self):
        msg = builders.request(ipp.OP_CANCEL_JOBS, self.client,
                               printer=self.active_destination())
        self.client.call(msg)

    def cancel_job(self, job_id, dest=''):
        dest = dest or self.active
        msg = builders.request(ipp.OP_CANCEL_JOB, self.client,
                               printer=dest or None, job_id=job_id)
        self.client.call(msg)

    def cancel_current(self):
        msg = builders.request(ipp.OP_CANCEL_JOB, self.client,
                               printer=self.active_destination(), job_id=0)
        self.client.call(msg)

    def run(self, targets):
        did_cancel = False
        for token in targets:
            operand = operands.split_operand(token, self.catalog,
                                             keep_prefix=True)
            if operand is None:
                continue
            if operand.dest == operands.SENTINEL:
                self.cancel_all()
            elif operand.job_id:
                self.cancel_job(operand.job_id, operand.dest)
            else:
                self.active = operand.dest
                self.cancel_current()
            did_cancel = True
        if not did_cancel:
            self.cancel_current()


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options, arguments = common.parse_args(args, opts)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lprm', e)

    destination = common.last_opt(options, '-P', '')
    try:
        client = common.make_client(*common.connection_options(options))
        catalog = catalog_.Catalog(client).load()
        if destination:
            destination = destopts.split_destination(destination)[0]
            if not operands.is_known_destination(destination, catalog):
                raise operands.UnknownDestination(destination)
            destination = catalog.canonical(destination)
        remover = Remover(client, catalog, destopts.OptionsStore.load(),
                          destination)
        remover.run(arguments)
    except common.COMMAND_ERRORS as e:
        common.fail('lprm', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
