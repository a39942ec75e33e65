#!/usr/bin/python3
"""lpr: submit files for printing, BSD style."""


import os
import socket
import sys

from cupsclient import catalog as catalog_
from cupsclient import common
from cupsclient import destopts
from cupsclient import submit


opts = 'EH:U:P:#:o:lphmqrC:J:T:s' + common.FORMAT_MODIFIERS + '1:2:3:4:i:w:'


MAX_FILES = 1000


USAGE = """\
Usage: lpr [options] [file(s)]
Options:
-# num-copies           Specify the number of copies to print
-E                      Encrypt the connection to the server
-H server[:port]        Connect to the named server and port
-m                      Send an email notification when the job completes
-o option[=value]       Specify a printer-specific option
-P destination          Specify the destination
-q                      Specify the job should be held for printing
-r                      Remove the file(s) after submission
-T title                Specify the job title
-U username             Specify the username to use for authentication
"""


class Options(object):
    def __init__(self):
        self.server = ''
        self.encrypt = False
        self.auth_user = ''
        self.destination = ''
        self.title = ''
        self.delete_files = False
        self.mail = False
        self.job_options = {}
        self.files = []
        self.warnings = []


def parse_args(args):
    """Parse lpr's arguments (without argv[0]) into an Options.

    Every file operand must exist.
    """
    options, arguments = common.parse_args(args, opts)
    result = Options()
    for o, v in options:
        if o == '-E':
            result.encrypt = True
        elif o == '-U':
            result.auth_user = v.strip()
        elif o == '-H':
            result.server = v.strip()
        elif o == '-P':
            result.destination = v.strip()
        elif o == '-#':
            try:
                copies = int(v.strip())
            except ValueError:
                copies = 0
            if copies < 1:
                raise common.UsageError('copies must be 1 or more')
            result.job_options['copies'] = str(copies)
        elif o == '-o':
            result.job_options.update(destopts.parse_options(v))
        elif o == '-l':
            result.job_options['raw'] = 'true'
        elif o == '-p':
            result.job_options['prettyprint'] = 'true'
        elif o == '-h':
            result.job_options['job-sheets'] = 'none'
        elif o == '-m':
            result.mail = True
        elif o == '-q':
            result.job_options['job-hold-until'] = 'indefinite'
        elif o == '-r':
            result.delete_files = True
        elif o in ('-C', '-J', '-T'):
            result.title = v.strip()
        elif o == '-s':
            pass
        else:
            result.warnings.append(o)

    for arg in arguments:
        try:
            os.stat(arg)
        except OSError as e:
            raise common.UsageError('unable to access "%s" - %s' % (
                arg, e.strerror))
        if len(result.files) >= MAX_FILES:
            raise common.UsageError('too many files - "%s"' % arg)
        result.files.append(arg)
    if not result.title:
        if result.files:
            result.title = os.path.basename(result.files[0])
        else:
            result.title = '(stdin)'
    return result


def mail_recipient(user):
    host = socket.gethostname() or 'localhost'
    return 'mailto:%s@%s' % (user, host)


def run(client, options, store):
    dest, instance = submit.resolve_destination(
        options.destination, store, client, ('LPDEST', 'PRINTER'))
    if not dest:
        raise ValueError('no default destination available')
    catalog = catalog_.Catalog(client).load()
    if dest not in catalog:
        raise ValueError('The printer or class does not exist')
    dest = catalog.canonical(dest)

    explicit = dict(options.job_options)
    if options.mail:
        explicit['notify-recipient-uri'] = mail_recipient(client.user)
    hints, job_options = submit.job_options(store, dest, instance, explicit)

    if not options.files:
        return submit.print_stdin(client, dest, options.title, hints,
                                  job_options)
    job_id = submit.print_files(client, dest, options.title, options.files,
                                hints, job_options)
    if options.delete_files:
        for path in options.files:
            os.remove(path)
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
        common.fail('lpr', e)

    for option in options.warnings:
        common.warn_format_modifier('lpr', option)

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.auth_user)
        store = destopts.OptionsStore.load()
        run(client, options, store)
    except common.COMMAND_ERRORS as e:
        common.fail('lpr', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
