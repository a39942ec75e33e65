#!/usr/bin/python3
"""cupsreject: make destinations refuse new jobs."""


import sys

from cupsclient import ipp
from cupsclient import simple


opts = 'Eh:r:U:'


def _main(args):
    return simple.simple('cupsreject', opts, ipp.OP_CUPS_REJECT_JOBS, args)


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
