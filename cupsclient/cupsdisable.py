#!/usr/bin/python3
"""cupsdisable: pause printers, or hold their new jobs."""


import sys

from cupsclient import ipp
from cupsclient import simple


opts = 'cEh:r:U:'


longopts = {
    'hold': ipp.OP_HOLD_NEW_JOBS,
}


extra_usage = (
    '-c                      Cancel jobs after disabling',
    '--hold                  Hold new jobs',
)


def _main(args):
    return simple.simple('cupsdisable', opts, ipp.OP_PAUSE_PRINTER, args,
                         longopts, extra_usage)


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
