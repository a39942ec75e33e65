#!/usr/bin/python3
"""cupsenable: resume printers, or release their held new jobs."""


import sys

from cupsclient import ipp
from cupsclient import simple


opts = 'cEh:r:U:'


longopts = {
    'release': ipp.OP_RELEASE_HELD_NEW_JOBS,
}


extra_usage = (
    '-c                      Cancel jobs after enabling',
    '--release               Release held jobs',
)


def _main(args):
    return simple.simple('cupsenable', opts, ipp.OP_RESUME_PRINTER, args,
                         longopts, extra_usage)


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
