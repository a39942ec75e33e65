"""Shared plumbing for the CUPS command line tools"""


import getopt
import logging
import os
import sys

from cupsclient import client as client_
from cupsclient import ipp


# Short options inherited from BSD lpr that are accepted but ignored.
FORMAT_MODIFIERS = 'cdfgntv'
FORMAT_MODIFIERS_WITH_VALUE = '1234iw'


class UsageError(Exception):
    """The command line could not be parsed."""


class HelpRequested(Exception):
    """--help was given; the caller prints usage and exits 0."""


# Errors a tool reports as "<tool>: <message>" with exit status 1.
COMMAND_ERRORS = (
    UsageError,
    ValueError,
    OSError,
    client_.TransportError,
    ipp.StatusError,
)


def setup_logging():
    """Send cupsclient log records to stderr.

    Debug output is enabled by setting CUPS_DEBUG in the environment.
    """
    logger = logging.getLogger('cupsclient')
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname).1s: %(message)s'))
    logger.addHandler(handler)
    if os.environ.get('CUPS_DEBUG'):
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.WARNING)


def error(code, message):
    """Write message to stderr and exit with the given status."""
    sys.stderr.write(message)
    sys.exit(code)


def fail(tool, err):
    error(1, '%s: %s\n' % (tool, err))


def warn(tool, message):
    sys.stderr.write('%s: %s\n' % (tool, message))


def warn_format_modifier(tool, option):
    warn(tool, 'Warning - "%s" format modifier not supported - '
         'output may not be correct.' % option.lstrip('-'))


def parse_args(args, optinfo, longopts=()):
    """Parse an argument list with getopt-style clustering.

    Short options may be clustered, and a short option taking a value
    consumes the rest of its cluster or, failing that, the next
    argument: "-Ehlocalhost:8631" is -E followed by -h localhost:8631.
    Operands and options may be interleaved; "-" is an operand and
    "--" ends option processing.

    Args:
      args: The argv-style argument list to parse, without argv[0]
      optinfo: Short options in the same format as getopt()
      longopts: Long option names in the same format as getopt();
        --help is always recognized

    Returns:
      A tuple of (options, arguments) as getopt returns them.

    Raises:
      HelpRequested: --help was present
      UsageError: an option was unknown or missing its value
    """
    longopts = list(longopts)
    if 'help' not in longopts:
        longopts.append('help')
    _check_long_options(args, optinfo, longopts)
    try:
        options, arguments = getopt.gnu_getopt(args, optinfo, longopts)
    except getopt.GetoptError as e:
        raise UsageError(_describe_getopt_error(e))
    for o, _ in options:
        if o == '--help':
            raise HelpRequested()
    return options, arguments


def _check_long_options(args, optinfo, longopts):
    # getopt expands unique prefixes of long options; only exact names count.
    names = set(name.rstrip('=') for name in longopts)
    with_value = set(name[:-1] for name in longopts if name.endswith('='))
    i = 0
    while i < len(args):
        arg = args[i]
        i += 1
        if arg == '--':
            return
        if arg.startswith('--'):
            name = arg[2:].split('=', 1)[0]
            if name not in names:
                raise UsageError('unknown option "--%s"' % name)
            if name in with_value and '=' not in arg:
                i += 1
        elif arg.startswith('-') and arg != '-':
            for pos in range(1, len(arg)):
                at = optinfo.find(arg[pos])
                takes_value = optinfo[at + 1:at + 2] == ':'
                if arg[pos] != ':' and at >= 0 and takes_value:
                    if pos == len(arg) - 1:
                        i += 1
                    break


def _describe_getopt_error(e):
    opt = e.opt or ''
    flag = ('--' if len(opt) > 1 else '-') + opt
    if 'requires argument' in e.msg:
        return 'missing argument for %s' % flag
    if 'must not have an argument' in e.msg:
        return 'option %s does not take an argument' % flag
    return 'unknown option "%s"' % flag


def extract_opt(options, optname):
    """Split parsed (option, value) pairs on whether they are optname.

    Returns:
      A tuple of (extracted, remaining), both in their original order.
    """
    extracted = [pair for pair in options if pair[0] == optname]
    remaining = [pair for pair in options if pair[0] != optname]
    return extracted, remaining


def last_opt(options, optname, default=None):
    """Return the value of the last occurrence of optname."""
    extracted, _ = extract_opt(options, optname)
    if extracted:
        return extracted[-1][1].strip()
    return default


def require_server_first(options, exempt=('-E', '-U')):
    """Enforce that -h precedes every option other than -E and -U."""
    seen_other = False
    for o, _ in options:
        if o == '-h' and seen_other:
            raise UsageError('-h must appear before all other options')
        if o != '-h' and o not in exempt:
            seen_other = True


def connection_options(options):
    """Pull -h, -E and -U out of parsed options.

    Returns:
      A tuple of (server, encrypt, user).
    """
    return (last_opt(options, '-h', ''),
            any(o == '-E' for o, _ in options),
            last_opt(options, '-U', ''))


def make_client(server='', encrypt=False, user=''):
    return client_.Client.from_config(server=server, encrypt=encrypt,
                                      user=user)


def env_destination(*names):
    """Return the first of the named environment variables that is set."""
    for name in names:
        value = os.environ.get(name, '').strip()
        if value:
            return value
    return ''


__all__ = ['UsageError', 'HelpRequested', 'COMMAND_ERRORS',
           'setup_logging',
           'error',
           'fail',
           'warn',
           'warn_format_modifier',
           'parse_args',
           'extract_opt',
           'last_opt',
           'require_server_first',
           'connection_options',
           'make_client',
           'env_destination',
           ]
