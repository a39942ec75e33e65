"""A generator for simple destination administration commands.

cupsaccept, cupsreject, cupsenable and cupsdisable share one shape:
parse -E/-h/-U plus a few flags, then send one IPP operation to each
destination operand in turn. Given the command name, its options and
the operation to send, this module runs that command.
"""


import sys

from cupsclient import builders
from cupsclient import common
from cupsclient import ipp


USAGE = """\
Usage: %(command)s [options] destination(s)
Options:
-E                      Encrypt connection
-h server[:port]        Connect to server
-r reason               Set printer-state-message
-U username             Authenticate as user
"""


def usage(command, extra=()):
    lines = [USAGE % {'command': command}]
    for line in extra:
        lines.append(line + '\n')
    return ''.join(lines)


def simple(command, optinfo, operation, args, longopts=None, extra_usage=()):
    """Run a one-operation-per-destination command.

    Args:
      command: The command name, used for messages
      optinfo: Short options in the same format as getopt(); -r sets
        printer-state-message and -c purges jobs afterwards
      operation: The ipp.OP_* operation sent to each destination
      args: The full argv, including argv[0]
      longopts: A mapping from long option name (without dashes) to the
        operation it substitutes, e.g. {'hold': ipp.OP_HOLD_NEW_JOBS}
      extra_usage: Additional lines for the --help text

    Returns:
      The exit status.
    """
    args.pop(0)
    common.setup_logging()
    longopts = longopts or {}

    try:
        options, arguments = common.parse_args(args, optinfo, list(longopts))
    except common.HelpRequested:
        sys.stdout.write(usage(command, extra_usage))
        return 0
    except common.UsageError as e:
        common.fail(command, e)

    reason = common.last_opt(options, '-r', '')
    purge = any(o == '-c' for o, _ in options)
    for o, _ in options:
        if o[2:] in longopts:
            operation = longopts[o[2:]]

    dests = [a.strip() for a in arguments if a.strip()]
    if not dests:
        return 0

    try:
        client = common.make_client(*common.connection_options(options))
        for dest in dests:
            msg = builders.request(operation, client, printer=dest)
            if reason:
                msg.operation.add('printer-state-message', ipp.TAG_TEXT,
                                  reason)
            client.call(msg)
            if purge:
                client.call(builders.request(ipp.OP_PURGE_JOBS, client,
                                             printer=dest))
    except common.COMMAND_ERRORS as e:
        common.fail(command, e)
    return 0
