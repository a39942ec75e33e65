#!/usr/bin/python3
"""lpinfo: list the devices and driver models the server knows about."""


import sys

from cupsclient import builders
from cupsclient import common
from cupsclient import ipp


opts = 'Eh:lmU:v'

longopts = [
    'device-id=',
    'exclude-schemes=',
    'include-schemes=',
    'language=',
    'make-and-model=',
    'product=',
    'timeout=',
]


USAGE = """\
Usage: lpinfo [options] -m
       lpinfo [options] -v
Options:
  -E                      Encrypt connection
  -h server[:port]        Connect to server
  -v                      Show devices
  -m                      Show models (PPDs)
  -l                      Long listing
  --device-id id          Filter models by IEEE-1284 device id
  --exclude-schemes list  Exclude comma/space separated URI schemes
  --include-schemes list  Include comma/space separated URI schemes
  --language lang         Filter models by natural language
  --make-and-model text   Filter models by make-and-model
  --product text          Filter models by product
  --timeout seconds       Device discovery timeout
"""


DEVICE_ATTRIBUTES = [
    'device-class',
    'device-uri',
    'device-info',
    'device-make-and-model',
    'device-id',
    'device-location',
]

MODEL_ATTRIBUTES = [
    'ppd-name',
    'ppd-make',
    'ppd-make-and-model',
    'ppd-device-id',
    'ppd-natural-language',
    'ppd-product',
    'ppd-psversion',
    'ppd-type',
    'ppd-model-number',
]

EVERYWHERE = 'everywhere'


class Options(object):
    def __init__(self):
        self.server = ''
        self.encrypt = False
        self.user = ''
        self.devices = False
        self.models = False
        self.long_listing = False
        self.timeout = 0
        self.include_schemes = []
        self.exclude_schemes = []
        self.device_id = ''
        self.language = ''
        self.make_and_model = ''
        self.product = ''


def _unique(values):
    result = []
    for value in values:
        value = value.strip().lower()
        if value and value not in result:
            result.append(value)
    return result


def parse_args(args):
    options, arguments = common.parse_args(args, opts, longopts)
    if arguments:
        raise common.UsageError('unexpected argument "%s"' % arguments[0])
    result = Options()
    for o, v in options:
        if o == '-h':
            result.server = v.strip()
        elif o == '-E':
            result.encrypt = True
        elif o == '-U':
            result.user = v.strip()
        elif o == '-l':
            result.long_listing = True
        elif o == '-v':
            result.devices = True
        elif o == '-m':
            result.models = True
        elif o == '--device-id':
            result.device_id = v.strip()
        elif o == '--include-schemes':
            result.include_schemes.extend(builders.split_list(v))
        elif o == '--exclude-schemes':
            result.exclude_schemes.extend(builders.split_list(v))
        elif o == '--language':
            result.language = v.strip()
        elif o == '--make-and-model':
            result.make_and_model = v.strip()
        elif o == '--product':
            result.product = v.strip()
        elif o == '--timeout':
            try:
                result.timeout = int(v.strip())
            except ValueError:
                result.timeout = -1
            if result.timeout < 0:
                raise common.UsageError('bad timeout value "%s"' % v)
    result.include_schemes = _unique(result.include_schemes)
    result.exclude_schemes = _unique(result.exclude_schemes)
    return result


def _add_schemes(msg, options):
    if options.include_schemes:
        msg.operation.add('include-schemes', ipp.TAG_NAME,
                          options.include_schemes)
    if options.exclude_schemes:
        msg.operation.add('exclude-schemes', ipp.TAG_NAME,
                          options.exclude_schemes)


def scheme_allowed(name, include, exclude):
    name = name.strip().lower()
    if not name:
        return False
    if include and name not in include:
        return False
    return name not in exclude


def list_devices(client, options, out=None):
    out = out or sys.stdout
    msg = builders.new_request(ipp.OP_CUPS_GET_DEVICES)
    if options.timeout > 0:
        msg.operation.add('timeout', ipp.TAG_INTEGER, options.timeout)
    _add_schemes(msg, options)
    builders.requested_attributes(msg, DEVICE_ATTRIBUTES)
    response = client.call(msg)

    rows = []
    for group in response.groups_of(ipp.TAG_PRINTER):
        device_uri = builders.text_value(group, 'device-uri')
        if not device_uri:
            continue
        rows.append(dict(
            uri=device_uri,
            device_class=builders.text_value(group, 'device-class'),
            info=builders.text_value(group, 'device-info'),
            make=builders.text_value(group, 'device-make-and-model'),
            device_id=builders.text_value(group, 'device-id'),
            location=builders.text_value(group, 'device-location'),
        ))
    rows.sort(key=lambda r: (r['info'].lower(), r['device_class'].lower(),
                             r['uri'].lower()))

    for row in rows:
        device_class = row['device_class'] or 'direct'
        if options.long_listing:
            out.write('Device: uri = %s\n' % row['uri'])
            out.write('        class = %s\n' % device_class)
            out.write('        info = %s\n' % (row['info'] or row['uri']))
            out.write('        make-and-model = %s\n' % row['make'])
            out.write('        device-id = %s\n' % row['device_id'])
            out.write('        location = %s\n' % row['location'])
        else:
            out.write('%s %s\n' % (device_class, row['uri']))


def _write_model(out, long_listing, name, make_and_model, language='en',
                 device_id='NONE'):
    if long_listing:
        out.write('Model:  name = %s\n' % name)
        out.write('        natural_language = %s\n' % language)
        out.write('        make-and-model = %s\n' % make_and_model)
        out.write('        device-id = %s\n' % device_id)
    else:
        out.write(('%s %s' % (name, make_and_model)).strip() + '\n')


def list_models(client, options, out=None):
    """List drivers with CUPS-Get-PPDs.

    The driverless "everywhere" model is always offered, unless the
    scheme filters rule it out.
    """
    out = out or sys.stdout
    msg = builders.new_request(ipp.OP_CUPS_GET_PPDS)
    builders.requested_attributes(msg, MODEL_ATTRIBUTES)
    if options.device_id:
        msg.operation.add('ppd-device-id', ipp.TAG_TEXT, options.device_id)
    if options.language:
        msg.operation.add('ppd-natural-language', ipp.TAG_LANGUAGE,
                          options.language)
    if options.make_and_model:
        msg.operation.add('ppd-make-and-model', ipp.TAG_TEXT,
                          options.make_and_model)
    if options.product:
        msg.operation.add('ppd-product', ipp.TAG_TEXT, options.product)
    _add_schemes(msg, options)
    response = client.call(msg)

    seen_everywhere = False
    for group in response.groups_of(ipp.TAG_PRINTER):
        name = builders.text_value(group, 'ppd-name')
        if not name:
            continue
        if name.lower() == EVERYWHERE:
            seen_everywhere = True
        make_and_model = (builders.text_value(group, 'ppd-make-and-model') or
                          builders.text_value(group, 'ppd-make'))
        _write_model(out, options.long_listing, name, make_and_model,
                     builders.text_value(group, 'ppd-natural-language') or
                     'en',
                     builders.text_value(group, 'ppd-device-id') or 'NONE')

    if not seen_everywhere and scheme_allowed(
            EVERYWHERE, options.include_schemes, options.exclude_schemes):
        _write_model(out, options.long_listing, EVERYWHERE, 'IPP Everywhere',
                     'en', 'CMD:PwgRaster')


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return 0
    except common.UsageError as e:
        common.fail('lpinfo', e)

    if not options.devices and not options.models:
        return 0

    try:
        client = common.make_client(options.server, options.encrypt,
                                    options.user)
        if options.devices:
            list_devices(client, options)
        if options.models:
            list_models(client, options)
    except common.COMMAND_ERRORS as e:
        common.fail('lpinfo', e)
    return 0


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
