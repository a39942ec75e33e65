"""Helpers for assembling IPP requests and reading responses.

Attribute value tags are chosen from ATTRIBUTE_TAGS, a plain mapping
from attribute name to tag; anything not listed is sent as a keyword.
"""


import time

from cupsclient import ipp
from cupsclient import uri


CHARSET = 'utf-8'
LANGUAGE = 'en-US'


ATTRIBUTE_TAGS = {
    'job-id': ipp.TAG_INTEGER,
    'printer-uri': ipp.TAG_URI,
    'job-uri': ipp.TAG_URI,
    'job-printer-uri': ipp.TAG_URI,
    'device-uri': ipp.TAG_URI,
    'member-uris': ipp.TAG_URI,
    'notify-recipient-uri': ipp.TAG_URI,
    'document-format': ipp.TAG_MIME_TYPE,
    'document-name': ipp.TAG_NAME,
    'job-name': ipp.TAG_NAME,
    'printer-name': ipp.TAG_NAME,
    'requesting-user-name': ipp.TAG_NAME,
    'job-sheets': ipp.TAG_NAME,
    'job-sheets-default': ipp.TAG_NAME,
    'ppd-name': ipp.TAG_NAME,
    'requesting-user-name-allowed': ipp.TAG_NAME,
    'requesting-user-name-denied': ipp.TAG_NAME,
    'printer-info': ipp.TAG_TEXT,
    'printer-location': ipp.TAG_TEXT,
    'printer-state-message': ipp.TAG_TEXT,
    'printer-is-shared': ipp.TAG_BOOLEAN,
    'printer-is-accepting-jobs': ipp.TAG_BOOLEAN,
    'last-document': ipp.TAG_BOOLEAN,
    'purge-job': ipp.TAG_BOOLEAN,
    'purge-jobs': ipp.TAG_BOOLEAN,
    'my-jobs': ipp.TAG_BOOLEAN,
    'copies': ipp.TAG_INTEGER,
    'copies-default': ipp.TAG_INTEGER,
    'job-priority': ipp.TAG_INTEGER,
    'job-priority-default': ipp.TAG_INTEGER,
    'number-up': ipp.TAG_INTEGER,
    'number-up-default': ipp.TAG_INTEGER,
    'job-cancel-after': ipp.TAG_INTEGER,
    'job-cancel-after-default': ipp.TAG_INTEGER,
    'number-of-retries': ipp.TAG_INTEGER,
    'retry-interval': ipp.TAG_INTEGER,
    'retry-time-out': ipp.TAG_INTEGER,
    'limit': ipp.TAG_INTEGER,
    'first-index': ipp.TAG_INTEGER,
    'timeout': ipp.TAG_INTEGER,
    'print-quality': ipp.TAG_ENUM,
    'print-quality-default': ipp.TAG_ENUM,
    'finishings': ipp.TAG_ENUM,
    'finishings-default': ipp.TAG_ENUM,
    'orientation-requested': ipp.TAG_ENUM,
    'orientation-requested-default': ipp.TAG_ENUM,
    'printer-resolution': ipp.TAG_RESOLUTION,
    'printer-resolution-default': ipp.TAG_RESOLUTION,
    'page-ranges': ipp.TAG_RANGE,
    'ppd-make-and-model': ipp.TAG_TEXT,
    'ppd-device-id': ipp.TAG_TEXT,
    'ppd-product': ipp.TAG_TEXT,
    'ppd-natural-language': ipp.TAG_LANGUAGE,
    'device-class': ipp.TAG_KEYWORD,
}


ENUM_KEYWORDS = {
    'print-quality': {'draft': 3, 'normal': 4, 'high': 5},
    'orientation-requested': {
        'portrait': 3,
        'landscape': 4,
        'reverse-landscape': 5,
        'reverse-portrait': 6,
        'none': 7,
    },
    'finishings': {
        'none': 3,
        'staple': 4,
        'punch': 5,
        'cover': 6,
        'bind': 7,
        'saddle-stitch': 8,
        'edge-stitch': 9,
        'fold': 10,
        'trim': 11,
        'bale': 12,
        'booklet-maker': 13,
        'jog-offset': 14,
        'coat': 15,
        'laminate': 16,
        'staple-top-left': 20,
        'staple-bottom-left': 21,
        'staple-top-right': 22,
        'staple-bottom-right': 23,
    },
}


MAX_INT = 2147483647


def _request_id():
    return int(time.time() * 1000) % MAX_INT or 1


def new_request(op, request_id=None):
    """Start a request with the mandatory charset and language.

    attributes-charset and attributes-natural-language are always the
    first two operation attributes, in that order.
    """
    msg = ipp.Message(op, request_id or _request_id())
    group = msg.operation
    group.add('attributes-charset', ipp.TAG_CHARSET, CHARSET)
    group.add('attributes-natural-language', ipp.TAG_LANGUAGE, LANGUAGE)
    return msg


def resolve_user(override, client):
    """Pick the requesting-user-name for a request.

    An empty override never replaces the handle's user.
    """
    override = (override or '').strip()
    if override:
        return override
    return client.user


def add_user(msg, user):
    if user:
        msg.operation.add('requesting-user-name', ipp.TAG_NAME, user)


def add_printer_uri(msg, name):
    msg.operation.add('printer-uri', ipp.TAG_URI, uri.destination_uri(name))


def add_job_uri(msg, job_id):
    msg.operation.add('job-uri', ipp.TAG_URI, uri.job_uri(job_id))


def request(op, client, user=None, printer=None, job_id=None):
    """Build the common shape of a request in one call.

    Args:
      op: An ipp.OP_* operation code
      client: The client handle, used for the requesting user
      user: An explicit requesting-user-name override
      printer: A destination name or URI for printer-uri, if any
      job_id: A job id. With printer, sent as job-id; without, as
        job-uri.

    Returns:
      An ipp.Message ready for more attributes.
    """
    msg = new_request(op)
    if printer is not None:
        add_printer_uri(msg, printer)
        if job_id is not None:
            msg.operation.add('job-id', ipp.TAG_INTEGER, int(job_id))
    elif job_id is not None:
        add_job_uri(msg, job_id)
    add_user(msg, resolve_user(user, client))
    return msg


def requested_attributes(msg, names):
    msg.operation.add('requested-attributes', ipp.TAG_KEYWORD, list(names))


def parse_bool(value):
    """Return True/False for the usual spellings, or None."""
    value = str(value).strip().lower()
    if value in ('1', 'yes', 'on', 'true'):
        return True
    if value in ('0', 'no', 'off', 'false'):
        return False
    return None


def split_list(value, limit=0):
    parts = []
    for part in value.replace(';', ',').replace(',', ' ').split():
        parts.append(part)
        if limit and len(parts) >= limit:
            break
    return parts


def parse_resolution(value):
    """Parse "300", "300x600" or "600dpi" into an ipp.Resolution."""
    v = value.strip().lower()
    units = ipp.RES_PER_INCH
    if v.endswith('dpcm'):
        v = v[:-4]
        units = ipp.RES_PER_CM
    elif v.endswith('dpi'):
        v = v[:-3]
    parts = v.split('x')
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return None
    if len(numbers) == 1:
        numbers = numbers * 2
    if len(numbers) != 2 or min(numbers) <= 0:
        return None
    return ipp.Resolution(numbers[0], numbers[1], units)


def parse_page_ranges(value):
    """Parse "1-4,7,9-" into a list of ipp.Range.

    An open upper bound runs to the largest IPP integer. Returns None
    when any piece is malformed.
    """
    ranges = []
    for part in value.split(','):
        part = part.strip()
        if not part:
            continue
        lower, sep, upper = part.partition('-')
        try:
            lower = int(lower)
            if not sep:
                upper = lower
            elif upper.strip():
                upper = int(upper)
            else:
                upper = MAX_INT
        except ValueError:
            return None
        if lower <= 0 or upper < lower:
            return None
        ranges.append(ipp.Range(lower, upper))
    return ranges or None


def _enum_value(name, value):
    base = name[:-len('-default')] if name.endswith('-default') else name
    keywords = ENUM_KEYWORDS.get(base, {})
    v = value.strip().lower()
    if v in keywords:
        return keywords[v]
    try:
        return int(v)
    except ValueError:
        return None


def make_attribute(name, value):
    """Build an ipp.Attribute with the tag the attribute name calls for.

    Values that do not fit the typed tag fall back to a keyword, so a
    printer can still decide what to do with them.
    """
    tag = ATTRIBUTE_TAGS.get(name, ipp.TAG_KEYWORD)
    if isinstance(value, (list, tuple)):
        values = list(value)
    else:
        values = [value]

    if tag == ipp.TAG_INTEGER:
        try:
            return ipp.Attribute(name, tag, [int(v) for v in values])
        except ValueError:
            raise ValueError('bad integer value for %s' % name)
    if tag == ipp.TAG_ENUM:
        enums = []
        for v in values:
            if isinstance(v, int):
                enums.append(v)
                continue
            for piece in split_list(v):
                n = _enum_value(name, piece)
                if n is None:
                    return ipp.Attribute(name, ipp.TAG_KEYWORD, values)
                enums.append(n)
        return ipp.Attribute(name, tag, enums)
    if tag == ipp.TAG_BOOLEAN:
        bools = []
        for v in values:
            b = v if isinstance(v, bool) else parse_bool(v)
            if b is None:
                raise ValueError('bad boolean value for %s' % name)
            bools.append(b)
        return ipp.Attribute(name, tag, bools)
    if tag == ipp.TAG_RESOLUTION:
        res = [v if isinstance(v, ipp.Resolution) else parse_resolution(v)
               for v in values]
        if None in res:
            return ipp.Attribute(name, ipp.TAG_KEYWORD, values)
        return ipp.Attribute(name, tag, res)
    if tag == ipp.TAG_RANGE:
        ranges = []
        for v in values:
            if isinstance(v, ipp.Range):
                ranges.append(v)
                continue
            parsed = parse_page_ranges(v)
            if parsed is None:
                return ipp.Attribute(name, ipp.TAG_KEYWORD, values)
            ranges.extend(parsed)
        return ipp.Attribute(name, tag, ranges)
    if name in ('job-sheets', 'job-sheets-default') and len(values) == 1:
        values = split_list(values[0], 2) or ['none']
    return ipp.Attribute(name, tag, [str(v) for v in values])


def delete_attribute(name):
    return ipp.Attribute(name, ipp.TAG_DELETE_ATTR, [])


def add_job_options(msg, options):
    """Append a name->value mapping to the job group, typed by name."""
    if not options:
        return
    group = msg.job
    for name in sorted(options):
        value = options[name]
        if value is None or value == '':
            value = 'true'
        group.attributes.append(make_attribute(name, value))


def first_value(attrs, name, default=None):
    """Return the first non-empty value of name.

    attrs may be a Message (searched in server order) or a Group.
    """
    if isinstance(attrs, ipp.Message):
        attr = attrs.find(name)
    else:
        attr = None
        for a in attrs:
            if a.name == name and a.values:
                attr = a
                break
    if attr is None or attr.value is None:
        return default
    return attr.value


def all_values(attrs, name):
    if isinstance(attrs, ipp.Message):
        attr = attrs.find(name)
    else:
        attr = attrs.get(name)
    if attr is None:
        return []
    return [v for v in attr.values if v is not None]


def text_value(attrs, name, default=''):
    value = first_value(attrs, name)
    if value is None:
        return default
    return str(value).strip()


def int_value(attrs, name, default=0):
    value = first_value(attrs, name)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def bool_value(attrs, name, default=False):
    value = first_value(attrs, name)
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    parsed = parse_bool(value)
    if parsed is None:
        return default
    return parsed


def job_id(response):
    """Return the job-id from a job group, or 0 if the server sent none."""
    for group in response.groups_of(ipp.TAG_JOB):
        n = int_value(group, 'job-id')
        if n > 0:
            return n
    return 0


def format_value(value):
    """Render a decoded attribute value the way CUPS tools print it."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, list):
        return '{%s}' % ' '.join(
            '%s=%s' % (m.name, ','.join(format_value(v) for v in m.values))
            for m in value)
    return str(value)
