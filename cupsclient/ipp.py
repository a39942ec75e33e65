"""IPP message model and binary codec.

A message is a version, an operation or status code, a request id and
an ordered list of attribute groups. Attribute order within a group is
preserved on both encode and decode.
"""


import struct
from io import BytesIO


CONTENT_TYPE = 'application/ipp'
DEFAULT_VERSION = (2, 0)
# Largest name or value a two byte length field can carry.
MAX_LENGTH = 0x7fff


# Delimiter (group) tags
TAG_OPERATION = 0x01
TAG_JOB = 0x02
TAG_END = 0x03
TAG_PRINTER = 0x04
TAG_UNSUPPORTED_GROUP = 0x05
TAG_SUBSCRIPTION = 0x06
TAG_EVENT_NOTIFICATION = 0x07
TAG_RESOURCE = 0x08
TAG_DOCUMENT = 0x09
TAG_SYSTEM = 0x0A

# Out-of-band value tags
TAG_UNSUPPORTED_VALUE = 0x10
TAG_UNKNOWN = 0x12
TAG_NO_VALUE = 0x13
TAG_NOT_SETTABLE = 0x15
TAG_DELETE_ATTR = 0x16
TAG_ADMIN_DEFINE = 0x17

# Value tags
TAG_INTEGER = 0x21
TAG_BOOLEAN = 0x22
TAG_ENUM = 0x23
TAG_STRING = 0x30
TAG_DATE = 0x31
TAG_RESOLUTION = 0x32
TAG_RANGE = 0x33
TAG_BEGIN_COLLECTION = 0x34
TAG_TEXT_LANG = 0x35
TAG_NAME_LANG = 0x36
TAG_END_COLLECTION = 0x37
TAG_TEXT = 0x41
TAG_NAME = 0x42
TAG_RESERVED_STRING = 0x43
TAG_KEYWORD = 0x44
TAG_URI = 0x45
TAG_URI_SCHEME = 0x46
TAG_CHARSET = 0x47
TAG_LANGUAGE = 0x48
TAG_MIME_TYPE = 0x49
TAG_MEMBER_NAME = 0x4A
TAG_EXTENSION = 0x7F

OUT_OF_BAND_TAGS = frozenset([
    TAG_UNSUPPORTED_VALUE, TAG_UNKNOWN, TAG_NO_VALUE,
    TAG_NOT_SETTABLE, TAG_DELETE_ATTR, TAG_ADMIN_DEFINE,
])
INTEGER_TAGS = frozenset([TAG_INTEGER, TAG_ENUM])

RES_PER_INCH = 3
RES_PER_CM = 4


# Operations
OP_PRINT_JOB = 0x0002
OP_PRINT_URI = 0x0003
OP_VALIDATE_JOB = 0x0004
OP_CREATE_JOB = 0x0005
OP_SEND_DOCUMENT = 0x0006
OP_SEND_URI = 0x0007
OP_CANCEL_JOB = 0x0008
OP_GET_JOB_ATTRIBUTES = 0x0009
OP_GET_JOBS = 0x000A
OP_GET_PRINTER_ATTRIBUTES = 0x000B
OP_HOLD_JOB = 0x000C
OP_RELEASE_JOB = 0x000D
OP_RESTART_JOB = 0x000E
OP_PAUSE_PRINTER = 0x0010
OP_RESUME_PRINTER = 0x0011
OP_PURGE_JOBS = 0x0012
OP_SET_PRINTER_ATTRIBUTES = 0x0013
OP_SET_JOB_ATTRIBUTES = 0x0014
OP_GET_PRINTER_SUPPORTED_VALUES = 0x0015
OP_CREATE_PRINTER_SUBSCRIPTIONS = 0x0016
OP_CREATE_JOB_SUBSCRIPTIONS = 0x0017
OP_GET_SUBSCRIPTION_ATTRIBUTES = 0x0018
OP_GET_SUBSCRIPTIONS = 0x0019
OP_RENEW_SUBSCRIPTION = 0x001A
OP_CANCEL_SUBSCRIPTION = 0x001B
OP_GET_NOTIFICATIONS = 0x001C
OP_ENABLE_PRINTER = 0x0022
OP_DISABLE_PRINTER = 0x0023
OP_PAUSE_PRINTER_AFTER_CURRENT_JOB = 0x0024
OP_HOLD_NEW_JOBS = 0x0025
OP_RELEASE_HELD_NEW_JOBS = 0x0026
OP_DEACTIVATE_PRINTER = 0x0027
OP_ACTIVATE_PRINTER = 0x0028
OP_RESTART_PRINTER = 0x0029
OP_SHUTDOWN_PRINTER = 0x002A
OP_STARTUP_PRINTER = 0x002B
OP_REPROCESS_JOB = 0x002C
OP_CANCEL_CURRENT_JOB = 0x002D
OP_SUSPEND_CURRENT_JOB = 0x002E
OP_RESUME_JOB = 0x002F
OP_PROMOTE_JOB = 0x0030
OP_SCHEDULE_JOB_AFTER = 0x0031
OP_CANCEL_DOCUMENT = 0x0033
OP_GET_DOCUMENT_ATTRIBUTES = 0x0034
OP_GET_DOCUMENTS = 0x0035
OP_DELETE_DOCUMENT = 0x0036
OP_SET_DOCUMENT_ATTRIBUTES = 0x0037
OP_CANCEL_JOBS = 0x0038
OP_CANCEL_MY_JOBS = 0x0039
OP_RESUBMIT_JOB = 0x003A
OP_CLOSE_JOB = 0x003B
OP_IDENTIFY_PRINTER = 0x003C
OP_VALIDATE_DOCUMENT = 0x003D
OP_PAUSE_ALL_PRINTERS = 0x005D
OP_PAUSE_ALL_PRINTERS_AFTER_CURRENT_JOB = 0x005E
OP_RESTART_SYSTEM = 0x0060
OP_RESUME_ALL_PRINTERS = 0x0061

OP_CUPS_GET_DEFAULT = 0x4001
OP_CUPS_GET_PRINTERS = 0x4002
OP_CUPS_ADD_MODIFY_PRINTER = 0x4003
OP_CUPS_DELETE_PRINTER = 0x4004
OP_CUPS_GET_CLASSES = 0x4005
OP_CUPS_ADD_MODIFY_CLASS = 0x4006
OP_CUPS_DELETE_CLASS = 0x4007
OP_CUPS_ACCEPT_JOBS = 0x4008
OP_CUPS_REJECT_JOBS = 0x4009
OP_CUPS_SET_DEFAULT = 0x400A
OP_CUPS_GET_DEVICES = 0x400B
OP_CUPS_GET_PPDS = 0x400C
OP_CUPS_MOVE_JOB = 0x400D
OP_CUPS_AUTHENTICATE_JOB = 0x400E
OP_CUPS_GET_PPD = 0x400F
OP_CUPS_GET_DOCUMENT = 0x4027
OP_CUPS_CREATE_LOCAL_PRINTER = 0x4028


OPERATION_NAMES = {
    OP_PRINT_JOB: 'Print-Job',
    OP_PRINT_URI: 'Print-URI',
    OP_VALIDATE_JOB: 'Validate-Job',
    OP_CREATE_JOB: 'Create-Job',
    OP_SEND_DOCUMENT: 'Send-Document',
    OP_SEND_URI: 'Send-URI',
    OP_CANCEL_JOB: 'Cancel-Job',
    OP_GET_JOB_ATTRIBUTES: 'Get-Job-Attributes',
    OP_GET_JOBS: 'Get-Jobs',
    OP_GET_PRINTER_ATTRIBUTES: 'Get-Printer-Attributes',
    OP_HOLD_JOB: 'Hold-Job',
    OP_RELEASE_JOB: 'Release-Job',
    OP_RESTART_JOB: 'Restart-Job',
    OP_PAUSE_PRINTER: 'Pause-Printer',
    OP_RESUME_PRINTER: 'Resume-Printer',
    OP_PURGE_JOBS: 'Purge-Jobs',
    OP_SET_PRINTER_ATTRIBUTES: 'Set-Printer-Attributes',
    OP_SET_JOB_ATTRIBUTES: 'Set-Job-Attributes',
    OP_GET_PRINTER_SUPPORTED_VALUES: 'Get-Printer-Supported-Values',
    OP_CREATE_PRINTER_SUBSCRIPTIONS: 'Create-Printer-Subscriptions',
    OP_CREATE_JOB_SUBSCRIPTIONS: 'Create-Job-Subscriptions',
    OP_GET_SUBSCRIPTION_ATTRIBUTES: 'Get-Subscription-Attributes',
    OP_GET_SUBSCRIPTIONS: 'Get-Subscriptions',
    OP_RENEW_SUBSCRIPTION: 'Renew-Subscription',
    OP_CANCEL_SUBSCRIPTION: 'Cancel-Subscription',
    OP_GET_NOTIFICATIONS: 'Get-Notifications',
    OP_ENABLE_PRINTER: 'Enable-Printer',
    OP_DISABLE_PRINTER: 'Disable-Printer',
    OP_PAUSE_PRINTER_AFTER_CURRENT_JOB: 'Pause-Printer-After-Current-Job',
    OP_HOLD_NEW_JOBS: 'Hold-New-Jobs',
    OP_RELEASE_HELD_NEW_JOBS: 'Release-Held-New-Jobs',
    OP_DEACTIVATE_PRINTER: 'Deactivate-Printer',
    OP_ACTIVATE_PRINTER: 'Activate-Printer',
    OP_RESTART_PRINTER: 'Restart-Printer',
    OP_SHUTDOWN_PRINTER: 'Shutdown-Printer',
    OP_STARTUP_PRINTER: 'Startup-Printer',
    OP_REPROCESS_JOB: 'Reprocess-Job',
    OP_CANCEL_CURRENT_JOB: 'Cancel-Current-Job',
    OP_SUSPEND_CURRENT_JOB: 'Suspend-Current-Job',
    OP_RESUME_JOB: 'Resume-Job',
    OP_PROMOTE_JOB: 'Promote-Job',
    OP_SCHEDULE_JOB_AFTER: 'Schedule-Job-After',
    OP_CANCEL_DOCUMENT: 'Cancel-Document',
    OP_GET_DOCUMENT_ATTRIBUTES: 'Get-Document-Attributes',
    OP_GET_DOCUMENTS: 'Get-Documents',
    OP_DELETE_DOCUMENT: 'Delete-Document',
    OP_SET_DOCUMENT_ATTRIBUTES: 'Set-Document-Attributes',
    OP_CANCEL_JOBS: 'Cancel-Jobs',
    OP_CANCEL_MY_JOBS: 'Cancel-My-Jobs',
    OP_RESUBMIT_JOB: 'Resubmit-Job',
    OP_CLOSE_JOB: 'Close-Job',
    OP_IDENTIFY_PRINTER: 'Identify-Printer',
    OP_VALIDATE_DOCUMENT: 'Validate-Document',
    OP_PAUSE_ALL_PRINTERS: 'Pause-All-Printers',
    OP_PAUSE_ALL_PRINTERS_AFTER_CURRENT_JOB:
        'Pause-All-Printers-After-Current-Job',
    OP_RESTART_SYSTEM: 'Restart-System',
    OP_RESUME_ALL_PRINTERS: 'Resume-All-Printers',
    OP_CUPS_GET_DEFAULT: 'CUPS-Get-Default',
    OP_CUPS_GET_PRINTERS: 'CUPS-Get-Printers',
    OP_CUPS_ADD_MODIFY_PRINTER: 'CUPS-Add-Modify-Printer',
    OP_CUPS_DELETE_PRINTER: 'CUPS-Delete-Printer',
    OP_CUPS_GET_CLASSES: 'CUPS-Get-Classes',
    OP_CUPS_ADD_MODIFY_CLASS: 'CUPS-Add-Modify-Class',
    OP_CUPS_DELETE_CLASS: 'CUPS-Delete-Class',
    OP_CUPS_ACCEPT_JOBS: 'CUPS-Accept-Jobs',
    OP_CUPS_REJECT_JOBS: 'CUPS-Reject-Jobs',
    OP_CUPS_SET_DEFAULT: 'CUPS-Set-Default',
    OP_CUPS_GET_DEVICES: 'CUPS-Get-Devices',
    OP_CUPS_GET_PPDS: 'CUPS-Get-PPDs',
    OP_CUPS_MOVE_JOB: 'CUPS-Move-Job',
    OP_CUPS_AUTHENTICATE_JOB: 'CUPS-Authenticate-Job',
    OP_CUPS_GET_PPD: 'CUPS-Get-PPD',
    OP_CUPS_GET_DOCUMENT: 'CUPS-Get-Document',
    OP_CUPS_CREATE_LOCAL_PRINTER: 'CUPS-Create-Local-Printer',
}


# Status codes
STATUS_OK = 0x0000
STATUS_OK_IGNORED_OR_SUBSTITUTED = 0x0001
STATUS_OK_CONFLICTING = 0x0002
STATUS_REDIRECTION_OTHER_SITE = 0x0200
STATUS_BAD_REQUEST = 0x0400
STATUS_FORBIDDEN = 0x0401
STATUS_NOT_AUTHENTICATED = 0x0402
STATUS_NOT_AUTHORIZED = 0x0403
STATUS_NOT_POSSIBLE = 0x0404
STATUS_TIMEOUT = 0x0405
STATUS_NOT_FOUND = 0x0406
STATUS_GONE = 0x0407
STATUS_INTERNAL_ERROR = 0x0500
STATUS_OPERATION_NOT_SUPPORTED = 0x0501
STATUS_SERVICE_UNAVAILABLE = 0x0502

STATUS_NAMES = {
    STATUS_OK: 'successful-ok',
    STATUS_OK_IGNORED_OR_SUBSTITUTED:
        'successful-ok-ignored-or-substituted-attributes',
    STATUS_OK_CONFLICTING: 'successful-ok-conflicting-attributes',
    0x0003: 'successful-ok-ignored-subscriptions',
    0x0005: 'successful-ok-too-many-events',
    0x0007: 'successful-ok-events-complete',
    STATUS_REDIRECTION_OTHER_SITE: 'redirection-other-site',
    STATUS_BAD_REQUEST: 'client-error-bad-request',
    STATUS_FORBIDDEN: 'client-error-forbidden',
    STATUS_NOT_AUTHENTICATED: 'client-error-not-authenticated',
    STATUS_NOT_AUTHORIZED: 'client-error-not-authorized',
    STATUS_NOT_POSSIBLE: 'client-error-not-possible',
    STATUS_TIMEOUT: 'client-error-timeout',
    STATUS_NOT_FOUND: 'client-error-not-found',
    STATUS_GONE: 'client-error-gone',
    0x0408: 'client-error-request-entity-too-large',
    0x0409: 'client-error-request-value-too-long',
    0x040A: 'client-error-document-format-not-supported',
    0x040B: 'client-error-attributes-or-values-not-supported',
    0x040C: 'client-error-uri-scheme-not-supported',
    0x040D: 'client-error-charset-not-supported',
    0x040E: 'client-error-conflicting-attributes',
    0x040F: 'client-error-compression-not-supported',
    0x0410: 'client-error-compression-error',
    0x0411: 'client-error-document-format-error',
    0x0412: 'client-error-document-access-error',
    0x0413: 'client-error-attributes-not-settable',
    0x0414: 'client-error-ignored-all-subscriptions',
    0x0415: 'client-error-too-many-subscriptions',
    0x0418: 'client-error-document-password-error',
    0x0419: 'client-error-document-permission-error',
    0x041A: 'client-error-document-security-error',
    0x041B: 'client-error-document-unprintable-error',
    0x041C: 'client-error-account-info-needed',
    0x041D: 'client-error-account-closed',
    0x041E: 'client-error-account-limit-reached',
    0x041F: 'client-error-account-authorization-failed',
    0x0420: 'client-error-not-fetchable',
    STATUS_INTERNAL_ERROR: 'server-error-internal-error',
    STATUS_OPERATION_NOT_SUPPORTED: 'server-error-operation-not-supported',
    STATUS_SERVICE_UNAVAILABLE: 'server-error-service-unavailable',
    0x0503: 'server-error-version-not-supported',
    0x0504: 'server-error-device-error',
    0x0505: 'server-error-temporary-error',
    0x0506: 'server-error-not-accepting-jobs',
    0x0507: 'server-error-busy',
    0x0508: 'server-error-job-canceled',
    0x0509: 'server-error-multiple-document-jobs-not-supported',
    0x050A: 'server-error-printer-is-deactivated',
    0x050B: 'server-error-too-many-jobs',
    0x050C: 'server-error-too-many-documents',
}


class DecodeError(Exception):
    """The bytes given are not a valid IPP message."""


class StatusError(Exception):
    """An IPP response carried an error status.

    str() of the exception is the status name, e.g.
    'client-error-not-found'.
    """

    def __init__(self, code):
        self.code = code
        Exception.__init__(self, status_name(code))


def status_name(code):
    return STATUS_NAMES.get(code, '0x%04x' % code)


def operation_name(code):
    return OPERATION_NAMES.get(code, '0x%04x' % code)


def is_error(code):
    """True for any status past successful-ok-conflicting-attributes"""
    return code > STATUS_OK_CONFLICTING


def check_status(message):
    """Raise StatusError if message is an error response."""
    if is_error(message.code):
        raise StatusError(message.code)
    return message


class Resolution(object):
    def __init__(self, xres, yres, units=RES_PER_INCH):
        self.xres = xres
        self.yres = yres
        self.units = units

    def __eq__(self, other):
        return (isinstance(other, Resolution) and
                (self.xres, self.yres, self.units) ==
                (other.xres, other.yres, other.units))

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return 'Resolution(%d, %d, %d)' % (self.xres, self.yres, self.units)

    def __str__(self):
        suffix = 'dpi' if self.units == RES_PER_INCH else 'dpcm'
        if self.xres == self.yres:
            return '%d%s' % (self.xres, suffix)
        return '%dx%d%s' % (self.xres, self.yres, suffix)


class Range(object):
    def __init__(self, lower, upper):
        self.lower = lower
        self.upper = upper

    def __eq__(self, other):
        return (isinstance(other, Range) and
                (self.lower, self.upper) == (other.lower, other.upper))

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return 'Range(%d, %d)' % (self.lower, self.upper)

    def __str__(self):
        return '%d-%d' % (self.lower, self.upper)


class Attribute(object):
    """A named, tagged attribute with one or more values.

    Collection values are lists of member Attributes.
    """

    def __init__(self, name, tag, values=()):
        self.name = name
        self.tag = tag
        if not isinstance(values, (list, tuple)):
            values = [values]
        self.values = list(values)

    @property
    def value(self):
        if self.values:
            return self.values[0]

    def __eq__(self, other):
        return (isinstance(other, Attribute) and
                (self.name, self.tag, self.values) ==
                (other.name, other.tag, other.values))

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return 'Attribute(%r, 0x%02x, %r)' % (self.name, self.tag, self.values)


class Group(object):
    """An ordered list of attributes under one delimiter tag."""

    def __init__(self, tag, attributes=None):
        self.tag = tag
        self.attributes = list(attributes or [])

    def add(self, name, tag, values=()):
        attr = Attribute(name, tag, values)
        self.attributes.append(attr)
        return attr

    def get(self, name):
        for attr in self.attributes:
            if attr.name == name:
                return attr

    def __iter__(self):
        return iter(self.attributes)

    def __len__(self):
        return len(self.attributes)

    def __repr__(self):
        return 'Group(0x%02x, %r)' % (self.tag, self.attributes)


class Message(object):
    """An IPP request or response.

    code is the operation id on requests and the status code on
    responses.
    """

    def __init__(self, code, request_id=1, version=DEFAULT_VERSION,
                 groups=None):
        self.version = version
        self.code = code
        self.request_id = request_id
        self.groups = list(groups or [])

    def group(self, tag, create=True):
        """Return the first group with tag, optionally creating it."""
        for group in self.groups:
            if group.tag == tag:
                return group
        if create:
            group = Group(tag)
            self.groups.append(group)
            return group

    def groups_of(self, tag):
        return [g for g in self.groups if g.tag == tag]

    @property
    def operation(self):
        return self.group(TAG_OPERATION)

    @property
    def job(self):
        return self.group(TAG_JOB)

    @property
    def printer(self):
        return self.group(TAG_PRINTER)

    @property
    def unsupported(self):
        return self.group(TAG_UNSUPPORTED_GROUP)

    def find(self, name, tag=None):
        """Return the first non-empty attribute named name.

        Searches groups in server order, restricted to groups with the
        given delimiter tag when one is passed.
        """
        for group in self.groups:
            if tag is not None and group.tag != tag:
                continue
            for attr in group.attributes:
                if attr.name == name and attr.values:
                    return attr

    def __repr__(self):
        return 'Message(%r, 0x%04x, %d, %r)' % (
            self.version, self.code, self.request_id, self.groups)


def read_struct(f, fmt):
    size = struct.calcsize(fmt)
    data = f.read(size)
    if len(data) != size:
        raise DecodeError('truncated IPP message')
    return struct.unpack(fmt, data)


def write_struct(f, fmt, *args):
    f.write(struct.pack(fmt, *args))


def _sized(data):
    if len(data) > MAX_LENGTH:
        raise ValueError('%d bytes is longer than the IPP limit of %d' %
                         (len(data), MAX_LENGTH))
    return struct.pack('>h', len(data)) + data


def _read_exact(f, size):
    data = f.read(size)
    if len(data) != size:
        raise DecodeError('truncated IPP message')
    return data


def _encode_value(tag, value):
    if tag in OUT_OF_BAND_TAGS:
        return b''
    if tag in INTEGER_TAGS:
        return struct.pack('>i', int(value))
    if tag == TAG_BOOLEAN:
        return struct.pack('>B', 1 if value else 0)
    if tag == TAG_RESOLUTION:
        return struct.pack('>iiB', value.xres, value.yres, value.units)
    if tag == TAG_RANGE:
        return struct.pack('>ii', value.lower, value.upper)
    if tag in (TAG_TEXT_LANG, TAG_NAME_LANG):
        if isinstance(value, tuple):
            language, text = value
        else:
            language, text = 'en-US', value
        language = language.encode('utf-8')
        text = text.encode('utf-8')
        return _sized(language) + _sized(text)
    if isinstance(value, bytes):
        return value
    return str(value).encode('utf-8')


def _decode_value(tag, data):
    if tag in OUT_OF_BAND_TAGS:
        return None
    try:
        if tag in INTEGER_TAGS:
            return struct.unpack('>i', data)[0]
        if tag == TAG_BOOLEAN:
            return struct.unpack('>B', data)[0] != 0
        if tag == TAG_RESOLUTION:
            return Resolution(*struct.unpack('>iiB', data))
        if tag == TAG_RANGE:
            return Range(*struct.unpack('>ii', data))
    except struct.error:
        raise DecodeError('bad value length %d for tag 0x%02x' %
                          (len(data), tag))
    if tag in (TAG_STRING, TAG_DATE):
        return data
    if tag in (TAG_TEXT_LANG, TAG_NAME_LANG):
        f = BytesIO(data)
        size, = read_struct(f, '>h')
        _read_exact(f, size)
        size, = read_struct(f, '>h')
        return _read_exact(f, size).decode('utf-8', 'replace')
    return data.decode('utf-8', 'replace')


def _write_attribute(f, attr):
    name = attr.name.encode('utf-8')
    values = attr.values or [None]
    for i, value in enumerate(values):
        write_struct(f, '>B', attr.tag)
        if i == 0:
            f.write(_sized(name))
        else:
            write_struct(f, '>h', 0)
        if attr.tag == TAG_BEGIN_COLLECTION:
            write_struct(f, '>h', 0)
            _write_collection(f, value or [])
            continue
        f.write(_sized(_encode_value(attr.tag, value)))


def _write_collection(f, members):
    for member in members:
        name = member.name.encode('utf-8')
        write_struct(f, '>Bh', TAG_MEMBER_NAME, 0)
        f.write(_sized(name))
        for value in member.values:
            write_struct(f, '>Bh', member.tag, 0)
            if member.tag == TAG_BEGIN_COLLECTION:
                write_struct(f, '>h', 0)
                _write_collection(f, value)
                continue
            f.write(_sized(_encode_value(member.tag, value)))
    write_struct(f, '>Bhh', TAG_END_COLLECTION, 0, 0)


def encode(message):
    """Serialize a Message to bytes."""
    f = BytesIO()
    major, minor = message.version
    write_struct(f, '>bbhi', major, minor, message.code, message.request_id)
    for group in message.groups:
        write_struct(f, '>B', group.tag)
        for attr in group.attributes:
            _write_attribute(f, attr)
    write_struct(f, '>B', TAG_END)
    return f.getvalue()


def _read_collection(f):
    members = []
    current = None
    while True:
        tag, = read_struct(f, '>B')
        size, = read_struct(f, '>h')
        _read_exact(f, size)
        size, = read_struct(f, '>h')
        data = _read_exact(f, size)
        if tag == TAG_END_COLLECTION:
            return members
        if tag == TAG_MEMBER_NAME:
            current = Attribute(data.decode('utf-8', 'replace'), None, [])
            members.append(current)
            continue
        if current is None:
            raise DecodeError('collection value without a member name')
        current.tag = tag
        if tag == TAG_BEGIN_COLLECTION:
            current.values.append(_read_collection(f))
        else:
            current.values.append(_decode_value(tag, data))


def read_message(f):
    """Read one Message from a file-like object.

    Leaves f positioned just past the end-of-attributes tag, so any
    document data that follows can be read from f.
    """
    major, minor = read_struct(f, '>bb')
    code, request_id = read_struct(f, '>hi')
    message = Message(code, request_id, (major, minor))
    group = None
    attr = None
    while True:
        tag, = read_struct(f, '>B')
        if tag == TAG_END:
            break
        if tag < 0x10:
            group = Group(tag)
            message.groups.append(group)
            attr = None
            continue
        if group is None:
            raise DecodeError('attribute outside of any group')
        if tag == TAG_EXTENSION:
            raise DecodeError('extension tags are not supported')
        size, = read_struct(f, '>h')
        name = _read_exact(f, size).decode('utf-8', 'replace')
        size, = read_struct(f, '>h')
        data = _read_exact(f, size)
        if name:
            attr = Attribute(name, tag, [])
            group.attributes.append(attr)
        elif attr is None:
            raise DecodeError('additional value without an attribute name')
        if tag == TAG_BEGIN_COLLECTION:
            attr.values.append(_read_collection(f))
        else:
            attr.values.append(_decode_value(tag, data))
    return message


def decode(data):
    """Parse bytes into a Message.

    Returns a tuple of (message, offset) where offset indexes the first
    byte after the IPP attributes.
    """
    f = BytesIO(data)
    message = read_message(f)
    return message, f.tell()


__all__ = ['Attribute', 'Group', 'Message', 'Resolution', 'Range',
           'DecodeError', 'StatusError',
           'encode', 'decode', 'read_message',
           'status_name', 'operation_name', 'is_error', 'check_status',
           ]
