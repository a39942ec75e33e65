"""Client handle and HTTP transport for talking IPP to a CUPS server.

A Client is built once per invocation from client.conf, the
environment and command-line overrides, and is not modified after.
Each send() is one HTTP POST whose body is the encoded IPP request
followed by an optional document.
"""


import concurrent.futures
import logging
import os
import ssl
import stat
import struct

import requests
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth

from cupsclient import ipp
from cupsclient import uri


logger = logging.getLogger(__name__)


DEFAULT_PORT = 631
TIMEOUT = 60
CHUNK_SIZE = 64 * 1024


# Resource paths by operation. Anything not listed here is handled by
# resource_path().
ADMIN_OPERATIONS = frozenset([
    ipp.OP_CANCEL_JOBS,
    ipp.OP_PURGE_JOBS,
    ipp.OP_CUPS_ADD_MODIFY_PRINTER,
    ipp.OP_CUPS_DELETE_PRINTER,
    ipp.OP_CUPS_ADD_MODIFY_CLASS,
    ipp.OP_CUPS_DELETE_CLASS,
    ipp.OP_CUPS_SET_DEFAULT,
    ipp.OP_CUPS_ACCEPT_JOBS,
    ipp.OP_CUPS_REJECT_JOBS,
    ipp.OP_PAUSE_PRINTER,
    ipp.OP_RESUME_PRINTER,
    ipp.OP_ENABLE_PRINTER,
    ipp.OP_DISABLE_PRINTER,
    ipp.OP_HOLD_NEW_JOBS,
    ipp.OP_RELEASE_HELD_NEW_JOBS,
    ipp.OP_RESTART_PRINTER,
    ipp.OP_PAUSE_ALL_PRINTERS,
    ipp.OP_PAUSE_ALL_PRINTERS_AFTER_CURRENT_JOB,
    ipp.OP_RESUME_ALL_PRINTERS,
    ipp.OP_RESTART_SYSTEM,
])

JOB_OPERATIONS = frozenset([
    ipp.OP_CANCEL_JOB,
    ipp.OP_CANCEL_MY_JOBS,
    ipp.OP_GET_JOBS,
    ipp.OP_GET_JOB_ATTRIBUTES,
    ipp.OP_SET_JOB_ATTRIBUTES,
    ipp.OP_HOLD_JOB,
    ipp.OP_RELEASE_JOB,
    ipp.OP_RESTART_JOB,
    ipp.OP_RESUME_JOB,
    ipp.OP_CLOSE_JOB,
    ipp.OP_GET_NOTIFICATIONS,
    ipp.OP_GET_DOCUMENTS,
    ipp.OP_CUPS_AUTHENTICATE_JOB,
    ipp.OP_CUPS_MOVE_JOB,
    ipp.OP_CUPS_GET_DOCUMENT,
    ipp.OP_CREATE_JOB_SUBSCRIPTIONS,
])

ROOT_OPERATIONS = frozenset([
    ipp.OP_CUPS_GET_DEVICES,
    ipp.OP_CUPS_GET_PPD,
    ipp.OP_CUPS_GET_PPDS,
    ipp.OP_CUPS_GET_PRINTERS,
    ipp.OP_CUPS_GET_CLASSES,
    ipp.OP_CUPS_GET_DEFAULT,
])

PRINTER_OPERATIONS = frozenset([
    ipp.OP_PRINT_JOB,
    ipp.OP_CREATE_JOB,
    ipp.OP_SEND_DOCUMENT,
    ipp.OP_VALIDATE_JOB,
    ipp.OP_VALIDATE_DOCUMENT,
])

FIXED_PATHS = (
    (ADMIN_OPERATIONS, '/admin/'),
    (JOB_OPERATIONS, '/jobs/'),
    (ROOT_OPERATIONS, '/'),
)


class TransportError(Exception):
    """Base class for failures moving a request to the server and back."""


class BuildError(TransportError):
    """The outgoing request could not be encoded."""


class ConnectError(TransportError):
    """The HTTP exchange failed (connect, I/O, timeout or cancel)."""


class HTTPStatusError(TransportError):
    """The server answered with a non-2xx HTTP status."""


class DecodeError(TransportError):
    """The response body is not a valid IPP message."""


def resource_path(msg):
    """Select the CUPS HTTP resource path for a request.

    Args:
      msg: An ipp.Message request

    Returns:
      One of '/admin/', '/jobs/', '/', or the path of the request's
      printer-uri or job-uri for document-carrying operations.
    """
    for operations, path in FIXED_PATHS:
        if msg.code in operations:
            return path
    if msg.code in PRINTER_OPERATIONS:
        operation = msg.group(ipp.TAG_OPERATION, create=False)
        printer_uri = job_uri = None
        if operation is not None:
            attr = operation.get('printer-uri')
            printer_uri = attr.value if attr else None
            attr = operation.get('job-uri')
            job_uri = attr.value if attr else None
        if printer_uri:
            return uri.uri_path(printer_uri) or '/'
        if job_uri:
            return uri.uri_path(job_uri) or '/'
        return '/ipp/print'
    return '/'


def parse_bool(value):
    value = (value or '').strip().lower()
    if value in ('1', 'yes', 'on', 'true'):
        return True
    if value in ('0', 'no', 'off', 'false'):
        return False
    return None


def split_host_port(value):
    """Split "host:port" or "[v6]:port".

    Returns:
      A tuple of (host, port), with port None when value carries none.
    """
    value = value.strip()
    if value.startswith('[') and ']' in value:
        host, _, rest = value[1:].partition(']')
        if rest.startswith(':') and rest[1:].isdigit():
            return host, int(rest[1:])
        return host, None
    host, sep, port = value.rpartition(':')
    if sep and host and port.isdigit() and ':' not in host:
        return host, int(port)
    return value, None


def parse_server(value):
    """Parse a ServerName or CUPS_SERVER value.

    Returns:
      A tuple of (host, port, use_tls). host is '' and port None when
      value is empty.
    """
    value = (value or '').strip()
    if not value:
        return '', None, False
    if '://' in value:
        scheme, _, rest = value.partition('://')
        rest = rest.split('/', 1)[0]
        host, port = split_host_port(rest)
        if host:
            return host, port, scheme.lower() in ('https', 'ipps')
    host, port = split_host_port(value)
    return host, port, False


def _strip_comment(line):
    quote = None
    for i, ch in enumerate(line):
        if ch in '"\'':
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
        elif ch == '#' and quote is None:
            return line[:i].strip()
    return line.strip()


def read_client_conf(path, conf):
    """Merge the directives of a client.conf file into conf.

    Missing or unreadable files are skipped.
    """
    try:
        with open(path) as f:
            lines = f.readlines()
    except (IOError, OSError):
        return conf
    logger.debug('reading %s', path)
    for line in lines:
        line = _strip_comment(line)
        if not line:
            continue
        parts = line.split(None, 1)
        key = parts[0].lower()
        value = parts[1].strip().strip('"\' ') if len(parts) > 1 else ''
        if key == 'servername' and value:
            conf['server'] = value
        elif key == 'encryption' and value:
            conf['encryption'] = value
        elif key == 'user' and value:
            conf['user'] = value
        elif key == 'validatecerts':
            b = parse_bool(value)
            if b is not None:
                conf['validate_certs'] = b
    return conf


def system_conf_dir():
    env = os.environ
    if env.get('CUPS_CLIENT_CONF_DIR'):
        return env['CUPS_CLIENT_CONF_DIR']
    if env.get('CUPS_CONF_DIR'):
        return env['CUPS_CONF_DIR']
    if env.get('CUPS_DATA_DIR'):
        return os.path.join(env['CUPS_DATA_DIR'], 'conf')
    return os.path.join('data', 'conf')


def user_conf_dir():
    if os.environ.get('CUPS_USER_CONF_DIR'):
        return os.environ['CUPS_USER_CONF_DIR']
    home = os.environ.get('HOME') or os.path.expanduser('~')
    if home and home != '~':
        return os.path.join(home, '.cups')
    return ''


def load_client_conf():
    """Read client.conf files, then apply environment overrides."""
    conf = {}
    override = os.environ.get('CUPS_CLIENT_CONF', '').strip()
    if override:
        read_client_conf(override, conf)
    else:
        system_path = os.path.join(system_conf_dir(), 'client.conf')
        read_client_conf(system_path, conf)
        user_dir = user_conf_dir()
        if user_dir:
            user_path = os.path.join(user_dir, 'client.conf')
            if user_path != system_path:
                read_client_conf(user_path, conf)

    for key, name in (('server', 'CUPS_SERVER'),
                      ('encryption', 'CUPS_ENCRYPTION'),
                      ('user', 'CUPS_USER')):
        value = os.environ.get(name, '').strip()
        if value:
            conf[key] = value
    validate = parse_bool(os.environ.get('CUPS_VALIDATECERTS'))
    if validate is not None:
        conf['validate_certs'] = validate
    return conf


def default_port():
    try:
        port = int(os.environ.get('IPP_PORT', ''))
    except ValueError:
        return DEFAULT_PORT
    if port > 0:
        return port
    return DEFAULT_PORT


def default_user():
    for name in ('USER', 'USERNAME'):
        if os.environ.get(name):
            return os.environ[name]
    return 'anonymous'


class _TLSAdapter(HTTPAdapter):
    """An HTTPAdapter refusing anything older than TLS 1.2."""

    def __init__(self, insecure=False, **kwargs):
        self.insecure = insecure
        HTTPAdapter.__init__(self, **kwargs)

    def init_poolmanager(self, *args, **kwargs):
        context = ssl.create_default_context()
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        if self.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        kwargs['ssl_context'] = context
        return HTTPAdapter.init_poolmanager(self, *args, **kwargs)


class _Payload(object):
    """Request body: the encoded IPP header, then the document.

    requests streams any iterable body; __len__ lets it send a
    Content-Length when the document size is known.
    """

    def __init__(self, header, document=None, cancel=None):
        self.header = header
        self.document = document
        self.cancel = cancel
        self.length = self._length()

    def _length(self):
        document = self.document
        if document is None:
            return len(self.header)
        if isinstance(document, bytes):
            return len(self.header) + len(document)
        try:
            st = os.fstat(document.fileno())
            position = document.tell()
        except (AttributeError, OSError, ValueError):
            return None
        if not stat.S_ISREG(st.st_mode):
            return None
        return len(self.header) + st.st_size - position

    def __len__(self):
        return self.length or 0

    def __iter__(self):
        yield self.header
        document = self.document
        if document is None:
            return
        if isinstance(document, bytes):
            if document:
                yield document
            return
        if not hasattr(document, 'read'):
            for chunk in document:
                self._check_cancel()
                yield chunk
            return
        while True:
            self._check_cancel()
            chunk = document.read(CHUNK_SIZE)
            if not chunk:
                break
            if isinstance(chunk, str):
                chunk = chunk.encode('utf-8')
            yield chunk

    def _check_cancel(self):
        if self.cancel is not None and self.cancel.is_set():
            raise ConnectError('operation canceled')


class Client(object):
    """Connection settings for one invocation.

    Attributes are read-only after construction; build a new Client
    to change them.
    """

    __slots__ = ('_host', '_port', '_use_tls', '_user', '_password',
                 '_insecure', '_session')

    def __init__(self, host='localhost', port=DEFAULT_PORT, use_tls=False,
                 user='anonymous', password=None, insecure=False):
        object.__setattr__(self, '_host', host)
        object.__setattr__(self, '_port', port)
        object.__setattr__(self, '_use_tls', use_tls)
        object.__setattr__(self, '_user', user)
        object.__setattr__(self, '_password', password)
        object.__setattr__(self, '_insecure', insecure)
        object.__setattr__(self, '_session', None)

    def __setattr__(self, name, value):
        raise AttributeError('Client is immutable')

    host = property(lambda self: self._host)
    port = property(lambda self: self._port)
    use_tls = property(lambda self: self._use_tls)
    user = property(lambda self: self._user)
    password = property(lambda self: self._password)
    insecure = property(lambda self: self._insecure)

    def __repr__(self):
        return 'Client(%r, %r, use_tls=%r, user=%r)' % (
            self._host, self._port, self._use_tls, self._user)

    @classmethod
    def from_config(cls, server=None, encrypt=False, user=None):
        """Build a Client from client.conf, the environment and overrides.

        Args:
          server: A -h style server[:port] override
          encrypt: True if -E was given
          user: A -U style user override

        Returns:
          A Client.
        """
        conf = load_client_conf()
        host, port, use_tls = parse_server(conf.get('server'))
        encryption = conf.get('encryption', '').strip().lower()
        if encryption in ('required', 'always', 'on', 'true'):
            use_tls = True
        elif encryption in ('never', 'off', 'false'):
            use_tls = False

        server = (server or '').strip()
        if server:
            host, port, server_tls = parse_server(server)
            use_tls = use_tls or server_tls
        if encrypt:
            use_tls = True

        insecure = conf.get('validate_certs') is False
        insecure_env = parse_bool(os.environ.get('CUPS_IPP_INSECURE'))
        if insecure_env is not None:
            insecure = insecure_env

        return cls(host=host or 'localhost',
                   port=port or default_port(),
                   use_tls=use_tls,
                   user=(user or '').strip() or conf.get('user') or
                   default_user(),
                   password=os.environ.get('CUPS_PASSWORD') or None,
                   insecure=insecure)

    def url(self, path='/'):
        scheme = 'https' if self._use_tls else 'http'
        host = self._host
        if ':' in host:
            host = '[%s]' % host
        return '%s://%s:%d%s' % (scheme, host, self._port, path)

    def printer_uri(self, name):
        return uri.destination_uri(name)

    def _get_session(self):
        if self._session is None:
            session = requests.Session()
            session.mount('https://', _TLSAdapter(insecure=self._insecure))
            object.__setattr__(self, '_session', session)
        return self._session

    def close(self):
        if self._session is not None:
            self._session.close()
            object.__setattr__(self, '_session', None)

    def cancel(self):
        """Abort any in-flight request by tearing down the session."""
        self.close()

    def _post(self, msg, document, cancel):
        try:
            header = ipp.encode(msg)
        except (TypeError, ValueError, AttributeError, struct.error) as e:
            raise BuildError('unable to encode request: %s' % e)

        path = resource_path(msg)
        url = self.url(path)
        logger.debug('%s %s', ipp.operation_name(msg.code), url)
        headers = {
            'Content-Type': ipp.CONTENT_TYPE,
            'Accept': ipp.CONTENT_TYPE,
        }
        body = _Payload(header, document, cancel)
        if body.length is None:
            data = iter(body)
        else:
            data = body
        auth = None
        if self._user:
            auth = HTTPBasicAuth(self._user, self._password or '')
        try:
            response = self._get_session().post(
                url, data=data, headers=headers, auth=auth,
                timeout=TIMEOUT, verify=not self._insecure)
        except requests.exceptions.RequestException as e:
            raise ConnectError(_describe(e))

        with response:
            if response.status_code // 100 != 2:
                raise HTTPStatusError('%d %s' % (response.status_code,
                                                 response.reason or ''))
            content = response.content
        try:
            reply, offset = ipp.decode(content)
        except ipp.DecodeError as e:
            raise DecodeError('unable to decode response: %s' % e)
        logger.debug('%s -> %s', ipp.operation_name(msg.code),
                     ipp.status_name(reply.code))
        return reply, content[offset:]

    def _exchange(self, msg, document, cancel):
        if cancel is None:
            return self._post(msg, document, None)
        # Run the exchange on a worker so a cancel can interrupt it.
        pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(self._post, msg, document, cancel)
            while True:
                try:
                    return future.result(timeout=0.1)
                except concurrent.futures.TimeoutError:
                    if cancel.is_set():
                        self.cancel()
                        raise ConnectError('operation canceled')
        finally:
            pool.shutdown(wait=False)

    def send(self, msg, document=None, cancel=None):
        """POST msg (and an optional document) and decode the reply.

        Args:
          msg: An ipp.Message request
          document: None, bytes, a binary file object, or an iterator
            of byte chunks, sent after the IPP header
          cancel: An optional threading.Event; setting it aborts the
            request

        Returns:
          The decoded ipp.Message response. Bytes after the IPP
          attributes are discarded.
        """
        return self._exchange(msg, document, cancel)[0]

    def send_with_payload(self, msg, document=None, cancel=None):
        """Like send, but also return the bytes after the IPP response.

        Returns:
          A tuple of (response, payload).
        """
        return self._exchange(msg, document, cancel)

    def call(self, msg, document=None, cancel=None):
        """send() and raise ipp.StatusError on an error status."""
        return ipp.check_status(self.send(msg, document, cancel))


def _describe(exc):
    """Return the OS error text behind a requests exception, if any."""
    cause = exc
    for _ in range(8):
        if isinstance(cause, OSError) and cause.strerror:
            return cause.strerror
        cause = (getattr(cause, 'reason', None) or cause.__cause__ or
                 cause.__context__)
        if not isinstance(cause, BaseException):
            break
    return str(exc)


__all__ = ['Client', 'TransportError', 'BuildError', 'ConnectError',
           'HTTPStatusError', 'DecodeError', 'resource_path',
           'parse_server', 'load_client_conf',
           ]
