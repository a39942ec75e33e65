"""Conversion between destination names, job ids and IPP URIs.

CUPS routes by resource path, not by host, so every URI built here
uses the literal host "localhost". The host actually contacted comes
from the client handle.
"""


from urllib.parse import quote, unquote, urlsplit


# Unreserved characters plus the sub-delims CUPS leaves alone in
# resource names.
_SAFE = "-._~!$&()*+,;=:@"


def escape_name(name):
    return quote(name, safe=_SAFE)


def destination_uri(name):
    """Return the printer-uri for a destination name.

    Args:
      name: A destination name, a full URI, or an empty string for the
        all-printers scope.

    Returns:
      The value unchanged if it already contains "://", otherwise
      ipp://localhost/printers/<escaped name>.
    """
    name = (name or '').strip()
    if '://' in name:
        return name
    return 'ipp://localhost/printers/' + escape_name(name)


def class_uri(name):
    name = (name or '').strip()
    if '://' in name:
        return name
    return 'ipp://localhost/classes/' + escape_name(name)


def job_uri(job_id):
    job_id = int(job_id)
    if job_id <= 0:
        raise ValueError('invalid job id %d' % job_id)
    return 'ipp://localhost/jobs/%d' % job_id


def uri_path(uri):
    """Return the path component of a URI, or '' if it has none."""
    if not uri:
        return ''
    try:
        return urlsplit(uri).path
    except ValueError:
        return ''


def name_from_uri(uri):
    """Extract the destination name from a printer or class URI.

    Anything that does not look like a URI is returned as-is, so the
    result of "lpr -P ipp://host/printers/Lab" and "lpr -P Lab" agree.
    """
    if not uri or '://' not in uri:
        return uri
    path = uri_path(uri).strip('/')
    if not path:
        return ''
    return unquote(path.split('/')[-1])


def job_id_from_uri(uri):
    """Return the numeric job id at the end of a job URI, or 0."""
    path = uri_path(uri).rstrip('/')
    tail = path.rsplit('/', 1)[-1]
    if tail.isdigit():
        return int(tail)
    return 0
