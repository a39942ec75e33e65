"""Turning positional operands into (destination, job id) pairs.

Tokens such as "12", "Office", "Office-12" and "-" are resolved against
the destination catalog when it is available. A printer literally named
"Office-12" is therefore never mistaken for job 12 on "Office". Without
a catalog, anything ending in "-<digits>" is taken to be a job.
"""


from collections import namedtuple


SENTINEL = '-'


Operand = namedtuple('Operand', ['dest', 'job_id'])


class UnknownDestination(ValueError):
    def __init__(self, token):
        self.token = token
        ValueError.__init__(self, 'unknown destination "%s"' % token)


def split_job_spec(token):
    """Split "dest-N" into ("dest", N).

    Returns:
      (prefix, job_id); job_id is 0 when token does not end in a dash
      followed by a positive number. A bare number has an empty prefix.
    """
    token = token.strip()
    if token.isdigit() and int(token) > 0:
        return '', int(token)
    prefix, sep, suffix = token.rpartition('-')
    if sep and prefix and suffix.isdigit() and int(suffix) > 0:
        return prefix, int(suffix)
    return '', 0


def _catalog_known(catalog):
    return catalog is not None and catalog.available and len(catalog) > 0


def is_known_destination(token, catalog):
    """Decide whether token names a destination.

    With no usable catalog, anything that is not a destination-id
    ("Office-12") or bare number counts as a destination.
    """
    token = token.strip()
    if not token or token == SENTINEL:
        return True
    if not _catalog_known(catalog):
        return split_job_spec(token)[1] == 0
    return token in catalog


def split_operand(token, catalog, keep_prefix=False):
    """Parse one positional operand.

    Args:
      token: The operand as typed
      catalog: A catalog.Catalog, or None if the server could not be
        asked
      keep_prefix: When False, "Office-12" yields ("", 12) the way
        cancel treats it; when True it yields ("Office", 12)

    Returns:
      An Operand, or None for an empty token.

    Raises:
      UnknownDestination: the token matches nothing.
    """
    t = token.strip()
    if not t:
        return None
    if t == SENTINEL:
        return Operand(SENTINEL, 0)
    if t.isdigit():
        if int(t) > 0:
            return Operand('', int(t))
        raise UnknownDestination(t)
    known = _catalog_known(catalog)
    if known and t in catalog:
        return Operand(catalog.canonical(t), 0)
    prefix, job_id = split_job_spec(t)
    if job_id:
        return Operand(prefix if keep_prefix else '', job_id)
    if not known:
        return Operand(t, 0)
    raise UnknownDestination(t)


def parse_move_source(token):
    """Read the first lpmove operand without a catalog.

    Returns:
      (job_id, source); exactly one of them is set.
    """
    t = token.strip()
    if not t:
        return 0, ''
    prefix, job_id = split_job_spec(t)
    if job_id:
        return job_id, ''
    return 0, t


def normalize_move_source(token, job_id, source, catalog):
    """Prefer a destination literally named token over a job id.

    A missing catalog keeps whatever parse_move_source decided.
    """
    if not _catalog_known(catalog):
        return job_id, source
    t = token.strip()
    if t and t in catalog:
        return 0, t
    return job_id, source
