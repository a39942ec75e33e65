"""Job submission shared by lp and lpr.

A submission with one document is a single Print-Job. Several
documents become one Create-Job followed by a Send-Document per file,
the last carrying last-document=true.
"""


import logging
import os
import sys

from cupsclient import builders
from cupsclient import catalog as catalog_
from cupsclient import destopts
from cupsclient import ipp
from cupsclient import uri


logger = logging.getLogger(__name__)


RAW_FORMAT = 'application/vnd.cups-raw'
DEFAULT_FORMAT = 'application/octet-stream'

FORMATS = {
    '.pdf': 'application/pdf',
    '.ps': 'application/postscript',
    '.txt': 'text/plain',
    '.log': 'text/plain',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
}


def guess_format(path):
    if not path or path == '-':
        return DEFAULT_FORMAT
    ext = os.path.splitext(path)[1].lower()
    return FORMATS.get(ext, DEFAULT_FORMAT)


def document_format(hints, path):
    """An explicit document-format wins, then raw, then the file name."""
    if hints.get('document-format'):
        return hints['document-format']
    if hints.get('raw'):
        return RAW_FORMAT
    return guess_format(path)


def resolve_destination(explicit, store, client, env_names):
    """Work out where a job goes.

    Tries the explicit destination, the lpoptions default, each of
    env_names in turn, and finally asks the server with
    CUPS-Get-Default.

    Returns:
      A tuple of (destination, instance); destination is '' when
      nothing names one.
    """
    candidates = [explicit, store.default]
    for name in env_names:
        value = os.environ.get(name, '').strip()
        # PRINTER=lp is the System V placeholder, not a real queue
        if name == 'PRINTER' and value.lower() == 'lp':
            continue
        candidates.append(value)
    for candidate in candidates:
        candidate = (candidate or '').strip()
        if '://' in candidate:
            candidate = uri.name_from_uri(candidate)
        if candidate:
            return destopts.split_destination(candidate)
    return catalog_.default_destination(client), ''


def job_options(store, dest, instance, explicit):
    """Merge local options with -o options and lift typed hints.

    Returns:
      A tuple of (hints, options) as destopts.lift_hints gives them.
    """
    merged = store.merge(dest, instance, explicit)
    return destopts.lift_hints(merged)


def add_hints(msg, hints):
    group = msg.job
    if 'copies' in hints:
        group.add('copies', ipp.TAG_INTEGER, hints['copies'])
    if 'job-priority' in hints:
        group.add('job-priority', ipp.TAG_INTEGER, hints['job-priority'])
    if 'job-hold-until' in hints:
        group.add('job-hold-until', ipp.TAG_KEYWORD, hints['job-hold-until'])


def _job_request(op, client, dest, title):
    msg = builders.request(op, client, printer=dest)
    msg.operation.add('job-name', ipp.TAG_NAME, title)
    return msg


def print_job(client, dest, title, document, path, hints, options,
              cancel=None):
    """Print-Job with one document.

    Args:
      client: The client handle
      dest: The destination name or URI
      title: job-name
      document: A binary file object or bytes
      path: The document's file name for format guessing, or ''
      hints: Typed job hints from destopts.lift_hints
      options: Remaining job options, sent in the job group
      cancel: An optional threading.Event to abort the upload

    Returns:
      The new job id.
    """
    msg = _job_request(ipp.OP_PRINT_JOB, client, dest, title)
    msg.operation.add('document-format', ipp.TAG_MIME_TYPE,
                      document_format(hints, path))
    add_hints(msg, hints)
    builders.add_job_options(msg, options)
    response = client.call(msg, document, cancel)
    return builders.job_id(response)


def create_job(client, dest, title, hints, options):
    msg = _job_request(ipp.OP_CREATE_JOB, client, dest, title)
    add_hints(msg, hints)
    builders.add_job_options(msg, options)
    response = client.call(msg)
    job_id = builders.job_id(response)
    if not job_id:
        raise ValueError('missing job-id in create-job response')
    return job_id


def send_document(client, dest, job_id, path, hints, last, cancel=None):
    msg = builders.request(ipp.OP_SEND_DOCUMENT, client, printer=dest,
                           job_id=job_id)
    msg.operation.add('document-name', ipp.TAG_NAME, os.path.basename(path))
    msg.operation.add('document-format', ipp.TAG_MIME_TYPE,
                      document_format(hints, path))
    msg.operation.add('last-document', ipp.TAG_BOOLEAN, bool(last))
    with open(path, 'rb') as f:
        client.call(msg, f, cancel)


def print_files(client, dest, title, paths, hints, options, cancel=None):
    """Submit one or more files as a single job.

    Returns:
      The job id.
    """
    if len(paths) == 1:
        with open(paths[0], 'rb') as f:
            return print_job(client, dest, title, f, paths[0], hints,
                             options, cancel)
    job_id = create_job(client, dest, title, hints, options)
    for i, path in enumerate(paths):
        logger.debug('sending %s as document %d of job %d', path, i + 1,
                     job_id)
        send_document(client, dest, job_id, path, hints,
                      i == len(paths) - 1, cancel)
    return job_id


def print_stdin(client, dest, title, hints, options, cancel=None):
    data = sys.stdin.buffer.read()
    return print_job(client, dest, title, data, '', hints, options, cancel)


__all__ = ['guess_format', 'document_format', 'resolve_destination',
           'job_options', 'print_job', 'create_job', 'send_document',
           'print_files', 'print_stdin',
           ]
