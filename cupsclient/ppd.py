"""PPD helpers built on pycups' libcups bindings.

lpoptions -l and cupstestppd both open PPD files with cups.PPD and walk
its option groups; this module holds the shared pieces.
"""


import os
import tempfile

import cups


def load(path):
    """Open a PPD file, which may be gzip-compressed.

    Raises:
      ValueError: libcups could not open or parse the file
    """
    try:
        return cups.PPD(path)
    except RuntimeError as e:
        raise ValueError('unable to open PPD file (%s)' % e)


def loads(data, prefix='ppd-'):
    """Open PPD content held in memory by way of a temporary file."""
    fd, path = tempfile.mkstemp(prefix=prefix, suffix='.ppd')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        return load(path)
    finally:
        os.remove(path)


def iter_groups(groups):
    for group in groups:
        yield group
        for subgroup in iter_groups(group.subgroups):
            yield subgroup


def iter_options(ppd):
    """Yield every option of every group and subgroup, in file order."""
    for group in iter_groups(ppd.optionGroups):
        for option in group.options:
            yield option


def mark(ppd, values=None):
    """Mark the PPD defaults, then the saved values on top of them."""
    ppd.markDefaults()
    for keyword, value in (values or {}).items():
        option = ppd.findOption(keyword)
        if option is None:
            continue
        if option.ui == cups.PPD_UI_PICKMANY:
            for part in value.split(','):
                ppd.markOption(option.keyword, part.strip())
        else:
            ppd.markOption(option.keyword, value.strip())


def format_option(option):
    """Render one option the way lpoptions -l prints it.

    "PageSize/Media Size: Letter *A4" marks the selected choice with *.
    The custom page size shows up as Custom.WIDTHxHEIGHT.
    """
    words = ['%s/%s:' % (option.keyword, option.text or option.keyword)]
    for choice in option.choices:
        # libcups appends an unmarkable entry when the default is unknown
        if 'marked' not in choice:
            continue
        name = choice['choice']
        if name == 'Custom' and option.keyword.lower() == 'pagesize':
            name = 'Custom.WIDTHxHEIGHT'
        words.append(('*' if choice['marked'] else '') + name)
    return ' '.join(words)


def list_options(ppd, values=None):
    """Yield one formatted line per option, skipping PageRegion."""
    mark(ppd, values)
    for option in iter_options(ppd):
        if option.keyword.lower() == 'pageregion':
            continue
        yield format_option(option)


__all__ = ['load', 'loads', 'iter_groups', 'iter_options', 'mark',
           'format_option', 'list_options',
           ]
