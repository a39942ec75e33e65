#!/usr/bin/python3
"""cupstestppd: check PPD files for conformance problems."""


import collections
import gzip
import os
import re
import sys
import zlib

import cups

from cupsclient import common
from cupsclient import ppd as ppd_


opts = 'I:R:W:qrv'


USAGE = """\
Warning: This program will be removed in a future version of CUPS.
Usage: cupstestppd [options] filename1.ppd[.gz] [... filenameN.ppd[.gz]]
       program | cupstestppd [options] -
Options:
-I {filename,filters,none,profiles}  Ignore specific warnings
-R root-directory                    Set alternate root
-W {all,none,constraints,defaults,duplex,filters,profiles,sizes,translations}
                                     Issue warnings instead of errors
-q                                   Run silently
-r                                   Use relaxed open mode
-v                                   Be verbose
-vv                                  Be very verbose
"""


# Issue categories, usable as -I and -W bit masks
WARN_NONE = 0
WARN_CONSTRAINTS = 1
WARN_DEFAULTS = 2
WARN_FILTERS = 4
WARN_PROFILES = 8
WARN_TRANSLATIONS = 16
WARN_DUPLEX = 32
WARN_SIZES = 64
WARN_FILENAME = 128
WARN_ALL = 255

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FILE_OPEN = 2
EXIT_PPD_FORMAT = 3
EXIT_CONFORMANCE = 4

PAGE_SIZE_RE = re.compile(r'PageSize\s*\[\s*([0-9.]+)\s+([0-9.]+)\s*\]')

IGNORE_CATEGORIES = {
    'none': WARN_NONE,
    'filename': WARN_FILENAME,
    'filters': WARN_FILTERS,
    'profiles': WARN_PROFILES,
    # -I all only covers the file system checks
    'all': WARN_FILTERS | WARN_PROFILES,
}

WARN_CATEGORIES = {
    'none': WARN_NONE,
    'constraints': WARN_CONSTRAINTS,
    'defaults': WARN_DEFAULTS,
    'duplex': WARN_DUPLEX,
    'filters': WARN_FILTERS,
    'profiles': WARN_PROFILES,
    'sizes': WARN_SIZES,
    'translations': WARN_TRANSLATIONS,
    'all': WARN_ALL,
}


class Options(object):
    def __init__(self):
        self.ignore = WARN_NONE
        self.root = ''
        self.warn = WARN_NONE
        self.verbose = 0
        self.relaxed = False
        self.files = []


class LoadError(Exception):
    """A file could not be read or opened as a PPD."""

    def __init__(self, status, message):
        super().__init__(message)
        self.status = status


def parse_args(args):
    options, arguments = common.parse_args(
        [a.strip() for a in args if a.strip()], opts)
    result = Options()
    for o, v in options:
        v = v.strip()
        if o == '-I':
            category = IGNORE_CATEGORIES.get(v.lower())
            if category is None:
                raise common.UsageError('unknown -I category "%s"' % v)
            if v.lower() in ('none', 'all'):
                result.ignore = category
            else:
                result.ignore |= category
        elif o == '-R':
            result.root = v
        elif o == '-W':
            category = WARN_CATEGORIES.get(v.lower())
            if category is None:
                raise common.UsageError('unknown -W category "%s"' % v)
            if v.lower() in ('none', 'all'):
                result.warn = category
            else:
                result.warn |= category
        elif o == '-q':
            if result.verbose > 0:
                raise common.UsageError(
                    'The -q option is incompatible with the -v option.')
            result.verbose -= 1
        elif o == '-r':
            result.relaxed = True
        elif o == '-v':
            if result.verbose < 0:
                raise common.UsageError(
                    'The -v option is incompatible with the -q option.')
            result.verbose += 1
    result.files = arguments
    return result


def read_ppd(path):
    """Read a PPD file from disk.

    Raises:
      LoadError: the file could not be read
    """
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise LoadError(EXIT_FILE_OPEN,
                        'Unable to open PPD file - %s.' % (e.strerror or e))


def decompress(data):
    """Undo gzip compression, leaving plain PPD text alone."""
    if data[:2] != b'\x1f\x8b':
        return data
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise LoadError(EXIT_PPD_FORMAT, 'Unable to open PPD file - %s.' % e)


def has_header(data):
    for line in data.splitlines():
        if line.strip().startswith(b'*PPD-Adobe:'):
            return True
    return False


def open_ppd(data, relaxed=False):
    """Hand PPD content to libcups in the requested conformance mode."""
    if relaxed:
        cups.ppdSetConformance(cups.PPD_CONFORM_RELAXED)
    else:
        cups.ppdSetConformance(cups.PPD_CONFORM_STRICT)
    try:
        return ppd_.loads(data, prefix='cupstestppd-')
    except ValueError:
        raise LoadError(EXIT_PPD_FORMAT,
                        'Unable to open PPD file - invalid PPD data.')
    finally:
        cups.ppdSetConformance(cups.PPD_CONFORM_RELAXED)


def main_keywords(data):
    """Yield (keyword, spec, value) for each *Keyword line of PPD text.

    Bytes that are not UTF-8 survive as surrogate escapes, so values can
    still be checked for bad encodings.
    """
    for line in data.decode('utf-8', 'surrogateescape').splitlines():
        line = line.strip()
        if not line.startswith('*') or line.startswith('*%'):
            continue
        head, sep, value = line[1:].partition(':')
        if not sep:
            continue
        keyword, _, spec = head.partition(' ')
        spec = spec.strip().partition('/')[0]
        yield keyword, spec, value.strip().strip('"').strip()


class PPDFile(object):
    """An open PPD with the raw keywords libcups does not expose."""

    def __init__(self, ppd, data):
        self.ppd = ppd
        self.keywords = list(main_keywords(data))
        self.options = collections.OrderedDict()
        for option in ppd_.iter_options(ppd):
            # libcups appends an unmarkable entry when the default is unknown
            names = [c['choice'] for c in option.choices if 'marked' in c]
            default = self.value('Default' + option.keyword)
            self.options[option.keyword] = (default, names)

    def values(self, keyword):
        return [v for k, _, v in self.keywords if k == keyword]

    def value(self, keyword):
        found = self.values(keyword)
        return found[0] if found else ''

    def page_dimensions(self):
        """Names of the page sizes given dimensions anywhere in the file."""
        names = []
        for keyword, spec, value in self.keywords:
            if not spec or spec in names:
                continue
            if keyword in ('ImageableArea', 'PaperDimension'):
                names.append(spec)
            elif keyword == 'PageSize' and PAGE_SIZE_RE.search(value):
                names.append(spec)
        return names


def _same(a, b):
    return a.strip().lower() == b.strip().lower()


def _contains(choices, want):
    return any(_same(c, want) for c in choices)


def check_defaults(f):
    issues = []
    for keyword, (default, choices) in f.options.items():
        if keyword == 'PageSize' and not choices:
            choices = sorted(f.page_dimensions())
        if not choices:
            continue
        if not default.strip():
            issues.append((WARN_DEFAULTS, 'REQUIRED Default%s' % keyword))
        elif not _contains(choices, default):
            issues.append((WARN_DEFAULTS,
                           'Bad Default%s %s' % (keyword, default.strip())))
    return issues


def check_constraints(f):
    issues = []
    for c in f.ppd.constraints:
        for keyword, choice in ((c.option1, c.choice1),
                                (c.option2, c.choice2)):
            if not keyword:
                continue
            if keyword not in f.options:
                issues.append((WARN_CONSTRAINTS,
                               'UIConstraints references unknown option %s' %
                               keyword))
            elif choice and not _contains(f.options[keyword][1], choice):
                issues.append((WARN_CONSTRAINTS,
                               'UIConstraints references unknown choice '
                               '%s/%s' % (keyword, choice)))
    return issues


def check_sizes(f):
    sizes = f.page_dimensions()
    choices = list(f.options.get('PageSize', ('', []))[1]) or sorted(sizes)
    if not choices:
        return [(WARN_SIZES, 'REQUIRED PageSize option')]
    if not sizes:
        return [(WARN_SIZES, 'No *PageSize dimensions found')]
    issues = []
    for choice in choices:
        lower = choice.strip().lower()
        if lower == 'custom' or lower.startswith('custom.'):
            continue
        if choice not in sizes:
            issues.append((WARN_SIZES,
                           'PageSize %s has no matching dimensions' % choice))
    for name in sizes:
        if not _contains(choices, name):
            issues.append((WARN_SIZES, 'PageSize %s has no corresponding '
                           'option choice' % name))
    return issues


def check_duplex(f):
    default, choices = f.options.get('Duplex', ('', []))
    if not choices:
        return []
    issues = []
    if not _contains(choices, 'None'):
        issues.append((WARN_DUPLEX,
                       'Duplex option is missing None/Off choice'))
    if (not _contains(choices, 'DuplexNoTumble') or
            not _contains(choices, 'DuplexTumble')):
        issues.append((WARN_DUPLEX, 'Duplex option should provide '
                       'DuplexNoTumble and DuplexTumble choices'))
    if default.strip() and not _contains(choices, default):
        issues.append((WARN_DUPLEX, 'Bad DefaultDuplex %s' % default.strip()))
    return issues


def check_translations(f):
    issues = []

    def check(label, value):
        try:
            (value or '').encode('utf-8')
        except UnicodeEncodeError:
            issues.append((WARN_TRANSLATIONS,
                           '%s contains invalid UTF-8 text' % label))

    check('NickName', f.value('NickName'))
    check('ModelName', f.value('ModelName'))
    check('Manufacturer', f.value('Manufacturer'))
    for option in ppd_.iter_options(f.ppd):
        check('Option text %s' % option.keyword, option.text)
        for choice in option.choices:
            check('Choice text %s/%s' % (option.keyword, choice['choice']),
                  choice['text'])
    return issues


def resolve_root(root, path):
    root = root.strip()
    if root in ('', '/', '.'):
        return path
    return os.path.join(root, path.lstrip('/\\'))


def _check_file(category, label, path, root):
    full = resolve_root(root, path)
    if not os.path.exists(full):
        return [(category, '%s file "%s" does not exist' % (label, full))]
    if os.path.isdir(full):
        return [(category, '%s path "%s" is a directory' % (label, full))]
    return []


def filter_programs(f):
    """The program named by each cupsFilter and cupsFilter2 line."""
    programs = []
    for keyword, _, value in f.keywords:
        if keyword == 'cupsFilter':
            fields = value.split(None, 2)
        elif keyword == 'cupsFilter2':
            fields = value.split(None, 3)
        else:
            continue
        programs.append(fields[-1].strip() if len(fields) > 2 else '')
    return programs


def check_filters(f, root):
    issues = []
    for program in filter_programs(f):
        if not program:
            issues.append((WARN_FILTERS,
                           'cupsFilter contains an empty program path'))
            continue
        path = program.split()[0]
        if not os.path.isabs(path):
            issues.append((WARN_FILTERS,
                           'Filter path %s is not absolute' % path))
            continue
        issues.extend(_check_file(WARN_FILTERS, 'cupsFilter', path, root))
    return issues


def check_profiles(f, root):
    issues = []
    for value in f.values('cupsICCProfile'):
        fields = value.split()
        if not fields:
            continue
        path = fields[-1]
        if not os.path.isabs(path):
            issues.append((WARN_PROFILES,
                           'cupsICCProfile path %s is not absolute' % path))
            continue
        issues.extend(_check_file(WARN_PROFILES, 'cupsICCProfile', path,
                                  root))
    return issues


def check_filename(f, path):
    if path == '-':
        return []
    fields = f.value('PCFileName').split()
    if not fields:
        return []
    actual = os.path.basename(path)
    if fields[0] == actual:
        return []
    return [(WARN_FILENAME, 'PCFileName "%s" does not match file name "%s"' %
             (fields[0], actual))]


def validate(f, path, options):
    """Return the (category, message) issues found in an open PPD."""
    issues = []
    issues.extend(check_defaults(f))
    issues.extend(check_constraints(f))
    issues.extend(check_sizes(f))
    issues.extend(check_duplex(f))
    issues.extend(check_translations(f))
    issues.extend(check_filters(f, options.root))
    issues.extend(check_profiles(f, options.root))
    if not options.relaxed:
        issues.extend(check_filename(f, path))
    return issues


def write_summary(f, out):
    def value(keyword):
        text = f.value(keyword) or '(none)'
        return text.encode('utf-8', 'replace').decode('utf-8')

    out.write('\n')
    out.write('    FILE SUMMARY\n')
    out.write('        NickName = %s\n' % value('NickName'))
    out.write('        ModelName = %s\n' % value('ModelName'))
    out.write('        Manufacturer = %s\n' % value('Manufacturer'))
    out.write('        LanguageVersion = %s\n' % value('LanguageVersion'))
    out.write('        ColorDevice = %s\n' %
              str(_same(f.value('ColorDevice'), 'true')).lower())

    if not f.options:
        return
    out.write('    OPTIONS\n')
    for keyword in sorted(f.options):
        default, names = f.options[keyword]
        out.write('        %s (default=%s): %s\n' %
                  (keyword, default.strip() or '(none)', ', '.join(names)))


def check_file(path, options, out, read_stdin):
    """Check one file, writing its report to out; returns an exit status."""
    if options.verbose >= 0:
        out.write('%s:' % ('(stdin)' if path == '-' else path))

    def fail(message):
        if options.verbose >= 0:
            if options.verbose == 0:
                out.write(' FAIL')
            out.write('\n      **FAIL**  %s\n' % message)

    try:
        data = decompress(read_stdin() if path == '-' else read_ppd(path))
        if not has_header(data):
            fail('Missing required *PPD-Adobe header.')
            return EXIT_PPD_FORMAT
        f = PPDFile(open_ppd(data, options.relaxed), data)
    except LoadError as e:
        fail(e)
        return e.status

    errors = []
    warnings = []
    for category, message in validate(f, path, options):
        if options.ignore & category:
            continue
        if options.warn & category:
            warnings.append(message)
        else:
            errors.append(message)

    if options.verbose >= 0:
        if options.verbose == 0:
            out.write(' FAIL' if errors else ' PASS')
        else:
            out.write('\n    DETAILED CONFORMANCE TEST RESULTS\n')
        for message in errors:
            out.write('\n      **FAIL**  %s' % message)
        for message in warnings:
            out.write('\n        WARN    %s' % message)
        if options.verbose >= 2:
            write_summary(f, out)
        out.write('\n')
    return EXIT_CONFORMANCE if errors else EXIT_OK


def run(options, out=None, stdin=None):
    """Check every file named in options; returns the worst exit status.

    Standard input is read once however many times "-" is named.
    """
    out = out or sys.stdout
    stdin = stdin or sys.stdin.buffer
    cached = []

    def read_stdin():
        if not cached:
            try:
                cached.append(stdin.read())
            except OSError as e:
                raise LoadError(EXIT_FILE_OPEN,
                                'Unable to open PPD file - %s.' % e)
        return cached[0]

    status = EXIT_OK
    for i, path in enumerate(options.files):
        if i > 0 and options.verbose >= 0:
            out.write('\n')
        status = max(status, check_file(path, options, out, read_stdin))
    return status


def _main(args):
    args.pop(0)
    common.setup_logging()

    try:
        options = parse_args(args)
    except common.HelpRequested:
        sys.stdout.write(USAGE)
        return EXIT_USAGE
    except common.UsageError as e:
        common.fail('cupstestppd', e)

    if not options.files:
        sys.stdout.write(USAGE)
        return EXIT_USAGE
    return run(options)


def main():
    sys.exit(_main(sys.argv)) # pragma: nocover


if __name__ == '__main__':
    main() # pragma: nocover
