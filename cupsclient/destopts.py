"""Per-user destination options, as kept in ~/.cups/lpoptions.

The file holds one record per line:

  Default Office media=A4
  Dest Office/draft copies=3 job-sheets='none none'

Destinations are keyed case-insensitively as "dest" or
"dest/instance"; the spelling last written is kept for saving.
"""


import logging
import os


logger = logging.getLogger(__name__)


LIFTED_HINTS = ('copies', 'job-priority', 'job-hold-until',
                'document-format', 'raw')


def default_path():
    home = os.environ.get('HOME', '')
    if not home:
        return '.lpoptions'
    return os.path.join(home, '.cups', 'lpoptions')


def tokenize(text):
    """Split text on whitespace, honouring quotes and backslashes.

    "media=A4 job-sheets='none none'" gives
    ['media=A4', 'job-sheets=none none'].
    """
    tokens = []
    current = []
    pending = False
    quote = None
    escaped = False
    for ch in text:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == '\\':
            escaped = True
            pending = True
            continue
        if quote:
            if ch == quote:
                quote = None
            else:
                current.append(ch)
            continue
        if ch in '\'"':
            quote = ch
            pending = True
            continue
        if ch.isspace():
            if current or pending:
                tokens.append(''.join(current))
            current = []
            pending = False
            continue
        current.append(ch)
    if current or pending:
        tokens.append(''.join(current))
    return tokens


def split_option(token):
    name, sep, value = token.partition('=')
    return name.strip(), value.strip() if sep else ''


def parse_options(text):
    """Parse "a=1 b 'c=x y'" into a dict; bare names map to 'true'."""
    options = {}
    for token in tokenize(text):
        name, value = split_option(token)
        if not name:
            continue
        options[name] = value or 'true'
    return options


def quote_value(value):
    if not any(ch.isspace() for ch in value):
        return value
    return "'%s'" % value.replace("'", "\\'")


def format_options(options):
    """Render options as sorted name=value tokens."""
    tokens = []
    for name in sorted(options):
        value = options[name]
        if value == '':
            tokens.append(name)
        else:
            tokens.append('%s=%s' % (name, quote_value(value)))
    return ' '.join(tokens)


def split_destination(value):
    """Split "dest/instance" into its parts; instance may be ''."""
    value = value.strip()
    name, sep, instance = value.partition('/')
    if sep and name and instance:
        return name, instance
    return value, ''


def lift_hints(options):
    """Pull the job hints that have typed IPP homes out of options.

    Returns:
      A tuple of (hints, rest). hints may hold 'copies' and
      'job-priority' as positive ints, 'job-hold-until' and
      'document-format' as strings and 'raw' as True; rest is a copy of
      options without the lifted names.
    """
    rest = dict(options)
    hints = {}
    for name in ('copies', 'job-priority'):
        value = rest.get(name, '').strip()
        if value:
            try:
                n = int(value)
            except ValueError:
                continue
            if n > 0:
                hints[name] = n
                del rest[name]
    for name in ('job-hold-until', 'document-format'):
        value = rest.get(name, '').strip()
        if value:
            hints[name] = value
            del rest[name]
    raw = rest.get('raw', '').strip().lower()
    if raw in ('1', 'true', 'yes', 'on'):
        hints['raw'] = True
        del rest['raw']
    return hints, rest


class OptionsStore(object):
    """The in-memory form of an lpoptions file."""

    def __init__(self, path=None):
        self.path = path or default_path()
        self.default = ''
        self.dests = {}
        self._names = {}

    @classmethod
    def load(cls, path=None):
        """Read path, or the user's lpoptions file.

        A missing file gives an empty store.
        """
        store = cls(path)
        try:
            with open(store.path) as f:
                text = f.read()
        except FileNotFoundError:
            return store
        store.parse(text)
        return store

    def parse(self, text):
        seen_default = False
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            tokens = tokenize(line)
            if len(tokens) < 2:
                continue
            kind = tokens[0].lower()
            if kind not in ('default', 'dest', 'printer'):
                continue
            dest = tokens[1]
            options = {}
            for token in tokens[2:]:
                name, value = split_option(token)
                if name:
                    options[name] = value or 'true'
            self._names[dest.lower()] = dest
            self.dests[dest.lower()] = options
            if kind == 'default' and not seen_default:
                self.default = dest
                seen_default = True

    def has(self, dest):
        return dest.strip().lower() in self.dests

    def options(self, dest):
        """Return a copy of the options stored for dest[/instance]."""
        return dict(self.dests.get(dest.strip().lower(), {}))

    def ensure(self, dest):
        key = dest.strip().lower()
        self._names[key] = dest.strip()
        return self.dests.setdefault(key, {})

    def set_option(self, dest, name, value):
        self.ensure(dest)[name] = value or 'true'

    def remove_option(self, dest, name):
        options = self.dests.get(dest.strip().lower())
        if not options:
            return
        for existing in list(options):
            if existing.lower() == name.strip().lower():
                del options[existing]

    def set_default(self, dest):
        self.ensure(dest)
        self.default = dest.strip()

    def remove_destination(self, target):
        """Forget target; a bare name also removes all its instances."""
        name, instance = split_destination(target)
        if not name:
            return
        if instance:
            doomed = [target.strip().lower()]
        else:
            prefix = name.lower() + '/'
            doomed = [key for key in self.dests
                      if key == name.lower() or key.startswith(prefix)]
        for key in doomed:
            self.dests.pop(key, None)
            self._names.pop(key, None)
            if self.default.lower() == key:
                self.default = ''

    def merge(self, dest, instance='', explicit=None, server_defaults=None):
        """Combine option sources for a submission.

        Later sources win: server defaults, then the destination's
        options, then the instance's, then explicit -o options.
        """
        merged = dict(server_defaults or {})
        merged.update(self.options(dest))
        if instance:
            merged.update(self.options('%s/%s' % (dest, instance)))
        merged.update(explicit or {})
        return merged

    def display_name(self, key):
        return self._names.get(key, key)

    def format(self):
        lines = []
        default_key = self.default.lower()
        if self.default:
            line = 'Default %s' % self.default
            options = self.dests.get(default_key, {})
            if options:
                line += ' ' + format_options(options)
            lines.append(line)
        others = sorted((self.display_name(key), key) for key in self.dests
                        if key != default_key)
        for name, key in others:
            line = 'Dest %s' % name
            if self.dests[key]:
                line += ' ' + format_options(self.dests[key])
            lines.append(line)
        if not lines:
            return ''
        return '\n'.join(lines) + '\n'

    def save(self):
        """Rewrite the whole file."""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        with open(self.path, 'w') as f:
            f.write(self.format())
        os.chmod(self.path, 0o644)
        logger.debug('wrote %s', self.path)
