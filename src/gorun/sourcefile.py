import mypycheck as _chk; _chk.check(__file__)

import posixpath
import re

from pathlib import Path
from typing import *

from .errors import ParseError

source_suffix = '.go'
test_suffix = '_test.go'

# only what can appear before the first declaration after the imports
token_re = re.compile(r'''
      (?P<ws>[ \t\r\n]+)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    | (?P<string>"(?:[^"\\\n]|\\.)*")
    | (?P<raw>`[^`]*`)
    | (?P<ident>[^\W\d]\w*)
    | (?P<punct>[().;])
''', flags=re.VERBOSE | re.DOTALL)

escape_re = re.compile(r'\\(?:([abfnrtv\\\'"])|x([0-9a-fA-F]{2})|([0-7]{3})|u([0-9a-fA-F]{4})|U([0-9a-fA-F]{8})|(.?))',
                       flags=re.DOTALL)

simple_escapes: Dict[str, str] = {
    'a': '\a', 'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t', 'v': '\v',
    '\\': '\\', "'": "'", '"': '"',
}

Token = Tuple[str, str, int]

def is_source_name(name: str) -> bool:
    return name.endswith(source_suffix) and not name.endswith(test_suffix)

def tokens(text: str) -> Iterator[Token]:
    pos = 0
    while pos < len(text):
        m = token_re.match(text, pos)
        if m is None:
            yield ('other', text[pos], pos)
            pos += 1
            continue
        kind = m.lastgroup
        assert kind is not None
        if kind != 'ws' and kind != 'comment':
            yield (kind, m.group(), pos)
        pos = m.end()
    yield ('eof', '', pos)

def unquote(literal: str) -> str:
    if literal.startswith('`'):
        return literal[1:-1].replace('\r', '')

    def repl(m: re.Match[str]) -> str:
        if m.group(1) is not None:
            return simple_escapes[m.group(1)]
        for group, base in ((2, 16), (3, 8), (4, 16), (5, 16)):
            if m.group(group) is not None:
                return chr(int(m.group(group), base))
        raise ValueError(f"unknown escape sequence: \\{m.group(6)}")

    return escape_re.sub(repl, literal[1:-1])

def clean_import(literal: str) -> str:
    name = unquote(literal)
    if name == '':
        raise ValueError('empty import path')
    return posixpath.normpath(name)

class HeaderParser:
    """Reads the package clause and the import declarations of a source file.

    Parsing stops at the first token that cannot continue the import block,
    so anything after the imports is never looked at.
    """
    path: Path
    text: str
    _tokens: Iterator[Token]
    _tok: Token

    def __init__(self, path: Path, text: str) -> None:
        self.path = path
        self.text = text
        self._tokens = tokens(text)
        self._tok = next(self._tokens)

    def _next(self) -> Token:
        tok = self._tok
        if tok[0] != 'eof':
            self._tok = next(self._tokens)
        return tok

    def _error(self, msg: str, tok: Token) -> ParseError:
        line = self.text.count('\n', 0, tok[2]) + 1
        found = tok[1] if tok[0] != 'eof' else 'EOF'
        return ParseError(f"{self.path}:{line}: {msg}, found '{found}'")

    def _skip_semi(self) -> None:
        if self._tok[:2] == ('punct', ';'):
            self._next()

    def parse(self) -> Tuple[str, List[str]]:
        tok = self._next()
        if tok[:2] != ('ident', 'package'):
            raise self._error("expected 'package'", tok)
        tok = self._next()
        if tok[0] != 'ident' or tok[1] == '_':
            raise self._error('expected package name', tok)
        package_name = tok[1]
        self._skip_semi()

        imports: List[str] = []
        while self._tok[:2] == ('ident', 'import'):
            self._next()
            if self._tok[:2] == ('punct', '('):
                self._next()
                while self._tok[:2] != ('punct', ')'):
                    imports.append(self._import_spec())
                    self._skip_semi()
                self._next()
            else:
                imports.append(self._import_spec())
            self._skip_semi()
        return package_name, imports

    def _import_spec(self) -> str:
        if self._tok[0] == 'ident' or self._tok[:2] == ('punct', '.'):
            self._next()
        tok = self._next()
        if tok[0] != 'string' and tok[0] != 'raw':
            raise self._error('expected import path', tok)
        try:
            return clean_import(tok[1])
        except ValueError as err:
            raise self._error(f"invalid import path ({err})", tok) from err

class SourceFile:
    path: Path
    package_name: str
    imports: Tuple[str, ...]
    mtime_ns: int

    def __init__(self, path: Path, package_name: str, imports: Iterable[str], mtime_ns: int) -> None:
        self.path = path
        self.package_name = package_name
        self.imports = tuple(imports)
        self.mtime_ns = mtime_ns

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'SourceFile':
        path = Path(path)
        mtime_ns = path.lstat().st_mtime_ns
        with path.open('rb') as f:
            text = f.read().decode('utf-8', errors='replace')
        package_name, imports = HeaderParser(path, text).parse()
        return cls(path, package_name, imports, mtime_ns)

    def with_mtime(self, mtime_ns: int) -> 'SourceFile':
        return SourceFile(self.path, self.package_name, self.imports, mtime_ns)

    def __repr__(self) -> str:
        return f"SourceFile({str(self.path)!r}, package={self.package_name!r}, imports={list(self.imports)!r})"
