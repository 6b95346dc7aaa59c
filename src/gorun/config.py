import mypycheck as _chk; _chk.check(__file__)

import os
import platform
import posixpath

from pathlib import Path
from typing import *

from .errors import ConfigError

arch_letters: Dict[str, str] = {
    'amd64': '6',
    '386': '8',
    'arm': '5',
    'arm64': '7',
}

def host_arch() -> str:
    machine = platform.machine().lower()
    if machine in ('x86_64', 'amd64'):
        return 'amd64'
    elif machine in ('i386', 'i486', 'i586', 'i686', 'x86'):
        return '386'
    elif machine in ('aarch64', 'arm64'):
        return 'arm64'
    elif machine.startswith('arm'):
        return 'arm'
    return machine

class Flags:
    encache: bool
    debug: bool
    rebuild: bool
    clean_only: bool
    norun: bool
    run_only: bool
    disable_optimiz: bool
    disallow_unsafe: bool
    extra_symbol: bool
    verbose: bool
    version: bool

    def __init__(self, *, encache: bool=False, debug: bool=False, rebuild: bool=False,
                 clean_only: bool=False, norun: bool=False, run_only: bool=False,
                 disable_optimiz: bool=False, disallow_unsafe: bool=False,
                 extra_symbol: bool=False, verbose: bool=False, version: bool=False) -> None:
        self.encache = encache
        self.debug = debug
        self.rebuild = rebuild
        self.clean_only = clean_only
        self.norun = norun
        self.run_only = run_only
        self.disable_optimiz = disable_optimiz
        self.disallow_unsafe = disallow_unsafe
        self.extra_symbol = extra_symbol
        self.verbose = verbose
        self.version = version

    @property
    def build_mode(self) -> str:
        return 'debug' if self.debug else 'release'

class Config:
    """Toolchain and environment settings, fixed for the lifetime of a run.

    cache_dir is kept as a string: a leading './' selects mirrored cache
    directories, any other non-empty value selects hashed ones, and '' turns
    caching off.
    """
    flags: Flags
    goos: str
    goarch: str
    arch: str
    goroot: Path
    pkg_dir: Path
    gobin: str
    cache_dir: str
    gdb: str
    search_path: List[Path]

    def __init__(self, flags: Flags, *, goos: str, goarch: str, goroot: Union[str, Path],
                 gobin: str='', cache_dir: str='', gdb: str='gdb',
                 search_path: Optional[Sequence[Union[str, Path]]]=None,
                 pkg_dir: Optional[Union[str, Path]]=None) -> None:
        if goarch not in arch_letters:
            raise ConfigError(f"unsupported GOARCH: {goarch}")
        self.flags = flags
        self.goos = goos
        self.goarch = goarch
        self.arch = arch_letters[goarch]
        self.goroot = Path(goroot)
        if pkg_dir is None:
            self.pkg_dir = self.goroot / 'pkg' / f"{goos}_{goarch}"
        else:
            self.pkg_dir = Path(pkg_dir)
        self.gobin = gobin
        self.cache_dir = cache_dir
        self.gdb = gdb
        self.search_path = [Path(p) for p in (search_path or [])]

    @classmethod
    def from_environ(cls, flags: Flags, environ: Optional[Mapping[str, str]]=None) -> 'Config':
        if environ is None:
            environ = os.environ

        goos = environ.get('GOOS', '') or platform.system().lower()
        goarch = environ.get('GOARCH', '') or host_arch()
        goroot = environ.get('GOROOT', '') or '/usr/local/go'
        path = environ.get('PATH', '')
        search_path = [p for p in path.split(os.pathsep) if p != '']

        return cls(flags,
                   goos=goos,
                   goarch=goarch,
                   goroot=goroot,
                   gobin=environ.get('GOBIN', ''),
                   cache_dir=cls.clean_cache_dir(environ.get('GOCACHE', ''), flags.encache,
                                                 environ.get('HOME', '')),
                   gdb=environ.get('GOGDB', '') or 'gdb',
                   search_path=search_path)

    @staticmethod
    def clean_cache_dir(cache_dir: str, encache: bool, home: str) -> str:
        if cache_dir == '' and encache:
            cache_dir = '.'

        if cache_dir == '.':
            return './.go'
        elif cache_dir == '':
            return ''

        if cache_dir.startswith('./'):
            # keep the prefix, it marks a mirrored cache
            return './' + posixpath.normpath(cache_dir[2:])
        cache_dir = posixpath.normpath(cache_dir)
        if cache_dir.startswith('~'):
            cache_dir = posixpath.join(home, cache_dir[1:].lstrip('/'))
        return cache_dir

    @property
    def verbosity(self) -> int:
        return 1 if self.flags.verbose else 0

    @property
    def compiler(self) -> str:
        return self.tool(f"{self.arch}g")

    @property
    def linker(self) -> str:
        return self.tool(f"{self.arch}l")

    @property
    def packer(self) -> str:
        return self.tool('gopack')

    def tool(self, name: str) -> str:
        if self.gobin == '':
            return name
        return str(Path(self.gobin) / name)
