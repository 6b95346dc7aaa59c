import mypycheck as _chk; _chk.check(__file__)

import os
import sys

from pathlib import Path
from typing import *

from . import sourcefile, toolchain

class BuildEnv:
    config: 'cfg.Config'
    base_dir: Path
    source_files: Dict[Path, 'sourcefile.SourceFile']
    ignored: Set[Path]
    targets: Dict[str, 'target.Target']

    def __init__(self, config: 'cfg.Config', base_dir: Union[str, Path]='') -> None:
        self.config = config
        self.base_dir = self.canonical(base_dir)
        self.source_files = {}
        self.ignored = set()
        self.targets = {}

    @property
    def flags(self) -> 'cfg.Flags':
        return self.config.flags

    @property
    def verbosity(self) -> int:
        return self.config.verbosity

    def canonical(self, path: Union[str, Path]) -> Path:
        return Path(os.path.abspath(str(path)))

    def ignore(self, path: Union[str, Path]) -> None:
        self.ignored.add(self.canonical(path))

    def get_source(self, path: Union[str, Path]) -> Optional['sourcefile.SourceFile']:
        path = self.canonical(path)
        if path in self.ignored:
            return None
        if path in self.source_files:
            return self.source_files[path]
        src = sourcefile.SourceFile.load(path)
        self.source_files[path] = src
        return src

    def get_target(self, import_id: str) -> 'target.Target':
        """Resolved target for an import, shared by every importer."""
        if import_id in self.targets:
            t = self.targets[import_id]
            if t.resolving:
                stack = self.resolve_stack()
                raise errors.ImportCycleError(stack[stack.index(import_id):] + [import_id])
            return t
        name = import_id.rsplit('/', 1)[-1]
        t = target.Target(self, name, import_id)
        self.targets[import_id] = t
        t.resolve()
        return t

    def main_target(self, name: str, src: 'sourcefile.SourceFile') -> 'target.Target':
        if src.package_name != 'main':
            raise errors.ParseError(f"{src.path}: package {src.package_name} is not a main package")
        t = target.Target(self, name, 'main')
        t.sources[src.path] = src
        t.sources_pinned = True
        self.targets['main'] = t
        return t

    def resolve_stack(self) -> List[str]:
        return [t.import_id for t in self.targets.values() if t.resolving]

    def installed_archive(self, import_id: str) -> Path:
        return self.config.pkg_dir / f"{import_id}.a"

    def file_exists(self, path: Union[str, Path]) -> bool:
        return os.path.lexists(path)

    def list_files(self, path: Union[str, Path]) -> List[Path]:
        try:
            with os.scandir(str(path)) as it:
                names = [e.name for e in it if not e.is_dir()]
        except (FileNotFoundError, NotADirectoryError):
            return []
        return [Path(path) / n for n in sorted(names)]

    def mtime_ns(self, path: Union[str, Path]) -> int:
        return os.lstat(path).st_mtime_ns

    def mkdir(self, path: Path) -> None:
        if path.exists():
            return

        path.mkdir(parents=True, exist_ok=True)

    def remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as err:
            self.warn(err)

    def warn(self, err: Union[str, Exception]) -> None:
        print(f"Can't {err}", file=sys.stderr)

    def info(self, msg: str) -> None:
        if self.verbosity > 0:
            print(msg, file=sys.stderr)

    def where_is(self, name: str) -> Optional[Path]:
        if os.sep in name:
            return Path(name) if self.file_exists(name) else None
        for d in self.config.search_path:
            cmd = d / name
            if self.file_exists(cmd):
                return cmd
        return None

    def exec(self, cmd: Sequence[str], cwd: Union[str, Path]='.') -> None:
        toolchain.run(cmd, cwd=cwd, verbosity=self.verbosity)

# circular ref for type hints
from . import config as cfg
from . import errors, target
