import mypycheck as _chk; _chk.check(__file__)

import hashlib
import posixpath

from pathlib import Path
from typing import *

from . import toolchain
from .errors import CacheCollisionError, NoSourcesFound
from .sourcefile import SourceFile, is_source_name

cache_owner_file = 'SOURCE'

class Target:
    env: 'buildenv.BuildEnv'
    name: str
    import_id: str
    object_dir: Optional[Path]
    sources: Dict[Path, SourceFile]
    deps: List['Target']
    is_local: bool
    dirty: bool
    sources_pinned: bool
    resolving: bool
    _built: Optional[bool]

    def __init__(self, env: 'buildenv.BuildEnv', name: str, import_id: str) -> None:
        self.env = env
        self.name = name
        self.import_id = import_id
        self.object_dir = None
        self.sources = {}
        self.deps = []
        self.is_local = True
        self.dirty = False
        self.sources_pinned = False
        self.resolving = False
        self._built = None

    def __repr__(self) -> str:
        return f"Target({self.import_id!r}, local={self.is_local}, dirty={self.dirty})"

    @property
    def is_main(self) -> bool:
        return self.import_id == 'main'

    @property
    def package_name(self) -> str:
        return posixpath.basename(self.import_id)

    @property
    def rel_dir(self) -> str:
        return posixpath.dirname(self.import_id)

    @property
    def source_dir(self) -> Path:
        return self.env.base_dir / self.rel_dir

    @property
    def object_path(self) -> Path:
        assert self.object_dir is not None
        return self.object_dir / f"{self.name}.{self.env.config.arch}"

    @property
    def artifact_path(self) -> Path:
        assert self.object_dir is not None
        if self.is_main:
            return self.object_dir / self.name
        return self.object_dir / f"{self.name}.a"

    def resolve(self) -> None:
        self.resolving = True
        try:
            self._resolve()
        finally:
            self.resolving = False

    def _resolve(self) -> None:
        env = self.env

        # installed packages come prebuilt with their own deps linked in
        if not self.is_main:
            archive = env.installed_archive(self.import_id)
            if env.file_exists(archive):
                self.object_dir = archive.parent
                self.is_local = False
                self.dirty = False
                return

        self.is_local = True
        src_dir = self.source_dir
        if not self.sources_pinned:
            self._scan(src_dir)

        if len(self.sources) == 0:
            raise NoSourcesFound(f"collect source of {self.import_id}: "
                                 f"no package {self.package_name} sources in {src_dir}")

        self.object_dir = self._object_dir(src_dir)
        self._maintain_cache()
        self.dirty = self._is_stale()

        self.deps = []
        for path in sorted(self.sources):
            for import_id in self.sources[path].imports:
                self._add_dep(import_id)

    def _scan(self, src_dir: Path) -> None:
        for path in self.env.list_files(src_dir):
            if not is_source_name(path.name) or path in self.sources:
                continue
            src = self.env.get_source(path)
            if src is not None and src.package_name == self.package_name:
                self.sources[src.path] = src

    def _add_dep(self, import_id: str) -> None:
        # a repeated import moves to the back, deps double as -I/-L order
        for i, dep in enumerate(self.deps):
            if dep.import_id == import_id:
                self.deps.append(self.deps.pop(i))
                return

        dep = self.env.get_target(import_id)
        if dep.is_local:
            self.deps.append(dep)

    def _object_dir(self, src_dir: Path) -> Path:
        cache_dir = self.env.config.cache_dir
        if cache_dir == '':
            return src_dir

        if cache_dir.startswith('./'):
            obj_dir: Path = self.env.base_dir / cache_dir[2:] / self.rel_dir
        else:
            digest = hashlib.md5(str(src_dir).encode('utf-8')).hexdigest()
            obj_dir = self.env.canonical(cache_dir) / digest
            self._claim_cache(obj_dir, src_dir)
        return obj_dir / self.env.flags.build_mode

    def _claim_cache(self, hash_dir: Path, src_dir: Path) -> None:
        owner_file = hash_dir / cache_owner_file
        if owner_file.exists():
            owner = owner_file.read_text(encoding='utf-8').strip()
            if owner != str(src_dir):
                raise CacheCollisionError(f"cache directory {hash_dir} belongs to {owner}, not {src_dir}")
        elif not self.env.flags.clean_only:
            self.env.mkdir(hash_dir)
            owner_file.write_text(f"{src_dir}\n", encoding='utf-8')

    def _maintain_cache(self) -> None:
        assert self.object_dir is not None
        flags = self.env.flags
        if not self.env.file_exists(self.object_dir):
            if not flags.clean_only:
                self.env.mkdir(self.object_dir)
        elif flags.clean_only or flags.rebuild:
            for path in (self.object_path, self.artifact_path):
                self.env.info(f"remove {path}")
                self.env.remove(path)

    def _is_stale(self) -> bool:
        obj = self.object_path
        if not self.env.file_exists(obj):
            return True
        obj_mtime = self.env.mtime_ns(obj)
        return any(src.mtime_ns > obj_mtime for src in self.sources.values())

    def _dep_dirs(self) -> List[Path]:
        dirs: List[Path] = []
        for dep in self.deps:
            assert dep.object_dir is not None
            dirs.append(dep.object_dir)
        return dirs

    def build(self) -> bool:
        """Builds deps first, then this target if stale.

        Returns True when this target's artifact was rebuilt. A rebuilt
        dependency forces a rebuild here. The result is remembered so a
        package shared by several importers is built once.
        """
        if self._built is not None:
            return self._built

        for dep in self.deps:
            if dep.build():
                self.dirty = True

        if not self.dirty:
            self.env.info(f"{self.import_id}: up to date")
            self._built = False
            return False
        if self.object_dir is None:
            return False

        env = self.env
        config = env.config
        flags = env.flags
        env.info(f"{self.import_id}: building")

        dep_dirs = self._dep_dirs()
        env.exec(toolchain.compile_cmd(config.compiler, self.object_path, dep_dirs,
                                       sorted(self.sources),
                                       no_optimize=flags.disable_optimiz or flags.debug,
                                       disallow_unsafe=flags.disallow_unsafe))

        if self.is_main:
            env.exec(toolchain.link_cmd(config.linker, self.artifact_path, dep_dirs, self.object_path,
                                        extra_symbols=flags.extra_symbol or flags.debug))
        else:
            env.exec(toolchain.pack_cmd(config.packer, self.artifact_path, self.object_path))

        self.dirty = False
        self._built = True
        return True

from . import buildenv
