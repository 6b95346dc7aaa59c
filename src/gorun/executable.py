import mypycheck as _chk; _chk.check(__file__)

from pathlib import Path
from typing import *

from . import toolchain
from .errors import ConfigError

class Executable:
    env: 'buildenv.BuildEnv'
    target: 'targ.Target'
    path: Path

    def __init__(self, env: 'buildenv.BuildEnv', target: 'targ.Target') -> None:
        assert target.is_main
        self.env = env
        self.target = target
        self.path = target.artifact_path

    def command(self, args: Sequence[str]) -> List[str]:
        if not self.env.flags.debug:
            return [str(self.path)] + list(args)

        gdb = self.env.where_is(self.env.config.gdb)
        if gdb is None:
            raise ConfigError(f"find {self.env.config.gdb}.")
        return [str(gdb), '--args', str(self.path)] + list(args)

    def run(self, args: Sequence[str]) -> int:
        if not self.env.file_exists(self.path):
            raise FileNotFoundError(f"no binary at {self.path}")
        return toolchain.spawn(self.command(args), verbosity=self.env.verbosity)

from . import buildenv
from . import target as targ
