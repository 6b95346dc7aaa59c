import mypycheck as _chk; _chk.check(__file__)

from typing import *

class GoRunError(Exception):
    pass

class ParseError(GoRunError, ValueError):
    pass

class NoSourcesFound(GoRunError, LookupError):
    pass

class ConfigError(GoRunError, ValueError):
    pass

class ImportCycleError(GoRunError):
    cycle: List[str]

    def __init__(self, cycle: List[str]) -> None:
        super().__init__(f"import cycle: {' -> '.join(cycle)}")
        self.cycle = cycle

class CacheCollisionError(GoRunError):
    pass

class ToolchainFailure(GoRunError, RuntimeError):
    cmd: List[str]
    returncode: Optional[int]

    def __init__(self, cmd: List[str], returncode: Optional[int], msg: str='') -> None:
        if msg == '':
            msg = f"{cmd[0]} Exit({returncode})"
        super().__init__(msg)
        self.cmd = cmd
        self.returncode = returncode
