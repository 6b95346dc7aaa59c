import mypycheck as _chk; _chk.check(__file__)

import shlex as _sh
import signal as _sig
import subprocess as _sp
import sys as _sys

from pathlib import Path as _Path
import typing as _t

from .errors import ToolchainFailure

def echo(cmd: _t.Sequence[str], verbosity: int) -> None:
    if verbosity > 0:
        print(*[_sh.quote(c) for c in cmd], file=_sys.stderr)

def compile_cmd(compiler: str, obj_path: _Path, include_dirs: _t.Sequence[_Path],
                src_paths: _t.Sequence[_Path], *, no_optimize: bool=False,
                disallow_unsafe: bool=False) -> _t.List[str]:
    cmd = [compiler]
    if no_optimize:
        cmd += ['-N']
    if disallow_unsafe:
        cmd += ['-u']
    cmd += ['-o', str(obj_path)]
    for d in include_dirs:
        cmd += ['-I', str(d)]
    cmd += [str(p) for p in src_paths]
    return cmd

def link_cmd(linker: str, exe_path: _Path, lib_dirs: _t.Sequence[_Path], obj_path: _Path,
             *, extra_symbols: bool=False) -> _t.List[str]:
    cmd = [linker]
    if extra_symbols:
        cmd += ['-e']
    cmd += ['-o', str(exe_path)]
    for d in lib_dirs:
        cmd += ['-L', str(d)]
    cmd += [str(obj_path)]
    return cmd

def pack_cmd(packer: str, archive_path: _Path, obj_path: _Path) -> _t.List[str]:
    return [packer, 'grc', str(archive_path), str(obj_path)]

def exit_status(returncode: int) -> int:
    # killed by a signal, report it the way a shell would
    if returncode < 0:
        return 128 - returncode
    return returncode

def run(cmd: _t.Sequence[str], *, cwd: _t.Union[str, _Path]='.', verbosity: int=0) -> None:
    """Runs a toolchain step, its output goes straight to our stdout/stderr."""
    echo(cmd, verbosity)
    try:
        returncode = _sp.call(list(cmd), cwd=str(cwd), stdin=_sp.DEVNULL)
    except OSError as err:
        raise ToolchainFailure(list(cmd), None, f"{cmd[0]}: {err.strerror or err}") from err
    if returncode != 0:
        raise ToolchainFailure(list(cmd), exit_status(returncode))

def spawn(cmd: _t.Sequence[str], *, cwd: _t.Union[str, _Path]='.', verbosity: int=0) -> int:
    """Runs a program with inherited stdio and returns its exit status."""
    echo(cmd, verbosity)
    try:
        proc = _sp.Popen(list(cmd), cwd=str(cwd))
    except OSError as err:
        raise ToolchainFailure(list(cmd), None, f"{cmd[0]}: {err.strerror or err}") from err
    # the child owns the terminal, let it see ^C
    prev = _sig.signal(_sig.SIGINT, _sig.SIG_IGN)
    try:
        returncode = proc.wait()
    finally:
        _sig.signal(_sig.SIGINT, prev)
    return exit_status(returncode)
