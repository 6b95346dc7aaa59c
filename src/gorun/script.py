import mypycheck as _chk; _chk.check(__file__)

from pathlib import Path
from typing import *

header_marker = ord('#')

def strip_header(data: bytes) -> Tuple[bytes, int]:
    """Drops the leading '#' lines of a script.

    Returns the remaining bytes and the number of header lines removed. Lines
    are LF terminated; horizontal whitespace before the marker is allowed.
    When the first non-blank line does not start with the marker the data is
    returned untouched with a count of 0.
    """
    header_lines = 0
    col = 0
    for i, c in enumerate(data):
        if c == 0x0a:
            col = 0
            continue
        elif c == 0x09 or c == 0x20:
            continue

        if col == 0:
            if c == header_marker:
                header_lines += 1
            elif header_lines > 0:
                return data[i:], header_lines
            else:
                return data, 0
        col += 1

    if header_lines == 0:
        return data, 0
    return b'', header_lines

def temp_path(env: 'buildenv.BuildEnv', path: Path) -> Path:
    tmp = path.parent / f"{path.name}.tmp"
    i = 1
    while env.file_exists(tmp):
        tmp = path.parent / f"{path.name}.{i}"
        i += 1
    return tmp

def get_runnable_source(env: 'buildenv.BuildEnv', path: Union[str, Path]) -> 'sourcefile.SourceFile':
    """Source record for an entry file, stripping a script header if present.

    A stripped script is written next to the original as '<name>.tmp' (or
    '<name>.<n>' on collision) and the returned record points at that copy.
    The caller removes the copy once the build is done.
    """
    path = env.canonical(path)
    data = path.read_bytes()
    body, header_lines = strip_header(data)
    if header_lines == 0:
        src = env.get_source(path)
        if src is None:
            raise FileNotFoundError(f"ignored source file: {path}")
        return src

    tmp = temp_path(env, path)
    try:
        with tmp.open('wb') as f:
            f.write(body)
    finally:
        env.ignore(path)

    try:
        src = env.get_source(tmp)
    except Exception:
        tmp.unlink()
        raise
    assert src is not None
    src = src.with_mtime(path.lstat().st_mtime_ns)
    env.source_files[src.path] = src
    return src

from . import buildenv, sourcefile
