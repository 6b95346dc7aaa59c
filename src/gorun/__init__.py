import mypycheck as _chk; _chk.check(__file__)

import argparse
import sys

from pathlib import Path
from typing import *

from .buildenv import BuildEnv
from .config import Config, Flags
from .errors import ConfigError, GoRunError
from .executable import Executable
from .script import get_runnable_source, strip_header
from .sourcefile import SourceFile
from .target import Target

__version__ = '0.1.0'

flag_options: List[Tuple[str, str, str]] = [
    ('-c', 'encache', 'cache build output under $GOCACHE or ./.go'),
    ('-d', 'debug', 'debug build, run under the debugger'),
    ('-r', 'rebuild', 'rebuild everything'),
    ('-C', 'clean_only', 'remove build output and exit'),
    ('-R', 'norun', 'build only, do not run'),
    ('-N', 'disable_optimiz', 'disable optimization'),
    ('-u', 'disallow_unsafe', 'disallow unsafe'),
    ('-E', 'extra_symbol', 'keep extra symbols when linking'),
    ('-v', 'verbose', 'print toolchain commands'),
    ('-V', 'version', 'print version and exit'),
    ('-x', 'run_only', 'run the last build without building'),
]

class ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ConfigError(message)

def make_parser() -> ArgumentParser:
    parser = ArgumentParser(prog='gorun', description='Build and run a go source file or script.')
    for opt, dest, help in flag_options:
        parser.add_argument(opt, dest=dest, action='store_true', help=help)
    parser.add_argument('gofile', nargs='?')
    return parser

def split_args(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Splits at the source file: flags and file for us, the rest verbatim for the program."""
    for i, arg in enumerate(argv):
        if not arg.startswith('-'):
            return list(argv[:i + 1]), list(argv[i + 1:])
    return list(argv), []

def build_entry(env: BuildEnv, gofile: Path) -> Target:
    name = gofile.name
    if name.endswith('.go'):
        name = name[:-3]

    src = get_runnable_source(env, gofile)
    try:
        target = env.main_target(name, src)
        target.resolve()
        if not env.flags.clean_only and not env.flags.run_only:
            target.build()
    finally:
        if src.path != env.canonical(gofile):
            try:
                src.path.unlink()
            except OSError as err:
                env.warn(err)
    return target

def run(config: Config, gofile: Union[str, Path], args: Sequence[str]) -> int:
    gofile = Path(gofile)
    env = BuildEnv(config, gofile.parent)
    try:
        target = build_entry(env, gofile)
        if config.flags.norun or config.flags.clean_only:
            return 0
        return Executable(env, target).run(args)
    except ConfigError as err:
        env.warn(err)
        print(make_parser().format_usage(), end='', file=sys.stderr)
        return 1
    except (GoRunError, OSError) as err:
        env.warn(err)
        return 1

def main(argv: Optional[Sequence[str]]=None) -> None:
    if argv is None:
        argv = sys.argv[1:]
    own_args, prog_args = split_args(argv)
    parser = make_parser()
    try:
        args = parser.parse_args(own_args)
        flags = Flags(**{dest: bool(getattr(args, dest)) for _, dest, _ in flag_options})
        if flags.version:
            print(f"gorun {__version__}")
            sys.exit(0)
        if args.gofile is None:
            raise ConfigError('no source file given')
        config = Config.from_environ(flags)
    except ConfigError as err:
        print(err, file=sys.stderr)
        print(parser.format_usage(), end='', file=sys.stderr)
        sys.exit(1)

    sys.exit(run(config, str(args.gofile), prog_args))
