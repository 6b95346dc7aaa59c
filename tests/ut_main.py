#!/usr/bin/env python3

import io
import os
import signal
import stat
import unittest

from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from fakeenv import gorun, ProjectMixin
from gorun.errors import ConfigError # type: ignore

def write_exe(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    path.chmod(path.stat().st_mode | stat.S_IXUSR)

class BuildEntryTests(ProjectMixin, unittest.TestCase):
    def test_example_project(self):
        self.write('main.go', 'package main\nimport "util"\nfunc main() { util.Hello() }\n')
        self.write('util.go', 'package util\nfunc Hello() {}\n')

        env = self.env()
        t = gorun.build_entry(env, self.root / 'main.go')
        assert env.tools() == ['6g', 'gopack', '6g', '6l']
        assert t.artifact_path == self.root / 'main'
        assert (self.root / 'main').exists()

        env = self.env()
        t = gorun.build_entry(env, self.root / 'main.go')
        assert env.commands == []
        assert not t.dirty
        assert not t.deps[0].dirty

    def test_script_entry(self):
        script = self.write('hello', '#!/usr/bin/env gorun\npackage main\nimport "util"\n')
        self.write('util.go', 'package util\n')
        env = self.env(cache_dir='./.go')
        t = gorun.build_entry(env, script)
        assert t.name == 'hello'
        assert t.artifact_path == self.root / '.go' / 'release' / 'hello'
        src, = t.sources.values()
        assert src.path == self.root / 'hello.tmp'
        assert src.imports == ('util',)
        assert src.mtime_ns == os.lstat(script).st_mtime_ns
        assert not (self.root / 'hello.tmp').exists()
        assert env.commands[2][-1] == str(self.root / 'hello.tmp')
        assert (self.root / 'hello').read_text().startswith('#!')

    def test_script_in_scanned_dir(self):
        # the script shares a directory with the package it imports
        script = self.write('run.go', '#!/usr/bin/env gorun\npackage main\nimport "util"\n')
        self.write('util.go', 'package util\n')
        env = self.env()
        gorun.build_entry(env, script)
        assert script in env.ignored
        assert script not in env.source_files

    def test_temp_removed_on_failure(self):
        script = self.write('hello', '#!/usr/bin/env gorun\npackage main\nimport "missing"\n')
        env = self.env()
        with self.assertRaises(gorun.errors.NoSourcesFound):
            gorun.build_entry(env, script)
        assert not (self.root / 'hello.tmp').exists()

    def test_clean_only_does_not_build(self):
        self.write('main.go', 'package main\n')
        env = self.env(clean_only=True)
        gorun.build_entry(env, self.root / 'main.go')
        assert env.commands == []

    def test_run_only_does_not_build(self):
        self.write('main.go', 'package main\n')
        env = self.env(run_only=True)
        t = gorun.build_entry(env, self.root / 'main.go')
        assert t.dirty
        assert env.commands == []

class ExecutableTests(ProjectMixin, unittest.TestCase):
    def target(self, **flags):
        self.write('main.go', 'package main\n')
        env = self.env(search_path=[self.root / 'bin'], **flags)
        t = env.main_target('main', env.get_source(self.root / 'main.go'))
        t.resolve()
        return env, t

    def test_command(self):
        env, t = self.target()
        exe = gorun.Executable(env, t)
        assert exe.command(['a', '-b']) == [str(self.root / 'main'), 'a', '-b']

    def test_debug_command(self):
        write_exe(self.root / 'bin' / 'gdb', '#!/bin/sh\n')
        env, t = self.target(debug=True)
        exe = gorun.Executable(env, t)
        assert exe.command(['x']) == [str(self.root / 'bin' / 'gdb'), '--args', str(self.root / 'main'), 'x']

    def test_missing_debugger(self):
        env, t = self.target(debug=True)
        with self.assertRaises(ConfigError):
            gorun.Executable(env, t).command([])

    def test_exit_status(self):
        env, t = self.target()
        write_exe(self.root / 'main', '#!/bin/sh\nexit $1\n')
        exe = gorun.Executable(env, t)
        assert exe.run(['0']) == 0
        assert exe.run(['3']) == 3

    def test_killed_by_signal(self):
        env, t = self.target()
        write_exe(self.root / 'main', '#!/bin/sh\nkill -TERM $$\n')
        assert gorun.Executable(env, t).run([]) == 128 + signal.SIGTERM

    def test_missing_binary(self):
        env, t = self.target()
        with self.assertRaises(FileNotFoundError):
            gorun.Executable(env, t).run([])

class MainTests(ProjectMixin, unittest.TestCase):
    def main(self, *argv, **environ):
        environ = dict({'GOOS': 'linux', 'GOARCH': 'amd64', 'GOROOT': str(self.root / 'goroot'),
                        'PATH': ''}, **environ)
        stdout = io.StringIO()
        stderr = io.StringIO()
        with mock.patch.dict(os.environ, environ), redirect_stdout(stdout), redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as ctx:
                gorun.main(list(argv))
        return ctx.exception.code, stdout.getvalue(), stderr.getvalue()

    def test_version(self):
        code, out, _ = self.main('-V')
        assert code == 0
        assert out == f"gorun {gorun.__version__}\n"

    def test_unknown_flag(self):
        code, _, err = self.main('-z', 'main.go')
        assert code == 1
        assert 'usage: gorun' in err

    def test_no_source(self):
        code, _, err = self.main('-v')
        assert code == 1
        assert 'no source file given' in err

    def test_missing_source(self):
        code, _, err = self.main(str(self.root / 'nope.go'))
        assert code == 1
        assert err.startswith("Can't ")

    def test_bad_arch(self):
        code, _, err = self.main(str(self.root / 'main.go'), GOARCH='sparc')
        assert code == 1
        assert 'unsupported GOARCH' in err

    def test_clean_only(self):
        self.write('main.go', 'package main\n')
        (self.root / 'main.6').write_bytes(b'')
        (self.root / 'main').write_bytes(b'')
        code, _, err = self.main('-C', str(self.root / 'main.go'))
        assert code == 0, err
        assert not (self.root / 'main.6').exists()
        assert not (self.root / 'main').exists()

    def test_run_prebuilt(self):
        self.write('main.go', 'package main\n')
        (self.root / 'main.6').write_bytes(b'')
        write_exe(self.root / 'main', '#!/bin/sh\nexit 7\n')
        code, _, err = self.main('-x', str(self.root / 'main.go'), 'ignored', '-v')
        assert code == 7, err

    def test_toolchain_failure(self):
        self.write('main.go', 'package main\n')
        code, _, err = self.main('-R', str(self.root / 'main.go'))
        assert code == 1
        assert "Can't 6g" in err

    def test_args_forwarded_verbatim(self):
        self.write('main.go', 'package main\n')
        (self.root / 'main.6').write_bytes(b'')
        write_exe(self.root / 'main', f"#!/bin/sh\nprintf '%s\\n' \"$@\" > {self.root / 'out'}\n")
        code, _, err = self.main('-x', str(self.root / 'main.go'), '--', '-x', 'y')
        assert code == 0, err
        assert (self.root / 'out').read_text() == '--\n-x\ny\n'

    def test_missing_debugger_prints_usage(self):
        self.write('main.go', 'package main\n')
        (self.root / 'main.6').write_bytes(b'')
        write_exe(self.root / 'main', '#!/bin/sh\n')
        code, _, err = self.main('-x', '-d', str(self.root / 'main.go'))
        assert code == 1
        assert "Can't find gdb." in err
        assert 'usage: gorun' in err

class SplitArgsTests(unittest.TestCase):
    def test_split_at_source(self):
        assert gorun.split_args(['-v', 'main.go', '--', '-x', 'y']) == (['-v', 'main.go'], ['--', '-x', 'y'])

    def test_flags_after_source_belong_to_program(self):
        assert gorun.split_args(['main.go', '-v']) == (['main.go'], ['-v'])

    def test_no_source(self):
        assert gorun.split_args(['-cd']) == (['-cd'], [])

if __name__ == '__main__':
    unittest.main()
