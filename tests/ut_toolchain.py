#!/usr/bin/env python3

import io
import signal
import unittest

from contextlib import redirect_stderr
from pathlib import Path

from fakeenv import gorun
from gorun import toolchain # type: ignore
from gorun.errors import ToolchainFailure # type: ignore

class CommandTests(unittest.TestCase):
    def test_compile_cmd(self):
        cmd = toolchain.compile_cmd('6g', Path('/o/main.6'), [Path('/a'), Path('/b')],
                                    [Path('/s/main.go')], no_optimize=True, disallow_unsafe=True)
        assert cmd == ['6g', '-N', '-u', '-o', '/o/main.6', '-I', '/a', '-I', '/b', '/s/main.go']

    def test_link_cmd(self):
        cmd = toolchain.link_cmd('6l', Path('/o/main'), [Path('/a')], Path('/o/main.6'), extra_symbols=True)
        assert cmd == ['6l', '-e', '-o', '/o/main', '-L', '/a', '/o/main.6']

    def test_pack_cmd(self):
        assert toolchain.pack_cmd('gopack', Path('/o/u.a'), Path('/o/u.6')) == ['gopack', 'grc', '/o/u.a', '/o/u.6']

class RunTests(unittest.TestCase):
    def test_exit_status(self):
        assert toolchain.exit_status(0) == 0
        assert toolchain.exit_status(2) == 2
        assert toolchain.exit_status(-signal.SIGKILL) == 137

    def test_verbose_echo(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            toolchain.run(['sh', '-c', 'exit 0'], verbosity=1)
        assert stderr.getvalue() == "sh -c 'exit 0'\n"

    def test_quiet(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            toolchain.run(['sh', '-c', 'exit 0'])
        assert stderr.getvalue() == ''

    def test_failure(self):
        with self.assertRaises(ToolchainFailure) as ctx:
            toolchain.run(['sh', '-c', 'exit 3'])
        assert ctx.exception.returncode == 3
        assert str(ctx.exception) == 'sh Exit(3)'

    def test_missing_tool(self):
        with self.assertRaises(ToolchainFailure) as ctx:
            toolchain.run(['/nonexistent/6g'])
        assert ctx.exception.returncode is None

if __name__ == '__main__':
    unittest.main()
