"""Pytest configuration and fixtures for abuild tests.

External build tools are stood in for by small Python scripts run with
sys.executable, so the suite needs no C toolchain. Scratch files are created
in a per-test directory (ABUILD_TEMP_DIR) so tests can count what is left.
"""

import sys
import textwrap
from pathlib import Path

import pytest

from abuild import output

# Compiler stand-in: tool.py -c SRC -o OUT [-IDIR ...]
COMPILER_SCRIPT = """
import sys
args = sys.argv[1:]
src = args[args.index("-c") + 1]
out = args[args.index("-o") + 1]
includes = [a[2:] for a in args if a.startswith("-I")]
with open(src) as f:
    body = f.read()
with open(out, "w") as f:
    f.write("obj:" + body)
    for inc in includes:
        f.write("\\ninclude:" + inc)
"""

# Linker stand-in: tool.py OBJ... -o OUT
LINKER_SCRIPT = """
import sys
args = sys.argv[1:]
out = args[args.index("-o") + 1]
inputs = args[:args.index("-o")]
with open(out, "w") as f:
    for path in inputs:
        with open(path) as obj:
            f.write(obj.read() + "\\n")
"""

# Exits with the given code after writing to both streams: tool.py CODE
EXIT_SCRIPT = """
import sys
code = int(sys.argv[1])
sys.stdout.write("out-" + str(code))
sys.stderr.write("err-" + str(code))
sys.exit(code)
"""


@pytest.fixture(autouse=True)
def _quiet_build_log(tmp_path_factory: pytest.TempPathFactory):
    """Route the build log into a file outside tmp_path so tests don't spam stdout."""
    log_path = tmp_path_factory.mktemp("log") / "build.log"
    with open(log_path, "w") as stream:
        output.init_timer(stream)
        yield
    output.init_timer(sys.stdout)


@pytest.fixture
def scratch_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Directory receiving every abuild temporary file for the test."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setenv("ABUILD_TEMP_DIR", str(scratch))
    return scratch


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, scratch_dir: Path) -> Path:
    """Empty project directory set as the working directory."""
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.chdir(root)
    return root


def write_tool(directory: Path, name: str, source: str) -> Path:
    path = directory / name
    path.write_text(textwrap.dedent(source))
    return path


@pytest.fixture
def tools(tmp_path: Path) -> dict[str, Path]:
    """Python scripts standing in for a compiler, a linker and a failing tool."""
    directory = tmp_path / "tools"
    directory.mkdir()
    return {
        "cc": write_tool(directory, "cc.py", COMPILER_SCRIPT),
        "ld": write_tool(directory, "ld.py", LINKER_SCRIPT),
        "exit": write_tool(directory, "exit.py", EXIT_SCRIPT),
    }
