import pytest
from typer.testing import CliRunner

from cxl_topo import __version__
from cxl_topo.cli import app
from cxl_topo.config import AppSettings

from conftest import SIMPLE_COMMAND


runner = CliRunner()

SIMPLE_YAML = """\
components:
  - {name: hb0, kind: host-bridge}
  - {name: rp0, kind: root-port, parent: hb0}
  - name: mw0
    kind: memory-window
    parent: rp0
    properties: {backing: {memory_type: volatile, size: 256}}
"""

INCOMPLETE_YAML = """\
components:
  - {name: hb0, kind: host-bridge}
  - {name: rp0, kind: root-port}
"""


@pytest.fixture
def topology_file(tmp_path):
    path = tmp_path / "simple.yaml"
    path.write_text(SIMPLE_YAML, encoding="utf-8")
    return path


@pytest.fixture
def incomplete_file(tmp_path):
    path = tmp_path / "incomplete.yaml"
    path.write_text(INCOMPLETE_YAML, encoding="utf-8")
    return path


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_compile_prints_command(topology_file):
    result = runner.invoke(app, ["compile", str(topology_file)])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == SIMPLE_COMMAND


def test_compile_with_machine(topology_file):
    result = runner.invoke(app, ["compile", "--machine", str(topology_file)])
    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("-M q35,cxl=on,cxl-fmw.0.targets.0=hostbridge0,cxl-fmw.0.size=256M ")


def test_emit_machine_from_environment(topology_file, monkeypatch):
    monkeypatch.setenv("CXL_TOPO_EMIT_MACHINE", "true")
    assert AppSettings().emit_machine is True
    result = runner.invoke(app, ["compile", str(topology_file)])
    assert result.stdout.startswith("-M q35,cxl=on")


def test_compile_script(topology_file):
    result = runner.invoke(app, ["compile", "--script", str(topology_file)])
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == "#!/bin/sh"
    assert lines[1] == "# simple.yaml"
    assert lines[2] == "exec qemu-system-x86_64 \\"
    assert lines[3] == "  -M q35,cxl=on \\"
    assert lines[4] == "  -m 4G \\"
    assert lines[5] == "  -device pxb-cxl,bus_nr=12,bus=pcie.0,id=hostbridge0 \\"
    assert lines[-1] == "  -device cxl-type3,bus=rootport0,volatile-memdev=vmem0,id=memorywindow0"
    assert len(lines) == 9


def test_compile_script_with_machine_fragment(topology_file):
    result = runner.invoke(app, ["compile", "-s", "-m", str(topology_file)])
    lines = result.stdout.splitlines()
    assert lines[3] == "  -m 4G \\"
    assert lines[4].startswith("  -M q35,cxl=on,cxl-fmw.0.targets.0=hostbridge0")


def test_compile_incomplete_topology_fails(incomplete_file):
    result = runner.invoke(app, ["compile", str(incomplete_file)])
    assert result.exit_code == 1
    assert "completeness" in result.output
    assert "rp0" in result.output


def test_validate(topology_file, incomplete_file):
    assert runner.invoke(app, ["validate", str(topology_file)]).exit_code == 0
    assert runner.invoke(app, ["validate", str(incomplete_file)]).exit_code == 0
    assert runner.invoke(app, ["validate", "--synthesis", str(incomplete_file)]).exit_code == 1


def test_invalid_file_exit_code(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("components:\n  - {name: x, kind: gpu}\n", encoding="utf-8")
    result = runner.invoke(app, ["compile", str(path)])
    assert result.exit_code == 2


def test_kinds():
    result = runner.invoke(app, ["kinds"])
    assert result.exit_code == 0
    assert "switch" in result.stdout
