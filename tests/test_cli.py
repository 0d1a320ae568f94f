# =============================================================================
# test_cli.py - Command-Line Tool Tests
# =============================================================================
# Tests for mcasm, mcrun and mcdisasm using Click's CliRunner.
#
# Test coverage includes:
#   - Output files and their default names
#   - Terminator selection
#   - Memory dump formats and stop reporting
#   - Exit codes for assembly errors, faults, budgets and bad arguments
# =============================================================================

from pathlib import Path

import pytest
from click.testing import CliRunner

from mcpu import __version__
from mcpu.cli.errors import ExitCode
from mcpu.cli.mcasm import main as mcasm
from mcpu.cli.mcrun import main as mcrun, format_memory
from mcpu.cli.mcdisasm import main as mcdisasm


ADD_PROGRAM = "PUSH 0x6;JP;DW A 0x1;DW B 0x2;PUSH A;LOAD;PUSH B;LOAD;ADD;HALT;"
ADD_CODE = bytes([
    0x03, 0x06, 0x0A, 0x00, 0x01, 0x02, 0x03, 0x04,
    0x01, 0x03, 0x05, 0x01, 0x05, 0x00,
])


@pytest.fixture
def runner():
    return CliRunner()


# =============================================================================
# mcasm Tests
# =============================================================================

class TestMcasm:
    """Tests for the assembler CLI."""

    def test_default_output_name(self, runner):
        with runner.isolated_filesystem():
            Path("add.asm").write_text(ADD_PROGRAM)
            result = runner.invoke(mcasm, ["add.asm"])
            assert result.exit_code == 0, result.output
            assert Path("add.bin").read_bytes() == ADD_CODE

    def test_all_outputs(self, runner):
        with runner.isolated_filesystem():
            Path("add.asm").write_text(ADD_PROGRAM)
            result = runner.invoke(
                mcasm, ["add.asm", "-o", "out.bin", "-l", "add.lst", "-s", "add.sym"]
            )
            assert result.exit_code == 0, result.output
            assert Path("out.bin").read_bytes() == ADD_CODE
            assert "PUSH A" in Path("add.lst").read_text()
            assert Path("add.sym").read_text().splitlines()[2:] == ["A 0x04", "B 0x05"]

    def test_newline_terminator(self, runner):
        with runner.isolated_filesystem():
            Path("prog.asm").write_text("PUSH 0x1\nHALT\n")
            result = runner.invoke(mcasm, ["prog.asm", "--terminator", "newline"])
            assert result.exit_code == 0, result.output
            assert Path("prog.bin").read_bytes() == bytes([0x03, 0x01, 0x00])

    def test_verbose_summary(self, runner):
        with runner.isolated_filesystem():
            Path("add.asm").write_text(ADD_PROGRAM)
            result = runner.invoke(mcasm, ["add.asm", "-v"])
            assert result.exit_code == 0
            assert "Assembly complete: 14 bytes" in result.output
            assert "Defined 2 symbols" in result.output

    def test_assembly_error(self, runner):
        with runner.isolated_filesystem():
            Path("bad.asm").write_text("PUSH X;")
            result = runner.invoke(mcasm, ["bad.asm"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "bad.asm:1:6: error: undefined symbol 'X'" in result.output
            assert not Path("bad.bin").exists()

    def test_missing_input(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(mcasm, ["missing.asm"])
            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_version(self, runner):
        result = runner.invoke(mcasm, ["--version"])
        assert __version__ in result.output


# =============================================================================
# mcrun Tests
# =============================================================================

class TestMcrun:
    """Tests for the VM runner CLI."""

    def test_decimal_dump(self, runner):
        with runner.isolated_filesystem():
            Path("add.asm").write_text(ADD_PROGRAM)
            result = runner.invoke(mcrun, ["add.asm", "--format", "decimal"])
            assert result.exit_code == 0, result.output
            lines = result.output.splitlines()
            values = lines[0].split(" ")
            assert len(values) == 256
            assert values[:14] == [str(b) for b in ADD_CODE]
            # Result 3 on the stack, SP=0xFC, PC=14
            assert values[0xFD] == "3"
            assert values[0xFE] == "252"
            assert values[0xFF] == "14"
            assert "PC=0x0E SP=0xFC Halted" in result.output

    def test_hex_dump(self, runner):
        with runner.isolated_filesystem():
            Path("add.asm").write_text(ADD_PROGRAM)
            result = runner.invoke(mcrun, ["add.asm"])
            assert result.exit_code == 0, result.output
            assert result.output.startswith("00: 03 06 0A 00")
            assert "F0: " in result.output

    def test_binary_input(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x03, 0x01, 0x03, 0x01, 0x05, 0x00]))
            result = runner.invoke(mcrun, ["prog.bin", "--binary"])
            assert result.exit_code == 0, result.output
            assert "(4 steps)" in result.output

    def test_step_budget_exhausted(self, runner):
        with runner.isolated_filesystem():
            Path("loop.asm").write_text("PUSH 0x0;JP;")
            result = runner.invoke(mcrun, ["loop.asm", "--max-steps", "50"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "still running after 50 steps" in result.output

    def test_strict_fault(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x0B]))
            result = runner.invoke(mcrun, ["prog.bin", "--binary", "--strict"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "Runtime error: illegal opcode 0x0B" in result.output

    def test_lenient_by_default(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x0B, 0x00]))
            result = runner.invoke(mcrun, ["prog.bin", "--binary"])
            assert result.exit_code == 0, result.output

    def test_protect_registers(self, runner):
        with runner.isolated_filesystem():
            Path("prog.asm").write_text("PUSH 0x20;PUSH 0xFF;STORE;HALT;")
            result = runner.invoke(mcrun, ["prog.asm", "--protect-registers"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "reserved register" in result.output

    def test_assembly_error(self, runner):
        with runner.isolated_filesystem():
            Path("bad.asm").write_text("PUSH 0x1")
            result = runner.invoke(mcrun, ["bad.asm"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "error:" in result.output

    def test_format_memory(self):
        assert format_memory(bytes([1, 2, 3]), "decimal") == "1 2 3"
        assert format_memory(bytes(range(17)), "hex").splitlines()[1] == "10: 10"


# =============================================================================
# mcdisasm Tests
# =============================================================================

class TestMcdisasm:
    """Tests for the disassembler CLI."""

    def test_disassemble(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x03, 0x01, 0x0A, 0x05, 0x00]))
            result = runner.invoke(mcdisasm, ["prog.bin"])
            assert result.exit_code == 0, result.output
            assert "00: 03 01  PUSH 0x01" in result.output
            assert "02: 0A 05  JP eq" in result.output
            assert "04: 00     HALT" in result.output

    def test_address_and_count(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x03, 0x01, 0x05, 0x06, 0x00]))
            result = runner.invoke(mcdisasm, ["prog.bin", "-a", "0x2", "-c", "2"])
            assert result.exit_code == 0, result.output
            assert "02: 05     ADD" in result.output
            assert "03: 06     SUB" in result.output
            assert "HALT" not in result.output

    def test_output_file(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x00]))
            result = runner.invoke(mcdisasm, ["prog.bin", "-o", "prog.dis"])
            assert result.exit_code == 0
            assert "HALT" in Path("prog.dis").read_text()

    def test_invalid_address(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x00]))
            result = runner.invoke(mcdisasm, ["prog.bin", "-a", "zz"])
            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_address_beyond_image(self, runner):
        with runner.isolated_filesystem():
            Path("prog.bin").write_bytes(bytes([0x00]))
            result = runner.invoke(mcdisasm, ["prog.bin", "-a", "5"])
            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_empty_image(self, runner):
        with runner.isolated_filesystem():
            Path("empty.bin").write_bytes(b"")
            result = runner.invoke(mcdisasm, ["empty.bin"])
            assert result.exit_code == 0, result.output
            assert result.output.splitlines() == [
                "; Disassembly of empty.bin",
                "; Size: 0 bytes",
                "",
            ]
