import pytest

from opsim.instructions import (
    Instruction,
    InstructionError,
    Opcode,
    count_spaces,
    parse_instruction,
)


def test_count_spaces_counts_every_space():
    assert count_spaces("SET AX 1") == 2
    assert count_spaces("EXIT") == 0


def test_parse_set():
    instruction = parse_instruction("SET AX 1")
    assert instruction == Instruction(Opcode.SET, ("AX", "1"))


def test_parse_exit_has_no_arguments():
    assert parse_instruction("EXIT") == Instruction(Opcode.EXIT, ())


def test_parse_strips_line_terminator():
    assert parse_instruction("WAIT RA\n") == Instruction(Opcode.WAIT, ("RA",))


def test_parse_fs_write_keeps_argument_order():
    line = "IO_FS_WRITE Int4 notas.txt BX CX DX"
    instruction = parse_instruction(line)
    assert instruction.opcode is Opcode.IO_FS_WRITE
    assert instruction.arguments == ("Int4", "notas.txt", "BX", "CX", "DX")
    assert len(instruction.arguments) == count_spaces(line)


@pytest.mark.parametrize("opcode", list(Opcode))
def test_mnemonic_round_trip(opcode):
    line = " ".join([opcode.value] + ["X"] * opcode.arity)
    instruction = parse_instruction(line)
    assert instruction.opcode is opcode
    assert str(instruction) == line


def test_unknown_instruction_raises():
    with pytest.raises(InstructionError):
        parse_instruction("HALT AX")


def test_empty_line_raises():
    with pytest.raises(InstructionError):
        parse_instruction("")


def test_missing_arguments_raise():
    with pytest.raises(InstructionError):
        parse_instruction("SET AX")