# opsim

Building blocks for a simulated teaching operating system: a process
control block with a small register file, a TLB-backed MMU, a decoder
for instruction text, and DialFS, a contiguous-allocation block file
system kept in two files on disk.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## What is inside

- `opsim.config`: `load_properties` reads a `KEY=VALUE` file (blank
  lines and `#` comments are skipped). `CpuConfig` and `IoConfig` build
  settings from such a file with `load` or from a mapping with
  `from_properties`, raising `ConfigError` for a missing file, a missing
  key or a non-integer value. `InterfaceType.parse` maps `IO_GEN`,
  `IO_STDIN`, `IO_STDOUT` and `IO_DIALFS` to interface kinds.
- `opsim.registers`: the process control block `Pcb`, with the 8-bit
  registers `AX`–`DX`, the 32-bit registers `EAX`–`EDX`, and `PC`, `SI`
  and `DI`. `Pcb.set`, `Pcb.add` and `Pcb.sub` wrap values at the width
  of the destination register; `Pcb.jump_if_not_zero` sets `PC` when a
  register is non-zero. `register_width` gives a register's size in
  bytes; unknown names raise `RegisterError`.
- `opsim.mmu`: `Tlb` caches `(pid, page) -> frame` translations with
  FIFO or LRU replacement (a size of 0 disables it). `Mmu` turns a page
  and offset into a physical address, asking a frame lookup callable on
  a TLB miss and raising `TranslationError` when there is no frame;
  `Mmu.physical_addresses` splits an access across the pages it touches.
- `opsim.instructions`: `parse_instruction` turns a text line such as
  `SET AX 1` into an `Instruction` with an `Opcode` and its arguments,
  raising `InstructionError` for an unknown mnemonic or too few
  arguments.
- `opsim.bitmap`: `BlockBitmap`, one bit per block, packed least
  significant bit first as in `bitmap.dat`.
- `opsim.blockstore`: `BlockStore`, the memory-mapped `bloques.dat` file,
  with bounds-checked `read`, `write` and `zero`.
- `opsim.dialfs`: `DialFS` with `create`, `delete`, `truncate`, `read`,
  `write` and `compact`. Each file has a metadata file `<name>` holding
  `BLOQUE_INICIAL` and `TAMANIO_ARCHIVO`. Growing a file uses the
  adjacent free blocks, else moves the file to a large enough free run,
  else compacts the disk. Failures raise `DialFSError`.

## Examples

```python
from opsim.registers import Pcb

pcb = Pcb(pid=1)
pcb.set("AX", 250)
pcb.set("BX", 10)
pcb.add("AX", "BX")
print(pcb.get("AX"))  # 4: 8-bit registers wrap around
```

```python
import tempfile
from opsim.dialfs import DialFS

with tempfile.TemporaryDirectory() as directory:
    with DialFS(directory, block_size=16, block_count=32) as fs:
        fs.create("notes.txt")
        fs.truncate("notes.txt", 20)
        fs.write("notes.txt", b"hello", 0)
        print(fs.read("notes.txt", 5, 0))  # b'hello'
```

## What it does not do

The package provides the pieces, not the running processes. It has no
instruction cycle that executes decoded instructions, no instructions
that read or write process memory, no network connections to a kernel
or memory server, no console input/output devices, and no command to
start anything. Frame lookups for the `Mmu` come from whatever callable
the caller supplies.