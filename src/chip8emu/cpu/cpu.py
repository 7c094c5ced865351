"""CHIP-8 interpreter core."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
from typing import Callable, Dict, List, Optional

from chip8emu.memory import ADDRESS_MASK, FONT_GLYPH_SIZE, PROGRAM_START

logger = logging.getLogger(__name__)

REGISTER_COUNT = 16
STACK_DEPTH = 16


class CPUError(RuntimeError):
    """Base class for fatal interpreter faults."""


class StackOverflowError(CPUError):
    """CALL issued with every stack slot in use."""


class StackUnderflowError(CPUError):
    """RET issued with an empty stack."""


@dataclass
class CPURegisters:
    """Register file: V0-VF, I, PC, SP and the return stack."""

    v: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    index: int = 0
    program_counter: int = PROGRAM_START
    stack_pointer: int = 0
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)


@dataclass
class CPUStatus:
    awaiting_key: bool = False
    key_register: int = 0


@dataclass(frozen=True)
class Instruction:
    """One decoded 16-bit opcode and its operand fields."""

    opcode: int

    @property
    def family(self) -> int:
        return (self.opcode & 0xF000) >> 12

    @property
    def x(self) -> int:
        return (self.opcode & 0x0F00) >> 8

    @property
    def y(self) -> int:
        return (self.opcode & 0x00F0) >> 4

    @property
    def n(self) -> int:
        return self.opcode & 0x000F

    @property
    def nn(self) -> int:
        return self.opcode & 0x00FF

    @property
    def nnn(self) -> int:
        return self.opcode & 0x0FFF


def decode(opcode: int) -> Instruction:
    return Instruction(opcode & 0xFFFF)


# Handlers return the next program counter, or None to fall through to PC+2.
Handler = Callable[[Instruction], Optional[int]]


class CPU:
    """Abstract CPU base class."""

    def __init__(self, computer: object) -> None:
        self.computer = computer

    def reset(self) -> None:
        raise NotImplementedError

    def step(self) -> None:
        raise NotImplementedError


class Chip8CPU(CPU):
    """Fetch/decode/execute core for the classic CHIP-8 instruction set."""

    REG_CARRY = 0xF

    def __init__(self, computer: object, *, rng: Optional[random.Random] = None) -> None:
        super().__init__(computer)
        hardware = computer.hardware
        self.memory = hardware.memory
        self.display = hardware.display
        self.keypad = hardware.keypad
        self.timers = hardware.timers
        self.rng = rng if rng is not None else random.Random()
        self.registers = CPURegisters()
        self.status = CPUStatus()
        self.cycles: int = 0
        self._family_table: Dict[int, Handler] = {}
        self._system_table: Dict[int, Handler] = {}
        self._alu_table: Dict[int, Handler] = {}
        self._key_table: Dict[int, Handler] = {}
        self._misc_table: Dict[int, Handler] = {}
        self._init_opcode_table()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.registers = CPURegisters()
        self.status = CPUStatus()
        self.cycles = 0

    def cycle(self) -> None:
        self.step()
        self.cycles += 1

    def step(self) -> None:
        regs = self.registers
        pc = regs.program_counter
        if self.status.awaiting_key:
            key = self.keypad.first_pressed()
            if key is None:
                return
            self.status.awaiting_key = False
            regs.v[self.status.key_register] = key
            regs.program_counter = (pc + 2) & ADDRESS_MASK
            return

        instruction = decode(self.memory.fetch_opcode(pc))
        next_pc = self._family_table[instruction.family](instruction)
        if next_pc is None:
            next_pc = pc + 2
        regs.program_counter = next_pc & ADDRESS_MASK

    # ------------------------------------------------------------------
    # Dispatch tables
    # ------------------------------------------------------------------
    def _init_opcode_table(self) -> None:
        self._family_table = {
            0x0: self._dispatch_system,
            0x1: self._opcode_jp,
            0x2: self._opcode_call,
            0x3: self._opcode_se_byte,
            0x4: self._opcode_sne_byte,
            0x5: self._opcode_se_reg,
            0x6: self._opcode_ld_byte,
            0x7: self._opcode_add_byte,
            0x8: self._dispatch_alu,
            0x9: self._opcode_sne_reg,
            0xA: self._opcode_ld_index,
            0xB: self._opcode_jp_v0,
            0xC: self._opcode_rnd,
            0xD: self._opcode_drw,
            0xE: self._dispatch_key,
            0xF: self._dispatch_misc,
        }
        # Family 0 matches the full opcode; anything else is a machine code call.
        self._system_table = {
            0x00E0: self._opcode_cls,
            0x00EE: self._opcode_ret,
        }
        self._alu_table = {
            0x0: self._opcode_ld_reg,
            0x1: self._opcode_or,
            0x2: self._opcode_and,
            0x3: self._opcode_xor,
            0x4: self._opcode_add_reg,
            0x5: self._opcode_sub,
            0x6: self._opcode_shr,
            0x7: self._opcode_subn,
            0xE: self._opcode_shl,
        }
        self._key_table = {
            0x9E: self._opcode_skp,
            0xA1: self._opcode_sknp,
        }
        self._misc_table = {
            0x07: self._opcode_ld_vx_dt,
            0x0A: self._opcode_ld_vx_key,
            0x15: self._opcode_ld_dt_vx,
            0x18: self._opcode_ld_st_vx,
            0x1E: self._opcode_add_index,
            0x29: self._opcode_ld_font,
            0x33: self._opcode_ld_bcd,
            0x55: self._opcode_ld_mem_regs,
            0x65: self._opcode_ld_regs_mem,
        }

    def _dispatch_system(self, ins: Instruction) -> Optional[int]:
        handler = self._system_table.get(ins.opcode)
        if handler is None:
            logger.debug("ignoring machine code call 0x%03X at 0x%03X", ins.nnn, self.registers.program_counter)
            return None
        return handler(ins)

    def _dispatch_alu(self, ins: Instruction) -> Optional[int]:
        return self._table_lookup(self._alu_table, ins.n, ins)

    def _dispatch_key(self, ins: Instruction) -> Optional[int]:
        return self._table_lookup(self._key_table, ins.nn, ins)

    def _dispatch_misc(self, ins: Instruction) -> Optional[int]:
        return self._table_lookup(self._misc_table, ins.nn, ins)

    def _table_lookup(self, table: Dict[int, Handler], key: int, ins: Instruction) -> Optional[int]:
        handler = table.get(key)
        if handler is None:
            return self._unknown_opcode(ins)
        return handler(ins)

    def _unknown_opcode(self, ins: Instruction) -> Optional[int]:
        logger.warning("unknown opcode 0x%04X at 0x%03X", ins.opcode, self.registers.program_counter)
        return None

    def _set_carry(self, value: int) -> None:
        self.registers.v[self.REG_CARRY] = value

    def _skip_if(self, condition: bool) -> int:
        pc = self.registers.program_counter
        return pc + 4 if condition else pc + 2

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------
    def _opcode_cls(self, ins: Instruction) -> Optional[int]:
        self.display.clear()
        return None

    def _opcode_ret(self, ins: Instruction) -> int:
        regs = self.registers
        if regs.stack_pointer == 0:
            raise StackUnderflowError(f"return with empty stack at 0x{regs.program_counter:03X}")
        regs.stack_pointer -= 1
        return regs.stack[regs.stack_pointer]

    def _opcode_jp(self, ins: Instruction) -> int:
        return ins.nnn

    def _opcode_call(self, ins: Instruction) -> int:
        regs = self.registers
        if regs.stack_pointer >= STACK_DEPTH:
            raise StackOverflowError(f"call depth exceeds {STACK_DEPTH} at 0x{regs.program_counter:03X}")
        regs.stack[regs.stack_pointer] = (regs.program_counter + 2) & ADDRESS_MASK
        regs.stack_pointer += 1
        return ins.nnn

    def _opcode_jp_v0(self, ins: Instruction) -> int:
        return ins.nnn + self.registers.v[0]

    def _opcode_se_byte(self, ins: Instruction) -> int:
        return self._skip_if(self.registers.v[ins.x] == ins.nn)

    def _opcode_sne_byte(self, ins: Instruction) -> int:
        return self._skip_if(self.registers.v[ins.x] != ins.nn)

    def _opcode_se_reg(self, ins: Instruction) -> int:
        return self._skip_if(self.registers.v[ins.x] == self.registers.v[ins.y])

    def _opcode_sne_reg(self, ins: Instruction) -> int:
        return self._skip_if(self.registers.v[ins.x] != self.registers.v[ins.y])

    def _opcode_skp(self, ins: Instruction) -> int:
        return self._skip_if(self.keypad.is_pressed(self.registers.v[ins.x]))

    def _opcode_sknp(self, ins: Instruction) -> int:
        return self._skip_if(not self.keypad.is_pressed(self.registers.v[ins.x]))

    # ------------------------------------------------------------------
    # Register arithmetic
    # ------------------------------------------------------------------
    def _opcode_ld_byte(self, ins: Instruction) -> None:
        self.registers.v[ins.x] = ins.nn

    def _opcode_add_byte(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] = (v[ins.x] + ins.nn) & 0xFF

    def _opcode_ld_reg(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] = v[ins.y]

    def _opcode_or(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] |= v[ins.y]

    def _opcode_and(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] &= v[ins.y]

    def _opcode_xor(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] ^= v[ins.y]

    # VF is written before VX for the flag-setting ALU ops; with X == F the
    # result therefore lands in VF last.
    def _opcode_add_reg(self, ins: Instruction) -> None:
        v = self.registers.v
        self._set_carry(1 if v[ins.x] + v[ins.y] > 0xFF else 0)
        v[ins.x] = (v[ins.x] + v[ins.y]) & 0xFF

    def _opcode_sub(self, ins: Instruction) -> None:
        v = self.registers.v
        self._set_carry(0 if v[ins.x] <= v[ins.y] else 1)
        v[ins.x] = (v[ins.x] - v[ins.y]) & 0xFF

    def _opcode_shr(self, ins: Instruction) -> None:
        v = self.registers.v
        self._set_carry(v[ins.x] & 0x01)
        v[ins.x] >>= 1

    def _opcode_subn(self, ins: Instruction) -> None:
        v = self.registers.v
        self._set_carry(0 if v[ins.x] <= v[ins.y] else 1)
        v[ins.x] = (v[ins.y] - v[ins.x]) & 0xFF

    def _opcode_shl(self, ins: Instruction) -> None:
        v = self.registers.v
        self._set_carry(v[ins.x] >> 7)
        v[ins.x] = (v[ins.x] << 1) & 0xFF

    def _opcode_rnd(self, ins: Instruction) -> None:
        self.registers.v[ins.x] = self.rng.randrange(0x100) & ins.nn

    # ------------------------------------------------------------------
    # Index register, memory and display
    # ------------------------------------------------------------------
    def _opcode_ld_index(self, ins: Instruction) -> None:
        self.registers.index = ins.nnn

    def _opcode_add_index(self, ins: Instruction) -> None:
        regs = self.registers
        address = regs.index + regs.v[ins.x]
        self._set_carry(1 if address > ADDRESS_MASK else 0)
        regs.index = address & 0xFFFF

    def _opcode_ld_font(self, ins: Instruction) -> None:
        self.registers.index = self.registers.v[ins.x] * FONT_GLYPH_SIZE

    def _opcode_ld_bcd(self, ins: Instruction) -> None:
        value = self.registers.v[ins.x]
        index = self.registers.index
        self.memory.store8(index, value // 100)
        self.memory.store8(index + 1, (value // 10) % 10)
        self.memory.store8(index + 2, value % 10)

    def _opcode_ld_mem_regs(self, ins: Instruction) -> None:
        regs = self.registers
        for offset in range(ins.x + 1):
            self.memory.store8(regs.index + offset, regs.v[offset])

    def _opcode_ld_regs_mem(self, ins: Instruction) -> None:
        regs = self.registers
        for offset in range(ins.x + 1):
            regs.v[offset] = self.memory.load8(regs.index + offset)

    def _opcode_drw(self, ins: Instruction) -> None:
        regs = self.registers
        hit = self.display.draw(self.memory, regs.index, regs.v[ins.x], regs.v[ins.y], ins.n)
        self._set_carry(1 if hit else 0)

    # ------------------------------------------------------------------
    # Timers and keypad
    # ------------------------------------------------------------------
    def _opcode_ld_vx_dt(self, ins: Instruction) -> None:
        self.registers.v[ins.x] = self.timers.delay

    def _opcode_ld_dt_vx(self, ins: Instruction) -> None:
        self.timers.set_delay(self.registers.v[ins.x])

    def _opcode_ld_st_vx(self, ins: Instruction) -> None:
        self.timers.set_sound(self.registers.v[ins.x])

    def _opcode_ld_vx_key(self, ins: Instruction) -> Optional[int]:
        key = self.keypad.first_pressed()
        if key is not None:
            self.registers.v[ins.x] = key
            return None
        logger.debug("waiting for key into V%X", ins.x)
        self.status.awaiting_key = True
        self.status.key_register = ins.x
        return self.registers.program_counter
