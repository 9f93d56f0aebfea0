# SUPER-CHIP-8 INFO
# https://chip-8.github.io/extensions/#super-chip-10
# http://devernay.free.fr/hacks/chip8/schip.txt
#
# COMPATIBILITY QUIRKS TABLE
# https://games.gulrak.net/cadmium/chip8-opcode-table.html
#
# This module only holds the interpreter: machine state, decoder/executor and
# the sprite routine. Window, keyboard and audio live in schip8_host.py.


import os
import random
from collections import namedtuple


# ******************** STATIC SECTION
C8_FONTS = [0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
            0x20, 0x60, 0x20, 0x20, 0x70,  # 1
            0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
            0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
            0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
            0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
            0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
            0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
            0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
            0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
            0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
            0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
            0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
            0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
            0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
            0xF0, 0x80, 0xF0, 0x80, 0x80]  # F

FONT_ADDRESS = 0x000
FONT_GLYPH_SIZE = 5
MEMORY_SIZE = 4096
ROM_START_ADDRESS = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - ROM_START_ADDRESS
STACK_SIZE = 48         # deeper than the usual 16 levels, some ROMs recurse a lot
NUM_REGISTERS = 16
NUM_KEYS = 16
SCREEN_HEIGHT = 32
SCREEN_WIDTH = 64
DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False

# ********** OPCODE TABLES
# each table is looked up only after the family (first nibble) is known
FAMILIES = {
    0x1: "JP",
    0x2: "CALL",
    0x3: "SE",
    0x4: "SNE",
    0x6: "LD",
    0x7: "ADD",
    0xA: "LD_I",
    0xB: "JP_V0",
    0xC: "RND",
    0xD: "DRW",
}

SYS_OPS = {
    0x00E0: "CLS",
    0x00EE: "RET",
    0x00FB: "SCR",
    0x00FC: "SCL",
    0x00FD: "EXIT",
    0x00FE: "LOW",
    0x00FF: "HIGH",
}

ALU_OPS = {
    0x0: "LD_REG",
    0x1: "OR",
    0x2: "AND",
    0x3: "XOR",
    0x4: "ADD_REG",
    0x5: "SUB",
    0x6: "SHR",
    0x7: "SUBN",
    0xE: "SHL",
}

KEY_OPS = {
    0x9E: "SKP",
    0xA1: "SKNP",
}

MISC_OPS = {
    0x07: "LD_VX_DT",
    0x0A: "LD_VX_K",
    0x15: "LD_DT",
    0x18: "LD_ST",
    0x1E: "ADD_I",
    0x29: "LD_F",
    0x33: "LD_B",
    0x55: "LD_I_VX",
    0x65: "LD_VX_I",
    0x75: "SAVEFLAGS",
    0x85: "LOADFLAGS",
}

# recognized by the decoder but not executed by this interpreter
UNSUPPORTED = frozenset(["SYS", "SCD", "SCR", "SCL", "LOW", "HIGH", "SAVEFLAGS", "LOADFLAGS"])

MNEMONICS = {
    "CLS": "CLS",
    "RET": "RET",
    "EXIT": "EXIT",
    "SYS": "SYS 0x{nnn:03x}",
    "SCD": "SCD {n}",
    "SCR": "SCR",
    "SCL": "SCL",
    "LOW": "LOW",
    "HIGH": "HIGH",
    "JP": "JP 0x{nnn:03x}",
    "CALL": "CALL 0x{nnn:03x}",
    "SE": "SE V{x:X}, 0x{nn:02x}",
    "SNE": "SNE V{x:X}, 0x{nn:02x}",
    "SE_REG": "SE V{x:X}, V{y:X}",
    "SNE_REG": "SNE V{x:X}, V{y:X}",
    "LD": "LD V{x:X}, 0x{nn:02x}",
    "ADD": "ADD V{x:X}, 0x{nn:02x}",
    "LD_REG": "LD V{x:X}, V{y:X}",
    "OR": "OR V{x:X}, V{y:X}",
    "AND": "AND V{x:X}, V{y:X}",
    "XOR": "XOR V{x:X}, V{y:X}",
    "ADD_REG": "ADD V{x:X}, V{y:X}",
    "SUB": "SUB V{x:X}, V{y:X}",
    "SHR": "SHR V{x:X}",
    "SUBN": "SUBN V{x:X}, V{y:X}",
    "SHL": "SHL V{x:X}",
    "LD_I": "LD I, 0x{nnn:03x}",
    "JP_V0": "JP V0, 0x{nnn:03x}",
    "RND": "RND V{x:X}, 0x{nn:02x}",
    "DRW": "DRW V{x:X}, V{y:X}, {n}",
    "SKP": "SKP V{x:X}",
    "SKNP": "SKNP V{x:X}",
    "LD_VX_DT": "LD V{x:X}, DT",
    "LD_VX_K": "LD V{x:X}, K",
    "LD_DT": "LD DT, V{x:X}",
    "LD_ST": "LD ST, V{x:X}",
    "ADD_I": "ADD I, V{x:X}",
    "LD_F": "LD F, V{x:X}",
    "LD_B": "LD B, V{x:X}",
    "LD_I_VX": "LD [I], V{x:X}",
    "LD_VX_I": "LD V{x:X}, [I]",
    "SAVEFLAGS": "LD R, V{x:X}",
    "LOADFLAGS": "LD V{x:X}, R",
}


# ******************** ERRORS SECTION
class SChip8Error(Exception):
    """base class of every error raised by the interpreter"""


class RomTooLargeError(SChip8Error, IndexError):
    def __init__(self, size):
        self.size = size
        super().__init__(f"ROM is {size} bytes long, at most {MAX_ROM_SIZE} bytes fit in memory")


class MemoryAccessError(SChip8Error, IndexError):
    pass


class StackOverflowError(SChip8Error, IndexError):
    pass


class StackUnderflowError(SChip8Error, IndexError):
    pass


class InvalidKeyError(SChip8Error, IndexError):
    pass


class UnknownOpcodeError(SChip8Error):
    def __init__(self, opcode, address=None):
        self.opcode, self.address = opcode, address
        where = "" if address is None else f" at 0x{address:04x}"
        super().__init__(f"unknown instruction 0x{opcode:04x}{where}")


class UnimplementedOpcodeError(SChip8Error, NotImplementedError):
    def __init__(self, opcode, address=None, mnemonic=None):
        self.opcode, self.address, self.mnemonic = opcode, address, mnemonic
        where = "" if address is None else f" at 0x{address:04x}"
        what = f" ({mnemonic})" if mnemonic else ""
        super().__init__(f"the opcode 0x{opcode:04x}{what}{where} is not supported by this interpreter")


# ******************** DECODER SECTION
Instruction = namedtuple("Instruction", ["name", "word", "x", "y", "n", "nn", "nnn"])

def split(word):
    """split a 16 bit opcode into its four nibbles, most significant first"""
    return (word & 0xF000) >> 12, (word & 0x0F00) >> 8, (word & 0x00F0) >> 4, word & 0x000F

def _classify(word):
    """return the instruction name for the opcode or None when nothing matches"""
    family, _, _, n = split(word)
    if family == 0x0:
        if word in SYS_OPS:
            return SYS_OPS[word]
        if word & 0xFFF0 == 0x00C0:
            return "SCD"
        return "SYS"
    if family in FAMILIES:
        return FAMILIES[family]
    if family == 0x5:
        return "SE_REG" if n == 0x0 else None
    if family == 0x9:
        return "SNE_REG" if n == 0x0 else None
    if family == 0x8:
        return ALU_OPS.get(n)
    if family == 0xE:
        return KEY_OPS.get(word & 0x00FF)
    # family 0xF is the only one left
    return MISC_OPS.get(word & 0x00FF)

def decode(word, address=None):
    """
    decode an opcode into an Instruction carrying every operand field
    the first nibble selects the family, the rest picks operands or the sub-opcode
    """
    name = _classify(word)
    if name is None:
        raise UnknownOpcodeError(word, address)
    _, x, y, n = split(word)
    return Instruction(name, word, x, y, n, word & 0x00FF, word & 0x0FFF)

def disassemble(instruction):
    return MNEMONICS[instruction.name].format(**instruction._asdict())

def sprite_bits(sprite_byte):
    """expand a sprite byte into 8 pixels, leftmost pixel first"""
    bits = bin(sprite_byte)[2:].zfill(8)    # remove '0b' from the front and pad with 0 till it's a byte
    return [int(bit) for bit in bits]


# ******************** I/O SECTION
class Framebuffer:
    """monochrome screen, one int (0 or 1) per pixel stored row by row"""
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT):
        self.w, self.h = w, h
        self.buffer = [0] * h * w

    def __len__(self):
        return len(self.buffer)

    def __getitem__(self, index):
        return self.buffer[index]

    def read_pixel(self, x, y):
        """return 1 if pixel is ON, return 0 if pixel is OFF"""
        return self.buffer[y * self.w + x]

    def write_pixel(self, x, y, color):
        self.buffer[y * self.w + x] = color

    def clear(self):
        self.buffer[:] = [0] * len(self.buffer)

    def rows(self):
        for y in range(self.h):
            yield self.buffer[y * self.w:(y + 1) * self.w]

class Keypad:
    """pressed/released latch for the 16 hex keys, kept current by the host"""
    def __init__(self):
        self.pressed_keys = [False] * NUM_KEYS

    @staticmethod
    def _check(key):
        if not 0 <= key < NUM_KEYS:
            raise InvalidKeyError(f"key 0x{key:x} does not exist, the keypad has keys 0x0 to 0xf")

    def __getitem__(self, key):
        self._check(key)
        return self.pressed_keys[key]

    def __setitem__(self, key, value):
        self._check(key)
        self.pressed_keys[key] = bool(value)

    def press(self, key):
        self[key] = True

    def release(self, key):
        self[key] = False

    def untouched(self):
        return not any(self.pressed_keys)


# ******************** MEMORY SECTION
# ********** FIXED SIZE STACK OF RETURN ADDRESSES, size DOUBLES AS STACK POINTER
class Stack:
    def __init__(self, capacity=STACK_SIZE):
        self.addr_list = [0] * capacity
        self.size = 0

    def __len__(self):
        return self.size

    @property
    def capacity(self):
        return len(self.addr_list)

    def append(self, address):
        if self.size >= self.capacity:
            raise StackOverflowError(f"The SCHIP-8 stack can contain at most {self.capacity} addresses. Limit exceeded")
        self.addr_list[self.size] = address
        self.size += 1

    def pop(self):
        if self.size == 0:
            raise StackUnderflowError("Return with an empty SCHIP-8 stack")
        self.size -= 1
        return self.addr_list[self.size]

    def entries(self):
        """return the live return addresses, bottom of the stack first"""
        return self.addr_list[:self.size]

# ********** WRAPS A LIST TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
# the interpreter area below ROM_START_ADDRESS (fonts included) is read-only for programs
class Memory:
    def __init__(self, program=b""):
        self.inner = [0] * MEMORY_SIZE
        self.inner[FONT_ADDRESS:FONT_ADDRESS+len(C8_FONTS)] = C8_FONTS
        self.load_rom(program)

    def __len__(self):
        return len(self.inner)

    @staticmethod
    def _span(key):
        if isinstance(key, slice):
            start = 0 if key.start is None else key.start
            stop = MEMORY_SIZE if key.stop is None else key.stop
            return start, stop
        return key, key + 1

    def __getitem__(self, key):
        start, stop = self._span(key)
        if not 0 <= start <= stop <= MEMORY_SIZE:
            raise MemoryAccessError(f"cannot read memory 0x{start:04x}-0x{stop - 1:04x}, memory ends at 0x{MEMORY_SIZE - 1:04x}")
        return self.inner[key]

    def __setitem__(self, key, value):
        start, stop = self._span(key)
        if not ROM_START_ADDRESS <= start <= stop <= MEMORY_SIZE:
            raise MemoryAccessError(f"cannot write memory 0x{start:04x}-0x{stop - 1:04x}, "
                                    f"writable memory is 0x{ROM_START_ADDRESS:04x}-0x{MEMORY_SIZE - 1:04x}")
        if isinstance(key, slice):
            value = [v & 0xFF for v in value]
            if len(value) != stop - start:
                raise ValueError(f"expected {stop - start} bytes, got {len(value)}")
        else:
            value &= 0xFF
        self.inner[key] = value

    def load_rom(self, program):
        """copy the program image at ROM_START_ADDRESS, raise RomTooLargeError if it doesn't fit"""
        if len(program) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(program))
        self.inner[ROM_START_ADDRESS:ROM_START_ADDRESS+len(program)] = list(program)


# ******************** CPU SECTION
class SChip8:
    def __init__(self, program=b"", rng=None):
        self.mem = Memory(program)
        self.stack = Stack()
        self.v_regs = [0] * NUM_REGISTERS
        self.pc = ROM_START_ADDRESS
        self.idx = 0    # specify where the sprites reside in memory
        self.dt = 0     # delay timer, active when non-zero
        self.st = 0     # sound timer, active when non-zero
        self.draw = False
        self.running = True
        self.key = None     # key handed in by the host for the current step
        self.screen = Framebuffer()
        self.keypad = Keypad()
        self.rng = rng if rng is not None else random.Random()
        self.instructions = {
            "CLS": self._clear_screen,
            "RET": self._return,
            "EXIT": self._exit,
            "JP": self._jump,
            "CALL": self._call_addr,
            "SE": self._skip_if_eq,
            "SNE": self._skip_if_not_eq,
            "SE_REG": self._skip_if_eq_regs,
            "SNE_REG": self._skip_if_not_eq_regs,
            "LD": self._set_vx,
            "ADD": self._add_to_vx,
            "LD_REG": self._set_vx_to_vy,
            "OR": self._set_vx_or_vy,
            "AND": self._set_vx_and_vy,
            "XOR": self._set_vx_xor_vy,
            "ADD_REG": self._add_vx_vy,
            "SUB": self._sub_vx_vy,
            "SHR": self._shr,
            "SUBN": self._subn_vx_vy,
            "SHL": self._shl,
            "LD_I": self._set_idx,
            "JP_V0": self._jump_plus,
            "RND": self._random_byte_and,
            "DRW": self._draw,
            "SKP": self._skip_if_pressed,
            "SKNP": self._skip_if_not_pressed,
            "LD_VX_DT": self._set_vx_dt,
            "LD_VX_K": self._wait_keypress,
            "LD_DT": self._set_dt_vx,
            "LD_ST": self._set_st,
            "ADD_I": self._add_to_idx,
            "LD_F": self._select_char,
            "LD_B": self._bcd_repr,
            "LD_I_VX": self._store_vregs,
            "LD_VX_I": self._load_vregs,
        }

    @classmethod
    def from_file(cls, path, rng=None):
        """load ROM file from user specified path and build a machine around it"""
        with open(path, mode='rb') as f:
            rom = f.read()
        chip = cls(rom, rng=rng)
        if DEBUG: print(f"The ROM at path {path} has been loaded successfully ({len(rom)} bytes)")
        return chip

    def __str__(self):
        registers = f"PC_REGISTER:0x{self.pc:04x} | IDX_REGISTER:0x{self.idx:04x} | VARIABLE_REGISTERS:{self.v_regs}"
        timers = f"DT:{self.dt} | ST:{self.st}"
        stack = f"STACK:{[hex(addr) for addr in self.stack.entries()]}"
        flags = f"DRAW: {self.draw} | RUNNING: {self.running}"
        return f"{registers}\n{timers}\n{stack}\n{flags}"

    @property
    def sound_on(self):
        return self.st > 0

    def tick_timers(self):
        """decrement delay and sound timers by one, never below zero"""
        if self.dt > 0:
            self.dt -= 1
        if self.st > 0:
            self.st -= 1

    # ********** INSTRUCTIONS
    def _clear_screen(self, ins):
        self.screen.clear()
        self.draw = True

    def _return(self, ins):
        """return from a subroutine"""
        self.pc = self.stack.pop()

    def _exit(self, ins):
        """exit the interpreter"""
        self.running = False

    def _jump(self, ins):
        self.pc = ins.nnn

    def _call_addr(self, ins):
        # pc already points past the call, which is where RET has to come back
        self.stack.append(self.pc)
        self.pc = ins.nnn

    def _skip_if_eq(self, ins):
        if self.v_regs[ins.x] == ins.nn:
            self._goto_next_instruction()

    def _skip_if_not_eq(self, ins):
        if self.v_regs[ins.x] != ins.nn:
            self._goto_next_instruction()

    def _skip_if_eq_regs(self, ins):
        if self.v_regs[ins.x] == self.v_regs[ins.y]:
            self._goto_next_instruction()

    def _skip_if_not_eq_regs(self, ins):
        if self.v_regs[ins.x] != self.v_regs[ins.y]:
            self._goto_next_instruction()

    def _set_vx(self, ins):
        """set the value of one of the 16 variable registers, Vx"""
        self.v_regs[ins.x] = ins.nn

    def _add_to_vx(self, ins):
        """add NN to Vx, the carry is not tracked"""
        self.v_regs[ins.x] = (self.v_regs[ins.x] + ins.nn) & 0xFF

    def _set_vx_to_vy(self, ins):
        self.v_regs[ins.x] = self.v_regs[ins.y]

    def _set_vx_or_vy(self, ins):
        self.v_regs[ins.x] |= self.v_regs[ins.y]

    def _set_vx_and_vy(self, ins):
        self.v_regs[ins.x] &= self.v_regs[ins.y]

    def _set_vx_xor_vy(self, ins):
        self.v_regs[ins.x] ^= self.v_regs[ins.y]

    # flag producing instructions write VF first and Vx last,
    # so with x == 0xF the result overwrites the flag
    def _add_vx_vy(self, ins):
        """set the value of Vx to Vx + Vy, VF = carry"""
        total = self.v_regs[ins.x] + self.v_regs[ins.y]
        self.v_regs[0xF] = 1 if total > 0xFF else 0
        self.v_regs[ins.x] = total & 0xFF   # keep only the lowest 8 bits from the result and store them in Vx

    def _sub_vx_vy(self, ins):
        """set Vx to |Vx - Vy|, VF = 1 when there is no borrow"""
        diff = self.v_regs[ins.x] - self.v_regs[ins.y]
        self.v_regs[0xF] = 1 if diff >= 0 else 0
        self.v_regs[ins.x] = abs(diff)      # absolute value, not the wrapped difference

    def _subn_vx_vy(self, ins):
        """set Vx to |Vy - Vx|, VF = 1 when there is no borrow"""
        diff = self.v_regs[ins.y] - self.v_regs[ins.x]
        self.v_regs[0xF] = 1 if diff >= 0 else 0
        self.v_regs[ins.x] = abs(diff)

    def _shr(self, ins):
        """set Vx equal to Vx SHR 1, VF = shifted out bit"""
        self.v_regs[0xF] = self.v_regs[ins.x] & 0x1
        self.v_regs[ins.x] >>= 1

    def _shl(self, ins):
        """set Vx equal to Vx SHL 1, VF = bit 15 of Vx"""
        # registers keep 16 bits of headroom, the shifted out bit is the 16th one
        self.v_regs[0xF] = (self.v_regs[ins.x] & 0x8000) >> 15
        self.v_regs[ins.x] = (self.v_regs[ins.x] << 1) & 0xFFFF

    def _set_idx(self, ins):
        """set the value of the I register"""
        self.idx = ins.nnn

    def _jump_plus(self, ins):
        self.pc = ins.nnn + self.v_regs[0x0]

    def _random_byte_and(self, ins):
        rnd = self.rng.randint(0, 255)
        self.v_regs[ins.x] = rnd & ins.nn

    def _draw(self, ins):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        flags = self.v_regs[0xF]
        self.v_regs[0xF] = 0
        # the start position wraps, the sprite itself is clipped at the right and bottom edges
        x = self.v_regs[ins.x] % self.screen.w
        y = self.v_regs[ins.y] % self.screen.h
        rows = min(ins.n, self.screen.h - y)
        try:
            sprite = self.mem[self.idx:self.idx + rows]
        except MemoryAccessError:
            self.v_regs[0xF] = flags
            raise
        for i, sprite_byte in enumerate(sprite):
            y_coordinate = y + i
            for j, bit in enumerate(sprite_bits(sprite_byte)):
                x_coordinate = x + j
                if x_coordinate >= self.screen.w:
                    break
                pixel_state = self.screen.read_pixel(x_coordinate, y_coordinate)
                # sprites are XORed onto the existing screen and if this
                # causes any pixel to be erased then VF=1, otherwise VF=0
                if pixel_state == 1 and bit == 1:
                    self.v_regs[0xF] = 1
                self.screen.write_pixel(x_coordinate, y_coordinate, pixel_state ^ bit)
        self.draw = True

    def _skip_if_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is pressed"""
        if self.keypad[self.v_regs[ins.x]]:
            self._goto_next_instruction()

    def _skip_if_not_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is NOT pressed"""
        if not self.keypad[self.v_regs[ins.x]]:
            self._goto_next_instruction()

    def _set_vx_dt(self, ins):
        self.v_regs[ins.x] = self.dt

    def _wait_keypress(self, ins):
        """wait for a key press and store its value in Vx"""
        if self.key is None:
            self.pc -= 0x2      # stay on the same instruction until a key is pressed
        else:
            Keypad._check(self.key)
            self.v_regs[ins.x] = self.key

    def _set_dt_vx(self, ins):
        self.dt = self.v_regs[ins.x] & 0xFF

    def _set_st(self, ins):
        self.st = self.v_regs[ins.x] & 0xFF

    def _add_to_idx(self, ins):
        """set I = I + Vx, VF = 1 when I leaves the 12 bit address space"""
        self.idx += self.v_regs[ins.x]
        if self.idx > 0xFFF:
            self.v_regs[0xF] = 1
            self.idx &= 0xFFF
        else:
            self.v_regs[0xF] = 0

    def _select_char(self, ins):
        """set I to location of sprite for digit Vx"""
        self.idx = (FONT_ADDRESS + self.v_regs[ins.x] * FONT_GLYPH_SIZE) & 0xFFF

    def _bcd_repr(self, ins):
        """hundreds digit of Vx in memory at I, the tens digit at I+1, the ones digit at I+2"""
        value = self.v_regs[ins.x]
        self.mem[self.idx:self.idx+3] = [value // 100 % 10, value // 10 % 10, value % 10]

    def _store_vregs(self, ins):
        """store registers V0 through Vx (included) in memory starting at location I"""
        self.mem[self.idx:self.idx+ins.x+1] = self.v_regs[:ins.x+1]

    def _load_vregs(self, ins):
        """read registers V0 through Vx (included) from memory starting at location I"""
        self.v_regs[:ins.x+1] = self.mem[self.idx:self.idx+ins.x+1]

    # ********** FETCH / DECODE / EXECUTE
    def _goto_next_instruction(self):
        self.pc += 0x2

    def fetch(self, address=None):
        """read the two byte opcode stored at address (pc by default)"""
        address = self.pc if address is None else address
        if not 0 <= address <= MEMORY_SIZE - 2:
            raise MemoryAccessError(f"program counter 0x{address:04x} is outside memory")
        return self.mem[address] << 8 | self.mem[address + 1]

    def current_instruction(self):
        """decode the instruction pc points to, without executing it"""
        return decode(self.fetch(), self.pc)

    def step(self, key=None):
        """
        execute one instruction, return False only when it is the exit instruction
        key is the key pressed for this step (0x0-0xF) or None, only LD Vx, K reads it
        on error pc is left on the failing instruction
        """
        self.draw = False
        self.key = key
        address = self.pc
        instruction = decode(self.fetch(), address)
        if DEBUG: print(f"mem_addr: 0x{address:04x}    instruction: {disassemble(instruction)}")
        if instruction.name in UNSUPPORTED:
            raise UnimplementedOpcodeError(instruction.word, address, disassemble(instruction))
        if instruction.name == "EXIT":
            self._exit(instruction)     # pc stays on the exit instruction
            return False
        self._goto_next_instruction()
        try:
            self.instructions[instruction.name](instruction)
        except SChip8Error:
            self.pc = address
            raise
        return True
