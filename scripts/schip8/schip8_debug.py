"""
Interactive single-step debugger for the SCHIP-8 interpreter.

It only reads and drives the machine through its public state
(pc, idx, v_regs, stack, mem, screen, timers) and step().

Usage:
  python schip8_debug.py -f ROM
"""

import argparse
import cmd
import sys

from schip8 import SChip8, SChip8Error, disassemble


class SChip8Debugger(cmd.Cmd):
    """Single step monitor, an empty line executes the next instruction."""

    intro = (
        "----- SCHIP-8 Interactive Debugger -----\n"
        "Type 'h' for commands, 'q' to quit."
    )
    prompt = "> "

    def __init__(self, chip, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.chip = chip
        self.key = None

    def _print(self, *args):
        print(*args, file=self.stdout)

    def _parse_key(self, arg):
        arg = arg.strip().lower()
        if arg in ("", "none", "-"):
            return None
        return int(arg, 16)

    # -- Inspection --

    def do_reg(self, arg):
        """Show pc, I, sp, timers and V0..VF: reg"""
        self._print(f"pc: {self.chip.pc:X}")
        self._print(f"ar: {self.chip.idx:X}")
        self._print(f"sp: {self.chip.stack.size:X}")
        self._print(f"dt: {self.chip.dt:X}")
        self._print(f"st: {self.chip.st:X}")
        for i, reg in enumerate(self.chip.v_regs):
            self._print(f"V{i:X}: {reg:X}")

    def do_stack(self, arg):
        """Show every stack slot, top first: stack"""
        stack = self.chip.stack
        for i in reversed(range(stack.capacity)):
            marker = "  <- sp" if i == stack.size else ""
            self._print(f"{i:02X}: {stack.addr_list[i]:03X}{marker}")

    def do_ram(self, arg):
        """Hex dump of memory: ram [start [count]] (hex start, default whole memory)"""
        parts = arg.split()
        try:
            start = int(parts[0], 16) if parts else 0
            count = int(parts[1], 0) if len(parts) > 1 else len(self.chip.mem) - start
            data = self.chip.mem[start:start + count]
        except (ValueError, SChip8Error) as e:
            self._print(f"Error: {e}")
            return
        for offset in range(0, len(data), 16):
            row = " ".join(f"{b:02X}" for b in data[offset:offset + 16])
            self._print(f"{start + offset:03X}: {row}")

    def do_disp(self, arg):
        """Show the framebuffer, one line per row: disp"""
        for row in self.chip.screen.rows():
            self._print("".join(str(pixel) for pixel in row))

    def do_dis(self, arg):
        """Disassemble the instruction at pc: dis"""
        try:
            instruction = self.chip.current_instruction()
        except SChip8Error as e:
            self._print(f"Error: {e}")
            return
        self._print(f"  0x{self.chip.pc:04x}: {instruction.word:04X}  {disassemble(instruction)}")

    # -- Execution --

    def do_step(self, arg):
        """Execute N instructions: step [count]"""
        try:
            count = int(arg, 0) if arg.strip() else 1
        except ValueError:
            self._print(f"Error: invalid count {arg!r}")
            return
        for _ in range(count):
            if not self.chip.running:
                self._print("The interpreter has exited.")
                break
            address = self.chip.pc
            try:
                text = disassemble(self.chip.current_instruction())
                self.chip.step(self.key)
            except SChip8Error as e:
                self._print(f"Error: {e}")
                break
            self._print(f"  0x{address:04x}: {text}")
    do_s = do_step
    do_c = do_step

    def do_key(self, arg):
        """Set the key handed to the next steps (used by LD Vx, K): key <0-f>|none"""
        try:
            self.key = self._parse_key(arg)
        except ValueError:
            self._print(f"Error: invalid key {arg!r}")
            return
        self._print(f"key: {'none' if self.key is None else format(self.key, 'X')}")

    def do_press(self, arg):
        """Mark a key as held down in the keypad latch: press <0-f>"""
        self._set_key(arg, True)

    def do_release(self, arg):
        """Mark a key as released in the keypad latch: release <0-f>"""
        self._set_key(arg, False)

    def _set_key(self, arg, pressed):
        try:
            self.chip.keypad[int(arg, 16)] = pressed
        except (ValueError, SChip8Error) as e:
            self._print(f"Error: {e}")

    def do_timers(self, arg):
        """Decrement the delay and sound timers once: timers"""
        self.chip.tick_timers()
        self._print(f"dt: {self.chip.dt:X}  st: {self.chip.st:X}")

    def do_h(self, arg):
        """List the available commands: h"""
        self._print("Available commands: reg, stack, ram, disp, dis, step, s, c, key, press, release, timers, h, q")

    def do_quit(self, arg):
        """Leave the debugger: q"""
        return True
    do_q = do_quit

    def do_EOF(self, arg):
        self._print()
        return self.do_quit(arg)

    def default(self, line):
        self._print("Unknown command")

    def emptyline(self):
        """An empty line executes the next instruction."""
        return self.do_step("")


def main(argv=None):
    parser = argparse.ArgumentParser(description="step through a SCHIP-8 ROM")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    args = parser.parse_args(argv)
    try:
        chip = SChip8.from_file(args.file)
    except (OSError, SChip8Error) as e:
        sys.exit(f"Unable to load {args.file}: {e}")
    SChip8Debugger(chip).cmdloop()


if __name__ == "__main__":
    main()
