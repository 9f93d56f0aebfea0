import io
import unittest

from schip8 import SChip8
from schip8_debug import SChip8Debugger


def rom(*words):
    return b"".join(word.to_bytes(2, "big") for word in words)


class TestDebugger(unittest.TestCase):
    def setUp(self):
        # LD V0, 0x2A; LD I, 0x300; CALL 0x208; EXIT; DRW V1, V1, 1 ...
        self.chip = SChip8(rom(0x602A, 0xA300, 0x2208, 0x00FD, 0xD111, 0x00EE))
        self.out = io.StringIO()
        self.dbg = SChip8Debugger(self.chip, stdin=io.StringIO(), stdout=self.out)

    def output(self):
        text = self.out.getvalue()
        self.out.seek(0)
        self.out.truncate()
        return text

    def test_reg(self):
        self.dbg.onecmd("step 2")
        self.output()
        self.dbg.onecmd("reg")
        lines = self.output().splitlines()
        self.assertIn("pc: 204", lines)
        self.assertIn("ar: 300", lines)
        self.assertIn("V0: 2A", lines)
        self.assertEqual(len(lines), 5 + 16)

    def test_step_prints_disassembly(self):
        self.dbg.onecmd("step 3")
        self.assertEqual(self.output().splitlines(), [
            "  0x0200: LD V0, 0x2a",
            "  0x0202: LD I, 0x300",
            "  0x0204: CALL 0x208",
        ])
        self.assertEqual(self.chip.pc, 0x208)

    def test_empty_line_steps(self):
        self.dbg.onecmd("")
        self.assertEqual(self.chip.pc, 0x202)

    def test_stack(self):
        self.dbg.onecmd("step 3")
        self.output()
        self.dbg.onecmd("stack")
        lines = self.output().splitlines()
        self.assertEqual(len(lines), self.chip.stack.capacity)
        self.assertEqual(lines[-1], "00: 206")
        self.assertEqual(lines[-2], "01: 000  <- sp")

    def test_ram(self):
        self.dbg.onecmd("ram 200 4")
        self.assertEqual(self.output().splitlines(), ["200: 60 2A A3 00"])
        self.dbg.onecmd("ram 2000")
        self.assertTrue(self.output().startswith("Error:"))

    def test_disp(self):
        self.chip.screen.write_pixel(1, 0, 1)
        self.dbg.onecmd("disp")
        lines = self.output().splitlines()
        self.assertEqual(len(lines), 32)
        self.assertEqual(lines[0], "01" + "0" * 62)

    def test_dis(self):
        self.dbg.onecmd("dis")
        self.assertEqual(self.output().strip(), "0x0200: 602A  LD V0, 0x2a")

    def test_exit_is_reported(self):
        self.dbg.onecmd("step 10")
        text = self.output()
        self.assertIn("EXIT", text)
        self.assertIn("The interpreter has exited.", text)
        self.assertFalse(self.chip.running)

    def test_errors_are_reported(self):
        chip = SChip8(rom(0x00EE))
        dbg = SChip8Debugger(chip, stdin=io.StringIO(), stdout=self.out)
        dbg.onecmd("step")
        self.assertIn("Error: Return with an empty SCHIP-8 stack", self.output())
        self.assertEqual(chip.pc, 0x200)

    def test_key_is_handed_to_wait(self):
        chip = SChip8(rom(0xF50A))
        dbg = SChip8Debugger(chip, stdin=io.StringIO(), stdout=self.out)
        dbg.onecmd("step")
        self.assertEqual(chip.pc, 0x200)
        dbg.onecmd("key c")
        dbg.onecmd("step")
        self.assertEqual(chip.pc, 0x202)
        self.assertEqual(chip.v_regs[5], 0xC)

    def test_press_and_release(self):
        self.dbg.onecmd("press a")
        self.assertTrue(self.chip.keypad[0xA])
        self.dbg.onecmd("release a")
        self.assertFalse(self.chip.keypad[0xA])
        self.dbg.onecmd("press 10")
        self.assertTrue(self.output().startswith("Error:"))

    def test_timers(self):
        self.chip.dt, self.chip.st = 3, 1
        self.dbg.onecmd("timers")
        self.assertEqual((self.chip.dt, self.chip.st), (2, 0))

    def test_quit(self):
        self.assertTrue(self.dbg.onecmd("q"))
        self.assertTrue(self.dbg.onecmd("quit"))

    def test_unknown_command(self):
        self.dbg.onecmd("frobnicate")
        self.assertEqual(self.output().strip(), "Unknown command")

    def test_cmdloop(self):
        dbg = SChip8Debugger(self.chip, stdin=io.StringIO("step 2\nreg\nq\n"), stdout=self.out)
        dbg.cmdloop()
        self.assertEqual(self.chip.pc, 0x204)
        self.assertIn("V0: 2A", self.output())


if __name__ == "__main__":
    unittest.main()
