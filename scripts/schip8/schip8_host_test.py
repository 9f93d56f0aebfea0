import os
import tempfile
import unittest

import pygame

from schip8 import SChip8
from schip8_host import (
    SAMPLE_RATE, TONE_FREQUENCY, Beeper, TimerPacer, get_args, main,
    process_event, square_wave, translate_key,
)


class FakeSound:
    def __init__(self):
        self.calls = []

    def play(self, loops=0):
        self.calls.append(("play", loops))

    def stop(self):
        self.calls.append(("stop",))


class TestKeyMapping(unittest.TestCase):
    def test_digits_and_letters(self):
        self.assertEqual(translate_key(pygame.K_0), 0x0)
        self.assertEqual(translate_key(pygame.K_KP7), 0x7)
        self.assertEqual(translate_key(pygame.K_f), 0xF)
        self.assertIsNone(translate_key(pygame.K_z))

    def test_key_events_update_latch(self):
        chip = SChip8()
        self.assertEqual(process_event(chip, pygame.event.Event(pygame.KEYDOWN, key=pygame.K_a)), (True, 0xA))
        self.assertTrue(chip.keypad[0xA])
        self.assertEqual(process_event(chip, pygame.event.Event(pygame.KEYUP, key=pygame.K_a)), (True, None))
        self.assertFalse(chip.keypad[0xA])

    def test_unbound_key(self):
        chip = SChip8()
        self.assertEqual(process_event(chip, pygame.event.Event(pygame.KEYDOWN, key=pygame.K_z)), (True, None))
        self.assertTrue(chip.keypad.untouched())

    def test_quit_events(self):
        chip = SChip8()
        self.assertEqual(process_event(chip, pygame.event.Event(pygame.QUIT)), (False, None))
        self.assertEqual(process_event(chip, pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE)), (False, None))


class TestTimers(unittest.TestCase):
    def test_due_every_interval(self):
        pacer = TimerPacer(1000)
        self.assertFalse(pacer.due(1010))
        self.assertTrue(pacer.due(1016))
        self.assertFalse(pacer.due(1020))
        self.assertTrue(pacer.due(1040))

    def test_decoupled_from_instruction_rate(self):
        chip = SChip8(bytes([0x12, 0x00]))     # JP 0x200
        chip.dt = 10
        pacer = TimerPacer(0)
        for now in range(0, 160):
            chip.step()
            if pacer.due(now):
                chip.tick_timers()
        self.assertEqual(chip.dt, 1)


class TestBeeper(unittest.TestCase):
    def test_square_wave(self):
        wave = square_wave()
        self.assertEqual(len(wave), SAMPLE_RATE // TONE_FREQUENCY)
        self.assertEqual(wave[0], -wave[-1])
        self.assertGreater(wave[0], 0)

    def test_plays_while_sound_timer_is_set(self):
        sound = FakeSound()
        beeper = Beeper(sound)
        beeper.update(0)
        beeper.update(3)
        beeper.update(2)
        beeper.update(0)
        beeper.update(0)
        self.assertEqual(sound.calls, [("play", -1), ("stop",)])

    def test_without_audio_device(self):
        beeper = Beeper()
        beeper.update(5)
        self.assertFalse(beeper.playing)


class TestCommandLine(unittest.TestCase):
    def test_defaults(self):
        args = get_args(["-f", "pong.ch8"])
        self.assertEqual(args.file, "pong.ch8")
        self.assertFalse(args.debug)
        self.assertGreater(args.speed, 0)

    def test_options(self):
        args = get_args(["--file", "pong.ch8", "-s", "10", "--speed", "700", "--debug"])
        self.assertEqual((args.scale, args.speed, args.debug), (10, 700, True))

    def test_missing_rom_exits(self):
        with self.assertRaises(SystemExit):
            main(["-f", os.path.join(tempfile.gettempdir(), "no-such-rom.ch8")])

    def test_rom_too_large_exits(self):
        with tempfile.NamedTemporaryFile(suffix=".ch8", delete=False) as f:
            f.write(bytes(4096))
        try:
            with self.assertRaises(SystemExit) as cm:
                main(["-f", f.name])
            self.assertIn("at most 3584 bytes", str(cm.exception))
        finally:
            os.remove(f.name)


if __name__ == "__main__":
    unittest.main()
