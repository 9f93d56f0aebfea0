# pygame front end for the SCHIP-8 interpreter:
# window, keyboard, beeper and the 60 Hz timers all live here,
# the interpreter itself is in schip8.py


import argparse
import sys
from array import array

import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
    K_KP0, K_KP1, K_KP2, K_KP3,
    K_KP4, K_KP5, K_KP6, K_KP7,
    K_KP8, K_KP9,
)

from schip8 import SCREEN_HEIGHT, SCREEN_WIDTH, SChip8, SChip8Error
from schip8_debug import SChip8Debugger


# ******************** STATIC SECTION
KEY_MAPPINGS = {
    K_0: 0x0, K_KP0: 0x0,
    K_1: 0x1, K_KP1: 0x1,
    K_2: 0x2, K_KP2: 0x2,
    K_3: 0x3, K_KP3: 0x3,
    K_4: 0x4, K_KP4: 0x4,
    K_5: 0x5, K_KP5: 0x5,
    K_6: 0x6, K_KP6: 0x6,
    K_7: 0x7, K_KP7: 0x7,
    K_8: 0x8, K_KP8: 0x8,
    K_9: 0x9, K_KP9: 0x9,
    K_a: 0xA,
    K_b: 0xB,
    K_c: 0xC,
    K_d: 0xD,
    K_e: 0xE,
    K_f: 0xF,
}

SCALE = 15
SPEED = 500                 # instructions per second
TIMER_INTERVAL_MS = 16      # roughly 60 Hz
BLUE = pygame.Color(80,69,155,255)
LIGHT_BLUE = pygame.Color(136,126,203,255)
SAMPLE_RATE = 44100
TONE_FREQUENCY = 440
TONE_VOLUME = 0.10


# ******************** UTILITIES SECTION
def get_args(argv=None):
    parser = argparse.ArgumentParser(description="run a SCHIP-8 ROM")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("-s", "--scale", type=int, default=SCALE, help="device pixels per emulated pixel")
    parser.add_argument("--speed", type=int, default=SPEED, help="instructions executed per second")
    parser.add_argument("--debug", action="store_true", help="step through the ROM in the interactive debugger")
    return parser.parse_args(argv)

def translate_key(key_code):
    """map a pygame key code to a keypad key, None if the key isn't bound"""
    return KEY_MAPPINGS.get(key_code)

def square_wave(frequency=TONE_FREQUENCY, rate=SAMPLE_RATE, volume=TONE_VOLUME):
    """one period of a signed 16 bit square wave, loop it to get a continuous tone"""
    period = rate // frequency
    amplitude = int(volume * 32767)
    return array('h', [amplitude if i < period // 2 else -amplitude for i in range(period)])

class TimerPacer:
    """tells the main loop when the delay/sound timers are due, independently of the instruction rate"""
    def __init__(self, now, interval=TIMER_INTERVAL_MS):
        self.interval = interval
        self.last = now

    def due(self, now):
        if now - self.last >= self.interval:
            self.last = now
            return True
        return False


# ******************** I/O SECTION
class Screen:
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE):
        self.w, self.h, self.scale = w, h, s
        self.background = bg_color
        self.foreground = fg_color
        self.surface = pygame.display.set_mode(
            (w * self.scale, h * self.scale),
        )
        self.surface.fill(self.background)

    def render(self, framebuffer):
        """blow up every emulated pixel to a scale x scale square and show the result"""
        self.surface.fill(self.background)
        for i, pixel in enumerate(framebuffer):
            if pixel:
                x, y = i % framebuffer.w, i // framebuffer.w
                pygame.draw.rect(
                    self.surface,
                    self.foreground,
                    (x * self.scale, y * self.scale, self.scale, self.scale)
                )
        pygame.display.flip()

class Beeper:
    """plays the tone exactly while the sound timer is non-zero"""
    def __init__(self, sound=None):
        self.sound = sound
        self.playing = False

    @classmethod
    def open(cls):
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
        except pygame.error as e:
            print(f"Audio disabled: {e}")
            return cls()
        return cls(pygame.mixer.Sound(buffer=square_wave().tobytes()))

    def update(self, st):
        if self.sound is None:
            return
        if st > 0 and not self.playing:
            self.sound.play(loops=-1)
            self.playing = True
        elif st == 0 and self.playing:
            self.sound.stop()
            self.playing = False

def process_event(chip, event):
    """
    update the keypad latch from a pygame event
    return (keep_running, key) where key is the keypad key pressed by this event or None
    """
    if event.type == pygame.QUIT:
        return False, None
    if event.type == pygame.KEYDOWN:
        if event.key == pygame.K_ESCAPE:
            return False, None
        key = translate_key(event.key)
        if key is not None:
            chip.keypad.press(key)
        return True, key
    if event.type == pygame.KEYUP:
        key = translate_key(event.key)
        if key is not None:
            chip.keypad.release(key)
    return True, None


# ******************** ENTRY POINT SECTION
def run(chip, screen, beeper, speed=SPEED):
    clock = pygame.time.Clock()
    timers = TimerPacer(pygame.time.get_ticks())
    screen.render(chip.screen)
    running = True
    while running:
        clock.tick(speed)
        # process user input
        # only a key pressed during this iteration can satisfy LD Vx, K
        key = None
        for event in pygame.event.get():
            keep_running, pressed = process_event(chip, event)
            running = running and keep_running
            if pressed is not None:
                key = pressed
        if not running:
            break
        running = chip.step(key)     # emulate one machine cycle (fetch opcode, decode opcode, execute opcode)
        if chip.draw:
            screen.render(chip.screen)
        # delay/sound timers (dt/st)
        if timers.due(pygame.time.get_ticks()):
            chip.tick_timers()
        beeper.update(chip.st)
    beeper.update(0)

def main(argv=None):
    args = get_args(argv)
    try:
        chip = SChip8.from_file(args.file)
    except (OSError, SChip8Error) as e:
        sys.exit(f"Unable to load {args.file}: {e}")
    if args.debug:
        SChip8Debugger(chip).cmdloop()
        return
    # pygame initialization
    pygame.init()
    pygame.display.set_caption(f"schip8 - {os.path.basename(args.file)}")
    try:
        run(chip, Screen(s=args.scale), Beeper.open(), args.speed)
    except SChip8Error as e:
        sys.exit(f"********** THE EMULATOR CRASHED WITH THE FOLLOWING STATE\n{e}\n{chip}")
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
