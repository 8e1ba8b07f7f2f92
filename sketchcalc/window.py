"""Desktop front end: pygame window with a toolbar over the drawing board."""

import os
# keep pygame's banner out of the log stream
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import logging
import queue
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pygame

from .board import PALETTE, DrawingBoard
from .client import RelayClient
from .config import load_settings
from .errors import ParseError, UpstreamError
from .logging_utils import configure_logging
from .strokes import PointerEvent, canvas_position

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = 1024, 640
TOOLBAR_H = 44
FPS = 60

# Toolbar colours
TB_BG = (20, 20, 20)
TB_BTN = (60, 60, 60)
TB_BTN_HOVER = (90, 90, 90)
TB_BTN_DISABLED = (40, 40, 40)
TB_TEXT = (240, 240, 240)
TB_ACTIVE = (255, 255, 255)

SWATCH = 22
BUTTONS = ("Eraser", "Clear", "Undo", "Redo", "Run")


@dataclass(frozen=True)
class ToolbarItem:
    action: str
    value: Optional[str]
    rect: Tuple[int, int, int, int]

    def contains(self, x: int, y: int) -> bool:
        left, top, w, h = self.rect
        return left <= x < left + w and top <= y < top + h


class Toolbar:
    def __init__(self, width: int = WIDTH):
        items: List[ToolbarItem] = []
        x = 12
        top = (TOOLBAR_H - SWATCH) // 2
        for name in PALETTE:
            items.append(ToolbarItem("color", name, (x, top, SWATCH, SWATCH)))
            x += SWATCH + 8
        x += 16
        for label in BUTTONS:
            items.append(ToolbarItem(label.lower(), label, (x, 8, 70, TOOLBAR_H - 16)))
            x += 78
        self.items = items
        self.width = width

    def hit(self, x: int, y: int) -> Optional[ToolbarItem]:
        if y >= TOOLBAR_H:
            return None
        for item in self.items:
            if item.contains(x, y):
                return item
        return None


class BoardWindow:
    def __init__(self, board: DrawingBoard, client: RelayClient):
        self.board = board
        self.client = client
        self.toolbar = Toolbar(board.surface.width)
        self.size = (board.surface.width, board.surface.height + TOOLBAR_H)
        self.results: "queue.Queue[tuple]" = queue.Queue()
        self._finger = None

    def _analyze_worker(self, image_bytes: bytes):
        """Target for the daemon thread; never touches the board."""
        try:
            self.results.put(("ok", self.client.analyze(image_bytes)))
        except (UpstreamError, ParseError) as e:
            self.results.put(("error", e))
        except Exception as e:
            logger.exception("Unexpected error in analysis worker")
            self.results.put(("error", e))

    def start_run(self):
        if self.board.running:
            return
        image_bytes = self.board.begin_run()
        threading.Thread(target=self._analyze_worker, args=(image_bytes,), daemon=True).start()

    def drain_results(self):
        while True:
            try:
                kind, payload = self.results.get_nowait()
            except queue.Empty:
                break
            if kind == "ok":
                self.board.finish_run(payload)
            else:
                self.board.finish_run(error=payload)

    def press(self, item: ToolbarItem):
        if item.action == "color":
            self.board.select_color(item.value)
        elif item.action == "eraser":
            self.board.toggle_eraser()
        elif item.action == "clear":
            self.board.clear_screen()
        elif item.action == "undo":
            self.board.undo()
        elif item.action == "redo":
            self.board.redo()
        elif item.action == "run":
            self.start_run()

    def button_enabled(self, item: ToolbarItem) -> bool:
        if item.action == "undo":
            return self.board.history.can_undo
        if item.action == "redo":
            return self.board.history.can_redo
        if item.action == "run":
            return not self.board.running
        return True

    @staticmethod
    def to_canvas(pointer: PointerEvent):
        return canvas_position(pointer, origin=(0, TOOLBAR_H))

    def from_finger(self, event) -> PointerEvent:
        """Finger coordinates come normalised to 0..1 over the window."""
        w, h = self.size
        return PointerEvent.from_touch([(event.x * w, event.y * h)])

    def pointer_pressed(self, pointer: PointerEvent):
        item = self.toolbar.hit(pointer.client_x, pointer.client_y)
        if item is not None:
            self.press(item)
        elif pointer.client_y >= TOOLBAR_H:
            self.board.pointer_down(*self.to_canvas(pointer))

    def handle_event(self, event) -> bool:
        """Route one pygame event. Returns False when the window should close."""
        if event.type == pygame.QUIT:
            return False
        # SDL mirrors touches as mouse events; the finger events below handle those
        if getattr(event, "touch", False):
            return True
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.pointer_pressed(PointerEvent.from_mouse(*event.pos))
        elif event.type == pygame.MOUSEMOTION:
            self.board.pointer_move(*self.to_canvas(PointerEvent.from_mouse(*event.pos)))
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.board.pointer_up()
        elif event.type == pygame.FINGERDOWN and self._finger is None:
            self._finger = event.finger_id
            self.pointer_pressed(self.from_finger(event))
        elif event.type == pygame.FINGERMOTION and event.finger_id == self._finger:
            self.board.pointer_move(*self.to_canvas(self.from_finger(event)))
        elif event.type == pygame.FINGERUP and event.finger_id == self._finger:
            self._finger = None
            self.board.pointer_up()
        return True

    def draw_toolbar(self, screen, font, mouse_pos):
        pygame.draw.rect(screen, TB_BG, (0, 0, self.toolbar.width, TOOLBAR_H))
        for item in self.toolbar.items:
            rect = pygame.Rect(item.rect)
            if item.action == "color":
                pygame.draw.ellipse(screen, pygame.Color(item.value), rect)
                selected = item.value == self.board.color and not self.board.erasing
                pygame.draw.ellipse(screen, TB_ACTIVE, rect, width=3 if selected else 1)
                continue
            if not self.button_enabled(item):
                btn_color = TB_BTN_DISABLED
            elif rect.collidepoint(mouse_pos) or (item.action == "eraser" and self.board.erasing):
                btn_color = TB_BTN_HOVER
            else:
                btn_color = TB_BTN
            pygame.draw.rect(screen, btn_color, rect, border_radius=4)
            label = font.render("..." if item.action == "run" and self.board.running else item.value, True, TB_TEXT)
            screen.blit(label, label.get_rect(center=rect.center))

    def loop(self):
        surface = self.board.surface
        pygame.init()
        screen = pygame.display.set_mode(self.size)
        pygame.display.set_caption("SketchCalc")
        clock = pygame.time.Clock()
        font = pygame.font.SysFont(None, 22)

        running = True
        while running:
            for event in pygame.event.get():
                if not self.handle_event(event):
                    running = False
            self.drain_results()

            self.draw_toolbar(screen, font, pygame.mouse.get_pos())
            image = surface.image
            frame = pygame.image.frombuffer(image.tobytes(), image.size, "RGBA")
            screen.blit(frame, (0, TOOLBAR_H))
            pygame.display.flip()
            clock.tick(FPS)

        pygame.quit()


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    board = DrawingBoard(WIDTH, HEIGHT, settings)
    with RelayClient.from_settings(settings) as client:
        BoardWindow(board, client).loop()


if __name__ == "__main__":
    main()
