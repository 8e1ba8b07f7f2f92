import pygame
import pytest

from sketchcalc.board import PALETTE, DrawingBoard
from sketchcalc.errors import UpstreamError
from sketchcalc.parsing import AnalysisRecord
from sketchcalc.window import TB_BTN, TB_BTN_DISABLED, TOOLBAR_H, BoardWindow, Toolbar

from conftest import draw_stroke


class FakeClient:
    def __init__(self, records=None, error=None) -> None:
        self.records = records or []
        self.error = error

    def analyze(self, image_bytes: bytes):
        if self.error is not None:
            raise self.error
        return self.records


def item_center(toolbar: Toolbar, action: str, value=None):
    for item in toolbar.items:
        if item.action == action and (value is None or item.value == value):
            left, top, w, h = item.rect
            return (left + w // 2, top + h // 2)
    raise LookupError(action)


@pytest.fixture
def window() -> BoardWindow:
    client = FakeClient([AnalysisRecord(expr="3 * 4", result="12")])
    return BoardWindow(DrawingBoard(400, 200), client)


def click(window: BoardWindow, pos) -> None:
    window.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=pos, button=1))
    window.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, pos=pos, button=1))


def test_toolbar_layout_and_hits() -> None:
    toolbar = Toolbar(400)
    colors = [item.value for item in toolbar.items if item.action == "color"]
    assert colors == list(PALETTE)
    assert [item.action for item in toolbar.items if item.action != "color"] == [
        "eraser", "clear", "undo", "redo", "run",
    ]
    assert toolbar.hit(*item_center(toolbar, "color", "red")).value == "red"
    assert toolbar.hit(*item_center(toolbar, "undo")).action == "undo"
    assert toolbar.hit(1, 1) is None
    assert toolbar.hit(50, TOOLBAR_H + 5) is None


def test_canvas_drag_draws_a_stroke(window: BoardWindow) -> None:
    board = window.board
    window.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(20, TOOLBAR_H + 50), button=1))
    window.handle_event(pygame.event.Event(pygame.MOUSEMOTION, pos=(120, TOOLBAR_H + 50), rel=(100, 0), buttons=(1, 0, 0)))
    window.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, pos=(120, TOOLBAR_H + 50), button=1))

    assert board.history.undo_depth == 1
    assert board.surface.get_pixel(70, 50) == (255, 255, 255, 255)


def test_toolbar_clicks_do_not_draw(window: BoardWindow) -> None:
    click(window, item_center(window.toolbar, "color", "green"))
    assert window.board.color == "green"
    assert window.board.history.undo_depth == 0

    click(window, item_center(window.toolbar, "eraser"))
    assert window.board.erasing

    click(window, item_center(window.toolbar, "clear"))
    assert window.board.history.undo_depth == 1


def test_run_round_trip_through_queue(window: BoardWindow) -> None:
    image_bytes = window.board.begin_run()
    window._analyze_worker(image_bytes)
    assert window.board.running

    window.drain_results()
    assert not window.board.running
    assert window.board.surface.image.convert("L").getextrema()[1] > 0


def test_run_button_ignored_while_running(window: BoardWindow) -> None:
    window.board.begin_run()
    window.start_run()
    assert window.results.empty()


def test_worker_error_is_reported(window: BoardWindow) -> None:
    window.client = FakeClient(error=UpstreamError("offline"))
    before = window.board.surface.capture()
    window.board.begin_run()
    window._analyze_worker(b"img")
    window.drain_results()

    assert not window.board.running
    assert window.board.surface.capture() == before


def test_quit_event_closes(window: BoardWindow) -> None:
    assert window.handle_event(pygame.event.Event(pygame.QUIT)) is False


class StubFont:
    def render(self, text, antialias, color):
        return pygame.Surface((1, 1))


def finger(kind: int, window: BoardWindow, pos, finger_id: int = 0):
    w, h = window.size
    return pygame.event.Event(kind, touch_id=0, finger_id=finger_id, x=pos[0] / w, y=pos[1] / h, dx=0.0, dy=0.0)


def button(window: BoardWindow, action: str):
    return next(item for item in window.toolbar.items if item.action == action)


def test_start_run_worker_paints_result(window: BoardWindow) -> None:
    window.start_run()
    assert window.board.running

    kind, payload = window.results.get(timeout=5)
    assert kind == "ok"
    window.results.put((kind, payload))
    window.drain_results()

    assert not window.board.running
    assert window.board.surface.image.convert("L").getextrema()[1] > 0


def test_undo_redo_enabled_follow_history(window: BoardWindow) -> None:
    undo, redo = button(window, "undo"), button(window, "redo")
    assert not window.button_enabled(undo)
    assert not window.button_enabled(redo)

    draw_stroke(window.board, 50)
    assert window.button_enabled(undo)
    assert not window.button_enabled(redo)

    window.board.undo()
    assert not window.button_enabled(undo)
    assert window.button_enabled(redo)


def test_disabled_buttons_are_drawn_greyed(window: BoardWindow) -> None:
    screen = pygame.Surface(window.size)
    undo = button(window, "undo")
    left, top = undo.rect[:2]

    window.draw_toolbar(screen, StubFont(), (-1, -1))
    assert tuple(screen.get_at((left + 6, top + 6)))[:3] == TB_BTN_DISABLED

    draw_stroke(window.board, 50)
    window.draw_toolbar(screen, StubFont(), (-1, -1))
    assert tuple(screen.get_at((left + 6, top + 6)))[:3] == TB_BTN


def test_finger_drag_draws_a_stroke(window: BoardWindow) -> None:
    window.handle_event(finger(pygame.FINGERDOWN, window, (20, TOOLBAR_H + 50)))
    window.handle_event(finger(pygame.FINGERMOTION, window, (120, TOOLBAR_H + 50)))
    window.handle_event(finger(pygame.FINGERUP, window, (120, TOOLBAR_H + 50)))

    assert window.board.history.undo_depth == 1
    assert window.board.surface.get_pixel(70, 50) == (255, 255, 255, 255)


def test_finger_tap_presses_toolbar(window: BoardWindow) -> None:
    pos = item_center(window.toolbar, "color", "blue")
    window.handle_event(finger(pygame.FINGERDOWN, window, pos))
    window.handle_event(finger(pygame.FINGERUP, window, pos))

    assert window.board.color == "blue"
    assert window.board.history.undo_depth == 0


def test_only_first_finger_draws(window: BoardWindow) -> None:
    window.handle_event(finger(pygame.FINGERDOWN, window, (20, TOOLBAR_H + 50)))
    window.handle_event(finger(pygame.FINGERDOWN, window, (20, TOOLBAR_H + 150), finger_id=1))
    window.handle_event(finger(pygame.FINGERMOTION, window, (120, TOOLBAR_H + 150), finger_id=1))
    window.handle_event(finger(pygame.FINGERUP, window, (120, TOOLBAR_H + 150), finger_id=1))
    assert window.board.history.undo_depth == 0

    window.handle_event(finger(pygame.FINGERMOTION, window, (120, TOOLBAR_H + 50)))
    window.handle_event(finger(pygame.FINGERUP, window, (120, TOOLBAR_H + 50)))
    assert window.board.history.undo_depth == 1
    assert window.board.surface.get_pixel(70, 150) == (0, 0, 0, 255)


def test_mouse_events_mirrored_from_touch_are_ignored(window: BoardWindow) -> None:
    pos = (20, TOOLBAR_H + 50)
    window.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=pos, button=1, touch=True))
    assert not window.board.renderer.state.active
