"""Key codes delivered by the raw-mode terminal reader."""

CONTROL_C = "\x03"
CONTROL_D = "\x04"
ENTER = "\r"
LINE_FEED = "\n"
ESCAPE = "\x1b"
BACKSPACE = "\x7f"
CONTROL_H = "\x08"
ARROW_UP = "\x1b[A"
ARROW_DOWN = "\x1b[B"
ARROW_RIGHT = "\x1b[C"
ARROW_LEFT = "\x1b[D"

A = "a"
C = "c"
O = "o"  # noqa: E741
P = "p"
Q = "q"
T = "t"
U = "u"
W = "w"
QUESTION_MARK = "?"

QUIT_KEYS = frozenset({CONTROL_C, CONTROL_D})
SUBMIT_KEYS = frozenset({ENTER, LINE_FEED})
ERASE_KEYS = frozenset({BACKSPACE, CONTROL_H})
ARROW_KEYS = frozenset({ARROW_UP, ARROW_DOWN, ARROW_RIGHT, ARROW_LEFT})


def is_printable(key: str) -> bool:
    """True for keys that should be appended to a prompt buffer."""
    return bool(key) and key.isprintable()
