"""
Apple-1 Virtual Emulator — Host Display Interface

The PIA never draws anything itself. It talks to a DisplayPort, which the
embedder implements on top of whatever renderer it has (a window, a
terminal, a test recorder). TextScreen is a headless 40x24 character
buffer implementation that matches the Apple-1 terminal section.
"""

from abc import ABC, abstractmethod

DEFAULT_COLUMNS = 40
DEFAULT_ROWS = 24


class DisplayPort(ABC):
    """Host display callbacks consumed by the PIA."""

    @abstractmethod
    def emit_glyph(self, ch: str):
        """Draw ch at the cursor and advance the cursor one column."""
        pass

    @abstractmethod
    def advance_line(self):
        """Move the cursor to column 0 of the next line, scrolling if needed."""
        pass

    @abstractmethod
    def erase_previous_column(self):
        """Blank the cell left of the cursor and move the cursor onto it."""
        pass

    @property
    @abstractmethod
    def cursor_column(self) -> int:
        pass

    @property
    @abstractmethod
    def columns(self) -> int:
        """Window width in character cells, used for line wrap."""
        pass


class TextScreen(DisplayPort):
    """Headless character-cell screen with a cursor and upward scroll."""

    def __init__(self, columns: int = DEFAULT_COLUMNS, rows: int = DEFAULT_ROWS):
        self._columns = columns
        self.rows = rows
        self.cursor_x = 0
        self.cursor_y = 0
        self._cells = [[' '] * columns for _ in range(rows)]

    @property
    def cursor_column(self) -> int:
        return self.cursor_x

    @property
    def columns(self) -> int:
        return self._columns

    def emit_glyph(self, ch: str):
        if self.cursor_x < self._columns:
            self._cells[self.cursor_y][self.cursor_x] = ch
        self.cursor_x += 1

    def advance_line(self):
        self.cursor_x = 0
        if self.cursor_y < self.rows - 1:
            self.cursor_y += 1
        else:
            self.scroll()

    def erase_previous_column(self):
        # Column 0 is never erased
        if self.cursor_x <= 1:
            return
        self._cells[self.cursor_y][self.cursor_x - 1] = ' '
        self.cursor_x -= 1

    def scroll(self):
        del self._cells[0]
        self._cells.append([' '] * self._columns)

    def write(self, text: str):
        """Host-side text output (banners, status lines). '\\n' starts a new line."""
        for ch in text:
            if ch == '\n':
                self.advance_line()
            else:
                self.emit_glyph(ch)
                if self.cursor_x >= self._columns:
                    self.advance_line()

    def line(self, row: int) -> str:
        return ''.join(self._cells[row]).rstrip()

    def lines(self) -> list:
        return [self.line(row) for row in range(self.rows)]

    def text(self) -> str:
        return '\n'.join(self.lines()).rstrip('\n')
