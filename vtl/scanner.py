"""
Посимвольный сканер исходного текста шаблона.

Держит текущий символ предпросмотра `c`, один слот возврата (pushback)
и счётчик строк для диагностики.
"""

from __future__ import annotations

from typing import Optional

from .errors import ParseError

# Значение `c` в конце входа
EOF: Optional[str] = None

_NO_PUSHBACK = object()

# Символы, которые str.isspace() считает пробельными, но не считаются
# пробельными в эталонной реализации (неразрывные пробелы и NEL)
_NON_BREAKING = frozenset("\u00a0\u2007\u202f\u0085")

_CONTEXT_LENGTH = 20


def is_space(c: Optional[str]) -> bool:
    return c is not None and c.isspace() and c not in _NON_BREAKING


def is_ascii_letter(c: Optional[str]) -> bool:
    return c is not None and ("a" <= c <= "z" or "A" <= c <= "Z")


def is_ascii_digit(c: Optional[str]) -> bool:
    return c is not None and "0" <= c <= "9"


def is_id_char(c: Optional[str]) -> bool:
    return is_ascii_letter(c) or is_ascii_digit(c) or c == "-" or c == "_"


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


class Scanner:
    """
    Сканер с одним символом предпросмотра.

    Номер строки равен единице плюс количество уже прочитанных переводов
    строки, включая символ предпросмотра.
    """

    def __init__(self, text: str, resource_name: Optional[str] = None):
        self.resource_name = resource_name
        self._text = _normalize_newlines(text)
        self._pos = 0
        self._line = 1
        self._pushback = _NO_PUSHBACK
        self.c: Optional[str] = ""
        self.advance()

    @property
    def line_number(self) -> int:
        return self._line

    def advance(self) -> None:
        """Сдвигается к следующему символу. В конце входа ничего не делает."""
        if self.c is EOF:
            return
        if self._pushback is not _NO_PUSHBACK:
            self.c = self._pushback
            self._pushback = _NO_PUSHBACK
            return
        self.c = self._read()

    def _read(self) -> Optional[str]:
        if self._pos >= len(self._text):
            return EOF
        ch = self._text[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
        return ch

    def pushback(self, c: str) -> None:
        """Делает `c` текущим символом; прежний вернётся следующим advance()."""
        self._pushback = self.c
        self.c = c

    def skip_space(self) -> None:
        while is_space(self.c):
            self.advance()

    def next_non_space(self) -> None:
        self.advance()
        self.skip_space()

    def skip_newline(self) -> None:
        if self.c == "\n":
            self.advance()

    def expect(self, expected: str) -> None:
        """Пропускает пробелы и требует символ `expected`."""
        self.skip_space()
        if self.c == expected:
            self.advance()
        else:
            raise self.error(f"Expected {expected}")

    def parse_id(self, what: str) -> str:
        """
        Читает идентификатор: ASCII-буква, затем буквы, цифры, '-' и '_'.

        Args:
            what: Что именно ожидалось, для текста ошибки
        """
        if not is_ascii_letter(self.c):
            raise self.error(f"{what} should start with an ASCII letter")
        chars = []
        while is_id_char(self.c):
            chars.append(self.c)
            self.advance()
        return "".join(chars)

    def error(self, message: str) -> ParseError:
        """
        Строит ParseError с фрагментом текста после текущей позиции.

        Потребляет до 20 символов входа; после ошибки разбор не продолжается.
        """
        line_number = self.line_number
        if self.c is EOF:
            context = "EOF"
        else:
            chars = []
            while self.c is not EOF and len(chars) < _CONTEXT_LENGTH:
                chars.append(self.c)
                self.advance()
            context = "".join(chars)
            if self.c is not EOF:
                context += "..."
        return ParseError(message, self.resource_name, line_number, context)


__all__ = [
    "EOF",
    "Scanner",
    "is_space",
    "is_ascii_letter",
    "is_ascii_digit",
    "is_id_char",
]
