import datetime
import os

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.lexers.special import TextLexer
from pygments.util import ClassNotFound


CSS_CLASS = "highlight"


def trim_prefix(s, prefix):
    return s[len(prefix):] if s.startswith(prefix) else s


def language_from_path(path):
    return trim_prefix(os.path.splitext(path)[1], ".").lower()


def highlight_code(text, language=None):
    lexer = None
    if language:
        try:
            lexer = get_lexer_by_name(language)
        except ClassNotFound:
            lexer = None
    if lexer is None:
        # Fallback to automatic detection.
        try:
            lexer = guess_lexer(text)
        except ClassNotFound:
            lexer = TextLexer()
    return highlight(text, lexer, HtmlFormatter(nowrap=True))


def line_gutter(text):
    n_lines = len(text.split("\n"))
    return "\n".join(str(i) for i in range(1, n_lines + 1))


def highlight_css():
    return HtmlFormatter().get_style_defs(f".{CSS_CLASS}")


def split_message(message):
    summary, _, body = message.strip().partition("\n")
    return summary, body.strip()


def signature_time(signature):
    tz = datetime.timezone(datetime.timedelta(minutes=signature.offset))
    return datetime.datetime.fromtimestamp(signature.time, tz)
