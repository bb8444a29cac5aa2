"""
SQL text helpers.

Generated statements only interpolate quoted identifiers. Caller-supplied
WHERE predicates pass through verbatim except that positional markers
outside string literals are rewritten for the dialect, and on postgresql
lone percent signs are doubled for psycopg.
"""
import re
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    POSITIONAL_PH = auto()      # %s or ?


@dataclass(slots=True)
class Token:
    type: TokenType
    text: str
    start: int
    end: int


# Literals first, so markers inside them are never seen as placeholders
_TOKENIZE = re.compile(r"""
    (?P<string>'(?:[^']|'')*'|"(?:[^"]|"")*")
    |(?P<percent_s>%s)
    |(?P<qmark>\?)
""", re.VERBOSE)

# A lone %, not already doubled and not a %s / %( format marker
_LONE_PERCENT = re.compile(r'(?<!%)%(?![%s(])')

_PLACEHOLDERS = {'sqlite': '?', 'postgresql': '%s'}


def tokenize_sql(sql: str) -> list[Token]:
    """Split SQL into plain text, string literal and placeholder tokens.

    Joining the token texts gives back the input unchanged.
    """
    tokens = []
    pos = 0
    for match in _TOKENIZE.finditer(sql):
        start, end = match.span()
        if start > pos:
            tokens.append(Token(TokenType.SQL_TEXT, sql[pos:start], pos, start))
        ttype = TokenType.STRING_LITERAL if match.group('string') else TokenType.POSITIONAL_PH
        tokens.append(Token(ttype, match.group(0), start, end))
        pos = end
    if pos < len(sql):
        tokens.append(Token(TokenType.SQL_TEXT, sql[pos:], pos, len(sql)))
    return tokens


def placeholder_for(dialect: str) -> str:
    try:
        return _PLACEHOLDERS[dialect]
    except KeyError:
        raise ValueError(f'Unknown dialect: {dialect}') from None


def make_placeholders(count: int, dialect: str = 'postgresql') -> str:
    """`count` comma separated placeholders; empty for zero."""
    return ','.join([placeholder_for(dialect)] * count)


def standardize_placeholders(sql: str, dialect: str = 'postgresql') -> str:
    """Rewrite every `?` or `%s` outside literals to the dialect's marker.
    """
    target = placeholder_for(dialect)
    if not sql or ('?' not in sql and '%s' not in sql):
        return sql
    return ''.join(
        target if token.type == TokenType.POSITIONAL_PH else token.text
        for token in tokenize_sql(sql))


def escape_percent_signs(sql: str) -> str:
    """Double lone percent signs everywhere but in placeholders.

    psycopg reads every `%` as a format marker once parameters are passed,
    so `'a%'` has to reach it as `'a%%'` and `id % 2` as `id %% 2`.
    """
    if not sql or '%' not in sql:
        return sql
    return ''.join(
        token.text if token.type == TokenType.POSITIONAL_PH
        else _LONE_PERCENT.sub('%%', token.text)
        for token in tokenize_sql(sql))


def prepare_predicate(sql: str, dialect: str, has_args: bool = True) -> str:
    """Adapt a caller's WHERE fragment to the dialect.

    Nothing else about the fragment changes; the caller owns its safety.
    A `?` outside literals is always a placeholder, so operators spelled
    `?` (postgresql jsonb `?`, `?|`, `?&`) cannot be used in predicates.
    """
    sql = standardize_placeholders(sql, dialect)
    if dialect == 'postgresql' and has_args:
        sql = escape_percent_signs(sql)
    return sql


def quote_identifier(identifier: str, dialect: str = 'postgresql') -> str:
    """Double-quote a table or column name, doubling embedded quotes.

    Raises
        ValueError: If dialect is unsupported
    """
    if dialect not in _PLACEHOLDERS:
        raise ValueError(f'Unknown dialect: {dialect}')
    return '"' + identifier.replace('"', '""') + '"'
