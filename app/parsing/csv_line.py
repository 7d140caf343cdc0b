"""
app/parsing/csv_line.py

Single-line CSV field scanner.
"""

from __future__ import annotations


class CSVLineError(ValueError):
    """
    Raised when one CSV line cannot be split into fields.
    """


def split_csv_line(line: str, delimiter: str = ",") -> list[str]:
    """
    Split one CSV line into raw field strings.

    Double quotes enclose fields, `""` inside a quoted field is a literal
    quote, and delimiters only separate fields outside quotes.
    """

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if char == '"':
            if in_quotes and index + 1 < length and line[index + 1] == '"':
                current.append('"')
                index += 2
                continue
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1

    if in_quotes:
        raise CSVLineError("Unterminated quoted field")

    fields.append("".join(current))
    return fields
