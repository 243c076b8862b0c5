"""
Minimal CSV reader for OrderTime report exports

Handles what OrderTime actually emits: a header row, quoted fields
that may contain commas, newlines and doubled quotes (""), and an
optional missing newline at the end of the file.
"""


def split_records(text: str) -> list[list[str]]:
    """
    Split raw CSV text into records of untrimmed field values.

    Records break only on newlines outside quotes.
    """
    text = text.replace('\r\n', '\n').replace('\r', '\n')

    records = []
    record = []
    field = []
    in_quotes = False
    i = 0

    while i < len(text):
        ch = text[i]

        if ch == '"':
            if in_quotes and i + 1 < len(text) and text[i + 1] == '"':
                # Escaped quote inside a quoted field
                field.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == ',' and not in_quotes:
            record.append(''.join(field))
            field = []
        elif ch == '\n' and not in_quotes:
            record.append(''.join(field))
            records.append(record)
            record = []
            field = []
        else:
            field.append(ch)

        i += 1

    # Last line without a trailing newline
    if field or record:
        record.append(''.join(field))
        records.append(record)

    return records


def _is_blank(record: list[str]) -> bool:
    return record == ['']


def parse_csv(text: str) -> list[dict]:
    """
    Parse CSV text into dicts keyed by the header row.

    Missing trailing columns become "", values are trimmed and blank
    lines are skipped.
    """
    records = [r for r in split_records(text or '') if not _is_blank(r)]
    if not records:
        return []

    header = [name.strip() for name in records[0]]

    rows = []
    for record in records[1:]:
        rows.append({
            name: record[i].strip() if i < len(record) else ''
            for i, name in enumerate(header)
        })

    return rows
