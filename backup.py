import json
from datetime import date
from typing import Any, Union


class ImportParseError(ValueError):
    pass


def export_filename(app_name: str, on_date: date) -> str:
    return f"{app_name}-backup-{on_date.isoformat()}.json"


def dump_backup(records: list[dict[str, Any]]) -> str:
    """Backup payload: a bare JSON array of records, indented for humans."""
    return json.dumps(records, ensure_ascii=False, indent=2)


def parse_backup(content: Union[str, bytes]) -> Any:
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ImportParseError("Backup file is not UTF-8 text") from exc
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise ImportParseError(f"Backup file is not valid JSON: {exc.msg}") from exc
