from datetime import datetime, timezone
from typing import Any


def format_timestamp(ts: Any) -> str:
    """Время в формате локали или пустая строка.

    Принимает datetime, объект хранилища с методом ``to_datetime()``,
    число миллисекунд от эпохи или строку ISO 8601. Никогда не бросает
    исключений.
    """
    try:
        if ts is None or isinstance(ts, bool) or ts == "":
            return ""
        if hasattr(ts, "to_datetime"):
            value = ts.to_datetime()
        elif isinstance(ts, datetime):
            value = ts
        elif isinstance(ts, (int, float)):
            value = datetime.fromtimestamp(ts / 1000, tz=timezone.utc)
        elif isinstance(ts, str):
            value = datetime.fromisoformat(ts)
        else:
            return ""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone().strftime("%c")
    except Exception:
        return ""
