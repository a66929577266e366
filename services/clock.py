# services/clock.py
import re
from datetime import date, datetime, time, timedelta, timezone

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):(\d{2})$")


def parse_time(time_str: str) -> time:
    """HH:MM形式の文字列をtimeオブジェクトに変換"""
    h, m = map(int, time_str.split(":"))
    return time(h, m)


def parse_utc_offset(offset_str: str) -> timezone:
    """"+05:00" 形式のオフセットを固定タイムゾーンに変換"""
    match = _OFFSET_RE.match(offset_str.strip())
    if not match:
        raise ValueError(f"invalid UTC offset: {offset_str!r}")
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == "-" else delta)


def civil_today(now: datetime, tz: timezone) -> date:
    """指定オフセットでの暦日を返す"""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def day_window(today: date, tz: timezone) -> tuple[datetime, datetime]:
    """暦日の半開区間 [startOfDay, endOfDay) をUTCで返す"""
    start = datetime.combine(today, time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def checkout_instant(today: date, checkout_time: time, tz: timezone) -> datetime:
    """自動退勤時刻（現地時刻）を当日のUTC時刻に変換"""
    local = datetime.combine(today, checkout_time, tzinfo=tz)
    return local.astimezone(timezone.utc)


def to_utc_iso(value: datetime) -> str:
    """PostgRESTのフィルタ用にミリ秒付きZ表記へ整形"""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(:\d{2}(?:\.\d+)?[+-]\d{2})$")


def parse_timestamp(value) -> datetime:
    """ISO 8601文字列をaware datetimeに変換（tzなしはUTC扱い）

    PostgRESTは末尾0を省いた小数秒（例: .12345）や +00 形式のオフセットを返すため、
    小数秒を6桁に揃え、オフセットを +HH:MM に補ってから解釈する。
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _SHORT_OFFSET.sub(r"\1:00", text)
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
