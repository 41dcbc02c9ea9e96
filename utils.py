import os

DEFAULT_PREFIX = "!"
MESSAGE_LIMIT = 2000


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, value)


def _env_str(name: str) -> str | None:
    raw = os.getenv(name)
    raw = raw.strip() if isinstance(raw, str) else None
    return raw or None


def humanize_delta(seconds: float) -> str:
    seconds = int(seconds)
    units = [("d", 86400), ("h", 3600), ("m", 60), ("s", 1)]
    parts = []
    for suffix, size in units:
        value, seconds = divmod(seconds, size)
        if value:
            parts.append(f"{value}{suffix}")
    return " ".join(parts) if parts else "0s"


def human_size(value: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    size = float(value)
    for unit in units:
        if size < 1024 or unit == units[-1]:
            return f"{size:.1f}{unit}" if unit != "B" else f"{int(size)}B"
        size /= 1024
    return f"{size:.1f}GB"


def sanitize(text: str) -> str:
    return text.replace("@everyone", "@​everyone").replace("@here", "@​here")


def truncate_text(text: str, max_len: int) -> str:
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    suffix = "...(truncated)"
    keep = max(max_len - len(suffix), 0)
    return f"{text[:keep]}{suffix}"


def chunk_string(items, sep: str = ", ", max_len: int = 1000) -> list[str]:
    """Split items into chunks not exceeding ``max_len`` characters."""
    chunks: list[str] = []
    buf = ""
    for it in items:
        token = str(it)
        token_len = len(token) if not buf else len(sep) + len(token)
        if not buf:
            buf = token
        elif len(buf) + token_len <= max_len:
            buf += sep + token
        else:
            chunks.append(buf)
            buf = token
    if buf:
        chunks.append(buf)
    return chunks


def split_message(text: str, max_len: int = MESSAGE_LIMIT) -> list[str]:
    """Break text on line boundaries into platform-sized messages."""
    lines: list[str] = []
    for line in text.splitlines() or [""]:
        while len(line) > max_len:
            lines.append(line[:max_len])
            line = line[max_len:]
        lines.append(line)
    return chunk_string(lines, sep="\n", max_len=max_len) or [""]
