import sys


def print_safe(s: str):
    """
    Print that won't crash on consoles with legacy encodings (e.g., cp1252).
    Always flushes, so progress shows up in real time.
    """
    try:
        print(s, flush=True)
    except UnicodeEncodeError:
        enc = sys.stdout.encoding or "cp1252"
        safe = s.encode(enc, errors="replace").decode(enc, errors="replace")
        print(safe, flush=True)
