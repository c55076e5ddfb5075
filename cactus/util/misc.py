from datetime import date


# Local calendar date as YYYY-MM-DD, which is what daily backups get keyed by.
def today_string(today: date | None = None):
    return (today or date.today()).isoformat()

# Whole minutes left, which is what the tray label shows. Never negative.
def minutes_floor(seconds):
    return max(0, int(seconds) // 60)

# Formats a countdown as MM:SS, switching to H:MM:SS past an hour. Negative values clamp to zero.
def format_clock(seconds):
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"
