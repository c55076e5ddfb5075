from .misc import today_string, minutes_floor, format_clock

__all__ = ["today_string", "minutes_floor", "format_clock"]
