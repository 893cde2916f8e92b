from .parser import parse_w, parse_time_of_day

__all__ = ["parse_w", "parse_time_of_day"]
