"""Conversion of accumulated counts into per-unit rates"""


def convert_rate(accumulated: float, now: float, prev_flush_timestamp: float, rate_unit_millis: int) -> float:
    """Rescale a delta sum over the elapsed window to events per rate unit.
    
    All timestamps are in milliseconds. A non-positive window (clock going
    backwards, or two flushes at the same instant) yields a rate of 0.
    """
    elapsed = now - prev_flush_timestamp
    if elapsed <= 0:
        return 0.0
    return accumulated * rate_unit_millis / elapsed
