"""cyclecore: поиск периода детерминированных последовательностей в ограниченной памяти.

Использование:
  from libs.cyclecore import find_period, ResourceExhausted
  period = find_period(x0, step, key=rank_key)
"""
from .cyclecore import (
    BUCKETS, STACK_SIZE,
    ResourceExhausted,
    BucketTable, MultiStackDetector,
    find_period, find_orbit,
)
