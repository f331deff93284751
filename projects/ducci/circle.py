"""
circle.py: круг из n целых чисел и шаг «разность соседей»

На каждом шаге каждое число одновременно заменяется модулем разности двух
его соседей по кругу:

    next[i] = |c[i-1] - c[i+1]|   (индексы по модулю n)

Круг хранится как неизменяемые bytes длины n (значения 0..255):
  - равенство: поэлементное
  - порядок: лексикографический, более короткий префикс меньше
  - хешируемость: круг годится как ключ словаря и состояние детектора
"""

from __future__ import annotations
import random

MIN_SIZE = 3          # наименьший допустимый круг
MAX_SIZE = 100        # наибольший допустимый круг
VALUE_LIMIT = 255     # случайные значения берутся из 0..VALUE_LIMIT-1
RANK_PREFIX = 16      # число первых элементов, входящих в rank_key

Circle = bytes


def validate_size(n: int) -> int:
    """Проверить размер круга: MIN_SIZE <= n <= MAX_SIZE."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise ValueError(f"размер круга должен быть целым, получено {n!r}")
    if not MIN_SIZE <= n <= MAX_SIZE:
        raise ValueError(f"n must be {MIN_SIZE}..{MAX_SIZE}, got {n}")
    return n


def from_values(values) -> Circle:
    """Круг из явного списка чисел 0..255."""
    vals = list(values)
    validate_size(len(vals))
    for v in vals:
        if not 0 <= v <= 255:
            raise ValueError(f"значение {v} вне диапазона 0..255")
    return bytes(vals)


def create_random(n: int, seed: int | None = None,
                  rng: random.Random | None = None) -> Circle:
    """
    Случайный круг длины n. Каждое число независимо и равномерно
    из 0..VALUE_LIMIT-1.

    seed задаёт воспроизводимый круг, rng позволяет передать свой генератор.
    """
    validate_size(n)
    if rng is None:
        rng = random.Random(seed)
    return bytes(rng.randrange(VALUE_LIMIT) for _ in range(n))


def advance(c: Circle) -> Circle:
    """Следующий круг. Исходный не меняется, длина сохраняется."""
    n = len(c)
    return bytes(abs(c[(i - 1) % n] - c[(i + 1) % n]) for i in range(n))


def rank_key(c: Circle) -> int:
    """Сумма первых RANK_PREFIX чисел круга; нужна только для выбора корзины."""
    return sum(c[:RANK_PREFIX])


def trajectory(c: Circle, steps: int) -> list[Circle]:
    """Первые steps+1 состояний орбиты: [c, advance(c), ...]."""
    rows = [c]
    for _ in range(steps):
        c = advance(c)
        rows.append(c)
    return rows


def render(c: Circle) -> str:
    """Числа круга через пробел, с выравниванием."""
    return ' '.join(f'{v:3d}' for v in c)
