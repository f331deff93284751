"""
cyclecore: поиск периода детерминированной последовательности в O(1) памяти

Последовательность x₀, f(x₀), f(f(x₀)), ... над конечным множеством состояний
рано или поздно зацикливается. Хранить всю историю дорого, поэтому используется
стековый алгоритм Ниваша (https://www.gabrielnivasch.org/fun/cycle-detection)
с разбиением на K стеков («корзин»).

Соглашения:
  - Состояние: любое хешируемое значение с полным порядком (bytes, tuple, int)
  - Корзина состояния x = key(x) mod K
  - В каждой корзине активные слоты 0..height-1 строго убывают
    (слот 0 хранит наибольшее состояние)
  - Период: время между двумя появлениями одного состояния в стеке

Параметры по умолчанию можно переопределить переменными окружения
CYCLE_BUCKETS и CYCLE_STACK_SIZE.
"""

from __future__ import annotations
import os
from typing import Callable, Hashable, TypeVar

S = TypeVar('S', bound=Hashable)

BUCKETS = int(os.environ.get('CYCLE_BUCKETS', 10))          # K, число стеков
STACK_SIZE = int(os.environ.get('CYCLE_STACK_SIZE', 1000))  # ёмкость одного стека


class ResourceExhausted(Exception):
    """Стек корзины переполнен раньше, чем найден цикл.

    Это не ошибка корректности: при бо́льшей ёмкости цикл был бы найден.
    Вызывающий решает, повторить ли с другими параметрами.
    """

    def __init__(self, bucket: int, capacity: int, time: int) -> None:
        super().__init__(
            f"стек корзины {bucket} переполнен (ёмкость {capacity}) на шаге {time}"
        )
        self.bucket = bucket
        self.capacity = capacity
        self.time = time


# ---------------------------------------------------------------------------
# Таблица корзин
# ---------------------------------------------------------------------------

class BucketTable:
    """
    K заранее выделенных стеков фиксированной ёмкости.
    Слот: пара (состояние, момент времени); слоты перезаписываются на месте.
    """

    def __init__(self, buckets: int = BUCKETS, capacity: int = STACK_SIZE) -> None:
        if buckets < 1:
            raise ValueError(f"buckets must be >= 1, got {buckets}")
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.buckets = buckets
        self.capacity = capacity
        self.slots: list[list[tuple | None]] = [
            [None] * capacity for _ in range(buckets)
        ]
        self.heights: list[int] = [0] * buckets

    def reset(self) -> None:
        """Опустошить все корзины, слоты остаются на месте неактивными."""
        for k in range(self.buckets):
            self.heights[k] = 0

    def insertion_point(self, k: int, x) -> int:
        """
        Самый глубокий активный индекс j, где состояние не меньше x.
        Поиск идёт от вершины стека к слоту 0. Если такого нет, -1.
        """
        stack = self.slots[k]
        for i in range(self.heights[k] - 1, -1, -1):
            if not x > stack[i][0]:
                return i
        return -1

    def push(self, k: int, j: int, x, t: int) -> None:
        """Обрезать корзину k до j+1 слотов и записать (x, t) в слот j+1."""
        if j + 1 >= self.capacity:
            raise ResourceExhausted(k, self.capacity, t)
        self.slots[k][j + 1] = (x, t)
        self.heights[k] = j + 2

    def active(self, k: int) -> list[tuple]:
        """Активные слоты корзины k (от наибольшего к наименьшему)."""
        return self.slots[k][:self.heights[k]]

    def depth(self) -> int:
        """Наибольшая текущая высота среди корзин."""
        return max(self.heights)

    def check_invariant(self) -> None:
        """Проверить строгое убывание в каждой корзине (AssertionError иначе)."""
        for k in range(self.buckets):
            stack = self.active(k)
            for i in range(1, len(stack)):
                assert stack[i - 1][0] > stack[i][0], (
                    f"корзина {k}: слот {i - 1} не больше слота {i}"
                )


# ---------------------------------------------------------------------------
# Детектор
# ---------------------------------------------------------------------------

class MultiStackDetector:
    """
    Многостековый детектор Ниваша. Экземпляр владеет своей таблицей корзин;
    каждый вызов run() начинает с пустой таблицы, поэтому независимые
    детекторы можно запускать параллельно.

    check=True: проверять инвариант корзин после каждого шага (отладка).
    """

    def __init__(self,
                 buckets: int = BUCKETS,
                 capacity: int = STACK_SIZE,
                 key: Callable[[S], int] = hash,
                 check: bool = False) -> None:
        self.table = BucketTable(buckets, capacity)
        self.key = key
        self.check = check
        self.time = 0
        self.max_depth = 0

    def run(self, x0: S, step: Callable[[S], S]) -> int:
        """Период последовательности x0, step(x0), ... (ResourceExhausted при нехватке стека)."""
        table = self.table
        table.reset()
        self.time = 0
        self.max_depth = 0
        x = x0
        while True:
            k = self.key(x) % table.buckets
            j = table.insertion_point(k, x)
            if j >= 0:
                found, t = table.slots[k][j]
                if found == x:
                    return self.time - t
            table.push(k, j, x, self.time)
            if table.heights[k] > self.max_depth:
                self.max_depth = table.heights[k]
            if self.check:
                table.check_invariant()
            x = step(x)
            self.time += 1


def find_period(x0: S,
                step: Callable[[S], S],
                *,
                key: Callable[[S], int] = hash,
                buckets: int = BUCKETS,
                capacity: int = STACK_SIZE) -> int:
    """Период орбиты x0 под step (одноразовый детектор)."""
    return MultiStackDetector(buckets, capacity, key).run(x0, step)


# ---------------------------------------------------------------------------
# Эталон: словарь всех посещённых состояний
# ---------------------------------------------------------------------------

def find_orbit(x0: S,
               step: Callable[[S], S],
               max_steps: int = 100_000) -> tuple[int | None, int | None]:
    """
    Транзиент и период орбиты x0, либо (None, None), если цикл не замкнулся
    за max_steps шагов.

    Память O(max_steps), годится только для сверки на малых входах.
    """
    seen: dict[S, int] = {}
    current = x0
    for t in range(max_steps + 1):
        if current in seen:
            return seen[current], t - seen[current]
        seen[current] = t
        current = step(current)
    return None, None
