#!/usr/bin/env python3
"""
ducci: периоды кругов «разность соседей» (Project Euler 843)

Круг из n > 2 чисел; на каждом шаге каждое число одновременно заменяется
модулем разности двух соседей. Любой начальный круг рано или поздно
становится периодическим. S(N) есть сумма всех различных периодов
для 3 <= n <= N; например, S(6) = 6 (периоды 1, 2, 3).

Период ищется многостековым детектором (libs.cyclecore) с rank_key
в качестве ключа корзины, поэтому память не зависит от длины орбиты.

Эвристика одного периода: для каждого n берётся случайный начальный круг,
и найденный период считается единственным для этого n. Для больших периодов
это наблюдается на практике, но не доказано; для малых n бывает несколько
периодов. Поэтому sum и agree принимают несколько зёрен (--seeds): периоды
всех зёрен объединяются, а расхождения между зёрнами видны явно.

Использование:
    python3 -m projects.ducci.ducci step 1 2 3 --steps 5
    python3 -m projects.ducci.ducci period 30 --seed 7 --verify
    python3 -m projects.ducci.ducci sum 30 --workers 4 -v
    python3 -m projects.ducci.ducci agree 12 --seeds 1 2 3 4
    python3 -m projects.ducci.ducci --json sum 10 --seeds 1 2
"""

from __future__ import annotations
import argparse
import json
import multiprocessing
import sys
import time
from dataclasses import dataclass, field

sys.path.insert(0, str(__import__('pathlib').Path(__file__).resolve().parents[2]))

from libs.cyclecore.cyclecore import (
    BUCKETS, STACK_SIZE, MultiStackDetector, ResourceExhausted, find_orbit,
)
from projects.ducci.circle import (
    MIN_SIZE, Circle, advance, create_random, from_values, rank_key,
    render, trajectory, validate_size,
)

_RST  = '\033[0m'
_BOLD = '\033[1m'
_DIM  = '\033[2m'

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_EXHAUSTED = 2


# ── Одиночный прогон ────────────────────────────────────────────────────────

def make_detector(buckets: int = BUCKETS,
                  capacity: int = STACK_SIZE) -> MultiStackDetector:
    """Детектор для кругов: корзина выбирается по rank_key."""
    return MultiStackDetector(buckets, capacity, key=rank_key)


def _initial(n: int, seed: int | None, circle: Circle | None) -> Circle:
    validate_size(n)
    if circle is None:
        return create_random(n, seed)
    if len(circle) != n:
        raise ValueError(f"длина круга {len(circle)} не совпадает с n={n}")
    return circle


def run_detection(n: int,
                  seed: int | None = None,
                  *,
                  circle: Circle | None = None,
                  buckets: int = BUCKETS,
                  capacity: int = STACK_SIZE) -> int:
    """
    Период круга размера n.

    Начальный круг: circle, если задан, иначе случайный (seed).
    ValueError при недопустимом n; ResourceExhausted, если не хватило стека.
    """
    x0 = _initial(n, seed, circle)
    return make_detector(buckets, capacity).run(x0, advance)


@dataclass
class SizeResult:
    n: int
    seed: int | None
    period: int | None      # None: стек переполнен, размер не решён
    steps: int
    elapsed: float
    depth: int = 0

    @property
    def exhausted(self) -> bool:
        return self.period is None

    def as_dict(self) -> dict:
        return {
            'n': self.n,
            'seed': self.seed,
            'period': self.period,
            'steps': self.steps,
            'elapsed': round(self.elapsed, 6),
            'depth': self.depth,
            'exhausted': self.exhausted,
        }


def detect_size(n: int,
                seed: int | None = None,
                buckets: int = BUCKETS,
                capacity: int = STACK_SIZE,
                circle: Circle | None = None) -> SizeResult:
    """Один замеренный прогон; переполнение стека помечает размер как нерешённый."""
    x0 = _initial(n, seed, circle)
    det = make_detector(buckets, capacity)
    start = time.perf_counter()
    try:
        period = det.run(x0, advance)
    except ResourceExhausted as e:
        return SizeResult(n, seed, None, e.time,
                          time.perf_counter() - start, det.table.depth())
    return SizeResult(n, seed, period, det.time,
                      time.perf_counter() - start, det.max_depth)


def _detect_task(task: tuple) -> SizeResult:
    return detect_size(*task)


# ── Несколько зёрен ─────────────────────────────────────────────────────────

@dataclass
class PeriodHeuristic:
    """Периоды одного n по нескольким зёрнам: период -> первое зерно."""
    n: int
    periods: dict[int, int | None] = field(default_factory=dict)
    exhausted: list[int | None] = field(default_factory=list)

    @property
    def is_unique(self) -> bool:
        return len(self.periods) == 1

    def as_dict(self) -> dict:
        return {
            'n': self.n,
            'periods': sorted(self.periods),
            'unique': self.is_unique,
            'exhausted_seeds': self.exhausted,
        }


def sample_periods(n: int, seeds, buckets: int = BUCKETS,
                   capacity: int = STACK_SIZE) -> dict[int, int | None]:
    """Различные периоды круга размера n по зёрнам: {период: первое зерно}."""
    return check_agreement(n, seeds, buckets, capacity).periods


def check_agreement(n: int, seeds, buckets: int = BUCKETS,
                    capacity: int = STACK_SIZE) -> PeriodHeuristic:
    """Прогнать по зерну на каждый seed и собрать все различные периоды."""
    validate_size(n)
    report = PeriodHeuristic(n)
    for seed in seeds:
        res = detect_size(n, seed, buckets, capacity)
        if res.exhausted:
            report.exhausted.append(seed)
        else:
            report.periods.setdefault(res.period, seed)
    return report


# ── S(N) ────────────────────────────────────────────────────────────────────

def period_sum(max_n: int,
               *,
               min_n: int = MIN_SIZE,
               seeds=(None,),
               workers: int = 1,
               buckets: int = BUCKETS,
               capacity: int = STACK_SIZE,
               verbose: bool = False) -> tuple[int, list[SizeResult]]:
    """
    Сумма различных периодов для min_n <= n <= max_n.

    По одной задаче на каждую пару (n, seed). При workers > 1 задачи
    раздаются пулу процессов; у каждой задачи своя таблица корзин.
    Возвращает (сумма, результаты по задачам в порядке n, seed).
    Нерешённые размеры (переполнение) в сумму не входят.
    """
    validate_size(min_n)
    validate_size(max_n)
    if min_n > max_n:
        raise ValueError(f"min_n={min_n} больше max_n={max_n}")
    seeds = list(seeds) or [None]
    tasks = [(n, s, buckets, capacity)
             for n in range(min_n, max_n + 1) for s in seeds]

    results: list[SizeResult] = []
    if workers > 1:
        ctx = multiprocessing.get_context()
        with ctx.Pool(processes=workers) as pool:
            for res in pool.imap_unordered(_detect_task, tasks, chunksize=1):
                _progress(res, verbose)
                results.append(res)
    else:
        for task in tasks:
            res = _detect_task(task)
            _progress(res, verbose)
            results.append(res)

    order = {s: i for i, s in enumerate(seeds)}
    results.sort(key=lambda r: (r.n, order[r.seed]))
    periods = {r.period for r in results if not r.exhausted}
    return sum(periods), results


def _progress(res: SizeResult, verbose: bool) -> None:
    if not verbose:
        return
    if res.exhausted:
        print(f'  {res.n:3d}  переполнение стека на шаге {res.steps}'
              f'  {res.elapsed:.3f}s', file=sys.stderr)
    else:
        print(f'  {res.n:3d}  {res.period:>8d}  {res.elapsed:.3f}s',
              file=sys.stderr)


def disagreements(results: list[SizeResult]) -> dict[int, list[int]]:
    """Размеры, для которых зёрна дали разные периоды: {n: [периоды]}."""
    by_n: dict[int, set[int]] = {}
    for r in results:
        if not r.exhausted:
            by_n.setdefault(r.n, set()).add(r.period)
    return {n: sorted(ps) for n, ps in by_n.items() if len(ps) > 1}


# ── Вывод ───────────────────────────────────────────────────────────────────

def print_trajectory(c: Circle, steps: int, color: bool = True) -> None:
    bold  = _BOLD if color else ''
    dim   = _DIM  if color else ''
    reset = _RST  if color else ''
    print(f"\n  {bold}Круг n={len(c)}, шагов: {steps}{reset}")
    for t, row in enumerate(trajectory(c, steps)):
        print(f"  {dim}{t:4d}{reset} │{render(row)}")


def print_result(res: SizeResult, color: bool = True) -> None:
    bold  = _BOLD if color else ''
    reset = _RST  if color else ''
    seed = 'случайное' if res.seed is None else res.seed
    print(f"\n  n = {res.n},  зерно: {seed}")
    if res.exhausted:
        print(f"  {bold}Стек переполнен{reset} на шаге {res.steps}")
    else:
        print(f"  Период: {bold}{res.period}{reset}")
    print(f"  Шагов: {res.steps},  глубина стека: {res.depth},"
          f"  время: {res.elapsed:.3f}s")


def print_sum(total: int, results: list[SizeResult], color: bool = True) -> None:
    bold  = _BOLD if color else ''
    reset = _RST  if color else ''
    print(f"\n  {'n':>4}  {'зерно':>8}  {'период':>10}")
    for r in results:
        seed = '-' if r.seed is None else r.seed
        period = 'нет' if r.exhausted else r.period
        print(f"  {r.n:4d}  {seed!s:>8}  {period!s:>10}")
    periods = sorted({r.period for r in results if not r.exhausted})
    print(f"\n  Различные периоды: {periods}")
    print(f"  Сумма: {bold}{total}{reset}")
    for n, ps in disagreements(results).items():
        print(f"  n={n}: зёрна разошлись, периоды {ps}")


# ── CLI ─────────────────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='ducci: периоды кругов «разность соседей»')
    parser.add_argument('--json', action='store_true', help='Вывод в JSON')
    parser.add_argument('--no-color', action='store_true')
    sub = parser.add_subparsers(dest='cmd')

    p_step = sub.add_parser('step', help='Показать траекторию круга')
    p_step.add_argument('values', nargs='+', type=int)
    p_step.add_argument('--steps', type=int, default=10)

    p_per = sub.add_parser('period', help='Период одного круга')
    p_per.add_argument('n', type=int)
    p_per.add_argument('--seed', type=int, default=None)
    p_per.add_argument('--values', nargs='+', type=int, default=None,
                       help='Явный начальный круг (длина n)')
    p_per.add_argument('--verify', action='store_true',
                       help='Сверить со словарным поиском орбиты')
    p_per.add_argument('--max-steps', type=int, default=1_000_000)

    p_sum = sub.add_parser('sum', help='S(N): сумма различных периодов')
    p_sum.add_argument('max_n', type=int)
    p_sum.add_argument('--min', dest='min_n', type=int, default=MIN_SIZE)
    p_sum.add_argument('--seeds', nargs='+', type=int, default=None)
    p_sum.add_argument('--workers', type=int, default=1)
    p_sum.add_argument('-v', '--verbose', action='store_true')

    p_agr = sub.add_parser('agree', help='Сравнить периоды разных зёрен')
    p_agr.add_argument('n', type=int)
    p_agr.add_argument('--seeds', nargs='+', type=int, required=True)

    for p in (p_per, p_sum, p_agr):
        p.add_argument('--buckets', type=int, default=BUCKETS)
        p.add_argument('--capacity', type=int, default=STACK_SIZE)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    color = not args.no_color

    if args.cmd is None:
        parser.print_help()
        return EXIT_OK

    try:
        if args.cmd == 'step':
            return _cmd_step(args, color)
        if args.cmd == 'period':
            return _cmd_period(args, color)
        if args.cmd == 'sum':
            return _cmd_sum(args, color)
        return _cmd_agree(args, color)
    except ValueError as e:
        print(f"  ✗ {e}", file=sys.stderr)
        return EXIT_CONFIG


def _cmd_step(args, color: bool) -> int:
    c = from_values(args.values)
    if args.json:
        rows = [list(r) for r in trajectory(c, args.steps)]
        print(json.dumps({'n': len(c), 'rows': rows}, indent=2))
    else:
        print_trajectory(c, args.steps, color)
    return EXIT_OK


def _cmd_period(args, color: bool) -> int:
    circle = from_values(args.values) if args.values else None
    x0 = _initial(args.n, args.seed, circle)
    res = detect_size(args.n, args.seed, args.buckets, args.capacity, circle=x0)
    data = res.as_dict()
    code = EXIT_EXHAUSTED if res.exhausted else EXIT_OK

    if args.verify:
        transient, period = find_orbit(x0, advance, args.max_steps)
        data['reference'] = {'transient': transient, 'period': period}
        if not res.exhausted and period is not None and period != res.period:
            print(f"  ✗ расхождение: детектор {res.period}, словарь {period}",
                  file=sys.stderr)
            code = EXIT_CONFIG

    if args.json:
        print(json.dumps(data, indent=2))
    else:
        print_result(res, color)
        if args.verify:
            ref = data['reference']
            print(f"  Словарь: транзиент {ref['transient']}, период {ref['period']}")
    if res.exhausted:
        print(f"  ✗ стек переполнен (ёмкость {args.capacity})", file=sys.stderr)
    return code


def _cmd_sum(args, color: bool) -> int:
    seeds = args.seeds if args.seeds else [None]
    total, results = period_sum(
        args.max_n, min_n=args.min_n, seeds=seeds, workers=args.workers,
        buckets=args.buckets, capacity=args.capacity, verbose=args.verbose)
    if args.json:
        print(json.dumps({
            'sum': total,
            'results': [r.as_dict() for r in results],
            'disagreements': {str(n): ps for n, ps in disagreements(results).items()},
        }, indent=2))
    else:
        print_sum(total, results, color)
    if any(r.exhausted for r in results):
        return EXIT_EXHAUSTED
    return EXIT_OK


def _cmd_agree(args, color: bool) -> int:
    report = check_agreement(args.n, args.seeds, args.buckets, args.capacity)
    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        bold  = _BOLD if color else ''
        reset = _RST  if color else ''
        print(f"\n  n = {report.n},  зёрен: {len(args.seeds)}")
        for period, seed in sorted(report.periods.items()):
            print(f"    период {period:>8d}  (первое зерно {seed})")
        verdict = 'единственный' if report.is_unique else 'НЕ единственный'
        print(f"  Период {bold}{verdict}{reset}")
    if report.exhausted:
        return EXIT_EXHAUSTED
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
