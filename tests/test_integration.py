"""
Интеграционные тесты: импорт всех модулей и сквозные инварианты
круг → детектор → драйвер.
"""
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import importlib
import subprocess
import unittest
from pathlib import Path


# ── список модулей и ожидаемые символы ─────────────────────────────────────
MODULES = [
    ('libs.cyclecore.cyclecore', ['MultiStackDetector', 'BucketTable',
                                  'ResourceExhausted', 'find_period',
                                  'find_orbit']),
    ('libs.cyclecore',           ['find_period', 'ResourceExhausted']),
    ('projects.ducci.circle',    ['advance', 'create_random', 'rank_key']),
    ('projects.ducci.ducci',     ['run_detection', 'period_sum', 'main']),
    ('projects.ducci',           ['advance', 'run_detection']),
]


class TestImports(unittest.TestCase):
    """Все модули должны импортироваться и экспортировать ключевые символы."""

    def _check(self, module_path: str, symbols: list[str]):
        try:
            mod = importlib.import_module(module_path)
        except ImportError as e:
            self.fail(f"Не удалось импортировать {module_path}: {e}")
        for sym in symbols:
            self.assertTrue(
                hasattr(mod, sym),
                f"{module_path} не экспортирует '{sym}'",
            )


# Динамически создаём по одному test-методу на модуль
for _path, _syms in MODULES:
    def _make_test(p, s):
        def _test(self):
            self._check(p, s)
        _test.__name__ = f'test_{p.replace(".", "_")}_imports'
        return _test

    setattr(
        TestImports,
        f'test_{_path.replace(".", "_")}_imports',
        _make_test(_path, _syms),
    )


# ── Межмодульные инварианты ─────────────────────────────────────────────────
from libs.cyclecore import MultiStackDetector, find_orbit
from projects.ducci import advance, create_random, rank_key, run_detection


class TestCircleDetector(unittest.TestCase):
    """Круги как состояния общего детектора."""

    def test_invariant_on_circles(self):
        """Строгое убывание корзин держится на каждом шаге реальной орбиты."""
        det = MultiStackDetector(buckets=5, capacity=500, key=rank_key, check=True)
        for n in (5, 9, 10):
            c = create_random(n, seed=n)
            _, expected = find_orbit(c, advance, max_steps=100_000)
            self.assertEqual(det.run(c, advance), expected)

    def test_rank_key_vs_hash(self):
        """Выбор ключа корзины не влияет на период."""
        c = create_random(13, seed=21)
        by_rank = MultiStackDetector(key=rank_key).run(c, advance)
        by_hash = MultiStackDetector(key=hash).run(c, advance)
        self.assertEqual(by_rank, by_hash)
        self.assertEqual(run_detection(13, circle=c), by_rank)


class TestCommandLine(unittest.TestCase):
    """Запуск модуля как скрипта, без python -m."""

    def test_script_entry(self):
        root = Path(__file__).resolve().parents[1]
        proc = subprocess.run(
            [sys.executable, str(root / 'projects' / 'ducci' / 'ducci.py'),
             '--json', 'step', '1', '2', '3', '--steps', '1'],
            capture_output=True, text=True, cwd=root, timeout=60,
        )
        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertIn('"rows"', proc.stdout)


if __name__ == '__main__':
    unittest.main()
