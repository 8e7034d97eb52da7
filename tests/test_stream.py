#!/usr/bin/env python3
"""
Tests for lazy single-pass streams and their operators.
"""

import unittest

import iterflow
from iterflow import (
    Stream, stream, pipe, compose,
    ValidationError, EmptySequenceError, IndexOutOfBoundsError,
)


def counting_source(values, pulled):
    """Yield ``values`` while recording each one as it is pulled."""
    for value in values:
        pulled.append(value)
        yield value


def exploding_source():
    raise AssertionError("source was pulled")
    yield  # pragma: no cover


class TestLaziness(unittest.TestCase):
    """Nothing is pulled until a terminal asks for it."""

    def test_building_pipeline_pulls_nothing(self):
        """Chaining operators alone never touches the source."""
        pulled = []
        s = stream(counting_source([1, 2, 3], pulled)).map(lambda x: x * 2).filter(lambda x: x > 0)
        self.assertEqual(pulled, [])
        self.assertEqual(s.to_list(), [2, 4, 6])
        self.assertEqual(pulled, [1, 2, 3])

    def test_take_stops_pulling(self):
        """take(n) pulls exactly n elements from upstream."""
        pulled = []
        result = stream(counting_source(range(100), pulled)).take(3).to_list()
        self.assertEqual(result, [0, 1, 2])
        self.assertEqual(pulled, [0, 1, 2])

    def test_take_zero_never_pulls(self):
        """take(0) finishes without touching the source."""
        self.assertEqual(stream(exploding_source()).take(0).to_list(), [])

    def test_infinite_source(self):
        """Infinite sources work as long as something bounds the pipeline."""
        evens = iterflow.repeat(1).scan(lambda acc, x: acc + x, 0).filter(lambda x: x % 2 == 0)
        self.assertEqual(evens.take(4).to_list(), [0, 2, 4, 6])

    def test_first_consumes_one(self):
        """first() pulls a single element."""
        pulled = []
        self.assertEqual(stream(counting_source([7, 8, 9], pulled)).first(), 7)
        self.assertEqual(pulled, [7])

    def test_invalid_arguments_fail_before_pull(self):
        """Operator arguments are validated when the operator is added."""
        s = stream(exploding_source())
        with self.assertRaises(ValidationError):
            s.take(-1)
        with self.assertRaises(ValidationError):
            s.drop(1.5)
        with self.assertRaises(ValidationError):
            s.map(42)
        with self.assertRaises(ValidationError):
            s.window(0)
        with self.assertRaises(ValidationError):
            s.chunk(True)

    def test_invalid_source(self):
        """A non-iterable source is rejected."""
        with self.assertRaises(ValidationError):
            Stream(5)


class TestSinglePass(unittest.TestCase):
    """The source is enumerated at most once."""

    def test_second_terminal_is_empty(self):
        """A consumed stream stays empty."""
        s = stream([1, 2, 3])
        self.assertEqual(s.to_list(), [1, 2, 3])
        self.assertEqual(s.to_list(), [])
        self.assertEqual(s.count(), 0)

    def test_derived_streams_share_source(self):
        """Consuming a derived stream exhausts the stream it came from."""
        base = stream([1, 2, 3])
        doubled = base.map(lambda x: x * 2)
        self.assertEqual(doubled.to_list(), [2, 4, 6])
        self.assertEqual(base.to_list(), [])

    def test_chaining_after_partial_iteration(self):
        """Operators added mid-iteration continue from the current position."""
        s = stream([0, 1, 2, 3])
        self.assertEqual(next(s), 0)
        self.assertEqual(s.map(lambda x: x * 10).to_list(), [10, 20, 30])

    def test_iteration_protocol(self):
        """A stream is its own iterator."""
        s = stream("abc").map(str.upper)
        self.assertIs(iter(s), s)
        self.assertEqual([c for c in s], ["A", "B", "C"])
        with self.assertRaises(StopIteration):
            next(s)

    def test_callable_source(self):
        """A callable source is invoked for its iterator."""
        s = Stream(lambda: iter([1, 2]))
        self.assertEqual(s.to_list(), [1, 2])


class TestOperators(unittest.TestCase):
    """Transformation operators."""

    def test_map_filter(self):
        """Filter then map."""
        result = stream(range(1, 6)).filter(lambda x: x % 2 == 0).map(lambda x: x * 2).to_list()
        self.assertEqual(result, [4, 8])

    def test_flat_map(self):
        """Each element expands to several."""
        self.assertEqual(stream([1, 2]).flat_map(lambda x: [x, x * 10]).to_list(), [1, 10, 2, 20])

    def test_flat_map_keeps_strings_and_scalars_whole(self):
        """Strings and non-iterable results are emitted whole."""
        self.assertEqual(stream(["ab", "cd"]).flat_map(lambda s: s).to_list(), ["ab", "cd"])
        self.assertEqual(stream([1, 2]).flat_map(lambda x: x + 1).to_list(), [2, 3])

    def test_take_and_drop_partition_input(self):
        """take(n) and drop(n) split the input between them."""
        data = list(range(10))
        for n in (0, 3, 10, 15):
            taken = stream(data).take(n).to_list()
            dropped = stream(data).drop(n).to_list()
            self.assertEqual(len(taken) + len(dropped), len(data))
            self.assertEqual(taken + dropped, data)
            self.assertEqual(stream(data).take(n).drop(n).to_list(), [])

    def test_skip_alias(self):
        """skip is drop."""
        self.assertEqual(stream([1, 2, 3]).skip(2).to_list(), [3])

    def test_take_while_drop_while(self):
        """take_while and drop_while split at the first failing element."""
        data = [1, 2, 5, 1, 7]
        self.assertEqual(stream(data).take_while(lambda x: x < 3).to_list(), [1, 2])
        self.assertEqual(stream(data).drop_while(lambda x: x < 3).to_list(), [5, 1, 7])

    def test_distinct_is_idempotent(self):
        """distinct keeps first-seen order and is idempotent."""
        data = [3, 1, 3, 2, 1, 3]
        once = stream(data).distinct().to_list()
        self.assertEqual(once, [3, 1, 2])
        self.assertEqual(stream(once).distinct().to_list(), once)

    def test_distinct_by(self):
        """Duplicates are judged by key."""
        words = ["apple", "avocado", "banana", "blueberry", "cherry"]
        self.assertEqual(stream(words).distinct_by(lambda w: w[0]).to_list(),
                         ["apple", "banana", "cherry"])

    def test_tap(self):
        """tap sees every element without changing it."""
        seen = []
        self.assertEqual(stream([1, 2]).tap(seen.append).map(lambda x: -x).to_list(), [-1, -2])
        self.assertEqual(seen, [1, 2])

    def test_enumerate(self):
        """Indices count up from start."""
        self.assertEqual(stream("ab").enumerate(1).to_list(), [(1, "a"), (2, "b")])

    def test_enumerate_start_validated(self):
        """A bad start is rejected when the operator is added."""
        for start in ("a", -1, 1.5, None):
            with self.assertRaises(ValidationError):
                stream(exploding_source()).enumerate(start)

    def test_scan_yields_initial_first(self):
        """The initial value is emitted before any accumulation."""
        self.assertEqual(stream([1, 2, 3]).scan(lambda acc, x: acc + x, 0).to_list(), [0, 1, 3, 6])
        self.assertEqual(stream([]).scan(lambda acc, x: acc + x, 10).to_list(), [10])

    def test_concat_and_intersperse(self):
        """concat appends sources; intersperse separates elements."""
        self.assertEqual(stream([1]).concat([2, 3], (4,)).to_list(), [1, 2, 3, 4])
        self.assertEqual(stream("abc").intersperse("-").to_list(), ["a", "-", "b", "-", "c"])
        self.assertEqual(stream([]).intersperse("-").to_list(), [])

    def test_sort_variants(self):
        """Natural, reversed, key and comparator sorts."""
        self.assertEqual(stream([3, 1, 2]).sort().to_list(), [1, 2, 3])
        self.assertEqual(stream([3, 1, 2]).sort(reverse=True).to_list(), [3, 2, 1])
        self.assertEqual(stream(["bb", "a", "ccc"]).sort_by(len).to_list(), ["a", "bb", "ccc"])
        self.assertEqual(stream([1, 3, 2]).sort_by(comparator=lambda a, b: b - a).to_list(), [3, 2, 1])
        with self.assertRaises(ValidationError):
            stream([]).sort_by(key=len, comparator=lambda a, b: 0)

    def test_sort_is_stable(self):
        """Equal keys keep their input order."""
        pairs = [(1, "a"), (0, "b"), (1, "c"), (0, "d")]
        self.assertEqual(stream(pairs).sort_by(lambda p: p[0]).to_list(),
                         [(0, "b"), (0, "d"), (1, "a"), (1, "c")])

    def test_reverse(self):
        """Elements come back to front."""
        self.assertEqual(stream(range(4)).reverse().to_list(), [3, 2, 1, 0])

    def test_operators_recorded(self):
        """Operators are listed in chain order."""
        s = stream([1]).map(str).take(1)
        self.assertEqual([op.name for op in s.operators], ["map", "take"])


class TestTerminals(unittest.TestCase):
    """Terminal operations."""

    def test_folds(self):
        """reduce, sum, product and count."""
        self.assertEqual(stream([1, 2, 3, 4]).reduce(lambda a, b: a + b, 0), 10)
        self.assertEqual(stream([1, 2, 3]).sum(), 6)
        self.assertEqual(stream([2, 3, 4]).product(), 24)
        self.assertEqual(stream([5, 5]).count(), 2)

    def test_empty_folds(self):
        """Folds over an empty stream give their identities or None."""
        self.assertEqual(stream([]).sum(), 0)
        self.assertEqual(stream([]).product(), 1)
        self.assertEqual(stream([]).count(), 0)
        self.assertIsNone(stream([]).min())
        self.assertIsNone(stream([]).max())
        self.assertIsNone(stream([]).mean())

    def test_min_max(self):
        """Smallest and largest element."""
        self.assertEqual(stream([4, -1, 9]).min(), -1)
        self.assertEqual(stream([4, -1, 9]).max(), 9)

    def test_for_each(self):
        """for_each calls the function and returns None."""
        seen = []
        self.assertIsNone(stream([1, 2]).for_each(seen.append))
        self.assertEqual(seen, [1, 2])

    def test_collect_alias(self):
        """collect is to_list."""
        self.assertEqual(stream((1, 2)).collect(), [1, 2])

    def test_group_by_keeps_first_seen_order(self):
        """Groups appear in the order their keys are first seen."""
        groups = stream([3, 4, 5, 6, 7]).group_by(lambda x: "odd" if x % 2 else "even")
        self.assertEqual(list(groups), ["odd", "even"])
        self.assertEqual(groups["odd"], [3, 5, 7])
        self.assertEqual(groups["even"], [4, 6])

    def test_partition(self):
        """Matching elements first, the rest second."""
        self.assertEqual(stream(range(6)).partition(lambda x: x < 2), ([0, 1], [2, 3, 4, 5]))

    def test_predicates(self):
        """some, every and includes."""
        self.assertTrue(stream([1, 2, 3]).some(lambda x: x > 2))
        self.assertFalse(stream([]).some(lambda x: True))
        self.assertTrue(stream([]).every(lambda x: False))
        self.assertFalse(stream([1, 2]).every(lambda x: x < 2))
        self.assertTrue(stream([1, 2]).includes(2))
        self.assertFalse(stream([1, 2]).includes(3))

    def test_find(self):
        """find and find_index return the first match."""
        self.assertEqual(stream([1, 4, 6]).find(lambda x: x % 2 == 0), 4)
        self.assertIsNone(stream([1, 3]).find(lambda x: x % 2 == 0))
        self.assertEqual(stream([1, 4, 6]).find_index(lambda x: x > 5), 2)
        self.assertEqual(stream([1]).find_index(lambda x: x > 5), -1)

    def test_first_last(self):
        """first and last, with defaults on empty input."""
        self.assertEqual(stream([1, 2, 3]).first(), 1)
        self.assertEqual(stream([1, 2, 3]).last(), 3)
        self.assertIsNone(stream([]).first(default=None))
        self.assertEqual(stream([]).last(default=0), 0)

    def test_first_last_empty_raise(self):
        """Empty first/last raise without a default."""
        with self.assertRaises(EmptySequenceError) as ctx:
            stream([]).first()
        self.assertEqual(ctx.exception.operation, "first")
        with self.assertRaises(ValueError):
            stream([]).last()

    def test_nth(self):
        """nth indexes from zero and reports the size on overrun."""
        self.assertEqual(stream("abcd").nth(2), "c")
        with self.assertRaises(IndexOutOfBoundsError) as ctx:
            stream([1, 2, 3]).nth(5)
        self.assertEqual(ctx.exception.index, 5)
        self.assertEqual(ctx.exception.size, 3)
        self.assertIsInstance(ctx.exception, IndexError)
        with self.assertRaises(ValidationError):
            stream([1]).nth(-1)

    def test_is_empty(self):
        """is_empty consumes at most one element."""
        self.assertTrue(stream([]).is_empty())
        self.assertFalse(stream([0]).is_empty())

    def test_callback_errors_propagate(self):
        """Errors raised by callbacks reach the caller."""
        def boom(x):
            raise KeyError(x)

        with self.assertRaises(KeyError):
            stream([1]).map(boom).to_list()


class TestComposition(unittest.TestCase):
    """pipe and compose."""

    def test_pipe_runs_left_to_right(self):
        """pipe applies functions left to right."""
        evens_doubled = pipe(
            lambda xs: stream(xs).filter(lambda x: x % 2 == 0),
            lambda s: s.map(lambda x: x * 2),
            Stream.to_list,
        )
        self.assertEqual(evens_doubled([1, 2, 3, 4]), [4, 8])

    def test_compose_runs_right_to_left(self):
        """compose applies functions right to left."""
        f = compose(lambda x: x + 1, lambda x: x * 10)
        self.assertEqual(f(2), 21)

    def test_empty_pipe_is_identity(self):
        """pipe() returns its argument."""
        self.assertEqual(pipe()(5), 5)

    def test_non_callable_rejected(self):
        """Non-callables are rejected when composing."""
        with self.assertRaises(ValidationError):
            pipe(len, 3)


if __name__ == "__main__":
    unittest.main()
