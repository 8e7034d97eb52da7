#!/usr/bin/env python3
"""
Tests for configuration, errors, validation helpers and memory pressure handling.
"""

import logging
import time
import unittest
from types import SimpleNamespace
from unittest import mock

from iterflow import stream, IterFlowConfig
from iterflow.errors import (
    IterFlowError, ValidationError, IndexOutOfBoundsError, TypeConversionError
)
from iterflow.memory import (
    MemoryMonitor, MemoryPressureLevel, MemoryInfo, MemoryPressureHandler,
    LoggingHandler, classify, monitor,
)
from iterflow.validation import to_number, to_integer


def make_info(level, percent=90.0):
    return MemoryInfo(
        total=1000,
        available=100,
        used=900,
        percent=percent,
        pressure_level=level,
        timestamp=time.time(),
    )


class RecordingHandler(MemoryPressureHandler):
    """Collects every dispatch it receives."""

    def __init__(self):
        self.calls = []

    def can_handle(self, level, info):
        return True

    def handle(self, level, info, operation):
        self.calls.append((level, operation))


class TestConfig(unittest.TestCase):
    """Global configuration singleton."""

    def setUp(self):
        """Snapshot the shared configuration."""
        self.config = IterFlowConfig.get_instance()
        self.saved = dict(vars(self.config))

    def tearDown(self):
        """Restore the shared configuration."""
        IterFlowConfig.set_defaults(**self.saved)

    def test_singleton(self):
        """get_instance always returns the same object."""
        self.assertIs(IterFlowConfig.get_instance(), self.config)

    def test_defaults(self):
        """Default configuration values."""
        self.assertEqual(self.config.default_chunk_size, 1000)
        self.assertEqual(self.config.memory_warning_level, "HIGH")
        self.assertGreater(self.config.memory_limit, 0)

    def test_set_defaults(self):
        """set_defaults updates the shared configuration."""
        IterFlowConfig.set_defaults(default_chunk_size=3, memory_warning_level="critical")
        self.assertEqual(self.config.default_chunk_size, 3)
        self.assertEqual(self.config.memory_warning_level, "CRITICAL")
        self.assertEqual(stream(range(7)).chunk().map(len).to_list(), [3, 3, 1])

    def test_unknown_keys_ignored(self):
        """Unknown options are ignored."""
        IterFlowConfig.set_defaults(no_such_option=True)
        self.assertFalse(hasattr(self.config, "no_such_option"))

    def test_clamp_correlation_toggle(self):
        """Correlation works with clamping turned off."""
        IterFlowConfig.set_defaults(clamp_correlation=False)
        r = stream([1, 2, 3]).correlation([2, 4, 6])
        self.assertAlmostEqual(r, 1.0)

    def test_format_bytes(self):
        """Byte counts render with binary units."""
        self.assertEqual(self.config.format_bytes(512), "512.00 B")
        self.assertEqual(self.config.format_bytes(1536), "1.50 KB")
        self.assertEqual(self.config.format_bytes(3 * 1024 ** 3), "3.00 GB")


class TestErrors(unittest.TestCase):
    """Error hierarchy and coercion helpers."""

    def test_builtin_bases(self):
        """Library errors also derive from the matching builtins."""
        self.assertTrue(issubclass(ValidationError, ValueError))
        self.assertTrue(issubclass(IndexOutOfBoundsError, IndexError))
        self.assertTrue(issubclass(TypeConversionError, TypeError))
        self.assertTrue(issubclass(TypeConversionError, IterFlowError))

    def test_detailed_string(self):
        """Detailed error text carries operation and context."""
        try:
            stream([1]).take(-2)
        except ValidationError as e:
            detail = e.to_detailed_string()
            self.assertEqual(e.operation, "take")
            self.assertEqual(e.context["value"], -2)
            self.assertIn("ValidationError", detail)
            self.assertIn("Operation: take", detail)
            self.assertIn("param_name", detail)
        else:
            self.fail("ValidationError not raised")

    def test_to_number(self):
        """Numbers and numeric strings convert; the rest raise."""
        self.assertEqual(to_number(3), 3)
        self.assertEqual(to_number("2.5"), 2.5)
        for bad in ("abc", None, [1], "nan"):
            with self.assertRaises(TypeConversionError):
                to_number(bad)

    def test_to_integer(self):
        """Integral values convert; fractional ones raise."""
        self.assertEqual(to_integer("4"), 4)
        self.assertEqual(to_integer(6.0), 6)
        with self.assertRaises(TypeConversionError) as ctx:
            to_integer(2.5, "nth")
        self.assertEqual(ctx.exception.expected_type, "integer")
        self.assertEqual(ctx.exception.operation, "nth")


class TestMemoryPressure(unittest.TestCase):
    """Memory pressure classification, monitoring and logging."""

    def test_classify_thresholds(self):
        """Usage percentages map to pressure levels."""
        self.assertEqual(classify(10), MemoryPressureLevel.NONE)
        self.assertEqual(classify(50), MemoryPressureLevel.LOW)
        self.assertEqual(classify(70), MemoryPressureLevel.MEDIUM)
        self.assertEqual(classify(85), MemoryPressureLevel.HIGH)
        self.assertEqual(classify(99), MemoryPressureLevel.CRITICAL)

    def test_level_ordering(self):
        """Pressure levels compare and parse by name."""
        self.assertGreater(MemoryPressureLevel.CRITICAL, MemoryPressureLevel.HIGH)
        self.assertGreaterEqual(MemoryPressureLevel.LOW, MemoryPressureLevel.LOW)
        self.assertEqual(MemoryPressureLevel.from_name("medium"), MemoryPressureLevel.MEDIUM)
        with self.assertRaises(ValueError):
            MemoryPressureLevel.from_name("extreme")

    @mock.patch("iterflow.memory.monitor.psutil.virtual_memory")
    def test_memory_info_uses_limit(self, virtual_memory):
        """The configured limit caps the reported total."""
        virtual_memory.return_value = SimpleNamespace(total=4000, used=960)
        info = MemoryMonitor(memory_limit=1000).get_memory_info()
        self.assertEqual(info.total, 1000)
        self.assertEqual(info.available, 40)
        self.assertAlmostEqual(info.percent, 96.0)
        self.assertEqual(info.pressure_level, MemoryPressureLevel.CRITICAL)
        self.assertIn("CRITICAL", str(info))

    @mock.patch("iterflow.memory.monitor.psutil.virtual_memory")
    def test_check_dispatches_to_handlers(self, virtual_memory):
        """check() notifies registered handlers until removed."""
        virtual_memory.return_value = SimpleNamespace(total=1000, used=100)
        handler = RecordingHandler()
        mon = MemoryMonitor(memory_limit=1000)
        mon.add_handler(handler)
        self.assertEqual(mon.check("median"), MemoryPressureLevel.NONE)
        self.assertEqual(handler.calls, [(MemoryPressureLevel.NONE, "median")])

        mon.remove_handler(handler)
        mon.check("median")
        self.assertEqual(len(handler.calls), 1)

    def test_logging_handler_threshold(self):
        """The logging handler ignores levels below its threshold."""
        handler = LoggingHandler()
        self.assertEqual(handler.threshold, MemoryPressureLevel.HIGH)
        self.assertTrue(handler.can_handle(MemoryPressureLevel.CRITICAL, make_info(MemoryPressureLevel.CRITICAL)))
        self.assertFalse(handler.can_handle(MemoryPressureLevel.MEDIUM, make_info(MemoryPressureLevel.MEDIUM)))

    def test_logging_handler_logs_once_per_quiet_period(self):
        """Repeated pressure at one level is logged once."""
        logger = logging.getLogger("iterflow.tests.memory")
        handler = LoggingHandler(logger=logger, min_level=MemoryPressureLevel.MEDIUM)
        info = make_info(MemoryPressureLevel.HIGH)

        with self.assertLogs(logger, level="ERROR") as logs:
            handler.handle(MemoryPressureLevel.HIGH, info, "sort_by")
        self.assertIn("'sort_by'", logs.output[0])

        with self.assertNoLogs(logger):
            handler.handle(MemoryPressureLevel.HIGH, info, "sort_by")

        with self.assertLogs(logger, level="WARNING") as logs:
            handler.handle(MemoryPressureLevel.MEDIUM, make_info(MemoryPressureLevel.MEDIUM), "reverse")
        self.assertTrue(logs.output[0].startswith("WARNING"))

    def test_buffering_samples_memory(self):
        """Buffering operators check memory every configured interval."""
        config = IterFlowConfig.get_instance()
        saved = config.memory_check_interval
        IterFlowConfig.set_defaults(memory_check_interval=10)
        try:
            with mock.patch.object(monitor, "check") as check:
                result = stream(range(25, 0, -1)).sort().to_list()
            self.assertEqual(result, list(range(1, 26)))
            self.assertEqual(check.call_count, 2)
            check.assert_called_with("sort_by")
        finally:
            IterFlowConfig.set_defaults(memory_check_interval=saved)

    def test_streaming_operators_do_not_buffer(self):
        """Streaming operators never sample memory."""
        with mock.patch.object(monitor, "check") as check:
            stream(range(1000)).windowed_max(10).ewma(0.5).count()
        check.assert_not_called()


if __name__ == "__main__":
    unittest.main()
