from __future__ import annotations

import unittest

from analyzer import (
    analyze,
    analyze_depend_types,
    analyze_hot_write,
    format_report,
    page_read_counts,
    page_span,
)
from depmap import DependencyMapError
from tracedata import TraceDataError, make_trace


def _example_trace():
    # page size 4: write covers pages 0..2, reads cover 0..1 and 1..2
    return make_trace([("W", 0, 8), ("R", 0, 4), ("R", 4, 4)])


class DependTypesTests(unittest.TestCase):
    def test_breakdown_for_five_reads(self) -> None:
        trace = make_trace([("R", i * 8, 8) for i in range(5)] + [("W", 0, 8), ("W", 8, 8), ("W", 16, 8)])
        read_centric = {1: {5}, 3: {5, 6, 7}}

        bd = analyze_depend_types(trace, read_centric, True)

        self.assertEqual((bd.indep, bd.dep_short, bd.dep_long), (3, 1, 1))
        self.assertEqual(bd.total, 5)

    def test_only_matching_direction_is_counted(self) -> None:
        trace = make_trace([("W", 0, 8), ("R", 0, 8), ("W", 8, 8), ("R", 8, 8)])
        write_centric = {0: {1, 3}}

        bd = analyze_depend_types(trace, write_centric, False)

        self.assertEqual(bd.total, 2)
        self.assertEqual(bd.dep_long, 1)
        self.assertEqual(bd.indep, 1)
        self.assertEqual(bd.dep_short, 0)

    def test_empty_set_under_present_key_is_independent(self) -> None:
        trace = make_trace([("R", 0, 8), ("R", 8, 8)])

        bd = analyze_depend_types(trace, {0: set(), 1: {9}}, True)

        self.assertEqual((bd.indep, bd.dep_short, bd.dep_long), (1, 1, 0))

    def test_empty_trace(self) -> None:
        bd = analyze_depend_types([], {}, True)
        self.assertEqual(bd.total, 0)


class PageSpanTests(unittest.TestCase):
    def test_end_address_is_inclusive(self) -> None:
        self.assertEqual(page_span(0, 8, 4), (0, 2))
        self.assertEqual(page_span(4, 4, 4), (1, 2))
        self.assertEqual(page_span(5, 2, 4), (1, 1))

    def test_zero_length_spans_one_page(self) -> None:
        self.assertEqual(page_span(9, 0, 4), (2, 2))

    def test_monotonic_in_length(self) -> None:
        prev = 0
        for nlb in range(0, 40):
            start, end = page_span(3, nlb, 8)
            count = end - start + 1
            self.assertGreaterEqual(count, prev)
            prev = count

    def test_negative_length_fails_loudly(self) -> None:
        with self.assertRaises(TraceDataError):
            page_span(16, -9, 4)

    def test_page_size_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            page_span(0, 8, 0)


class HotWriteTests(unittest.TestCase):
    def test_per_page_counts(self) -> None:
        trace = _example_trace()
        counts = page_read_counts(trace, 0, {1, 2}, 4)
        self.assertEqual(counts.tolist(), [1, 2, 1])

    def test_read_covering_write_increments_every_page_once(self) -> None:
        trace = make_trace([("W", 8, 8), ("R", 0, 32)])
        counts = page_read_counts(trace, 0, {1}, 4)
        self.assertEqual(counts.tolist(), [1, 1, 1])

    def test_read_touching_first_page_only(self) -> None:
        trace = make_trace([("W", 8, 8), ("R", 0, 8)])
        counts = page_read_counts(trace, 0, {1}, 4)
        self.assertEqual(counts.tolist(), [1, 0, 0])

    def test_non_overlapping_pair_is_rejected(self) -> None:
        trace = make_trace([("W", 0, 4), ("R", 64, 4)])
        with self.assertRaises(DependencyMapError):
            page_read_counts(trace, 0, {1}, 4)

    def test_histogram_example(self) -> None:
        # reads of pages 0..1 and 1..1 on a write of pages 0..2
        trace = make_trace([("W", 0, 8), ("R", 0, 4), ("R", 4, 3)])

        hist = analyze_hot_write(trace, {0: {1, 2}}, 4)

        self.assertEqual(hist.items(), [(0, 1), (1, 1), (2, 1)])
        self.assertEqual(hist.read_counts().tolist(), [0, 1, 2])
        self.assertEqual(hist.frequencies().tolist(), [1, 1, 1])

    def test_frequencies_sum_to_pages_of_read_writes(self) -> None:
        trace = make_trace([
            ("W", 0, 16),
            ("W", 32, 3),
            ("W", 100, 4),  # never read, excluded
            ("R", 0, 4),
            ("R", 8, 8),
            ("R", 32, 1),
            ("R", 33, 2),
        ])
        write_centric = {0: {3, 4}, 1: {5, 6}}

        hist = analyze_hot_write(trace, write_centric, 4)

        expected_pages = 0
        for wid in write_centric:
            start, end = page_span(trace[wid].slba, trace[wid].nlb, 4)
            expected_pages += end - start + 1
        self.assertEqual(hist.total_pages, expected_pages)
        self.assertEqual(int(hist.frequencies().sum()), expected_pages)

    def test_no_hot_writes_gives_empty_histogram(self) -> None:
        hist = analyze_hot_write(_example_trace(), {}, 4)
        self.assertEqual(hist.items(), [])
        self.assertEqual(hist.total_pages, 0)


class ReportTests(unittest.TestCase):
    def test_format_report_sections(self) -> None:
        trace = _example_trace()
        report = analyze(trace, {1: {0}, 2: {0}}, {0: {1, 2}}, 4)

        lines = format_report(report)

        self.assertEqual(lines[0], "[Read BD]\tIndependent\tDep_Short\tDep_Long")
        self.assertEqual(lines[1], "0\t2\t0")
        self.assertEqual(lines[2], "[Write BD]\tIndependent\tDep_Short\tDep_Long")
        self.assertEqual(lines[3], "0\t0\t1")
        self.assertEqual(lines[4], "[HotWrite]")
        self.assertEqual(lines[5], "1\t2")
        self.assertEqual(lines[6], "2\t1")


if __name__ == "__main__":
    unittest.main()
