"""Tests for the byte-size helpers."""

from django.test import SimpleTestCase

from portal.services.storage_units import GB, MB, bytes_to_unit, format_bytes, megabytes, parse_size


class FormatBytesTests(SimpleTestCase):
    def test_zero_and_missing_values(self) -> None:
        self.assertEqual(format_bytes(0), '0 B')
        self.assertEqual(format_bytes(None), '0 B')

    def test_scales_with_1024_multipliers(self) -> None:
        self.assertEqual(format_bytes(512), '512 B')
        self.assertEqual(format_bytes(1536), '1.5 KB')
        self.assertEqual(format_bytes(int(1.5 * MB)), '1.5 MB')
        self.assertEqual(format_bytes(10 * GB), '10 GB')

    def test_rounds_to_two_decimals(self) -> None:
        self.assertEqual(format_bytes(1234567), '1.18 MB')


class ParseSizeTests(SimpleTestCase):
    def test_converts_units_to_bytes(self) -> None:
        self.assertEqual(parse_size('100', 'MB'), 100 * MB)
        self.assertEqual(parse_size('0.5', 'GB'), 512 * MB)
        self.assertEqual(megabytes(20), 20 * MB)

    def test_invalid_input_counts_as_zero(self) -> None:
        self.assertEqual(parse_size('abc', 'MB'), 0)
        self.assertEqual(parse_size('', 'GB'), 0)
        self.assertEqual(parse_size(None, 'GB'), 0)

    def test_bytes_to_unit(self) -> None:
        self.assertEqual(bytes_to_unit(10 * GB, 'GB'), '10')
        self.assertEqual(bytes_to_unit(100 * MB, 'MB'), '100')
        self.assertEqual(bytes_to_unit(None, 'MB'), '0')
